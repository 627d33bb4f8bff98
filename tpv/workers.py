# workers.py
# Threads Qt para operações de rede fora da thread da interface

from typing import Optional

from PyQt6.QtCore import QThread, pyqtSignal

from tpv.license import LicenseManager
from tpv.logger import log_error
from tpv.models import LicenseStatus


class LicenseActivationThread(QThread):
    """Thread para ativar a licença em background (timeout fixo de 10s, sem cancelamento)"""

    # Sinais
    activated = pyqtSignal(object)  # LicenseStatus
    failed = pyqtSignal(str)  # mensagem de erro inesperado

    def __init__(self, manager: LicenseManager, key: str, email: str):
        super().__init__()
        self.manager = manager
        self.key = key
        self.email = email
        self.result: Optional[LicenseStatus] = None

    def run(self):
        """Executa a ativação e emite o status resultante"""
        try:
            self.result = self.manager.activate(self.key, self.email)
        except Exception as e:
            log_error("Erro inesperado na ativação", e)
            self.failed.emit(f"Erro inesperado: {e}")
            return
        self.activated.emit(self.result)
