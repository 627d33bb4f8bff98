# errors.py
# Tipos de erro do núcleo (armazenamento e licença)


class TPVError(Exception):
    """Erro base do núcleo. A camada de comandos converte em mensagem."""


class StorageError(TPVError):
    """Falha ao abrir, criar schema ou executar consulta no SQLite."""


class NotInitializedError(TPVError):
    """Operação chamada antes do banco estar aberto (ou depois de fechado)."""


class FingerprintError(TPVError):
    """Não foi possível descobrir o endereço MAC da máquina."""


class NetworkError(TPVError):
    """Servidor de licenças inacessível, timeout ou status HTTP de erro."""


class ParseError(TPVError):
    """Resposta do servidor ou documento de exportação malformado."""
