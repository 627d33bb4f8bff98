# license.py
"""
Ativação de licença

Fluxo: fingerprint da máquina -> validação online -> gravação local.
O status (válida/expirada/dias restantes) é sempre recalculado na leitura,
sem contatar o servidor novamente.
"""

import hashlib
import json
import re
import socket
import subprocess
import sys
import time
import urllib.error
import urllib.request
from typing import Callable, List, Optional

from tpv.config import (
    LICENSE_TIMEOUT,
    SECONDS_PER_DAY,
    get_license_api_key,
    get_license_server_url,
    get_network_interface,
)
from tpv.database import Database
from tpv.errors import FingerprintError, NetworkError, ParseError
from tpv.logger import log_error, log_event, log_warning
from tpv.models import LicenseKey, LicenseStatus, LicenseValidationResponse

VALIDATE_PATH = "/api/license/validate"

MSG_NO_LICENSE = "Nenhuma licença ativada"
MSG_EXPIRED = "Licença expirada"

_MAC_RE = re.compile(r"([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}")

Runner = Callable[..., subprocess.CompletedProcess]


def _fingerprint_command(interface: Optional[str] = None) -> List[str]:
    if sys.platform == "win32":
        return ["getmac", "/fo", "csv", "/nh"]
    iface = interface or get_network_interface()
    if sys.platform == "darwin":
        return ["ifconfig", iface, "ether"]
    return ["ip", "link", "show", iface]


def generate_machine_fingerprint(interface: Optional[str] = None, runner: Runner = subprocess.run) -> str:
    """
    Retorna o endereço MAC da interface de rede principal, normalizado
    (minúsculo, separado por ':').

    Raises:
        FingerprintError: comando indisponível, falhou ou não retornou MAC
    """
    cmd = _fingerprint_command(interface)
    try:
        result = runner(
            cmd,
            capture_output=True,
            text=True,
            timeout=5,
            creationflags=subprocess.CREATE_NO_WINDOW if sys.platform == "win32" else 0,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise FingerprintError(f"Failed to get MAC: {e}") from e

    if result.returncode != 0:
        detail = (result.stderr or "").strip() or f"código {result.returncode}"
        raise FingerprintError(f"Failed to get MAC: {cmd[0]} falhou ({detail})")

    match = _MAC_RE.search(result.stdout or "")
    if not match:
        raise FingerprintError(f"Failed to get MAC: nenhum endereço encontrado na saída de {cmd[0]}")
    return match.group(0).replace("-", ":").lower()


def hash_license_key(key: str) -> str:
    """SHA-256 (hex) da chave; usado como identificador, nunca revertido."""
    return hashlib.sha256(key.encode('utf-8')).hexdigest()


def validate_license_online(
    key: str,
    email: str,
    machine_fingerprint: str,
    server_url: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: float = LICENSE_TIMEOUT,
) -> LicenseValidationResponse:
    """
    POST {server}/api/license/validate. Sem novas tentativas.

    Raises:
        NetworkError: sem conexão, timeout ou status HTTP de erro
        ParseError: corpo da resposta não é o JSON esperado
    """
    url = (server_url or get_license_server_url()).rstrip("/") + VALIDATE_PATH
    body = json.dumps({
        "key": key,
        "email": email,
        "machine_fingerprint": machine_fingerprint,
    }).encode('utf-8')

    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": "TPV-License/1.0",
    }
    api_key = api_key or get_license_api_key()
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    req = urllib.request.Request(url, data=body, headers=headers, method="POST")

    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            raw = response.read()
    except urllib.error.HTTPError as e:
        raise NetworkError(f"API error: {e.code} {e.reason}") from e
    except urllib.error.URLError as e:
        raise NetworkError(f"Connection error: {e.reason}") from e
    except (socket.timeout, TimeoutError) as e:
        raise NetworkError("Connection error: tempo limite excedido") from e
    except OSError as e:
        raise NetworkError(f"Connection error: {e}") from e

    try:
        data = json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise ParseError(f"Parse error: {e}") from e
    return LicenseValidationResponse.from_dict(data)


class LicenseManager:
    def __init__(
        self,
        db: Database,
        server_url: Optional[str] = None,
        fingerprint_provider: Callable[[], str] = generate_machine_fingerprint,
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.server_url = server_url
        self.fingerprint_provider = fingerprint_provider
        self.clock = clock

    def fingerprint(self) -> str:
        return self.fingerprint_provider()

    def hash(self, key: str) -> str:
        return hash_license_key(key)

    def activate(self, key: str, email: str) -> LicenseStatus:
        """
        Valida online e grava a licença (substituindo a anterior).

        Rejeição do servidor, falha de rede/parse ou de fingerprint retornam
        status não ativado com a mensagem; nada é gravado nesses casos.
        """
        key_hash = self.hash(key)
        log_event(f"Ativando licença {key_hash[:8]}... para {email}")
        try:
            fingerprint = self.fingerprint()
            response = validate_license_online(
                key, email, fingerprint,
                server_url=self.server_url,
            )
        except (FingerprintError, NetworkError, ParseError) as e:
            log_error("Falha na ativação da licença", e)
            return LicenseStatus(is_activated=False, is_valid=False, error_message=str(e))

        if not response.valid:
            reason = response.error or "Licença inválida"
            log_warning(f"Licença recusada pelo servidor: {reason}")
            return LicenseStatus(is_activated=False, is_valid=False, error_message=reason)

        record = LicenseKey(
            key_hash=key_hash,
            email=response.user_email or email,
            machine_fingerprint=fingerprint,
            activated_at=int(self.clock()),
            expires_at=response.expires_at,
            is_active=True,
            license_type=response.license_type,
        )
        self._save(record)
        log_event(f"Licença ativada ({record.license_type or 'sem tipo'})")
        return self._status_for(record)

    def status(self) -> LicenseStatus:
        record = self.load()
        if record is None:
            return LicenseStatus(is_activated=False, is_valid=False, error_message=MSG_NO_LICENSE)
        return self._status_for(record)

    def load(self) -> Optional[LicenseKey]:
        rows = self.db.query(
            "SELECT key_hash, email, machine_fingerprint, activated_at, expires_at, is_active, license_type "
            "FROM license WHERE is_active=1 ORDER BY activated_at DESC LIMIT 1"
        )
        if not rows:
            return None
        row = rows[0]
        return LicenseKey(
            key_hash=row["key_hash"],
            email=row["email"],
            machine_fingerprint=row["machine_fingerprint"],
            activated_at=row["activated_at"],
            expires_at=row["expires_at"],
            is_active=bool(row["is_active"]),
            license_type=row["license_type"] or "",
        )

    def clear(self) -> None:
        self.db.execute("DELETE FROM license")
        log_event("Licença local removida")

    def _save(self, record: LicenseKey) -> None:
        # No máximo uma licença ativa por instalação
        with self.db.transaction() as cur:
            cur.execute("DELETE FROM license")
            cur.execute(
                "INSERT INTO license (key_hash, email, machine_fingerprint, activated_at, expires_at, "
                "is_active, license_type) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    record.key_hash, record.email, record.machine_fingerprint, record.activated_at,
                    record.expires_at, int(record.is_active), record.license_type,
                ),
            )

    def _status_for(self, record: LicenseKey) -> LicenseStatus:
        now = int(self.clock())
        if record.expires_at is None:
            return LicenseStatus(
                is_activated=True, is_valid=True, expires_at=None, email=record.email,
                days_remaining=None, license_type=record.license_type,
            )
        if record.expires_at <= now:
            return LicenseStatus(
                is_activated=True, is_valid=False, expires_at=record.expires_at, email=record.email,
                days_remaining=0, license_type=record.license_type, error_message=MSG_EXPIRED,
            )
        return LicenseStatus(
            is_activated=True, is_valid=True, expires_at=record.expires_at, email=record.email,
            days_remaining=int((record.expires_at - now) / SECONDS_PER_DAY),
            license_type=record.license_type,
        )
