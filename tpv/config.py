# config.py
# Configurações globais e leitura de YAML

from typing import Dict, Any, Optional
import yaml
import os
import sys

# Servidor de licenças padrão (instalação local)
DEFAULT_LICENSE_SERVER_URL = "http://localhost:3002"

# Timeout fixo da validação online (segundos)
LICENSE_TIMEOUT = 10

SECONDS_PER_DAY = 86400

DATABASE_FILENAME = "tpv-haido.db"


def get_app_data_directory() -> str:
    """
    Retorna o diretório de dados da aplicação.

    Ordem de prioridade:
    1. Variável de ambiente TPV_DATA_DIR
    2. %LOCALAPPDATA%/TPV no Windows
    3. ~/.tpv nos demais sistemas
    """
    override = os.getenv("TPV_DATA_DIR")
    if override:
        app_data_dir = override
    elif sys.platform == "win32":
        base = os.getenv("LOCALAPPDATA", os.getenv("APPDATA", ""))
        if base:
            app_data_dir = os.path.join(base, "TPV")
        else:
            app_data_dir = os.path.join(os.path.expanduser("~"), "AppData", "Local", "TPV")
    else:
        app_data_dir = os.path.expanduser("~/.tpv")

    os.makedirs(app_data_dir, exist_ok=True)
    return app_data_dir


def get_config_path() -> str:
    """Caminho do arquivo config.yaml dentro do diretório de dados"""
    return os.path.join(get_app_data_directory(), "config.yaml")


def load_config() -> Dict[str, Any]:
    """
    Carrega as configurações do arquivo YAML.

    Returns:
        Dict[str, Any]: Dicionário com as configurações (vazio se não existir)
    """
    config_path = get_config_path()
    if not os.path.exists(config_path):
        return {}
    with open(config_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def save_config(data: Dict[str, Any]) -> None:
    """
    Salva as configurações no arquivo YAML.

    Args:
        data: Dicionário com as configurações para salvar
    """
    with open(get_config_path(), 'w', encoding='utf-8') as f:
        yaml.safe_dump(data, f, allow_unicode=True)


def get_database_path() -> str:
    """
    Retorna o caminho do banco de dados.

    Usa 'database_path' do config.yaml se configurado; caso contrário
    o arquivo padrão no diretório de dados.
    """
    config = load_config()
    db_path = config.get("database_path")
    if db_path:
        return os.path.abspath(db_path)
    return os.path.join(get_app_data_directory(), DATABASE_FILENAME)


def get_license_server_url() -> str:
    """URL base do servidor de licenças (env > config > padrão local)"""
    url = os.getenv("LICENSE_SERVER_URL") or load_config().get("license_server_url") or DEFAULT_LICENSE_SERVER_URL
    return str(url).rstrip("/")


def get_license_api_key() -> Optional[str]:
    """Chave de API enviada como Bearer na validação, se configurada"""
    key = os.getenv("LICENSE_API_KEY") or load_config().get("license_api_key")
    return str(key) if key else None


def get_network_interface() -> str:
    """Interface de rede usada para o fingerprint (macOS/Linux)"""
    iface = load_config().get("network_interface")
    if iface:
        return str(iface)
    return "en0" if sys.platform == "darwin" else "eth0"
