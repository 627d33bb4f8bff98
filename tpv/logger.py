# logger.py
# Logger e auditoria

import logging
import os
import sys
from datetime import datetime

from tpv.config import get_app_data_directory


def get_log_dir():
    """Retorna o diretório de logs (TPV_LOG_DIR ou <dados>/logs)"""
    log_dir = os.getenv("TPV_LOG_DIR") or os.path.join(get_app_data_directory(), "logs")
    os.makedirs(log_dir, exist_ok=True)
    return log_dir


LOG_DIR = get_log_dir()
LOG_PATH = os.path.join(LOG_DIR, f'tpv_{datetime.now().strftime("%Y%m%d")}.log')

logger = logging.getLogger("tpv")
logger.setLevel(logging.INFO)

if not logger.handlers:
    file_handler = logging.FileHandler(LOG_PATH, encoding='utf-8')
    file_handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S'))
    logger.addHandler(file_handler)

    # Saída no console para debug
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%H:%M:%S'))
    logger.addHandler(console_handler)


def log_event(msg: str):
    """Registra evento informativo"""
    logger.info(msg)


def log_error(msg: str, exc: Exception = None):
    """Registra erro com traceback opcional"""
    if exc:
        logger.error(f"{msg}: {str(exc)}", exc_info=exc)
    else:
        logger.error(msg)


def log_warning(msg: str):
    """Registra aviso"""
    logger.warning(msg)


def log_debug(msg: str):
    """Registra mensagem de debug"""
    logger.debug(msg)


def log_startup(db_path: str = ""):
    """Registra informações de inicialização do sistema"""
    logger.info("=" * 60)
    logger.info("TPV - NÚCLEO INICIADO")
    logger.info("=" * 60)
    logger.info(f"Versão Python: {sys.version}")
    logger.info(f"Sistema Operacional: {sys.platform}")
    logger.info(f"Diretório de logs: {LOG_DIR}")
    if db_path:
        logger.info(f"Banco de dados: {db_path}")
    logger.info("=" * 60)
