# database.py
# Responsável pela conexão e operações com o banco de dados SQLite
#
# Um único objeto Database é dono da conexão. Todo acesso passa pelo mesmo
# lock (exclusivo, sem distinção leitura/escrita): uma operação por vez.

import sqlite3
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from datetime import datetime
from typing import Any, Iterator, List, Tuple, Union, Mapping

from tpv.errors import NotInitializedError, StorageError
from tpv.logger import log_error, log_event, log_warning

# Parameter type accepted by sqlite3 (positional tuple or named mapping)
Params = Union[Tuple[Any, ...], Mapping[str, Any]]

# Criação aditiva: nunca altera nem remove tabelas existentes
SCHEMA = """
CREATE TABLE IF NOT EXISTS products (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    price REAL NOT NULL,
    category TEXT NOT NULL,
    brand TEXT,
    icon_type TEXT,
    selected_icon TEXT,
    uploaded_image TEXT,
    stock INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    icon TEXT
);

CREATE TABLE IF NOT EXISTS orders (
    id INTEGER PRIMARY KEY,
    date TEXT NOT NULL,
    total REAL NOT NULL,
    change REAL DEFAULT 0,
    total_paid REAL DEFAULT 0,
    item_count INTEGER DEFAULT 0,
    table_number INTEGER DEFAULT 0,
    payment_method TEXT DEFAULT 'cash',
    ticket_path TEXT,
    status TEXT DEFAULT 'inProgress'
);

CREATE TABLE IF NOT EXISTS order_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id INTEGER NOT NULL,
    product_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    price REAL NOT NULL,
    quantity INTEGER DEFAULT 1,
    category TEXT,
    FOREIGN KEY (order_id) REFERENCES orders(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS tables (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    available INTEGER DEFAULT 1,
    current_order_id INTEGER
);

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    profile_picture TEXT,
    pin TEXT NOT NULL,
    pinned_product_ids TEXT
);

CREATE TABLE IF NOT EXISTS license (
    key_hash TEXT PRIMARY KEY,
    email TEXT NOT NULL,
    machine_fingerprint TEXT NOT NULL,
    activated_at INTEGER NOT NULL,
    expires_at INTEGER,
    is_active INTEGER DEFAULT 1,
    license_type TEXT
);
"""


def _describe(e: sqlite3.Error) -> str:
    text = str(e)
    if "malformed" in text.lower() or "corrupt" in text.lower():
        return f"Banco de dados corrompido: {text}. Use a função de restaurar backup."
    return text


class Database:
    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        self._lock = threading.RLock()
        self._tx_depth = 0
        try:
            # check_same_thread=False: a conexão é usada por threads da UI, sempre sob self._lock
            self.conn = sqlite3.connect(self.db_path, timeout=10, check_same_thread=False)
        except sqlite3.Error as e:
            log_error(f"Falha ao abrir banco de dados {self.db_path}", e)
            raise StorageError(f"Não foi possível abrir o banco de dados '{self.db_path}': {e}") from e
        self.conn.row_factory = sqlite3.Row
        try:
            self._configure()
            self._init_db()
        except sqlite3.Error as e:
            self.conn.close()
            log_error(f"Falha ao criar schema em {self.db_path}", e)
            raise StorageError(f"Falha ao criar schema: {_describe(e)}") from e

    def _configure(self):
        cur = self.conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.execute("PRAGMA busy_timeout=5000")  # 5s de espera em lock
        try:
            cur.execute("PRAGMA journal_mode=WAL")
        except sqlite3.OperationalError as e:
            # alguns sistemas de arquivos (rede) não suportam WAL
            log_warning(f"journal_mode=WAL indisponível, mantendo padrão: {e}")
        self.conn.commit()

    def _init_db(self):
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def _ensure_open(self):
        if self.conn is None:
            raise NotInitializedError("Banco de dados não inicializado")

    @contextmanager
    def locked(self) -> Iterator[sqlite3.Connection]:
        """Segura o lock da conexão durante uma operação composta (ex.: exportação)."""
        with self._lock:
            self._ensure_open()
            yield self.conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """
        Unidade de trabalho atômica: commit no final, rollback em qualquer erro.
        Transações aninhadas participam da externa.
        """
        with self._lock:
            self._ensure_open()
            cur = self.conn.cursor()
            self._tx_depth += 1
            try:
                yield cur
            except sqlite3.Error as e:
                self._tx_depth -= 1
                if self._tx_depth == 0:
                    self.conn.rollback()
                log_error("Transação desfeita", e)
                raise StorageError(_describe(e)) from e
            except BaseException:
                self._tx_depth -= 1
                if self._tx_depth == 0:
                    self.conn.rollback()
                raise
            else:
                self._tx_depth -= 1
                if self._tx_depth == 0:
                    try:
                        self.conn.commit()
                    except sqlite3.Error as e:
                        self.conn.rollback()
                        log_error("Falha no commit", e)
                        raise StorageError(_describe(e)) from e

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        with self.transaction() as cur:
            cur.execute(sql, params)
            return cur

    def query(self, sql: str, params: Params = ()) -> List[sqlite3.Row]:
        with self._lock:
            self._ensure_open()
            try:
                return self.conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                log_error(f"Erro na consulta: {sql.split()[0] if sql.split() else sql}", e)
                raise StorageError(_describe(e)) from e

    def table_names(self) -> List[str]:
        rows = self.query("SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'")
        return [row["name"] for row in rows]

    def verify_integrity(self) -> Tuple[bool, str]:
        """Verifica a integridade do banco de dados"""
        try:
            rows = self.query("PRAGMA integrity_check")
            result = rows[0] if rows else None
            if result and result[0] == "ok":
                return True, "Banco de dados íntegro"
            return False, f"Problemas detectados: {result[0] if result else 'desconhecido'}"
        except StorageError as e:
            return False, f"Erro ao verificar: {str(e)}"

    def create_backup(self, backup_dir: str = None) -> Tuple[bool, str]:
        """Cria um backup do banco de dados"""
        try:
            if backup_dir is None:
                backup_dir = str(Path(self.db_path).parent / "backups")

            os.makedirs(backup_dir, exist_ok=True)

            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            backup_path = os.path.join(backup_dir, f"backup_{timestamp}.db")

            # Usa backup API do SQLite para garantir consistência
            with self._lock:
                self._ensure_open()
                backup_conn = sqlite3.connect(backup_path)
                try:
                    with backup_conn:
                        self.conn.backup(backup_conn)
                finally:
                    backup_conn.close()

            log_event(f"Backup criado em {backup_path}")
            return True, backup_path

        except (OSError, sqlite3.Error) as e:
            log_error("Erro ao criar backup", e)
            return False, f"Erro ao criar backup: {str(e)}"

    def close(self):
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None


def open_database(db_path: str) -> Database:
    """Abre (ou cria) o banco e garante o schema."""
    db = Database(db_path)
    log_event(f"Banco de dados aberto: {db.db_path}")
    return db
