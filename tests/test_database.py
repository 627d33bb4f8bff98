import sqlite3

import pytest

from tpv.database import Database, open_database
from tpv.errors import NotInitializedError, StorageError

EXPECTED_TABLES = {"products", "categories", "orders", "order_items", "tables", "users", "license"}


def test_open_creates_all_tables(db):
    assert EXPECTED_TABLES <= set(db.table_names())


def test_reopen_is_a_noop_for_schema_and_keeps_data(tmp_path):
    path = str(tmp_path / "tpv.db")
    first = open_database(path)
    first.execute("INSERT INTO categories (id, name) VALUES (?, ?)", (1, "Drinks"))
    first.close()

    second = open_database(path)
    try:
        assert EXPECTED_TABLES <= set(second.table_names())
        rows = second.query("SELECT name FROM categories")
        assert [r["name"] for r in rows] == ["Drinks"]
    finally:
        second.close()


def test_open_in_missing_directory_raises_storage_error(tmp_path):
    with pytest.raises(StorageError):
        Database(str(tmp_path / "missing" / "dir" / "tpv.db"))


def test_foreign_keys_enabled(db):
    assert db.query("PRAGMA foreign_keys")[0][0] == 1


def test_query_error_is_wrapped(db):
    with pytest.raises(StorageError) as excinfo:
        db.query("SELECT * FROM no_such_table")
    assert isinstance(excinfo.value.__cause__, sqlite3.Error)


def test_transaction_rolls_back_on_error(db):
    with pytest.raises(StorageError):
        with db.transaction() as cur:
            cur.execute("INSERT INTO categories (id, name) VALUES (1, 'A')")
            cur.execute("INSERT INTO categories (id, name) VALUES (2, NULL)")
    assert db.query("SELECT COUNT(*) FROM categories")[0][0] == 0


def test_transaction_rolls_back_on_non_storage_exception(db):
    with pytest.raises(RuntimeError):
        with db.transaction() as cur:
            cur.execute("INSERT INTO categories (id, name) VALUES (1, 'A')")
            raise RuntimeError("boom")
    assert db.query("SELECT COUNT(*) FROM categories")[0][0] == 0


def test_nested_transaction_joins_outer(db):
    with pytest.raises(RuntimeError):
        with db.transaction() as outer:
            outer.execute("INSERT INTO categories (id, name) VALUES (1, 'A')")
            with db.transaction() as inner:
                inner.execute("INSERT INTO categories (id, name) VALUES (2, 'B')")
            raise RuntimeError("boom")
    assert db.query("SELECT COUNT(*) FROM categories")[0][0] == 0


def test_closed_database_raises_not_initialized(tmp_path):
    database = open_database(str(tmp_path / "tpv.db"))
    database.close()
    with pytest.raises(NotInitializedError):
        database.query("SELECT 1")


def test_verify_integrity(db):
    ok, message = db.verify_integrity()
    assert ok
    assert message == "Banco de dados íntegro"


def test_create_backup_copies_data(db, tmp_path):
    db.execute("INSERT INTO categories (id, name) VALUES (?, ?)", (7, "Snacks"))
    ok, path = db.create_backup(str(tmp_path / "backups"))
    assert ok
    conn = sqlite3.connect(path)
    try:
        assert conn.execute("SELECT name FROM categories WHERE id=7").fetchone()[0] == "Snacks"
    finally:
        conn.close()
