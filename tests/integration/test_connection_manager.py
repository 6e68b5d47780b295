import sqlite3

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from squishy_mailer.db.database import ConnectionManager


def _pragma(engine, name):
    with engine.connect() as conn:
        return conn.exec_driver_sql(f"PRAGMA {name}").scalar()


def test_pool_shapes(connections):
    assert connections.write_engine.pool.size() == 1
    assert connections.write_engine.pool._max_overflow == 0
    assert connections.read_engine.pool.size() == 4


def test_pragmas(connections):
    assert _pragma(connections.write_engine, "foreign_keys") == 1
    assert _pragma(connections.read_engine, "foreign_keys") == 1
    assert _pragma(connections.write_engine, "journal_mode").lower() == "wal"
    assert _pragma(connections.write_engine, "busy_timeout") == 5000
    assert _pragma(connections.read_engine, "query_only") == 1
    assert _pragma(connections.write_engine, "query_only") == 0


def test_read_engine_refuses_writes(connections):
    with pytest.raises(OperationalError):
        with connections.read_engine.begin() as conn:
            conn.execute(
                text("INSERT INTO projects (project_id, project_name, description, created_at) "
                     "VALUES ('p', 'n', '', '2024-01-01T00:00:00.000000Z')")
            )


def test_write_transactions_take_the_lock_up_front(connections, db_path):
    with connections.write_engine.begin() as conn:
        conn.exec_driver_sql("SELECT 1")
        # BEGIN IMMEDIATE already holds the reserved lock, before any write
        other = sqlite3.connect(str(db_path), timeout=0, isolation_level=None)
        try:
            with pytest.raises(sqlite3.OperationalError):
                other.execute("BEGIN IMMEDIATE")
        finally:
            other.close()



@pytest.mark.parametrize("path", ["", ":memory:"])
def test_in_memory_or_missing_path_rejected(path):
    with pytest.raises(ValueError):
        ConnectionManager(path)


def test_close_disposes_both_engines(db_path):
    mgr = ConnectionManager(db_path)
    with mgr.read_engine.connect():
        pass
    mgr.close()
    assert mgr.read_engine.pool.checkedin() == 0
    assert mgr.write_engine.pool.checkedin() == 0


def test_from_config(db_path, hex_key):
    from squishy_mailer.config import MailerConfig

    cfg = MailerConfig(db_filepath=str(db_path), encryption_key=hex_key, read_pool_size=3, read_max_overflow=0)
    mgr = ConnectionManager.from_config(cfg)
    try:
        assert mgr.db_filepath == db_path
        assert mgr.read_engine.pool.size() == 3
    finally:
        mgr.close()
