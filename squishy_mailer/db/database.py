"""
Database engine and session management.

Opens two SQLAlchemy engines over one SQLite file:

- a write engine limited to a single pooled connection, so concurrent writers
  queue for the connection instead of failing on SQLite's database lock, and
  every write transaction takes the lock up front with ``BEGIN IMMEDIATE``;
- a read engine with a wide pool for concurrent lookups, marked
  ``query_only`` so no mutation can slip through it.

Schema provisioning is not done here; see ``squishy_mailer.db.schema``.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

logger = logging.getLogger(__name__)

DEFAULT_READ_POOL_SIZE = 20
DEFAULT_READ_MAX_OVERFLOW = 100
DEFAULT_IDLE_TIMEOUT = 300
DEFAULT_BUSY_TIMEOUT_MS = 5000
DEFAULT_POOL_TIMEOUT = 30.0


def sqlite_url(db_filepath: Union[str, Path]) -> str:
    return f"sqlite+pysqlite:///{Path(db_filepath)}"


def _install_connection_hooks(engine: Engine, *, begin_sql: str, pragmas: List[str]) -> None:
    """Hand transaction control from pysqlite to SQLAlchemy's ``begin`` hook.

    pysqlite otherwise defers BEGIN until the first DML statement, which
    would let a read-then-write sequence run its reads outside the
    transaction.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            for pragma in pragmas:
                cursor.execute(pragma)
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql(begin_sql)


class ConnectionManager:
    """Write and read handles against one database file."""

    def __init__(
        self,
        db_filepath: Union[str, Path],
        *,
        read_pool_size: int = DEFAULT_READ_POOL_SIZE,
        read_max_overflow: int = DEFAULT_READ_MAX_OVERFLOW,
        idle_timeout: int = DEFAULT_IDLE_TIMEOUT,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
        pool_timeout: float = DEFAULT_POOL_TIMEOUT,
    ):
        if not db_filepath or str(db_filepath) == ":memory:":
            raise ValueError("a database file path is required; in-memory databases are not shared between handles")
        self.db_filepath = Path(db_filepath)
        url = sqlite_url(self.db_filepath)
        common_pragmas = [
            "PRAGMA foreign_keys = ON",
            f"PRAGMA busy_timeout = {int(busy_timeout_ms)}",
        ]
        connect_args = {"check_same_thread": False, "timeout": busy_timeout_ms / 1000.0}

        self.write_engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=1,
            max_overflow=0,
            pool_timeout=pool_timeout,
            pool_recycle=idle_timeout,
            connect_args=connect_args,
        )
        _install_connection_hooks(
            self.write_engine,
            begin_sql="BEGIN IMMEDIATE",
            pragmas=common_pragmas + ["PRAGMA journal_mode = WAL", "PRAGMA synchronous = NORMAL"],
        )

        self.read_engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=read_pool_size,
            max_overflow=read_max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=idle_timeout,
            connect_args=connect_args,
        )
        _install_connection_hooks(
            self.read_engine,
            begin_sql="BEGIN",
            pragmas=common_pragmas + ["PRAGMA query_only = ON"],
        )

        self.WriteSession = sessionmaker(bind=self.write_engine, autoflush=False, expire_on_commit=False)
        self.ReadSession = sessionmaker(bind=self.read_engine, autoflush=False, expire_on_commit=False)
        logger.debug(
            "connection_manager_open: path=%s read_pool=%d+%d",
            self.db_filepath, read_pool_size, read_max_overflow,
        )

    @classmethod
    def from_config(cls, config) -> "ConnectionManager":
        return cls(
            config.db_filepath,
            read_pool_size=config.read_pool_size,
            read_max_overflow=config.read_max_overflow,
            idle_timeout=config.idle_timeout,
            busy_timeout_ms=config.busy_timeout_ms,
            pool_timeout=config.pool_timeout,
        )

    def close(self) -> None:
        """Dispose both engines, reporting which ones failed."""
        failed: List[str] = []
        first_error: Optional[Exception] = None
        for label, engine in (("read-write", self.write_engine), ("read-only", self.read_engine)):
            try:
                engine.dispose()
            except Exception as exc:
                logger.error("failed to close the %s database connection: %s", label, exc)
                failed.append(label)
                first_error = first_error or exc
        if failed:
            raise RuntimeError(
                f"failed to close the {' and '.join(failed)} database connection(s)"
            ) from first_error
