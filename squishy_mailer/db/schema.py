"""
Schema provisioning.

Applies the Alembic migrations shipped in ``squishy_mailer/db/migrations``
through the write engine. Running it against an already provisioned file is
a no-op.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from squishy_mailer.db.database import ConnectionManager

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def make_alembic_config(url: Optional[str] = None) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    if url:
        cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def head_revision() -> str:
    return ScriptDirectory.from_config(make_alembic_config()).get_current_head()


def current_revision(connections: ConnectionManager) -> Optional[str]:
    with connections.read_engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()


def provision_schema(connections: ConnectionManager) -> None:
    """Bring the database file up to the latest schema revision."""
    cfg = make_alembic_config(str(connections.write_engine.url))
    with connections.write_engine.begin() as connection:
        cfg.attributes["connection"] = connection
        command.upgrade(cfg, "head")
    logger.info("schema_provisioned: path=%s revision=%s", connections.db_filepath, head_revision())
