"""
Mailer configuration and logging setup.

Settings are read from the environment when a ``MailerConfig`` is created;
keyword arguments override individual values (tests and embedding
applications pass them directly).
"""

import logging
import os
from typing import List, Optional

from squishy_mailer.db.database import (
    DEFAULT_BUSY_TIMEOUT_MS,
    DEFAULT_IDLE_TIMEOUT,
    DEFAULT_POOL_TIMEOUT,
    DEFAULT_READ_MAX_OVERFLOW,
    DEFAULT_READ_POOL_SIZE,
)
from squishy_mailer.utils.credential_cipher import KEY_SIZE

logger = logging.getLogger(__name__)


def _env_number(name: str, default, cast=int):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        # reported by validate()
        return raw


class MailerConfig:
    """Configuration for the mailer from environment variables."""

    def __init__(
        self,
        db_filepath: Optional[str] = None,
        encryption_key: Optional[str] = None,
        read_pool_size: Optional[int] = None,
        read_max_overflow: Optional[int] = None,
        idle_timeout: Optional[int] = None,
        busy_timeout_ms: Optional[int] = None,
        pool_timeout: Optional[float] = None,
    ):
        self.db_filepath = db_filepath or os.getenv('MAILER_DB_FILEPATH', 'mailer.db')
        self.encryption_key = encryption_key if encryption_key is not None else os.getenv('MAILER_ENCRYPTION_KEY', '')
        self.read_pool_size = read_pool_size if read_pool_size is not None else _env_number(
            'MAILER_DB_READ_POOL_SIZE', DEFAULT_READ_POOL_SIZE)
        self.read_max_overflow = read_max_overflow if read_max_overflow is not None else _env_number(
            'MAILER_DB_READ_MAX_OVERFLOW', DEFAULT_READ_MAX_OVERFLOW)
        self.idle_timeout = idle_timeout if idle_timeout is not None else _env_number(
            'MAILER_DB_IDLE_TIMEOUT', DEFAULT_IDLE_TIMEOUT)
        self.busy_timeout_ms = busy_timeout_ms if busy_timeout_ms is not None else _env_number(
            'MAILER_DB_BUSY_TIMEOUT_MS', DEFAULT_BUSY_TIMEOUT_MS)
        self.pool_timeout = pool_timeout if pool_timeout is not None else _env_number(
            'MAILER_DB_POOL_TIMEOUT', DEFAULT_POOL_TIMEOUT, float)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.db_filepath or self.db_filepath == ':memory:':
            errors.append("MAILER_DB_FILEPATH must name a database file")
        if not self.encryption_key:
            errors.append("MAILER_ENCRYPTION_KEY is required")
        else:
            try:
                key = bytes.fromhex(self.encryption_key)
            except ValueError:
                key = None
            if key is None or len(key) != KEY_SIZE:
                errors.append(f"MAILER_ENCRYPTION_KEY must be {KEY_SIZE * 2} hex characters")

        for name, value, minimum in (
            ('MAILER_DB_READ_POOL_SIZE', self.read_pool_size, 1),
            ('MAILER_DB_READ_MAX_OVERFLOW', self.read_max_overflow, 0),
            ('MAILER_DB_IDLE_TIMEOUT', self.idle_timeout, 1),
            ('MAILER_DB_BUSY_TIMEOUT_MS', self.busy_timeout_ms, 0),
        ):
            if not isinstance(value, int) or value < minimum:
                errors.append(f"{name} must be an integer >= {minimum}")
        if not isinstance(self.pool_timeout, (int, float)) or self.pool_timeout <= 0:
            errors.append("MAILER_DB_POOL_TIMEOUT must be a positive number")

        return errors


def configure_logging(level_name: Optional[str] = None) -> int:
    """Configure root logging from ``LOG_LEVEL`` (default INFO)."""
    level_name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level)
    logging.getLogger("squishy_mailer").setLevel(level)
    logger.info("logging_configured: log_level=%s", level_name)
    return level
