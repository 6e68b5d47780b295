"""
Domain error taxonomy.

Every public store and cipher operation either returns a value or raises
exactly one ``MailerError`` whose ``code`` is a member of ``ErrorCode``.
Callers branch on the code; the low-level exception that triggered the error
is kept as ``__cause__`` for diagnostics.

This module also holds the translation rules from SQLite's engine-specific
failure signals (extended result codes surfaced by ``sqlite3``) to codes.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    PROJECT_NOT_FOUND = "project_not_found"
    PROJECT_ALREADY_EXISTS = "project_already_exists"
    TRANSPORT_NOT_FOUND = "transport_not_found"
    TRANSPORT_ALREADY_EXISTS = "transport_already_exists"
    GROUP_NOT_FOUND = "group_not_found"
    GROUP_ALREADY_EXISTS = "group_already_exists"
    TEMPLATE_NOT_FOUND = "template_not_found"
    TEMPLATE_ALREADY_EXISTS = "template_already_exists"
    ENCRYPTION_CONFIG_INVALID = "encryption_config_invalid"
    AUTHENTICATION_FAILURE = "authentication_failure"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    OPERATION_CANCELLED = "operation_cancelled"

    @property
    def message(self) -> str:
        return self.value.replace("_", " ")

    @property
    def retryable(self) -> bool:
        """Only transient storage failures are worth retrying."""
        return self is ErrorCode.STORAGE_UNAVAILABLE

    def render(self, detail: Optional[str] = None) -> str:
        if detail:
            return f"{self.value}: {self.message} ({detail})"
        return f"{self.value}: {self.message}"


class MailerError(Exception):
    """Base error carrying an ``ErrorCode``."""

    def __init__(self, code: ErrorCode, detail: Optional[str] = None):
        super().__init__(code.render(detail))
        self.code = code
        self.detail = detail
        # set by the transaction coordinator when rollback also failed
        self.rollback_error: Optional[BaseException] = None

    @property
    def retryable(self) -> bool:
        return self.code.retryable

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, detail={self.detail!r})"


class StoreError(MailerError):
    """Raised at the repository/store boundary."""


class CipherError(MailerError):
    """Raised by the credential cipher."""


# Extended result code names exposed by sqlite3 (Python 3.11+).
SQLITE_CONSTRAINT_PRIMARYKEY = "SQLITE_CONSTRAINT_PRIMARYKEY"
SQLITE_CONSTRAINT_UNIQUE = "SQLITE_CONSTRAINT_UNIQUE"
SQLITE_CONSTRAINT_FOREIGNKEY = "SQLITE_CONSTRAINT_FOREIGNKEY"
SQLITE_INTERRUPT = "SQLITE_INTERRUPT"


def sqlite_error_name(exc: BaseException) -> Optional[str]:
    """Return the SQLite extended result code name behind ``exc``, if any."""
    orig = exc.orig if isinstance(exc, DBAPIError) else exc
    return getattr(orig, "sqlite_errorname", None)


def is_primary_key_violation(exc: IntegrityError) -> bool:
    return sqlite_error_name(exc) == SQLITE_CONSTRAINT_PRIMARYKEY


def is_unique_violation(exc: IntegrityError) -> bool:
    return sqlite_error_name(exc) == SQLITE_CONSTRAINT_UNIQUE


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    return sqlite_error_name(exc) == SQLITE_CONSTRAINT_FOREIGNKEY


def translate_storage_error(exc: SQLAlchemyError) -> StoreError:
    """Map a storage failure no repository claimed onto the taxonomy.

    Interrupts raised by the cancellation progress handler become
    ``OPERATION_CANCELLED``; pool exhaustion, locking, I/O and driver
    failures become ``STORAGE_UNAVAILABLE``.
    """
    name = sqlite_error_name(exc)
    if name == SQLITE_INTERRUPT:
        err = StoreError(ErrorCode.OPERATION_CANCELLED)
    elif isinstance(exc, PoolTimeoutError):
        err = StoreError(ErrorCode.STORAGE_UNAVAILABLE, "connection pool exhausted")
    else:
        if isinstance(exc, IntegrityError):
            logger.error("unclaimed constraint violation reached the store boundary: %s", exc)
        err = StoreError(ErrorCode.STORAGE_UNAVAILABLE, name or type(exc).__name__)
    err.__cause__ = exc
    return err
