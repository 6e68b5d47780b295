"""
Caller-supplied cancellation for blocking store calls.

A ``CancelToken`` is cancelled explicitly or by passing its deadline. While a
store call runs, the token is polled by a SQLite progress handler installed on
the session's DBAPI connection, so long-running statements abort with
``SQLITE_INTERRUPT`` and the enclosing transaction rolls back.
"""
from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from squishy_mailer.errors import ErrorCode, StoreError

# SQLite virtual machine instructions between progress handler calls
PROGRESS_INTERVAL = 1000


class CancelToken:
    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise StoreError(ErrorCode.OPERATION_CANCELLED)


@contextmanager
def interruptible(db: Session, token: Optional[CancelToken]) -> Iterator[Session]:
    """Abort statements on ``db`` once ``token`` is cancelled.

    Must be entered inside an active transaction: a cancellation observed on
    exit raises so the surrounding transaction rolls back instead of
    committing.
    """
    if token is None:
        yield db
        return
    token.raise_if_cancelled()
    dbapi_connection = db.connection().connection.driver_connection
    dbapi_connection.set_progress_handler(lambda: 1 if token.cancelled else 0, PROGRESS_INTERVAL)
    try:
        yield db
    finally:
        dbapi_connection.set_progress_handler(None, 0)
    token.raise_if_cancelled()
