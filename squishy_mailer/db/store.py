"""
Store facade over the repository functions.

``Store`` opens a short-lived session per call: reads go through the pooled
read engine, writes through the single write connection. ``Store.run_atomic``
is the transaction coordinator: it runs a caller function against a
``StoreTransaction`` whose operations all share one ``BEGIN IMMEDIATE``
transaction, committing on success and rolling back on any failure.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from squishy_mailer.db import schemas
from squishy_mailer.db.cancellation import CancelToken, interruptible
from squishy_mailer.db.database import ConnectionManager
from squishy_mailer.db.repositories import groups as repo_groups
from squishy_mailer.db.repositories import projects as repo_projects
from squishy_mailer.db.repositories import templates as repo_templates
from squishy_mailer.db.repositories import transports as repo_transports
from squishy_mailer.errors import MailerError, translate_storage_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextmanager
def storage_errors() -> Iterator[None]:
    """Surface any storage failure no repository claimed as a ``StoreError``."""
    try:
        yield
    except MailerError:
        raise
    except SQLAlchemyError as exc:
        err = translate_storage_error(exc)
        logger.warning("storage_failure: code=%s error=%s", err.code.value, exc)
        raise err from exc


class _RepositoryOperations(ABC):
    """Repository operations shared by the store and transaction views."""

    @abstractmethod
    def _reading(self, cancel_token: Optional[CancelToken]):
        """Context manager yielding a session for reads."""

    @abstractmethod
    def _writing(self, cancel_token: Optional[CancelToken]):
        """Context manager yielding a session for writes."""

    # projects

    def insert_project(
        self, project_id: str, name: str, description: str = "", *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Project:
        payload = schemas.ProjectCreate(project_id=project_id, name=name, description=description)
        with self._writing(cancel_token) as db:
            return repo_projects.insert_project(db, payload)

    def get_project(self, project_id: str, *, cancel_token: Optional[CancelToken] = None) -> schemas.Project:
        with self._reading(cancel_token) as db:
            return repo_projects.get_project(db, project_id)

    # smtp transports

    def insert_transport(
        self, payload: schemas.TransportCreate, *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Transport:
        with self._writing(cancel_token) as db:
            return repo_transports.insert_transport(db, payload)

    def get_transport(
        self, transport_id: str, project_id: str, *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Transport:
        with self._reading(cancel_token) as db:
            return repo_transports.get_transport(db, transport_id, project_id)

    # groups

    def insert_group(self, payload: schemas.GroupCreate, *, cancel_token: Optional[CancelToken] = None) -> schemas.Group:
        with self._writing(cancel_token) as db:
            return repo_groups.insert_group(db, payload)

    def get_group(self, project_id: str, group_id: str, *, cancel_token: Optional[CancelToken] = None) -> schemas.Group:
        with self._reading(cancel_token) as db:
            return repo_groups.get_group(db, project_id, group_id)

    # templates

    def insert_template(
        self, payload: schemas.TemplateCreate, *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Template:
        with self._writing(cancel_token) as db:
            return repo_templates.insert_template(db, payload)

    def get_template(
        self, project_id: str, template_id: str, *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Template:
        with self._reading(cancel_token) as db:
            return repo_templates.get_template(db, project_id, template_id)


class StoreTransaction(_RepositoryOperations):
    """Transaction-scoped view: every operation runs on the same session.

    Reads also use the write session so they observe the transaction's own
    uncommitted writes.
    """

    def __init__(self, session: Session, cancel_token: Optional[CancelToken] = None):
        self.session = session
        self.cancel_token = cancel_token

    @contextmanager
    def _scoped(self, cancel_token: Optional[CancelToken]) -> Iterator[Session]:
        for token in (self.cancel_token, cancel_token):
            if token is not None:
                token.raise_if_cancelled()
        yield self.session

    _reading = _scoped
    _writing = _scoped


class Store(_RepositoryOperations):
    def __init__(self, connections: ConnectionManager):
        self.connections = connections

    @contextmanager
    def _session(self, factory: sessionmaker, cancel_token: Optional[CancelToken]) -> Iterator[Session]:
        with storage_errors():
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            with factory() as db:
                with db.begin():
                    with interruptible(db, cancel_token):
                        yield db

    def _reading(self, cancel_token: Optional[CancelToken]):
        return self._session(self.connections.ReadSession, cancel_token)

    def _writing(self, cancel_token: Optional[CancelToken]):
        return self._session(self.connections.WriteSession, cancel_token)

    def run_atomic(self, fn: Callable[[StoreTransaction], T], *, cancel_token: Optional[CancelToken] = None) -> T:
        """Run ``fn`` inside one serializable write transaction.

        Commits when ``fn`` returns, rolls back when it raises. The original
        error is always the one re-raised; a failed rollback is logged and
        attached to it as ``rollback_error``.
        """
        with storage_errors():
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            db = self.connections.WriteSession()
            try:
                db.begin()
                try:
                    with interruptible(db, cancel_token):
                        result = fn(StoreTransaction(db, cancel_token))
                        db.flush()
                    db.commit()
                except BaseException as exc:
                    self._rollback_after(db, exc)
                    raise
                return result
            finally:
                db.close()

    @staticmethod
    def _rollback_after(db: Session, exc: BaseException) -> None:
        try:
            db.rollback()
        except Exception as rollback_exc:
            logger.error("rollback_failed: original=%r rollback=%r", exc, rollback_exc)
            exc.add_note(f"rollback also failed: {rollback_exc!r}")
            if isinstance(exc, MailerError):
                exc.rollback_error = rollback_exc

    def close(self) -> None:
        self.connections.close()
