"""
SMTP transport repository functions.

A transport row is inserted as a selection from its parent project row, so the
insert affects zero rows when the project does not exist. Lookups outer-join
from the project so that "project missing" and "transport missing" are told
apart in a single round trip.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Integer, Text, and_, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from squishy_mailer.db import models, schemas
from squishy_mailer.db.types import JSONStringList, UTCTimestamp, utc_now
from squishy_mailer.errors import ErrorCode, StoreError, is_primary_key_violation


def insert_transport(db: Session, payload: schemas.TransportCreate, *, now: Optional[datetime] = None) -> schemas.Transport:
    now = now or utc_now()
    transports = models.SMTPTransport.__table__
    projects = models.Project.__table__
    source = select(
        literal(payload.transport_id, Text),
        projects.c.project_id,
        literal(payload.name, Text),
        literal(payload.host, Text),
        literal(payload.port, Integer),
        literal(payload.username, Text),
        literal(payload.encrypted_password, Text),
        literal(payload.email_from, Text),
        literal(payload.email_from_name, Text),
        literal(payload.email_reply_to, JSONStringList()),
        literal(now, UTCTimestamp()),
        literal(now, UTCTimestamp()),
    ).where(projects.c.project_id == payload.project_id)
    stmt = insert(transports).from_select(
        [
            transports.c.smtp_transport_id,
            transports.c.project_id,
            transports.c.transport_name,
            transports.c.host,
            transports.c.port,
            transports.c.username,
            transports.c.encrypted_password,
            transports.c.email_from,
            transports.c.email_from_name,
            transports.c.email_replyto,
            transports.c.created_at,
            transports.c.modified_at,
        ],
        source,
    )
    try:
        result = db.execute(stmt)
    except IntegrityError as exc:
        if is_primary_key_violation(exc):
            raise StoreError(
                ErrorCode.TRANSPORT_ALREADY_EXISTS, f"{payload.project_id}/{payload.transport_id}"
            ) from exc
        raise
    if result.rowcount == 0:
        raise StoreError(ErrorCode.PROJECT_NOT_FOUND, payload.project_id)

    db_transport = db.get(models.SMTPTransport, (payload.transport_id, payload.project_id))
    return schemas.Transport.model_validate(db_transport)


def get_transport(db: Session, transport_id: str, project_id: str) -> schemas.Transport:
    stmt = (
        select(models.Project.project_id, models.SMTPTransport)
        .outerjoin(
            models.SMTPTransport,
            and_(
                models.SMTPTransport.project_id == models.Project.project_id,
                models.SMTPTransport.transport_id == transport_id,
            ),
        )
        .where(models.Project.project_id == project_id)
    )
    row = db.execute(stmt).first()
    # no row at all: the project does not exist
    if row is None:
        raise StoreError(ErrorCode.PROJECT_NOT_FOUND, project_id)
    if row.SMTPTransport is None:
        raise StoreError(ErrorCode.TRANSPORT_NOT_FOUND, f"{project_id}/{transport_id}")
    return schemas.Transport.model_validate(row.SMTPTransport)
