"""
Project repository functions.

Projects are the top-level namespace; they are created once and read back by
id. Functions flush but never commit; the caller owns the transaction.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from squishy_mailer.db import models, schemas
from squishy_mailer.db.types import utc_now
from squishy_mailer.errors import ErrorCode, StoreError, is_primary_key_violation


def insert_project(db: Session, payload: schemas.ProjectCreate, *, now: Optional[datetime] = None) -> schemas.Project:
    db_project = models.Project(
        project_id=payload.project_id,
        name=payload.name,
        description=payload.description,
        created_at=now or utc_now(),
    )
    db.add(db_project)
    try:
        db.flush()
    except IntegrityError as exc:
        if is_primary_key_violation(exc):
            raise StoreError(ErrorCode.PROJECT_ALREADY_EXISTS, payload.project_id) from exc
        raise
    return schemas.Project.model_validate(db_project)


def get_project(db: Session, project_id: str) -> schemas.Project:
    db_project = db.get(models.Project, project_id)
    if db_project is None:
        raise StoreError(ErrorCode.PROJECT_NOT_FOUND, project_id)
    return schemas.Project.model_validate(db_project)
