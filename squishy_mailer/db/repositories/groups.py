"""
Group repository functions.

Groups logically collect templates within a project.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from squishy_mailer.db import models, schemas
from squishy_mailer.db.types import utc_now
from squishy_mailer.errors import (
    ErrorCode,
    StoreError,
    is_foreign_key_violation,
    is_primary_key_violation,
)


def insert_group(db: Session, payload: schemas.GroupCreate, *, now: Optional[datetime] = None) -> schemas.Group:
    now = now or utc_now()
    db_group = models.Group(
        group_id=payload.group_id,
        project_id=payload.project_id,
        name=payload.name,
        created_at=now,
        modified_at=now,
    )
    db.add(db_group)
    try:
        db.flush()
    except IntegrityError as exc:
        # groups have a single foreign key, so a violation can only mean the
        # referenced project is missing
        if is_foreign_key_violation(exc):
            raise StoreError(ErrorCode.PROJECT_NOT_FOUND, payload.project_id) from exc
        if is_primary_key_violation(exc):
            raise StoreError(
                ErrorCode.GROUP_ALREADY_EXISTS, f"{payload.project_id}/{payload.group_id}"
            ) from exc
        raise
    return schemas.Group.model_validate(db_group)


def get_group(db: Session, project_id: str, group_id: str) -> schemas.Group:
    stmt = (
        select(models.Project.project_id, models.Group)
        .outerjoin(
            models.Group,
            and_(
                models.Group.project_id == models.Project.project_id,
                models.Group.group_id == group_id,
            ),
        )
        .where(models.Project.project_id == project_id)
    )
    row = db.execute(stmt).first()
    if row is None:
        raise StoreError(ErrorCode.PROJECT_NOT_FOUND, project_id)
    if row.Group is None:
        raise StoreError(ErrorCode.GROUP_NOT_FOUND, f"{project_id}/{group_id}")
    return schemas.Group.model_validate(row.Group)
