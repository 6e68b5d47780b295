"""
Template repository functions.

Templates are unique within a project regardless of group, so lookups are
keyed by (project_id, template_id). ``lookup_template_state`` and
``update_template_content`` are the primitives beneath the template
versioner and are only meaningful inside a write transaction.
"""
from __future__ import annotations

from dataclasses import dataclass
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
    is_unique_violation,
)


@dataclass(frozen=True)
class TemplateState:
    project_exists: bool
    template: Optional[models.Template]
    text_matches: bool
    html_matches: bool

    @property
    def unchanged(self) -> bool:
        return self.template is not None and self.text_matches and self.html_matches


def _project_template_join(project_id: str, template_id: str, *columns):
    return (
        select(models.Project.project_id, models.Template, *columns)
        .outerjoin(
            models.Template,
            and_(
                models.Template.project_id == models.Project.project_id,
                models.Template.template_id == template_id,
            ),
        )
        .where(models.Project.project_id == project_id)
    )


def insert_template(db: Session, payload: schemas.TemplateCreate, *, now: Optional[datetime] = None) -> schemas.Template:
    """Insert a template row.

    A missing project is reported as ``PROJECT_NOT_FOUND``; a group missing
    from an existing project surfaces as a foreign key violation and is
    reported as ``GROUP_NOT_FOUND``.
    """
    # a failed flush ends the transaction, so the parent is checked up front
    if db.get(models.Project, payload.project_id) is None:
        raise StoreError(ErrorCode.PROJECT_NOT_FOUND, payload.project_id)
    now = now or utc_now()
    db_template = models.Template(
        template_id=payload.template_id,
        group_id=payload.group_id,
        project_id=payload.project_id,
        text_body=payload.text_body,
        text_digest=payload.text_digest,
        html_body=payload.html_body,
        html_digest=payload.html_digest,
        created_at=now,
        modified_at=now,
    )
    db.add(db_template)
    try:
        db.flush()
    except IntegrityError as exc:
        if is_foreign_key_violation(exc):
            raise StoreError(ErrorCode.GROUP_NOT_FOUND, f"{payload.project_id}/{payload.group_id}") from exc
        if is_primary_key_violation(exc) or is_unique_violation(exc):
            raise StoreError(
                ErrorCode.TEMPLATE_ALREADY_EXISTS, f"{payload.project_id}/{payload.template_id}"
            ) from exc
        raise
    return schemas.Template.model_validate(db_template)


def get_template(db: Session, project_id: str, template_id: str) -> schemas.Template:
    row = db.execute(_project_template_join(project_id, template_id)).first()
    if row is None:
        raise StoreError(ErrorCode.PROJECT_NOT_FOUND, project_id)
    if row.Template is None:
        raise StoreError(ErrorCode.TEMPLATE_NOT_FOUND, f"{project_id}/{template_id}")
    return schemas.Template.model_validate(row.Template)


def lookup_template_state(
    db: Session, project_id: str, template_id: str, text_digest: str, html_digest: str
) -> TemplateState:
    """Resolve project existence, template existence and digest equality in one query."""
    stmt = _project_template_join(
        project_id,
        template_id,
        (models.Template.text_digest == text_digest).label("text_matches"),
        (models.Template.html_digest == html_digest).label("html_matches"),
    )
    row = db.execute(stmt).first()
    if row is None:
        return TemplateState(project_exists=False, template=None, text_matches=False, html_matches=False)
    return TemplateState(
        project_exists=True,
        template=row.Template,
        text_matches=bool(row.text_matches),
        html_matches=bool(row.html_matches),
    )


def update_template_content(
    db: Session,
    db_template: models.Template,
    *,
    text_body: str,
    text_digest: str,
    html_body: str,
    html_digest: str,
    modified_at: datetime,
) -> schemas.Template:
    db_template.text_body = text_body
    db_template.text_digest = text_digest
    db_template.html_body = html_body
    db_template.html_digest = html_digest
    db_template.modified_at = modified_at
    db.flush()
    return schemas.Template.model_validate(db_template)
