"""
Template Versioner

Idempotent create-or-update-if-changed for templates. The whole
read-then-conditionally-write sequence runs inside a single store
transaction, so no other writer can change the row between the digest
comparison and the write.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from squishy_mailer.db import schemas
from squishy_mailer.db.cancellation import CancelToken
from squishy_mailer.db.repositories import templates as repo_templates
from squishy_mailer.db.store import Store, StoreTransaction
from squishy_mailer.db.types import ONE_MICROSECOND, utc_now
from squishy_mailer.errors import ErrorCode, StoreError

logger = logging.getLogger(__name__)


class TemplateVersioner:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def set_template(
        self,
        project_id: str,
        group_id: str,
        template_id: str,
        text_body: str,
        text_digest: str,
        html_body: str,
        html_digest: str,
        *,
        cancel_token: Optional[CancelToken] = None,
    ) -> schemas.Template:
        """Create the template, leave it untouched, or update it.

        - absent: inserted with ``created_at == modified_at == now``
        - present with both digests equal: nothing is written and the stored
          timestamps are returned with the supplied content
        - present with either digest different: bodies and digests are
          rewritten and ``modified_at`` strictly advances
        """
        payload = schemas.TemplateCreate(
            template_id=template_id,
            group_id=group_id,
            project_id=project_id,
            text_body=text_body,
            text_digest=text_digest,
            html_body=html_body,
            html_digest=html_digest,
        )
        return self.store.run_atomic(lambda tx: self._set_template(tx, payload), cancel_token=cancel_token)

    def _set_template(self, tx: StoreTransaction, payload: schemas.TemplateCreate) -> schemas.Template:
        db = tx.session
        state = repo_templates.lookup_template_state(
            db, payload.project_id, payload.template_id, payload.text_digest, payload.html_digest
        )
        if not state.project_exists:
            raise StoreError(ErrorCode.PROJECT_NOT_FOUND, payload.project_id)

        now = self.clock()
        if state.template is None:
            logger.info("template_created: project=%s template=%s", payload.project_id, payload.template_id)
            return repo_templates.insert_template(db, payload, now=now)

        stored = state.template
        if state.unchanged:
            return schemas.Template(
                template_id=stored.template_id,
                group_id=stored.group_id,
                project_id=stored.project_id,
                text_body=payload.text_body,
                text_digest=payload.text_digest,
                html_body=payload.html_body,
                html_digest=payload.html_digest,
                created_at=stored.created_at,
                modified_at=stored.modified_at,
            )

        # the clock may not have moved at microsecond resolution
        modified_at = max(now, stored.modified_at + ONE_MICROSECOND)
        logger.info(
            "template_updated: project=%s template=%s text_changed=%s html_changed=%s",
            payload.project_id, payload.template_id, not state.text_matches, not state.html_matches,
        )
        return repo_templates.update_template_content(
            db,
            stored,
            text_body=payload.text_body,
            text_digest=payload.text_digest,
            html_body=payload.html_body,
            html_digest=payload.html_digest,
            modified_at=modified_at,
        )
