"""
Mailer Service

Caller-facing facade: creates and reads projects, SMTP transports, groups and
templates, and sends email from a stored template through a stored transport.

Construction fails fast with ``ValueError`` when the configuration is
invalid. The database schema is provisioned when the database file does not
exist yet.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from squishy_mailer.config import MailerConfig
from squishy_mailer.db import schemas
from squishy_mailer.db.cancellation import CancelToken
from squishy_mailer.db.database import ConnectionManager
from squishy_mailer.db.schema import provision_schema
from squishy_mailer.db.store import Store
from squishy_mailer.services.email_service import SMTPSender, SMTPSettings
from squishy_mailer.services.template_renderer import TemplateRenderer, concatenate_files
from squishy_mailer.services.template_versioner import TemplateVersioner
from squishy_mailer.utils.credential_cipher import CredentialCipher
from squishy_mailer.utils.digest import content_digest

logger = logging.getLogger(__name__)


class MailerService:
    def __init__(self, config: Optional[MailerConfig] = None):
        self.config = config or MailerConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError("invalid mailer configuration: " + "; ".join(errors))

        self.cipher = CredentialCipher.from_hex_key(self.config.encryption_key)
        is_new = not Path(self.config.db_filepath).exists()
        self.connections = ConnectionManager.from_config(self.config)
        try:
            if is_new:
                logger.info("database file %s not found; provisioning schema", self.config.db_filepath)
                provision_schema(self.connections)
        except Exception:
            self.connections.close()
            raise
        self.store = Store(self.connections)
        self.versioner = TemplateVersioner(self.store)
        self.renderer = TemplateRenderer()

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "MailerService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # projects

    def create_project(
        self, project_id: str, name: str, description: str = "", *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Project:
        return self.store.insert_project(project_id, name, description, cancel_token=cancel_token)

    def get_project(self, project_id: str, *, cancel_token: Optional[CancelToken] = None) -> schemas.Project:
        return self.store.get_project(project_id, cancel_token=cancel_token)

    # smtp transports

    def create_smtp_transport(
        self, params: schemas.SMTPTransportCreate, *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Transport:
        """Store a transport; the plaintext password never reaches the database."""
        payload = schemas.TransportCreate(
            **params.model_dump(exclude={"password"}),
            encrypted_password=self.cipher.encrypt_to_text(params.password),
        )
        return self.store.insert_transport(payload, cancel_token=cancel_token)

    def get_smtp_transport(
        self, transport_id: str, project_id: str, *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Transport:
        return self.store.get_transport(transport_id, project_id, cancel_token=cancel_token)

    # groups

    def create_group(
        self, group_id: str, project_id: str, name: str, *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Group:
        payload = schemas.GroupCreate(group_id=group_id, project_id=project_id, name=name)
        return self.store.insert_group(payload, cancel_token=cancel_token)

    def get_group(self, project_id: str, group_id: str, *, cancel_token: Optional[CancelToken] = None) -> schemas.Group:
        return self.store.get_group(project_id, group_id, cancel_token=cancel_token)

    # templates

    def set_template(
        self,
        project_id: str,
        group_id: str,
        template_id: str,
        text_body: str,
        html_body: str,
        *,
        cancel_token: Optional[CancelToken] = None,
    ) -> schemas.Template:
        """Create or update a template, leaving it untouched when both bodies are unchanged."""
        self.renderer.validate(text_body, html_body)
        return self.versioner.set_template(
            project_id,
            group_id,
            template_id,
            text_body,
            content_digest(text_body),
            html_body,
            content_digest(html_body),
            cancel_token=cancel_token,
        )

    def set_template_from_files(
        self,
        project_id: str,
        group_id: str,
        template_id: str,
        text_paths: Iterable[Union[str, Path]],
        html_paths: Iterable[Union[str, Path]],
        *,
        cancel_token: Optional[CancelToken] = None,
    ) -> schemas.Template:
        """Concatenate each list of files in order and store the result as one template."""
        return self.set_template(
            project_id,
            group_id,
            template_id,
            concatenate_files(text_paths),
            concatenate_files(html_paths),
            cancel_token=cancel_token,
        )

    def get_template(
        self, project_id: str, template_id: str, *, cancel_token: Optional[CancelToken] = None
    ) -> schemas.Template:
        return self.store.get_template(project_id, template_id, cancel_token=cancel_token)

    # sending

    async def send_email(
        self,
        project_id: str,
        transport_id: str,
        template_id: str,
        to: List[str],
        subject: str,
        params: Optional[Dict[str, Any]] = None,
        cc: Optional[List[str]] = None,
        bcc: Optional[List[str]] = None,
        attachments: Optional[Iterable[Union[str, Path]]] = None,
    ) -> Dict[str, Any]:
        """
        Render a stored template and send it through a stored transport.

        ``attachments`` are file paths; each file is attached under its base name.

        Store and cipher failures raise; SMTP delivery failures are reported
        in the returned dict.
        """
        template = await asyncio.to_thread(self.store.get_template, project_id, template_id)
        text_content, html_content = self.renderer.render(template, params)
        transport = await asyncio.to_thread(self.store.get_transport, transport_id, project_id)
        password = self.cipher.decrypt_from_text(transport.encrypted_password)

        sender = SMTPSender(SMTPSettings.from_transport(transport, password))
        files = [{"filename": Path(p).name, "content": Path(p).read_bytes()} for p in attachments or []]
        return await sender.send_email(
            to, subject, html_content, text_content, cc=cc, bcc=bcc, attachments=files or None
        )

    def send_email_sync(self, *args, **kwargs) -> Dict[str, Any]:
        return asyncio.run(self.send_email(*args, **kwargs))
