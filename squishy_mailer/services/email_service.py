"""
Email Service

Delivers rendered templates over SMTP with aiosmtplib. Connection settings
come from a stored SMTP transport with its password already decrypted.
"""

import logging
from dataclasses import dataclass, field
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Any, Dict, List, Optional

import aiosmtplib

from squishy_mailer.db import schemas

logger = logging.getLogger(__name__)

# implicit TLS; other ports negotiate STARTTLS when the server offers it
SMTPS_PORT = 465


@dataclass
class SMTPSettings:
    host: str
    port: int
    username: str
    password: str
    email_from: str
    email_from_name: str = ""
    email_reply_to: List[str] = field(default_factory=list)
    timeout: float = 60.0

    @classmethod
    def from_transport(cls, transport: schemas.Transport, password: str) -> "SMTPSettings":
        return cls(
            host=transport.host,
            port=transport.port,
            username=transport.username,
            password=password,
            email_from=transport.email_from,
            email_from_name=transport.email_from_name,
            email_reply_to=list(transport.email_reply_to),
        )

    def __repr__(self) -> str:
        return f"SMTPSettings(host={self.host!r}, port={self.port}, username={self.username!r})"


class SMTPSender:
    """Sends multipart emails via SMTP."""

    def __init__(self, settings: SMTPSettings):
        self.settings = settings

    def build_message(
        self,
        to: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        cc: Optional[List[str]] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ) -> MIMEMultipart:
        """
        Build the outgoing message.

        Without attachments the message is a single ``multipart/alternative``.
        With attachments it becomes ``multipart/mixed`` holding the
        alternative part followed by one part per attachment.
        """
        body = MIMEMultipart('alternative')
        # the last part is the preferred alternative
        if text_content:
            body.attach(MIMEText(text_content, 'plain', 'utf-8'))
        body.attach(MIMEText(html_content, 'html', 'utf-8'))

        if attachments:
            message = MIMEMultipart('mixed')
            message.attach(body)
            for attachment in attachments:
                self._add_attachment(message, attachment)
        else:
            message = body

        message['From'] = formataddr((self.settings.email_from_name, self.settings.email_from))
        message['To'] = ", ".join(to)
        if cc:
            message['Cc'] = ", ".join(cc)
        message['Subject'] = subject
        message['Message-ID'] = make_msgid(domain=self.settings.email_from.rpartition('@')[2] or None)
        if self.settings.email_reply_to:
            message['Reply-To'] = ", ".join(self.settings.email_reply_to)
        return message

    @staticmethod
    def _add_attachment(message: MIMEMultipart, attachment: Dict[str, Any]) -> None:
        """Attach ``{'filename': ..., 'content': bytes}`` as a base64 part."""
        part = MIMEBase('application', 'octet-stream')
        part.set_payload(attachment['content'])
        encoders.encode_base64(part)
        part.add_header('Content-Disposition', 'attachment', filename=attachment['filename'])
        message.attach(part)

    async def send_email(
        self,
        to: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        cc: Optional[List[str]] = None,
        bcc: Optional[List[str]] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Send an email via SMTP.

        Args:
            to: Recipient email addresses
            subject: Email subject
            html_content: HTML content of the email
            text_content: Optional plain text content
            cc: Optional carbon copy recipients
            bcc: Optional blind carbon copy recipients, never written to headers
            attachments: Optional list of {"filename", "content"} dicts

        Returns:
            Dict with 'success', 'message_id', and 'error' keys
        """
        if not to:
            return {'success': False, 'message_id': '', 'error': 'No recipients given'}

        message = self.build_message(to, subject, html_content, text_content, cc, attachments)
        recipients = list(to) + list(cc or []) + list(bcc or [])
        try:
            smtp_kwargs = {
                'hostname': self.settings.host,
                'port': self.settings.port,
                'use_tls': self.settings.port == SMTPS_PORT,
                'timeout': self.settings.timeout,
            }
            async with aiosmtplib.SMTP(**smtp_kwargs) as smtp:
                if self.settings.username and self.settings.password:
                    await smtp.login(self.settings.username, self.settings.password)
                result = await smtp.send_message(message, recipients=recipients)

            logger.info("email_sent: to=%s subject=%s", ", ".join(to), subject)
            return {
                'success': True,
                'message_id': message['Message-ID'],
                'error': None,
                'smtp_result': result,
            }
        except (aiosmtplib.SMTPException, OSError) as e:
            error_msg = f"Failed to send email to {', '.join(to)}: {e}"
            logger.error(error_msg, exc_info=True)
            return {'success': False, 'message_id': message['Message-ID'], 'error': error_msg}
