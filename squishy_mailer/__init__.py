"""SQLite-backed transactional email templates and SMTP transports."""

from squishy_mailer.config import MailerConfig, configure_logging
from squishy_mailer.errors import CipherError, ErrorCode, MailerError, StoreError
from squishy_mailer.services.mailer_service import MailerService

__all__ = [
    "MailerConfig",
    "configure_logging",
    "ErrorCode",
    "MailerError",
    "StoreError",
    "CipherError",
    "MailerService",
]

__version__ = "0.1.0"
