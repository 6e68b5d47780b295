"""
Domain-split SQLAlchemy models.

Exposes ``Base`` and all ORM classes from one import location.
"""

from .base import Base  # re-export

from .projects import Project
from .transports import SMTPTransport
from .groups import Group
from .templates import Template

__all__ = [
    "Base",
    "Project",
    "SMTPTransport",
    "Group",
    "Template",
]
