"""
Domain-split Pydantic schemas.

Values returned by the store are instances of these models, copied out of the
session so that no ORM state escapes the persistence boundary.
"""

from .projects import ProjectBase, ProjectCreate, Project
from .transports import TransportBase, TransportCreate, SMTPTransportCreate, Transport
from .groups import GroupBase, GroupCreate, Group
from .templates import TemplateBase, TemplateCreate, Template

__all__ = [
    "ProjectBase",
    "ProjectCreate",
    "Project",
    "TransportBase",
    "TransportCreate",
    "SMTPTransportCreate",
    "Transport",
    "GroupBase",
    "GroupCreate",
    "Group",
    "TemplateBase",
    "TemplateCreate",
    "Template",
]
