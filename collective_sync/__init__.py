"""Domain synchronization layer for collectives, projects, tasks and invoices.

This module exposes the main data models, the local store and the wiring
entry point so that consumers of the package can simply import them from
``collective_sync``.
"""

from .app import Services, build_services
from .core.models import (
    CLEAR,
    Collective,
    Invoice,
    InvoiceStatus,
    LineItem,
    Project,
    ProjectStatus,
    SetValue,
    Task,
    TaskStatus,
    UserProfile,
)
from .core.storage import JSONDocumentStore

__all__ = [
    "CLEAR",
    "Collective",
    "Invoice",
    "InvoiceStatus",
    "JSONDocumentStore",
    "LineItem",
    "Project",
    "ProjectStatus",
    "Services",
    "SetValue",
    "Task",
    "TaskStatus",
    "UserProfile",
    "build_services",
]
