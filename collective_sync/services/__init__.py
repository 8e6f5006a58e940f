"""Entity services: one per entity kind, each owning its document contract."""

from .collectives import CollectiveService
from .invoices import InvoiceService
from .projects import ProjectService
from .tasks import TaskService
from .users import UserProfileService

__all__ = [
    "CollectiveService",
    "InvoiceService",
    "ProjectService",
    "TaskService",
    "UserProfileService",
]
