"""Observable state containers, one per screen-scoped concern."""

from .base import ListState, ObservableState
from .collectives import CollectiveListState
from .invoices import InvoiceListState
from .members import MemberListState
from .profile import ProfileState, default_profile
from .projects import ProjectListState
from .tasks import TaskListState

__all__ = [
    "CollectiveListState",
    "InvoiceListState",
    "ListState",
    "MemberListState",
    "ObservableState",
    "ProfileState",
    "ProjectListState",
    "TaskListState",
    "default_profile",
]
