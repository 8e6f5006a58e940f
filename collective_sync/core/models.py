"""Data models for the collective work-management domain.

The models are implemented using :mod:`pydantic` so that they provide
runtime validation and convenient serialisation to and from store
documents. Field names are snake_case in Python and camelCase in the
store; the alias generator maps between the two.
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(tz=UTC)


# ----------------------------------------------------------------------
# Tagged field updates
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class SetValue(Generic[T]):
    """Replace a field with ``value``."""

    value: T


@dataclass(frozen=True)
class ClearValue:
    """Remove the current value of a field."""


CLEAR = ClearValue()

# ``None`` in an argument slot means "leave unchanged".
FieldUpdate = Union[SetValue[T], ClearValue]


def resolve_update(update: FieldUpdate[Any]) -> Any:
    """Return the stored value an update produces (``None`` for a clear)."""
    if isinstance(update, SetValue):
        return update.value
    if isinstance(update, ClearValue):
        return None
    raise TypeError(f"Expected SetValue or ClearValue, got {update!r}")


# ----------------------------------------------------------------------
# Enumerations
# ----------------------------------------------------------------------
class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    """Task states. Declaration order is the advance ring."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"

    def advance(self) -> TaskStatus:
        """Return the next state in the ring, wrapping from done to todo."""
        ring = list(TaskStatus)
        return ring[(ring.index(self) + 1) % len(ring)]


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"


# ----------------------------------------------------------------------
# Entities
# ----------------------------------------------------------------------
class Entity(BaseModel):
    """Common base for every stored entity.

    Attributes
    ----------
    id:
        Document id assigned by the store. ``None`` until the entity has
        been persisted; never written into the document body.

    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None

    def to_document(self, exclude: Iterable[str] = ()) -> dict[str, Any]:
        """Serialise to a store document (camelCase keys, no ``id``, no nulls)."""
        return self.model_dump(by_alias=True, exclude={"id", *exclude}, exclude_none=True)

    @classmethod
    def field_alias(cls, name: str) -> str:
        """Return the stored (camelCase) name of the Python field ``name``."""
        info = cls.model_fields[name]
        return info.alias or name


class Collective(Entity):
    """A team owning projects and invoices."""

    name: str = Field(min_length=1)
    client_facing_name: str | None = None
    members: set[str] = Field(default_factory=set)
    created_by: str
    public_page_slug: str | None = None
    created_at: datetime.datetime | None = None


class Project(Entity):
    title: str = Field(min_length=1)
    description: str = ""
    collective_id: str
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: datetime.datetime
    end_date: datetime.datetime | None = None
    created_at: datetime.datetime | None = None


class Task(Entity):
    """A unit of work stored under ``projects/<projectId>/tasks``."""

    title: str = Field(min_length=1)
    assigned_to: str | None = None
    status: TaskStatus = TaskStatus.TODO
    due_date: datetime.datetime | None = None
    created_at: datetime.datetime | None = None


class LineItem(BaseModel):
    """A single billable line on an invoice.

    ``id`` is local only: it identifies the row while the invoice is being
    edited and is not a store document id.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    description: str
    amount: Decimal
    freelancer_id: str


def compute_total(line_items: Iterable[LineItem]) -> Decimal:
    """Sum the line item amounts, clamping negative amounts to zero."""
    zero = Decimal(0)
    return sum((max(zero, item.amount) for item in line_items), zero)


class Invoice(Entity):
    project_id: str
    collective_id: str
    line_items: list[LineItem]
    total: Decimal
    status: InvoiceStatus = InvoiceStatus.DRAFT
    due_date: datetime.datetime
    created_at: datetime.datetime | None = None
    sent_at: datetime.datetime | None = None
    paid_at: datetime.datetime | None = None


class UserProfile(Entity):
    """Profile document keyed by the identity provider's user id.

    ``uid`` is stored as a field and must equal the document id once the
    profile is persisted. It is optional here so that documents written
    without it can still be read and reported as broken.
    """

    uid: str | None = None
    name: str
    email: str
    bio: str | None = None
    skills: list[str] | None = None
    portfolio_url: str | None = None
    profile_image: str | None = None
    created_at: datetime.datetime | None = None
