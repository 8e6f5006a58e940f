"""Interfaces for the external collaborators: document store and blob storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

EQUAL = "=="
ARRAY_CONTAINS = "array-contains"


@dataclass(frozen=True)
class FieldFilter:
    """Equality (``==``) or membership (``array-contains``) filter on one field."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in (EQUAL, ARRAY_CONTAINS):
            raise ValueError(f"Unsupported filter operator: {self.op!r}")


def where_equal(field_path: str, value: Any) -> FieldFilter:
    return FieldFilter(field_path, EQUAL, value)


def where_contains(field_path: str, value: Any) -> FieldFilter:
    return FieldFilter(field_path, ARRAY_CONTAINS, value)


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Snapshot:
    """A document as read from the store: its id plus raw field data."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


class DocumentStore(ABC):
    """Abstract remote document store.

    ``collection`` is a slash separated path, e.g. ``"collectives"`` or
    ``"projects/<projectId>/tasks"``. Implementations raise
    :class:`~collective_sync.errors.StoreError` for every failure.
    """

    @abstractmethod
    async def add_document(
        self,
        collection: str,
        data: Mapping[str, Any],
        *,
        server_timestamp: str | None = "createdAt",
    ) -> str:
        """Create a document with a store assigned id and return that id.

        ``server_timestamp`` names a field the store fills with its own
        clock at write time.
        """

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Snapshot | None:
        """Return the document or ``None`` if it does not exist."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Snapshot]:
        """Return documents matching every filter."""

    @abstractmethod
    async def update_fields(
        self, collection: str, doc_id: str, fields: Mapping[str, Any]
    ) -> None:
        """Set ``fields`` on an existing document, leaving other fields alone."""

    @abstractmethod
    async def union_append(
        self, collection: str, doc_id: str, field_path: str, value: Any
    ) -> None:
        """Add ``value`` to an array field unless it is already present."""

    @abstractmethod
    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = True,
        server_timestamp: str | None = None,
    ) -> None:
        """Create or overwrite a document with a caller chosen id.

        With ``merge`` only the given fields are written. ``server_timestamp``
        works as for :meth:`add_document`.
        """

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete the document. Deleting a missing document is not an error."""


class BlobStorage(ABC):
    """Binary object storage used for profile images."""

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Upload ``data`` to ``path`` and return a download URL."""
