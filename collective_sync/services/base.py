"""Shared plumbing for the entity services."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Iterable, Mapping, Sequence
from typing import Annotated, Any, ClassVar, Generic, TypeVar

import pydantic
from pydantic import TypeAdapter

from ..adapters.base import DocumentStore, FieldFilter, OrderBy, Snapshot
from ..core.models import Entity
from ..errors import DecodingError, NotFound, StoreError, ValidationError

E = TypeVar("E", bound=Entity)
R = TypeVar("R")

log = logging.getLogger(__name__)


def require(value: str | None, what: str) -> str:
    """Return ``value`` stripped, or raise :class:`ValidationError` if blank."""
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{what} is required.")
    return value


def build(model: type[E], **fields: Any) -> E:
    """Construct ``model`` turning pydantic failures into :class:`ValidationError`."""
    try:
        return model(**fields)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid {model.__name__.lower()}: {exc}") from exc


class EntityService(Generic[E]):
    """Encode/decode and CRUD for one entity kind.

    Subclasses set :attr:`model` and :attr:`immutable`. Services never retry;
    :class:`~collective_sync.errors.StoreError` from the store is logged and
    propagates to the caller.
    """

    model: ClassVar[type[Entity]]
    # Python field names that may not change after creation
    immutable: ClassVar[frozenset[str]] = frozenset({"id", "created_at"})

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @property
    def kind(self) -> str:
        return self.model.__name__.lower()

    # ------------------------------------------------------------------
    # Decoding
    def decode(self, snapshot: Snapshot) -> E:
        try:
            return self.model.model_validate({**snapshot.data, "id": snapshot.id})  # type: ignore[return-value]
        except pydantic.ValidationError as exc:
            raise DecodingError(f"{self.kind} {snapshot.id} is malformed: {exc}") from exc

    def decode_many(self, snapshots: Iterable[Snapshot], context: str) -> list[E]:
        """Decode every snapshot, dropping (and logging) the malformed ones.

        The result length is the number of valid documents, not the number
        of documents the store returned.
        """
        entities: list[E] = []
        for snapshot in snapshots:
            try:
                entities.append(self.decode(snapshot))
            except DecodingError as exc:
                log.warning("Dropping %s document %s (%s): %s", self.kind, snapshot.id, context, exc)
        return entities

    def validate_changes(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Check a partial update against the model and coerce its values."""
        if not fields:
            raise ValidationError("Nothing to update.")
        changes: dict[str, Any] = {}
        for name, value in fields.items():
            if name not in self.model.model_fields:
                raise ValidationError(f"Unknown {self.kind} field: {name}")
            if name in self.immutable:
                raise ValidationError(f"The {self.kind} field {name} cannot be changed.")
            changes[name] = self._coerce(name, value)
        return changes

    def _coerce(self, name: str, value: Any) -> Any:
        info = self.model.model_fields[name]
        annotation = Annotated[(info.annotation, *info.metadata)] if info.metadata else info.annotation
        try:
            value = TypeAdapter(annotation).validate_python(value)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid value for {self.kind} field {name}: {exc}") from exc
        # required text is stripped and may not be blank, as on create
        if isinstance(value, str) and info.is_required():
            value = require(value, f"The {self.kind} field {name}")
        return value

    # ------------------------------------------------------------------
    # Generic operations against one collection
    async def guarded(self, action: str, call: Awaitable[R]) -> R:
        """Await a store call, logging a failure before it propagates."""
        try:
            return await call
        except StoreError as exc:
            log.error("Error %s: %s", action, exc)
            raise

    async def _create(self, collection: str, entity: Entity) -> str:
        data = entity.to_document(exclude=("created_at",))
        doc_id = await self.guarded(
            f"creating {self.kind} in {collection}", self.store.add_document(collection, data)
        )
        log.info("Created %s %s in %s", self.kind, doc_id, collection)
        return doc_id

    async def _fetch_one(self, collection: str, doc_id: str) -> E:
        snapshot = await self.guarded(
            f"fetching {self.kind} {doc_id}", self.store.get_document(collection, doc_id)
        )
        if snapshot is None:
            raise NotFound(f"No {self.kind} with id {doc_id}.")
        return self.decode(snapshot)

    async def _fetch_many(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        context: str = "",
    ) -> list[E]:
        snapshots = await self.guarded(
            f"fetching {self.kind} documents for {context or collection}",
            self.store.query(collection, filters, order_by),
        )
        entities = self.decode_many(snapshots, context or collection)
        log.info(
            "Fetched %d of %d %s documents for %s",
            len(entities),
            len(snapshots),
            self.kind,
            context or collection,
        )
        return entities

    async def _update(
        self, collection: str, doc_id: str, fields: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Apply a partial update and return the validated changes."""
        changes = self.validate_changes(fields)
        stored = {self.model.field_alias(name): value for name, value in changes.items()}
        await self.guarded(
            f"updating {self.kind} {doc_id}", self.store.update_fields(collection, doc_id, stored)
        )
        log.info("Updated %s %s: %s", self.kind, doc_id, ", ".join(stored))
        return changes
