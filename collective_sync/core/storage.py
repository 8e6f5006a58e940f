"""In-process document store with optional JSON persistence.

Implements the same contract as the remote store so services and state
containers can run locally and in tests without a network.
"""

from __future__ import annotations

import copy
import datetime
import json
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from ..adapters.base import (
    ARRAY_CONTAINS,
    DocumentStore,
    FieldFilter,
    OrderBy,
    Snapshot,
)
from ..errors import StoreError
from .models import utcnow


def _normalise(value: Any) -> Any:
    """Reduce a value to what a document store can hold."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): _normalise(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return [_normalise(v) for v in sorted(value, key=str)]
    if isinstance(value, (list, tuple)):
        return [_normalise(v) for v in value]
    return value


def _order_key(value: Any) -> tuple[int, Any]:
    """Sort key grouping values by type, as Firestore orders mixed fields."""
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float, Decimal)):
        return (2, value)
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.UTC)
        return (3, value)
    if isinstance(value, str):
        return (4, value)
    # arrays and maps are not compared with each other
    return (5, 0)


def _to_json(value: Any) -> Any:
    if isinstance(value, datetime.datetime):
        return {"$timestamp": value.isoformat()}
    if isinstance(value, Decimal):
        return {"$decimal": str(value)}
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_json(v) for v in value]
    return value


def _from_json(obj: dict[str, Any]) -> Any:
    if obj.keys() == {"$timestamp"}:
        return datetime.datetime.fromisoformat(obj["$timestamp"])
    if obj.keys() == {"$decimal"}:
        return Decimal(obj["$decimal"])
    return obj


class JSONDocumentStore(DocumentStore):
    """Persist documents in memory and, if ``path`` is given, to a JSON file.

    The file is rewritten on every mutation which keeps the implementation
    simple while providing durability across process restarts.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        if self.path is not None:
            if self.path.exists():
                self._load()
            else:
                self._save()

    # ------------------------------------------------------------------
    # Internal helpers
    def _load(self) -> None:
        if self.path is None:
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"), object_hook=_from_json)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read document store {self.path}: {exc}", exc) from exc
        self._collections = data.get("collections", {})

    def _save(self) -> None:
        if self.path is None:
            return
        data = {"collections": _to_json(self._collections)}
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except (OSError, TypeError) as exc:
            raise StoreError(f"Cannot write document store {self.path}: {exc}", exc) from exc

    def _collection(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _existing(self, collection: str, doc_id: str) -> dict[str, Any]:
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            raise StoreError(f"No document {collection}/{doc_id} to update.")
        return doc

    @staticmethod
    def _matches(data: Mapping[str, Any], flt: FieldFilter) -> bool:
        value = _normalise(flt.value)
        current = data.get(flt.field)
        if flt.op == ARRAY_CONTAINS:
            return isinstance(current, list) and value in current
        return current == value

    # ------------------------------------------------------------------
    # DocumentStore
    async def add_document(
        self,
        collection: str,
        data: Mapping[str, Any],
        *,
        server_timestamp: str | None = "createdAt",
    ) -> str:
        doc_id = uuid.uuid4().hex[:20]
        doc = _normalise(data)
        if server_timestamp:
            doc[server_timestamp] = utcnow()
        self._collection(collection)[doc_id] = doc
        self._save()
        return doc_id

    async def get_document(self, collection: str, doc_id: str) -> Snapshot | None:
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            return None
        return Snapshot(doc_id, copy.deepcopy(doc))

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Snapshot]:
        docs = [
            (doc_id, doc)
            for doc_id, doc in self._collections.get(collection, {}).items()
            if all(self._matches(doc, f) for f in filters)
        ]
        if order_by is not None:
            # documents without the field sort last in either direction
            present = [d for d in docs if d[1].get(order_by.field) is not None]
            missing = [d for d in docs if d[1].get(order_by.field) is None]
            present.sort(
                key=lambda d: _order_key(d[1][order_by.field]),
                reverse=order_by.descending,
            )
            docs = present + missing
        if limit is not None:
            docs = docs[:limit]
        return [Snapshot(doc_id, copy.deepcopy(doc)) for doc_id, doc in docs]

    async def update_fields(
        self, collection: str, doc_id: str, fields: Mapping[str, Any]
    ) -> None:
        doc = self._existing(collection, doc_id)
        doc.update(_normalise(fields))
        self._save()

    async def union_append(
        self, collection: str, doc_id: str, field_path: str, value: Any
    ) -> None:
        doc = self._existing(collection, doc_id)
        current = doc.get(field_path)
        if not isinstance(current, list):
            current = []
        value = _normalise(value)
        if value not in current:
            current.append(value)
        doc[field_path] = current
        self._save()

    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = True,
        server_timestamp: str | None = None,
    ) -> None:
        docs = self._collection(collection)
        doc = _normalise(data)
        if server_timestamp:
            doc[server_timestamp] = utcnow()
        if merge and doc_id in docs:
            docs[doc_id].update(doc)
        else:
            docs[doc_id] = doc
        self._save()

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)
        self._save()
