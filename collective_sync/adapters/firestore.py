"""Firestore adapter implementing :class:`~collective_sync.adapters.base.DocumentStore`.

Talks to the Firestore REST API (v1) with :mod:`httpx`, which keeps the
implementation dependency light while remaining fully asynchronous. Values
are converted to and from Firestore's typed JSON representation here;
services only ever see plain Python values.
"""

from __future__ import annotations

import datetime
import logging
import re
import secrets
import string
import uuid
from collections.abc import Mapping, Sequence
from datetime import UTC
from decimal import Decimal
from enum import Enum
from typing import Any

import httpx

from ..errors import StoreError
from .base import ARRAY_CONTAINS, DocumentStore, FieldFilter, OrderBy, Snapshot

_OPERATORS = {"==": "EQUAL", ARRAY_CONTAINS: "ARRAY_CONTAINS"}
_AUTO_ID_CHARS = string.ascii_letters + string.digits
# Firestore returns nanosecond precision; datetime holds microseconds
_FRACTION = re.compile(r"(\.\d{6})\d+")

log = logging.getLogger(__name__)


def auto_id() -> str:
    """Return a 20 character document id like the Firebase client SDKs do."""
    return "".join(secrets.choice(_AUTO_ID_CHARS) for _ in range(20))


def encode_value(value: Any) -> dict[str, Any]:
    """Convert a Python value into a Firestore ``Value`` JSON object."""
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, Decimal):
        # stored as text so amounts stay exact
        return {"stringValue": str(value)}
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        text = value.astimezone(UTC).isoformat().replace("+00:00", "Z")
        return {"timestampValue": text}
    if isinstance(value, (str, uuid.UUID)):
        return {"stringValue": str(value)}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=str)
    if isinstance(value, (list, tuple)):
        values = [encode_value(v) for v in value]
        return {"arrayValue": {"values": values} if values else {}}
    raise TypeError(f"Cannot store value of type {type(value).__name__}")


def encode_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    return {str(k): encode_value(v) for k, v in data.items()}


def decode_value(value: Mapping[str, Any]) -> Any:
    """Convert a Firestore ``Value`` JSON object into a Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        text = _FRACTION.sub(r"\1", value["timestampValue"]).replace("Z", "+00:00")
        return datetime.datetime.fromisoformat(text)
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    for key in ("stringValue", "referenceValue", "bytesValue"):
        if key in value:
            return value[key]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    raise ValueError(f"Unknown Firestore value: {value!r}")


def decode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {k: decode_value(v) for k, v in fields.items()}


def _snapshot(document: Mapping[str, Any]) -> Snapshot:
    doc_id = document["name"].rsplit("/", 1)[-1]
    return Snapshot(doc_id, decode_fields(document.get("fields", {})))


class FirestoreStore(DocumentStore):
    """Document store backed by the Firestore REST API."""

    api_base = "https://firestore.googleapis.com/v1"

    def __init__(
        self,
        project_id: str,
        database: str = "(default)",
        client: httpx.AsyncClient | None = None,
        id_token: str | None = None,
        emulator_host: str = "",
    ) -> None:
        """Store the target database and optional HTTP ``client``.

        ``id_token`` is the signed-in user's bearer token; it is replaced
        whenever the identity changes.
        """
        self.root = f"projects/{project_id}/databases/{database}/documents"
        if emulator_host:
            self.api_base = f"http://{emulator_host}/v1"
        self.client = client or httpx.AsyncClient()
        self.id_token = id_token

    # ------------------------------------------------------------------
    # Internal helpers
    def _headers(self) -> dict[str, str]:
        if not self.id_token:
            return {}
        return {"Authorization": f"Bearer {self.id_token}"}

    def _name(self, collection: str, doc_id: str) -> str:
        return f"{self.root}/{collection.strip('/')}/{doc_id}"

    def _url(self, path: str) -> str:
        return f"{self.api_base}/{path}"

    async def _request(
        self, method: str, url: str, *, allow_missing: bool = False, **kwargs: Any
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, url, headers=self._headers(), **kwargs)
            if allow_missing and response.status_code == 404:
                return response
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StoreError(f"Firestore {method} {url} failed: {exc}", exc) from exc
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"Firestore returned a body that is not JSON: {exc}", exc) from exc

    async def _commit(self, writes: list[dict[str, Any]]) -> None:
        await self._request("POST", self._url(f"{self.root}:commit"), json={"writes": writes})

    # ------------------------------------------------------------------
    # DocumentStore
    async def add_document(
        self,
        collection: str,
        data: Mapping[str, Any],
        *,
        server_timestamp: str | None = "createdAt",
    ) -> str:
        doc_id = auto_id()
        write: dict[str, Any] = {
            "update": {"name": self._name(collection, doc_id), "fields": encode_fields(data)},
            "currentDocument": {"exists": False},
        }
        if server_timestamp:
            write["updateTransforms"] = [
                {"fieldPath": server_timestamp, "setToServerValue": "REQUEST_TIME"}
            ]
        await self._commit([write])
        return doc_id

    async def get_document(self, collection: str, doc_id: str) -> Snapshot | None:
        response = await self._request(
            "GET", self._url(self._name(collection, doc_id)), allow_missing=True
        )
        if response.status_code == 404:
            return None
        try:
            return _snapshot(self._json(response))
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Cannot decode {collection}/{doc_id}: {exc}", exc) from exc

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Snapshot]:
        parent, _, collection_id = collection.strip("/").rpartition("/")
        parent_path = f"{self.root}/{parent}" if parent else self.root

        structured: dict[str, Any] = {"from": [{"collectionId": collection_id}]}
        clauses = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": f.field},
                    "op": _OPERATORS[f.op],
                    "value": encode_value(f.value),
                }
            }
            for f in filters
        ]
        if len(clauses) == 1:
            structured["where"] = clauses[0]
        elif clauses:
            structured["where"] = {"compositeFilter": {"op": "AND", "filters": clauses}}
        if order_by is not None:
            structured["orderBy"] = [
                {
                    "field": {"fieldPath": order_by.field},
                    "direction": "DESCENDING" if order_by.descending else "ASCENDING",
                }
            ]
        if limit is not None:
            structured["limit"] = limit

        response = await self._request(
            "POST",
            self._url(f"{parent_path}:runQuery"),
            json={"structuredQuery": structured},
        )
        rows = self._json(response)
        if not isinstance(rows, list):
            raise StoreError(f"Unexpected runQuery response for {collection}: {rows!r}")
        snapshots: list[Snapshot] = []
        for row in rows:
            # results without a "document" key only carry the read time
            if not isinstance(row, Mapping) or "document" not in row:
                continue
            try:
                snapshots.append(_snapshot(row["document"]))
            except (KeyError, TypeError, ValueError) as exc:
                log.warning("Skipping undecodable document in %s: %s", collection, exc)
        return snapshots

    async def update_fields(
        self, collection: str, doc_id: str, fields: Mapping[str, Any]
    ) -> None:
        params = [("updateMask.fieldPaths", key) for key in fields]
        params.append(("currentDocument.exists", "true"))
        await self._request(
            "PATCH",
            self._url(self._name(collection, doc_id)),
            params=params,
            json={"fields": encode_fields(fields)},
        )

    async def union_append(
        self, collection: str, doc_id: str, field_path: str, value: Any
    ) -> None:
        await self._commit(
            [
                {
                    "transform": {
                        "document": self._name(collection, doc_id),
                        "fieldTransforms": [
                            {
                                "fieldPath": field_path,
                                "appendMissingElements": {"values": [encode_value(value)]},
                            }
                        ],
                    },
                    "currentDocument": {"exists": True},
                }
            ]
        )

    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = True,
        server_timestamp: str | None = None,
    ) -> None:
        write: dict[str, Any] = {
            "update": {"name": self._name(collection, doc_id), "fields": encode_fields(data)}
        }
        if merge:
            write["updateMask"] = {"fieldPaths": list(data)}
        if server_timestamp:
            write["updateTransforms"] = [
                {"fieldPath": server_timestamp, "setToServerValue": "REQUEST_TIME"}
            ]
        await self._commit([write])

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._request("DELETE", self._url(self._name(collection, doc_id)))

    async def close(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`."""
        await self.client.aclose()
