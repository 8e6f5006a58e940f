"""Tests for the ``JSONDocumentStore`` persistence layer."""

import asyncio
import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from collective_sync.adapters.base import OrderBy, where_contains, where_equal
from collective_sync.core.storage import JSONDocumentStore
from collective_sync.errors import StoreError


def test_add_and_get_document() -> None:
    """Documents can be saved and retrieved with a server timestamp."""
    store = JSONDocumentStore()
    doc_id = asyncio.run(store.add_document("collectives", {"name": "Studio"}))

    snapshot = asyncio.run(store.get_document("collectives", doc_id))
    assert snapshot is not None
    assert snapshot.id == doc_id
    assert snapshot.data["name"] == "Studio"
    assert isinstance(snapshot.data["createdAt"], datetime.datetime)


def test_get_missing_document() -> None:
    """Missing documents yield ``None``."""
    store = JSONDocumentStore()
    assert asyncio.run(store.get_document("collectives", "nope")) is None


def test_query_filters_and_order() -> None:
    store = JSONDocumentStore()

    async def scenario():
        await store.set_document("projects", "a", {"collectiveId": "c1", "rank": 2})
        await store.set_document("projects", "b", {"collectiveId": "c1", "rank": 1})
        await store.set_document("projects", "c", {"collectiveId": "c2", "rank": 3})
        await store.set_document("projects", "d", {"collectiveId": "c1"})
        return await store.query(
            "projects", [where_equal("collectiveId", "c1")], OrderBy("rank", descending=True)
        )

    ids = [s.id for s in asyncio.run(scenario())]
    # documents without the order field come last
    assert ids == ["a", "b", "d"]


def test_array_contains_and_union() -> None:
    store = JSONDocumentStore()

    async def scenario():
        await store.set_document("collectives", "c1", {"members": {"u1"}})
        await store.union_append("collectives", "c1", "members", "u2")
        await store.union_append("collectives", "c1", "members", "u2")
        found = await store.query("collectives", [where_contains("members", "u2")])
        snapshot = await store.get_document("collectives", "c1")
        return found, snapshot

    found, snapshot = asyncio.run(scenario())
    assert [s.id for s in found] == ["c1"]
    assert snapshot.data["members"] == ["u1", "u2"]


def test_update_missing_document_fails() -> None:
    store = JSONDocumentStore()
    with pytest.raises(StoreError):
        asyncio.run(store.update_fields("projects", "ghost", {"status": "active"}))
    with pytest.raises(StoreError):
        asyncio.run(store.union_append("collectives", "ghost", "members", "u1"))


def test_merge_set_keeps_other_fields() -> None:
    store = JSONDocumentStore()

    async def scenario():
        await store.set_document("users", "u1", {"name": "Ann", "email": "a@x.io"})
        await store.set_document("users", "u1", {"bio": "hi"}, merge=True)
        return await store.get_document("users", "u1")

    assert asyncio.run(scenario()).data == {"name": "Ann", "email": "a@x.io", "bio": "hi"}


def test_snapshots_are_copies() -> None:
    store = JSONDocumentStore()

    async def scenario():
        await store.set_document("collectives", "c1", {"members": ["u1"]})
        first = await store.get_document("collectives", "c1")
        first.data["members"].append("intruder")
        return await store.get_document("collectives", "c1")

    assert asyncio.run(scenario()).data["members"] == ["u1"]


def test_persistence_across_instances(tmp_path: Path) -> None:
    """Data, including timestamps and decimals, survives a restart."""
    path = tmp_path / "data.json"
    store = JSONDocumentStore(path)
    doc_id = asyncio.run(store.add_document("invoices", {"total": Decimal("12.50")}))
    asyncio.run(store.delete("invoices", "never-existed"))

    assert path.exists()

    reloaded = JSONDocumentStore(path)
    snapshot = asyncio.run(reloaded.get_document("invoices", doc_id))
    assert snapshot.data["total"] == Decimal("12.50")
    assert isinstance(snapshot.data["createdAt"], datetime.datetime)


def test_order_tolerates_mixed_value_types() -> None:
    """A wrongly typed order field sorts apart instead of breaking the query."""
    store = JSONDocumentStore()
    aware = datetime.datetime(2024, 1, 2, tzinfo=datetime.UTC)
    naive = datetime.datetime(2024, 1, 3)

    async def scenario():
        await store.set_document("projects", "a", {"createdAt": aware})
        await store.set_document("projects", "b", {"createdAt": naive})
        await store.set_document("projects", "c", {"createdAt": "yesterday"})
        await store.set_document("projects", "d", {"createdAt": ["odd"]})
        return await store.query("projects", order_by=OrderBy("createdAt"))

    assert [s.id for s in asyncio.run(scenario())] == ["a", "b", "c", "d"]


def test_unreadable_file_raises_store_error(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        JSONDocumentStore(path)


def test_set_document_server_timestamp() -> None:
    store = JSONDocumentStore()

    async def scenario():
        await store.set_document("users", "u1", {"name": "Ann"}, server_timestamp="createdAt")
        return await store.get_document("users", "u1")

    snapshot = asyncio.run(scenario())
    assert isinstance(snapshot.data["createdAt"], datetime.datetime)
