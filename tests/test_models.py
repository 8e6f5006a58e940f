"""Tests for the Pydantic domain models."""

from decimal import Decimal

import pytest

from collective_sync.core.models import (
    CLEAR,
    Collective,
    LineItem,
    SetValue,
    TaskStatus,
    UserProfile,
    compute_total,
    resolve_update,
)


def test_collective_document_uses_stored_names() -> None:
    """Documents carry camelCase keys and never the id."""
    collective = Collective(id="c1", name="Studio", created_by="u1", members={"u1"})
    doc = collective.to_document()
    assert "id" not in doc
    assert doc["createdBy"] == "u1"
    assert doc["members"] == {"u1"}
    assert "clientFacingName" not in doc  # unset optionals are omitted


def test_profile_defaults() -> None:
    """Unspecified profile fields use sensible defaults."""
    profile = UserProfile(name="Alice", email="alice@example.com")
    assert profile.uid is None
    assert profile.skills is None
    assert profile.created_at is None


def test_advance_visits_every_status_and_wraps() -> None:
    status = TaskStatus.TODO
    visited = []
    for _ in range(4):
        status = status.advance()
        visited.append(status)
    assert visited == [
        TaskStatus.IN_PROGRESS,
        TaskStatus.BLOCKED,
        TaskStatus.DONE,
        TaskStatus.TODO,
    ]


def test_compute_total_clamps_negative_amounts() -> None:
    items = [
        LineItem(description="Design", amount=Decimal("100.10"), freelancer_id="u1"),
        LineItem(description="Refund", amount=Decimal("-40"), freelancer_id="u2"),
        LineItem(description="Copy", amount="0.20", freelancer_id="u3"),
    ]
    assert compute_total(items) == Decimal("100.30")


def test_line_items_get_distinct_local_ids() -> None:
    a = LineItem(description="a", amount=1, freelancer_id="u1")
    b = LineItem(description="b", amount=1, freelancer_id="u1")
    assert a.id != b.id


def test_resolve_update() -> None:
    assert resolve_update(SetValue("u9")) == "u9"
    assert resolve_update(CLEAR) is None
    with pytest.raises(TypeError):
        resolve_update("u9")  # type: ignore[arg-type]
