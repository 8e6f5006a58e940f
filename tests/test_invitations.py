"""Member invitation: email lookup followed by a membership union."""

import asyncio

import pytest

from collective_sync.core.models import UserProfile
from collective_sync.errors import (
    InviteeLookupFailed,
    InviteeMissingIdentity,
    InviteeNotFound,
    InviteStatus,
    MembershipUpdateFailed,
    StoreError,
)
from collective_sync.invitations import InvitationResolver
from collective_sync.services import CollectiveService, UserProfileService


class SpyCollectives(CollectiveService):
    """Records add_member calls and can be told to fail them."""

    def __init__(self, store, fail: bool = False) -> None:
        super().__init__(store)
        self.fail = fail
        self.add_member_calls: list[tuple[str, str]] = []

    async def add_member(self, collective_id: str, user_id: str) -> None:
        self.add_member_calls.append((collective_id, user_id))
        if self.fail:
            raise StoreError("write rejected")
        await super().add_member(collective_id, user_id)


def setup(store, fail_add: bool = False):
    users = UserProfileService(store)
    collectives = SpyCollectives(store, fail=fail_add)
    cid = asyncio.run(collectives.create("Studio", "owner"))
    return InvitationResolver(users, collectives), collectives, cid


def test_invite_adds_resolved_uid(store) -> None:
    resolver, collectives, cid = setup(store)
    asyncio.run(
        resolver.users.upsert(UserProfile(uid="u42", name="Ada", email="ada@example.com"))
    )

    uid = asyncio.run(resolver.invite(" ada@example.com ", cid))

    assert uid == "u42"
    assert asyncio.run(collectives.fetch_one(cid)).members == {"owner", "u42"}


def test_unknown_email_is_not_found_and_touches_nothing(store) -> None:
    resolver, collectives, cid = setup(store)

    with pytest.raises(InviteeNotFound) as info:
        asyncio.run(resolver.invite("ghost@example.com", cid))

    assert info.value.status is InviteStatus.INVITEE_NOT_FOUND
    assert collectives.add_member_calls == []


def test_profile_without_uid_is_reported_as_missing_identity(store) -> None:
    resolver, collectives, cid = setup(store)
    asyncio.run(
        store.set_document("users", "legacy", {"name": "Old", "email": "old@example.com", "uid": ""})
    )

    with pytest.raises(InviteeMissingIdentity) as info:
        asyncio.run(resolver.invite("old@example.com", cid))

    assert info.value.status is InviteStatus.INVITEE_MISSING_IDENTITY
    assert collectives.add_member_calls == []


def test_malformed_profile_is_a_lookup_failure(store) -> None:
    resolver, collectives, cid = setup(store)
    asyncio.run(store.set_document("users", "u7", {"email": "half@example.com"}))

    with pytest.raises(InviteeLookupFailed) as info:
        asyncio.run(resolver.invite("half@example.com", cid))

    assert info.value.status is InviteStatus.INVITEE_LOOKUP_FAILED
    assert collectives.add_member_calls == []


def test_store_failure_during_lookup(store, monkeypatch) -> None:
    resolver, collectives, cid = setup(store)

    async def broken_query(*args, **kwargs):
        raise StoreError("network down")

    monkeypatch.setattr(store, "query", broken_query)

    with pytest.raises(InviteeLookupFailed) as info:
        asyncio.run(resolver.invite("ada@example.com", cid))
    assert isinstance(info.value.cause, StoreError)
    assert collectives.add_member_calls == []


def test_membership_failure_is_distinct_and_retryable(store) -> None:
    resolver, collectives, cid = setup(store, fail_add=True)
    asyncio.run(
        resolver.users.upsert(UserProfile(uid="u42", name="Ada", email="ada@example.com"))
    )

    with pytest.raises(MembershipUpdateFailed) as info:
        asyncio.run(resolver.invite("ada@example.com", cid))
    assert info.value.status is InviteStatus.MEMBERSHIP_UPDATE_FAILED
    assert collectives.add_member_calls == [(cid, "u42")]

    # retrying the whole flow once the store recovers succeeds, twice is harmless
    collectives.fail = False
    asyncio.run(resolver.invite("ada@example.com", cid))
    asyncio.run(resolver.invite("ada@example.com", cid))
    assert asyncio.run(collectives.fetch_one(cid)).members == {"owner", "u42"}
