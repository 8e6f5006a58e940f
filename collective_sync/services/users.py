"""User profile documents, keyed by the identity provider's user id."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..adapters.base import BlobStorage, DocumentStore, where_equal
from ..core.models import UserProfile
from ..errors import NotFound, ValidationError
from .base import EntityService, require

log = logging.getLogger(__name__)


class UserProfileService(EntityService[UserProfile]):
    collection = "users"
    model = UserProfile
    immutable = frozenset({"id", "uid", "created_at"})

    def __init__(self, store: DocumentStore, blobs: BlobStorage | None = None) -> None:
        super().__init__(store)
        self.blobs = blobs

    async def fetch_one(self, uid: str) -> UserProfile:
        return await self._fetch_one(self.collection, uid)

    async def fetch_by_email(self, email: str) -> UserProfile:
        """Return the profile whose ``email`` equals ``email``.

        Raises :class:`NotFound` when nothing matches and
        :class:`~collective_sync.errors.DecodingError` when the match is
        malformed. Emails are unique, so only the first match is read.
        """
        snapshots = await self.guarded(
            f"fetching user by email {email}",
            self.store.query(
                self.collection,
                [where_equal(UserProfile.field_alias("email"), email)],
                limit=1,
            ),
        )
        if not snapshots:
            log.info("No user found with email %s", email)
            raise NotFound(f"No user with email {email}.")
        return self.decode(snapshots[0])

    async def fetch_many(self, uids: Iterable[str]) -> list[UserProfile]:
        """Resolve member ids to profiles, keeping input order.

        Missing and malformed profiles are left out of the result.
        """
        ids = list(dict.fromkeys(uid for uid in uids if uid))
        snapshots = await self.guarded(
            f"fetching {len(ids)} user profiles",
            asyncio.gather(*(self.store.get_document(self.collection, uid) for uid in ids)),
        )
        found = [snapshot for snapshot in snapshots if snapshot is not None]
        if len(found) < len(ids):
            log.info("%d of %d user profiles do not exist", len(ids) - len(found), len(ids))
        return self.decode_many(found, "member lookup")

    async def upsert(self, profile: UserProfile) -> UserProfile:
        """Create or merge-update the profile stored under ``profile.uid``.

        Fields absent from ``profile`` (``None``) are left untouched in the
        stored document. A profile that was never read from the store
        (no ``id``) is new, and the store stamps its ``createdAt``.
        """
        uid = require(profile.uid, "User id")
        data = profile.to_document(exclude=("created_at",))
        stamp = None if profile.id else UserProfile.field_alias("created_at")
        await self.guarded(
            f"saving user profile {uid}",
            self.store.set_document(
                self.collection, uid, data, merge=True, server_timestamp=stamp
            ),
        )
        log.info("User profile saved for uid %s", uid)
        return profile.model_copy(update={"id": uid})

    async def update_fields(self, uid: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        return await self._update(self.collection, uid, fields)

    async def upload_profile_image(
        self, uid: str, data: bytes, content_type: str = "image/jpeg"
    ) -> str:
        """Upload a profile picture and point the profile at its URL."""
        if self.blobs is None:
            raise ValidationError("Profile image storage is not configured.")
        if not data:
            raise ValidationError("Profile image is empty.")
        uid = require(uid, "User id")
        extension = content_type.rsplit("/", 1)[-1]
        url = await self.guarded(
            f"uploading profile image for {uid}",
            self.blobs.put(f"profile_images/{uid}.{extension}", data, content_type),
        )
        await self.update_fields(uid, {"profile_image": url})
        return url
