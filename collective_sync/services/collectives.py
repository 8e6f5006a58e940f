"""Collective documents and their membership set."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..adapters.base import where_contains
from ..core.models import Collective
from .base import EntityService, build, require

log = logging.getLogger(__name__)


class CollectiveService(EntityService[Collective]):
    collection = "collectives"
    model = Collective
    immutable = frozenset({"id", "created_at", "created_by", "members"})

    async def create(
        self,
        name: str,
        created_by: str,
        client_facing_name: str | None = None,
        public_page_slug: str | None = None,
    ) -> str:
        """Create a collective whose only member is its creator."""
        created_by = require(created_by, "Creator id")
        collective = build(
            Collective,
            name=require(name, "Collective name"),
            client_facing_name=client_facing_name or None,
            public_page_slug=public_page_slug or None,
            created_by=created_by,
            members={created_by},
        )
        return await self._create(self.collection, collective)

    async def fetch_one(self, collective_id: str) -> Collective:
        return await self._fetch_one(self.collection, collective_id)

    async def fetch_for_member(self, uid: str) -> list[Collective]:
        """Return the collectives whose ``members`` contain ``uid``."""
        return await self._fetch_many(
            self.collection,
            [where_contains(Collective.field_alias("members"), uid)],
            context=f"user {uid}",
        )

    async def update(self, collective_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Set descriptive fields. Membership only changes through :meth:`add_member`."""
        return await self._update(self.collection, collective_id, fields)

    async def add_member(self, collective_id: str, user_id: str) -> None:
        """Union ``user_id`` into the membership set; re-adding is a no-op."""
        await self.guarded(
            f"adding member {user_id} to collective {collective_id}",
            self.store.union_append(
                self.collection, collective_id, Collective.field_alias("members"), user_id
            ),
        )
        log.info("User %s added to collective %s", user_id, collective_id)
