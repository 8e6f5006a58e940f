"""Profiles of the members of one collective."""

from __future__ import annotations

from ..core.models import UserProfile
from ..services.collectives import CollectiveService
from ..services.users import UserProfileService
from .base import ListState


class MemberListState(ListState[UserProfile]):
    noun = "members"

    def __init__(
        self,
        collectives: CollectiveService,
        users: UserProfileService,
        collective_id: str,
    ) -> None:
        super().__init__()
        self.collectives = collectives
        self.users = users
        self.collective_id = collective_id

    async def fetch(self) -> list[UserProfile]:
        collective = await self.collectives.fetch_one(self.collective_id)
        return await self.users.fetch_many(sorted(collective.members))
