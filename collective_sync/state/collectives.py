"""Collectives the signed-in user belongs to, plus member invitations."""

from __future__ import annotations

import logging

from ..adapters.identity import Identity, IdentityProvider
from ..core.models import Collective
from ..core.subscription import Subscription
from ..errors import InvitationError, InviteStatus
from ..invitations import InvitationResolver
from ..services.collectives import CollectiveService
from .base import ListState

log = logging.getLogger(__name__)


class CollectiveListState(ListState[Collective]):
    noun = "collectives"

    def __init__(
        self,
        service: CollectiveService,
        invitations: InvitationResolver,
        user_id: str | None = None,
    ) -> None:
        super().__init__()
        self.service = service
        self.invitations = invitations
        self.user_id = user_id
        self._identity_subscription: Subscription | None = None

    # ------------------------------------------------------------------
    # Identity stream
    async def bind(self, provider: IdentityProvider) -> None:
        """Follow ``provider``'s identity, starting with the current one."""
        self.close()
        self._identity_subscription = provider.on_identity_change(self.on_identity_change)
        await self.on_identity_change(provider.current_identity())

    def close(self) -> None:
        if self._identity_subscription is not None:
            self._identity_subscription.unsubscribe()
            self._identity_subscription = None

    async def on_identity_change(self, identity: Identity | None) -> None:
        if identity is not None:
            self.user_id = identity.uid
            await self.refresh()
            return
        # signed out: a refresh for the previous user must not land
        self.invalidate()
        self.user_id = None
        self.items = []
        self.last_error = None
        self.is_loading = False
        self.notify()

    # ------------------------------------------------------------------
    # Operations
    async def fetch(self) -> list[Collective]:
        if self.user_id is None:
            return []
        return await self.service.fetch_for_member(self.user_id)

    async def create(
        self,
        name: str,
        client_facing_name: str | None = None,
        public_page_slug: str | None = None,
    ) -> bool:
        user_id = self.user_id
        if user_id is None:
            self.last_error = "Cannot create collective: user not logged in."
            self.notify()
            return False
        return await self.create_then_refresh(
            "create collective",
            lambda: self.service.create(name, user_id, client_facing_name, public_page_slug),
        )

    async def invite_member(self, email: str, collective_id: str) -> InviteStatus:
        """Invite ``email`` into ``collective_id`` and report how it went.

        The returned status tells "no such user" apart from "try again";
        ``last_error`` holds the matching message. A successful invitation
        refreshes the list so the new member shows up.
        """
        self.is_loading = True
        self.last_error = None
        self.notify()
        try:
            await self.invitations.invite(email, collective_id)
        except InvitationError as exc:
            log.error("Invitation of %s failed: %s", email, exc.status.value)
            self.last_error = str(exc)
            self.is_loading = False
            self.notify()
            return exc.status
        await self.refresh()
        return InviteStatus.SUCCESS
