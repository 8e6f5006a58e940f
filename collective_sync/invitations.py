"""Member invitation: resolve an email to a user id, then join the collective.

The two steps are not atomic. A failed membership update leaves nothing to
undo (the lookup has no side effects) and the whole invitation can simply be
retried, because adding an existing member is a no-op.
"""

from __future__ import annotations

import logging

from .errors import (
    DecodingError,
    InviteeLookupFailed,
    InviteeMissingIdentity,
    InviteeNotFound,
    MembershipUpdateFailed,
    NotFound,
    StoreError,
)
from .services.collectives import CollectiveService
from .services.users import UserProfileService

log = logging.getLogger(__name__)


class InvitationResolver:
    """Stateless orchestration over the user and collective services."""

    def __init__(self, users: UserProfileService, collectives: CollectiveService) -> None:
        self.users = users
        self.collectives = collectives

    async def invite(self, email: str, collective_id: str) -> str:
        """Add the user registered under ``email`` to ``collective_id``.

        Returns the invitee's user id. Raises one of
        :class:`InviteeNotFound`, :class:`InviteeMissingIdentity`,
        :class:`InviteeLookupFailed` or :class:`MembershipUpdateFailed`.
        """
        email = email.strip()
        log.info("Inviting %s to collective %s", email, collective_id)

        try:
            invitee = await self.users.fetch_by_email(email)
        except NotFound as exc:
            raise InviteeNotFound(email) from exc
        except (StoreError, DecodingError) as exc:
            log.error("Lookup of %s failed: %s", email, exc)
            raise InviteeLookupFailed(email, exc) from exc

        uid = (invitee.uid or "").strip()
        if not uid:
            log.error("Profile %s for %s has no uid", invitee.id, email)
            raise InviteeMissingIdentity(email)

        try:
            await self.collectives.add_member(collective_id, uid)
        except StoreError as exc:
            raise MembershipUpdateFailed(email, exc) from exc

        log.info("Invited %s (uid %s) to collective %s", email, uid, collective_id)
        return uid
