"""Exception hierarchy shared by services, adapters and state containers.

Entity services raise the generic errors. The invitation errors are only
raised by :class:`~collective_sync.invitations.InvitationResolver` and each
carries an :class:`InviteStatus` so the presentation layer can tell "no such
user" apart from "try again".
"""

from __future__ import annotations

from enum import Enum


class SyncError(Exception):
    """Base class for every error raised by ``collective_sync``."""


class StoreError(SyncError):
    """The remote store (or the transport to it) failed."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ValidationError(SyncError):
    """Input was rejected before any network call was made."""


class NotFound(SyncError):
    """The requested document or query result does not exist."""


class DecodingError(SyncError):
    """A stored document does not match the expected shape."""


class IdentityError(SyncError):
    """The identity provider rejected a sign-in or sign-up request."""


class InviteStatus(str, Enum):
    SUCCESS = "success"
    INVITEE_NOT_FOUND = "invitee_not_found"
    INVITEE_MISSING_IDENTITY = "invitee_missing_identity"
    INVITEE_LOOKUP_FAILED = "invitee_lookup_failed"
    MEMBERSHIP_UPDATE_FAILED = "membership_update_failed"


class InvitationError(SyncError):
    """Base class for failures of the member invitation flow."""

    status: InviteStatus

    def __init__(self, email: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.email = email
        self.cause = cause


class InviteeNotFound(InvitationError):
    status = InviteStatus.INVITEE_NOT_FOUND

    def __init__(self, email: str) -> None:
        super().__init__(email, f"No user found with email {email}.")


class InviteeMissingIdentity(InvitationError):
    status = InviteStatus.INVITEE_MISSING_IDENTITY

    def __init__(self, email: str) -> None:
        super().__init__(
            email,
            f"The profile for {email} has no user id and cannot be invited. "
            "The profile needs to be repaired.",
        )


class InviteeLookupFailed(InvitationError):
    status = InviteStatus.INVITEE_LOOKUP_FAILED

    def __init__(self, email: str, cause: BaseException) -> None:
        super().__init__(email, f"Could not look up {email}. Please try again.", cause)


class MembershipUpdateFailed(InvitationError):
    status = InviteStatus.MEMBERSHIP_UPDATE_FAILED

    def __init__(self, email: str, cause: BaseException) -> None:
        super().__init__(
            email, f"Found {email} but could not add them to the collective. Please try again.", cause
        )
