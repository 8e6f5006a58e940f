"""The signed-in user's own profile."""

from __future__ import annotations

import logging

from ..adapters.identity import Identity, IdentityProvider
from ..core.models import UserProfile
from ..errors import NotFound, SyncError
from ..services.users import UserProfileService
from .base import ObservableState

log = logging.getLogger(__name__)


def default_profile(identity: Identity) -> UserProfile:
    """Starting profile for a user who has never saved one."""
    return UserProfile(
        uid=identity.uid,
        name="New User",
        email=identity.email or "",
        bio="Please update your bio.",
    )


class ProfileState(ObservableState):
    def __init__(self, service: UserProfileService, identity: IdentityProvider) -> None:
        super().__init__()
        self.service = service
        self.identity = identity
        self.profile: UserProfile | None = None

    def _signed_in(self) -> Identity | None:
        current = self.identity.current_identity()
        if current is None:
            self.last_error = "User not logged in."
            self.notify()
        return current

    async def refresh(self) -> bool:
        current = self._signed_in()
        if current is None:
            return False
        self.is_loading = True
        self.last_error = None
        self.notify()
        try:
            self.profile = await self.service.fetch_one(current.uid)
            return True
        except NotFound:
            log.info("No profile for uid %s yet, starting from a default", current.uid)
            self.profile = default_profile(current)
            return True
        except SyncError as exc:
            # keep whatever profile was shown before
            self.fail("fetch user profile", exc)
            return False
        finally:
            self.is_loading = False
            self.notify()

    async def save(self, profile: UserProfile | None = None) -> bool:
        """Merge-save ``profile`` (default: the loaded one) for the signed-in user."""
        profile = profile or self.profile
        if profile is None:
            self.last_error = "No user data to save."
            self.notify()
            return False
        current = self._signed_in()
        if current is None:
            return False
        if not profile.uid:
            profile = profile.model_copy(update={"uid": current.uid})
        self.is_loading = True
        self.last_error = None
        self.notify()
        try:
            self.profile = await self.service.upsert(profile)
            return True
        except SyncError as exc:
            self.fail("save user profile", exc)
            return False
        finally:
            self.is_loading = False
            self.notify()

    async def upload_image(self, data: bytes, content_type: str = "image/jpeg") -> bool:
        current = self._signed_in()
        if current is None:
            return False
        self.is_loading = True
        self.last_error = None
        self.notify()
        try:
            url = await self.service.upload_profile_image(current.uid, data, content_type)
        except SyncError as exc:
            self.fail("upload profile image", exc)
            return False
        else:
            if self.profile is not None:
                self.profile = self.profile.model_copy(update={"profile_image": url})
            return True
        finally:
            self.is_loading = False
            self.notify()

    def clear(self) -> None:
        self.profile = None
        self.last_error = None
        self.is_loading = False
        self.notify()
