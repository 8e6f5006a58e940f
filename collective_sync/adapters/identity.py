"""Identity providers and the identity change stream."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from ..core.subscription import Subscription, listener_registry
from ..errors import IdentityError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The signed-in user as reported by the identity provider."""

    uid: str
    email: str | None = None
    id_token: str | None = None


IdentityListener = Callable[[Identity | None], Awaitable[None]]


class IdentityProvider:
    """Holds the current identity and notifies listeners when it changes.

    Listeners are coroutine functions receiving the new identity, or
    ``None`` after sign-out. They run in registration order and are
    awaited by whichever call changed the identity.
    """

    def __init__(self) -> None:
        self._identity: Identity | None = None
        self._listeners, self._register = listener_registry()

    def current_identity(self) -> Identity | None:
        return self._identity

    def on_identity_change(self, listener: IdentityListener) -> Subscription:
        """Register ``listener`` and return its unsubscribe handle."""
        return self._register(listener)

    async def _publish(self, identity: Identity | None) -> None:
        self._identity = identity
        log.info("Identity changed: %s", identity.uid if identity else "signed out")
        for listener in list(self._listeners):
            await listener(identity)

    async def sign_out(self) -> None:
        await self._publish(None)


class LocalIdentityProvider(IdentityProvider):
    """Provider for local mode: trusts whatever identity it is handed."""

    async def sign_in_as(self, uid: str, email: str | None = None) -> Identity:
        identity = Identity(uid=uid, email=email)
        await self._publish(identity)
        return identity


class FirebaseAuthProvider(IdentityProvider):
    """Email and password authentication against the Identity Toolkit API."""

    api_base = "https://identitytoolkit.googleapis.com/v1"

    def __init__(self, api_key: str, client: httpx.AsyncClient | None = None) -> None:
        super().__init__()
        self.api_key = api_key
        self.client = client or httpx.AsyncClient()

    async def _accounts(self, action: str, email: str, password: str) -> Identity:
        url = f"{self.api_base}/accounts:{action}"
        payload = {"email": email, "password": password, "returnSecureToken": True}
        try:
            response = await self.client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as exc:
            raise IdentityError(f"Identity provider unreachable: {exc}") from exc
        try:
            data: dict[str, Any] = response.json() if response.content else {}
        except ValueError as exc:
            raise IdentityError(f"Identity provider sent an unreadable reply: {exc}") from exc
        if response.is_error:
            reason = data.get("error", {}).get("message", response.reason_phrase)
            raise IdentityError(reason)
        identity = Identity(
            uid=data["localId"], email=data.get("email", email), id_token=data.get("idToken")
        )
        await self._publish(identity)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        return await self._accounts("signInWithPassword", email, password)

    async def sign_up(self, email: str, password: str) -> Identity:
        return await self._accounts("signUp", email, password)

    async def close(self) -> None:
        await self.client.aclose()
