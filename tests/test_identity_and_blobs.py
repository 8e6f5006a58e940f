"""Tests for the identity providers, blob storage and service wiring."""

import asyncio
import json

import httpx
import pytest

from collective_sync.adapters.blob import FirebaseBlobStorage
from collective_sync.adapters.firestore import FirestoreStore
from collective_sync.adapters.identity import FirebaseAuthProvider, LocalIdentityProvider
from collective_sync.app import build_services
from collective_sync.config import Settings
from collective_sync.core.storage import JSONDocumentStore
from collective_sync.core.subscription import Subscription
from collective_sync.errors import IdentityError, StoreError


def test_listeners_receive_changes_until_unsubscribed() -> None:
    provider = LocalIdentityProvider()
    seen = []

    async def listener(identity):
        seen.append(identity.uid if identity else None)

    async def scenario():
        handle = provider.on_identity_change(listener)
        await provider.sign_in_as("u1", "u1@example.com")
        await provider.sign_out()
        handle.unsubscribe()
        handle.unsubscribe()  # second call is harmless
        await provider.sign_in_as("u2")

    asyncio.run(scenario())
    assert seen == ["u1", None]
    assert provider.current_identity().uid == "u2"


def test_subscription_context_manager() -> None:
    removed = []
    with Subscription(lambda: removed.append(True)) as handle:
        handle.unsubscribe()
        assert removed == [True]
    # leaving the block does not remove the listener twice
    assert removed == [True]


def test_firebase_sign_in_publishes_identity() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(
            200, json={"localId": "u9", "email": "nine@example.com", "idToken": "ID"}
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    provider = FirebaseAuthProvider("KEY", client=client)

    identity = asyncio.run(provider.sign_in("nine@example.com", "secret"))

    request = captured["request"]
    assert request.url.path.endswith("/accounts:signInWithPassword")
    assert request.url.params["key"] == "KEY"
    assert json.loads(request.content)["returnSecureToken"] is True
    assert identity.uid == "u9"
    assert provider.current_identity() == identity


def test_firebase_sign_in_rejection() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "INVALID_PASSWORD"}})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    provider = FirebaseAuthProvider("KEY", client=client)

    with pytest.raises(IdentityError, match="INVALID_PASSWORD"):
        asyncio.run(provider.sign_up("nine@example.com", "short"))
    assert provider.current_identity() is None


def test_blob_put_returns_download_url() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(
            200, json={"name": "profile_images/u1.png", "downloadTokens": "tok1,tok2"}
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    blobs = FirebaseBlobStorage("bucket.appspot.com", client=client, id_token="ID")

    url = asyncio.run(blobs.put("profile_images/u1.png", b"png", "image/png"))

    request = captured["request"]
    assert request.headers["Content-Type"] == "image/png"
    assert request.headers["Authorization"] == "Firebase ID"
    assert request.url.params["name"] == "profile_images/u1.png"
    assert request.content == b"png"
    assert url.endswith("/b/bucket.appspot.com/o/profile_images%2Fu1.png?alt=media&token=tok1")


def test_build_services_local_mode(tmp_path) -> None:
    services = build_services(Settings(data_path=str(tmp_path / "local.json")))
    assert isinstance(services.store, JSONDocumentStore)
    assert isinstance(services.identity, LocalIdentityProvider)
    assert services.invitations.users is services.users


def test_build_services_tracks_identity_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"localId": "u1", "idToken": "FRESH"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    settings = Settings(project_id="demo", api_key="KEY", storage_bucket="bucket")
    services = build_services(settings, client=client)
    assert isinstance(services.store, FirestoreStore)

    asyncio.run(services.identity.sign_in("u1@example.com", "pw"))
    assert services.store.id_token == "FRESH"
    assert services.blobs.id_token == "FRESH"

    asyncio.run(services.identity.sign_out())
    assert services.store.id_token is None


def test_blob_reply_that_is_not_json_becomes_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    blobs = FirebaseBlobStorage("bucket", client=client)

    with pytest.raises(StoreError):
        asyncio.run(blobs.put("profile_images/u1.png", b"png", "image/png"))
