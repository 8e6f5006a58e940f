"""Firebase Storage adapter used for profile images."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from ..errors import StoreError
from .base import BlobStorage


class FirebaseBlobStorage(BlobStorage):
    """Upload objects through the Firebase Storage REST endpoint."""

    api_base = "https://firebasestorage.googleapis.com/v0"

    def __init__(
        self,
        bucket: str,
        client: httpx.AsyncClient | None = None,
        id_token: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.client = client or httpx.AsyncClient()
        self.id_token = id_token

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Upload ``data`` and return its tokenised download URL."""
        url = f"{self.api_base}/b/{self.bucket}/o"
        headers = {"Content-Type": content_type}
        if self.id_token:
            headers["Authorization"] = f"Firebase {self.id_token}"
        try:
            response = await self.client.post(
                url, params={"uploadType": "media", "name": path}, content=data, headers=headers
            )
            response.raise_for_status()
            meta: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise StoreError(f"Upload of {path} failed: {exc}", exc) from exc
        name = quote(meta.get("name", path), safe="")
        download = f"{url}/{name}?alt=media"
        token = str(meta.get("downloadTokens", "")).split(",")[0]
        if token:
            download += f"&token={token}"
        return download

    async def close(self) -> None:
        await self.client.aclose()
