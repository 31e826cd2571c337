"""Firebase Realtime Database REST backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from datastore.base import StoreError, split_path

logger = logging.getLogger(__name__)


class FirebaseRealtimeDatabase:
    """Async client for the ``<path>.json`` REST interface."""

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._auth_token = auth_token
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def get(self, path: str) -> Any:
        return await self._request("GET", path)

    async def put(self, path: str, value: Any) -> None:
        await self._request("PUT", path, json=value)

    async def push(self, path: str, value: Any) -> str:
        payload = await self._request("POST", path, json=value)
        name = payload.get("name") if isinstance(payload, dict) else None
        if not isinstance(name, str):
            raise StoreError(f"Unexpected push response for {path!r}.")
        return name

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        url = "/" + "/".join(split_path(path)) + ".json"
        params: Dict[str, str] = {}
        if self._auth_token:
            params["auth"] = self._auth_token

        try:
            response = await self._client.request(method, url, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Realtime database request rejected",
                extra={"path": url, "status_code": exc.response.status_code},
            )
            raise StoreError(
                f"Firebase error {exc.response.status_code} for {method} {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Firebase request failed for {method} {url}: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"Firebase returned invalid JSON for {url}") from exc
