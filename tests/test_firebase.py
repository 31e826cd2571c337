from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from datastore.base import StoreError
from datastore.firebase import FirebaseRealtimeDatabase

BASE_URL = "https://example-rtdb.firebaseio.com/"


def _database(handler, auth_token: str | None = None) -> FirebaseRealtimeDatabase:
    return FirebaseRealtimeDatabase(
        BASE_URL, auth_token=auth_token, transport=httpx.MockTransport(handler)
    )


def test_get_builds_json_url_with_auth() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"temp_min": 18})

    database = _database(handler, auth_token="secret")

    result = asyncio.run(database.get("/devices/ESP-1/config"))

    assert result == {"temp_min": 18}
    assert requests[0].method == "GET"
    assert requests[0].url.path == "/devices/ESP-1/config.json"
    assert requests[0].url.params["auth"] == "secret"


def test_get_missing_node_returns_none() -> None:
    database = _database(lambda request: httpx.Response(200, content=b"null"))

    assert asyncio.run(database.get("devices/ESP-1/alerts")) is None


def test_put_sends_json_body() -> None:
    bodies: List[object] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert "auth" not in request.url.params
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"enabled": True})

    database = _database(handler)

    asyncio.run(database.put("devices/ESP-1/notification_schedule", {"enabled": True}))

    assert bodies == [{"enabled": True}]


def test_push_returns_generated_name() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        return httpx.Response(200, json={"name": "-NxYz"})

    database = _database(handler)

    assert asyncio.run(database.push("devices/ESP-1/alerts", {"temperature": 30})) == "-NxYz"


def test_http_error_raises_store_error() -> None:
    database = _database(lambda request: httpx.Response(401, json={"error": "Permission denied"}))

    with pytest.raises(StoreError, match="401"):
        asyncio.run(database.get("devices/ESP-1/status"))


def test_network_error_raises_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    database = _database(handler)

    with pytest.raises(StoreError):
        asyncio.run(database.get("devices/ESP-1/status"))


def test_invalid_json_raises_store_error() -> None:
    database = _database(lambda request: httpx.Response(200, content=b"<html>"))

    with pytest.raises(StoreError, match="invalid JSON"):
        asyncio.run(database.get("devices/ESP-1/status"))
