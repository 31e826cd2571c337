from __future__ import annotations

import asyncio
import json
import logging
from typing import List

import httpx

from notifications.telegram import TelegramNotifier


def _notifier(handler, token: str | None = "123:abc", chat: str | None = "-100") -> TelegramNotifier:
    return TelegramNotifier(token, chat, transport=httpx.MockTransport(handler))


def test_send_posts_html_message() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"ok": True})

    notifier = _notifier(handler)

    delivered = asyncio.run(notifier.send("🚨 EMERGENCY ALERT (1/3)", "Temperature 30°C"))

    assert delivered is True
    request = requests[0]
    assert request.url.path == "/bot123:abc/sendMessage"
    assert json.loads(request.content) == {
        "chat_id": "-100",
        "text": "🚨 EMERGENCY ALERT (1/3)\n\nTemperature 30°C",
        "parse_mode": "HTML",
    }


def test_unconfigured_bot_does_not_send() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("no request expected")

    notifier = _notifier(handler, token=None)

    assert notifier.configured is False
    assert asyncio.run(notifier.send("title", "body")) is False


def test_rejected_message_returns_false(caplog) -> None:
    notifier = _notifier(lambda request: httpx.Response(400, json={"ok": False}))

    with caplog.at_level(logging.ERROR):
        delivered = asyncio.run(notifier.send("title", "body"))

    assert delivered is False
    records = [record for record in caplog.records if record.name == "notifications.telegram"]
    assert any(getattr(record, "status_code", None) == 400 for record in records)


def test_network_failure_returns_false_without_leaking_token(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    notifier = _notifier(handler)

    with caplog.at_level(logging.DEBUG):
        delivered = asyncio.run(notifier.send("title", "body"))

    assert delivered is False
    assert all("123:abc" not in record.getMessage() for record in caplog.records)
