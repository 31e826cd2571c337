"""Telegram Bot API notification transport."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Protocol

import httpx

from settings import get_settings

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class Notifier(Protocol):
    async def send(self, title: str, body: str) -> bool: ...

    async def aclose(self) -> None: ...


class TelegramNotifier:
    """Sends ``title`` and ``body`` as one HTML-formatted chat message.

    ``send`` reports delivery as a boolean and never raises, so callers can
    treat a failed notification as an ordinary outcome.
    """

    def __init__(
        self,
        bot_token: Optional[str],
        chat_id: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._bot_token = bot_token
        self.chat_id = chat_id
        self._client = httpx.AsyncClient(
            base_url=TELEGRAM_API_URL, timeout=timeout, transport=transport
        )

    @property
    def configured(self) -> bool:
        return bool(self._bot_token and self.chat_id)

    async def send(self, title: str, body: str) -> bool:
        if not self.configured:
            logger.info("Telegram bot not configured; dropping notification")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": f"{title}\n\n{body}",
            "parse_mode": "HTML",
        }
        try:
            response = await self._client.post(
                f"/bot{self._bot_token}/sendMessage", json=payload
            )
        except httpx.HTTPError as exc:
            logger.error(
                "Telegram request failed",
                extra={"reason": exc.__class__.__name__},
            )
            return False

        if response.is_success:
            logger.info("Telegram message sent")
            return True

        logger.error(
            "Telegram rejected message",
            extra={"status_code": response.status_code},
        )
        return False

    async def aclose(self) -> None:
        await self._client.aclose()


@lru_cache
def build_default_notifier() -> TelegramNotifier:
    settings = get_settings()
    return TelegramNotifier(settings.telegram_bot_token, settings.telegram_chat_id)
