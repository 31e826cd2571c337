from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import pytest


class RecordingNotifier:
    """Notifier double that records messages instead of sending them."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.messages: List[Tuple[str, str]] = []
        self.closed = False

    async def send(self, title: str, body: str) -> bool:
        self.messages.append((title, body))
        return self.succeed

    async def aclose(self) -> None:
        self.closed = True

    @property
    def titles(self) -> List[str]:
        return [title for title, _ in self.messages]


class FrozenClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc))
