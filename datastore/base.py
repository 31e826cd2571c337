"""Backend contract for the realtime database holding device data."""

from __future__ import annotations

from typing import Any, Protocol


class StoreError(RuntimeError):
    """Raised when the realtime database cannot be read or written."""


class RealtimeDatabase(Protocol):
    """Path-addressed JSON tree, as exposed by Firebase Realtime Database.

    Paths are slash separated (``devices/ESP-1/config``); leading and
    trailing slashes are ignored. ``get`` returns ``None`` for a missing node.
    """

    async def get(self, path: str) -> Any: ...

    async def put(self, path: str, value: Any) -> None: ...

    async def push(self, path: str, value: Any) -> str: ...

    async def aclose(self) -> None: ...


def split_path(path: str) -> list[str]:
    return [part for part in path.strip("/").split("/") if part]
