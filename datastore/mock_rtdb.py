from __future__ import annotations
import copy
import json
import time
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

from datastore.base import StoreError, split_path
from settings import get_settings


class MockRealtimeDatabase:
    """In-process stand-in for the realtime database, optionally file backed."""

    def __init__(self, name: str = "mock-rtdb", persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._tree: Dict[str, Any] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        self._push_counter = 0
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    async def get(self, path: str) -> Any:
        with self._lock:
            node: Any = self._tree
            for part in split_path(path):
                if not isinstance(node, dict) or part not in node:
                    return None
                node = node[part]
            return copy.deepcopy(node)

    async def put(self, path: str, value: Any) -> None:
        parts = split_path(path)
        if not parts:
            raise StoreError("Refusing to overwrite the database root.")
        with self._lock:
            parent = self._tree
            for part in parts[:-1]:
                child = parent.get(part)
                if not isinstance(child, dict):
                    child = {}
                    parent[part] = child
                parent = child
            if value is None:
                parent.pop(parts[-1], None)
            else:
                parent[parts[-1]] = copy.deepcopy(value)
            self._persist()

    async def push(self, path: str, value: Any) -> str:
        with self._lock:
            self._push_counter += 1
            # Time-prefixed keys keep children in insertion order when sorted.
            key = f"-{time.time_ns():020d}{self._push_counter:04d}"
        await self.put(f"{path.rstrip('/')}/{key}", value)
        return key

    async def aclose(self) -> None:
        return None

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        self.persistence_path.write_text(json.dumps(self._tree, indent=2))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        if isinstance(data, dict):
            self._tree = data


@lru_cache
def build_default_mock_database(path: Optional[str] = None) -> MockRealtimeDatabase:
    settings = get_settings()
    db_path = settings.mock_db_path if path is None else path
    persistence = Path(db_path) if db_path else None
    return MockRealtimeDatabase(persistence_path=persistence)
