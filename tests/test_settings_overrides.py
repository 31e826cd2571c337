from __future__ import annotations

from datetime import timezone
from typing import Iterable

from datastore.firebase import FirebaseRealtimeDatabase
from datastore.mock_rtdb import MockRealtimeDatabase, build_default_mock_database
from datastore.repository import build_default_repository
from notifications.telegram import build_default_notifier
from services.monitor import _resolve_timezone, build_default_monitor
from settings import get_settings

CACHES = (
    get_settings,
    build_default_mock_database,
    build_default_repository,
    build_default_notifier,
    build_default_monitor,
)


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    db_path = tmp_path / "rtdb.json"

    monkeypatch.setenv("MONITOR_DEVICE_ID", "ESP-LAB-02")
    monkeypatch.setenv("MOCK_RTDB_PERSISTENCE_PATH", str(db_path))
    monkeypatch.delenv("FIREBASE_DATABASE_URL", raising=False)
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "-100")
    monkeypatch.setenv("MONITOR_POLL_INTERVAL_SECONDS", "10")
    monkeypatch.setenv("MONITOR_FIRST_CHECK_DELAY_SECONDS", "-1")
    monkeypatch.setenv("MONITOR_AUTOSTART", "off")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        monitor = build_default_monitor()

        assert settings.autostart is False
        assert settings.log_level == "DEBUG"
        assert monitor.device_id == "ESP-LAB-02"
        assert monitor.poll_interval == 10.0
        assert monitor.first_check_delay == 5.0
        assert monitor.notifier.configured is True
        database = monitor.repository.database
        assert isinstance(database, MockRealtimeDatabase)
        assert database.persistence_path == db_path
    finally:
        _clear_caches(CACHES)


def test_firebase_url_selects_rest_backend(monkeypatch) -> None:
    monkeypatch.setenv("FIREBASE_DATABASE_URL", "https://example-rtdb.firebaseio.com/")
    monkeypatch.setenv("FIREBASE_AUTH_TOKEN", "secret")
    _clear_caches(CACHES)

    try:
        database = build_default_repository().database
        assert isinstance(database, FirebaseRealtimeDatabase)
        assert database.base_url == "https://example-rtdb.firebaseio.com"
    finally:
        _clear_caches(CACHES)


def test_unknown_timezone_falls_back_to_utc() -> None:
    assert _resolve_timezone("Not/AZone") is timezone.utc
