from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_DEVICE_ID_ENV = "MONITOR_DEVICE_ID"
_FIREBASE_URL_ENV = "FIREBASE_DATABASE_URL"
_FIREBASE_AUTH_ENV = "FIREBASE_AUTH_TOKEN"
_MOCK_DB_PATH_ENV = "MOCK_RTDB_PERSISTENCE_PATH"
_TELEGRAM_TOKEN_ENV = "TELEGRAM_BOT_TOKEN"
_TELEGRAM_CHAT_ENV = "TELEGRAM_CHAT_ID"
_POLL_INTERVAL_ENV = "MONITOR_POLL_INTERVAL_SECONDS"
_FIRST_CHECK_ENV = "MONITOR_FIRST_CHECK_DELAY_SECONDS"
_TIMEZONE_ENV = "MONITOR_TIMEZONE"
_AUTOSTART_ENV = "MONITOR_AUTOSTART"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    device_id: str
    firebase_url: Optional[str]
    firebase_auth_token: Optional[str]
    mock_db_path: Optional[str]
    telegram_bot_token: Optional[str]
    telegram_chat_id: Optional[str]
    poll_interval_seconds: float
    first_check_delay_seconds: float
    timezone: str
    autostart: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_seconds(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        device_id=_read_str_env(_DEVICE_ID_ENV, "ESP-SERVER-01"),
        firebase_url=_read_optional_env(_FIREBASE_URL_ENV, None),
        firebase_auth_token=_read_optional_env(_FIREBASE_AUTH_ENV, None),
        mock_db_path=_read_optional_env(_MOCK_DB_PATH_ENV, "./tmp/mock_rtdb.json"),
        telegram_bot_token=_read_optional_env(_TELEGRAM_TOKEN_ENV, None),
        telegram_chat_id=_read_optional_env(_TELEGRAM_CHAT_ENV, None),
        poll_interval_seconds=_read_seconds(_POLL_INTERVAL_ENV, 30.0),
        first_check_delay_seconds=_read_seconds(_FIRST_CHECK_ENV, 5.0),
        timezone=_read_str_env(_TIMEZONE_ENV, "UTC"),
        autostart=_read_bool(_AUTOSTART_ENV, True),
        log_level=_read_log_level("INFO"),
    )
