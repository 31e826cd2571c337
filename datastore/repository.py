"""Device data access on top of a realtime database backend."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional

from datastore.base import RealtimeDatabase, StoreError
from datastore.firebase import FirebaseRealtimeDatabase
from datastore.mock_rtdb import build_default_mock_database
from models.records import (
    DeviceStatus,
    NotificationSchedule,
    SensorReading,
    ThresholdConfig,
)
from settings import get_settings

logger = logging.getLogger(__name__)

DEVICE_NAME = "Server Room Main"

# Devices without a synced clock report epoch-ish timestamps.
_EARLIEST_VALID_TIMESTAMP = datetime(2020, 1, 1, tzinfo=timezone.utc)
_MAX_CLOCK_SKEW = timedelta(days=1)

_HEARTBEAT_ONLINE_WINDOW = timedelta(minutes=2)
_SAMPLE_ONLINE_WINDOW = timedelta(minutes=5)
_HEARTBEAT_MAX_AGE = timedelta(hours=24)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DeviceRepository:
    """Reads and writes the ``devices/<id>/...`` subtree."""

    def __init__(
        self,
        database: RealtimeDatabase,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.database = database
        self._clock = clock

    async def get_device_status(self, device_id: str) -> DeviceStatus:
        now = self._clock()

        status = await self.database.get(f"devices/{device_id}/status")
        if isinstance(status, Mapping):
            last_seen = _epoch_to_datetime(status.get("last_seen"))
            if last_seen is not None:
                age = now - last_seen
                if timedelta(0) <= age < _HEARTBEAT_MAX_AGE:
                    return _status(device_id, last_seen, age, _HEARTBEAT_ONLINE_WINDOW)

        latest = _last_child(await self.database.get(f"devices/{device_id}/sensor_data"))
        if isinstance(latest, Mapping):
            sampled_at = _epoch_to_datetime(latest.get("timestamp"))
            if sampled_at is not None and _is_plausible(sampled_at, now):
                return _status(device_id, sampled_at, now - sampled_at, _SAMPLE_ONLINE_WINDOW)

        return DeviceStatus(device_id=device_id, name=DEVICE_NAME, is_online=False)

    async def get_latest_reading(self, device_id: str) -> Optional[SensorReading]:
        latest = _last_child(await self.database.get(f"devices/{device_id}/sensor_data"))
        if not isinstance(latest, Mapping):
            return None
        return parse_reading(device_id, latest, self._clock())

    async def get_device_config(self, device_id: str) -> Optional[ThresholdConfig]:
        payload = await self.database.get(f"devices/{device_id}/config")
        if payload is None:
            return ThresholdConfig()
        if not isinstance(payload, Mapping):
            return None
        try:
            return ThresholdConfig(
                temp_min=float(payload["temp_min"]),
                temp_max=float(payload["temp_max"]),
                hum_min=float(payload["hum_min"]),
                hum_max=float(payload["hum_max"]),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning(
                "Ignoring malformed threshold config",
                extra={"device_id": device_id, "reason": "missing or non-numeric bounds"},
            )
            return None

    async def save_device_config(self, device_id: str, values: Mapping[str, Any]) -> None:
        await self.database.put(f"devices/{device_id}/config", dict(values))
        logger.info("Pushed device config", extra={"device_id": device_id})

    async def get_notification_schedule(self, device_id: str) -> NotificationSchedule:
        try:
            payload = await self.database.get(f"devices/{device_id}/notification_schedule")
        except StoreError as exc:
            logger.warning(
                "Falling back to default notification schedule",
                extra={"device_id": device_id, "reason": str(exc)},
            )
            return NotificationSchedule()
        if not isinstance(payload, Mapping):
            return NotificationSchedule()
        try:
            return NotificationSchedule.from_payload(payload)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning(
                "Falling back to default notification schedule",
                extra={"device_id": device_id, "reason": f"malformed schedule: {exc}"},
            )
            return NotificationSchedule()

    async def save_notification_schedule(
        self, device_id: str, schedule: NotificationSchedule
    ) -> None:
        await self.database.put(
            f"devices/{device_id}/notification_schedule", schedule.to_payload()
        )
        logger.info("Saved notification schedule", extra={"device_id": device_id})

    async def fetch_alert_records(self, device_id: str) -> Optional[Dict[str, Any]]:
        records = await self.database.get(f"devices/{device_id}/alerts")
        if isinstance(records, list):
            # Firebase returns integer-keyed children as a sparse array.
            return {str(index): item for index, item in enumerate(records) if item is not None}
        if isinstance(records, Mapping):
            return dict(records)
        return None


def parse_reading(
    device_id: str, payload: Mapping[str, Any], received_at: datetime
) -> Optional[SensorReading]:
    """Convert a raw ``sensor_data`` child into a reading.

    Returns ``None`` when any field is missing or non-numeric. A timestamp
    outside the plausible window is replaced by ``received_at``.
    """
    try:
        temperature = float(payload["temperature"])
        humidity = float(payload["humidity"])
    except (KeyError, TypeError, ValueError):
        return None

    timestamp = _epoch_to_datetime(payload.get("timestamp"))
    if timestamp is None:
        return None
    if not _is_plausible(timestamp, received_at):
        timestamp = received_at

    return SensorReading(
        sensor_id=device_id,
        timestamp=timestamp,
        temperature=temperature,
        humidity=humidity,
    )


def _status(
    device_id: str, last_seen: datetime, age: timedelta, window: timedelta
) -> DeviceStatus:
    return DeviceStatus(
        device_id=device_id,
        name=DEVICE_NAME,
        is_online=age < window,
        last_seen=last_seen,
        minutes_ago=int(age.total_seconds() // 60),
    )


def _last_child(node: Any) -> Any:
    if isinstance(node, Mapping):
        children = [value for value in node.values() if value is not None]
    elif isinstance(node, list):
        children = [value for value in node if value is not None]
    else:
        return None
    return children[-1] if children else None


def _epoch_to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        seconds = float(value)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def _is_plausible(timestamp: datetime, now: datetime) -> bool:
    return _EARLIEST_VALID_TIMESTAMP < timestamp < now + _MAX_CLOCK_SKEW


def build_database() -> RealtimeDatabase:
    settings = get_settings()
    if settings.firebase_url:
        return FirebaseRealtimeDatabase(
            settings.firebase_url, auth_token=settings.firebase_auth_token
        )
    return build_default_mock_database()


@lru_cache
def build_default_repository() -> DeviceRepository:
    return DeviceRepository(build_database())
