"""Read-only projection of stored alert records."""

from __future__ import annotations

import logging
import random
import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Iterable, List, Mapping, Optional

from app.schemas import AlertEvent, AlertSeverity, AlertType
from datastore.base import StoreError
from datastore.repository import DeviceRepository, build_default_repository

logger = logging.getLogger(__name__)

CRITICAL_TEMPERATURE = 28.0
CRITICAL_HUMIDITY = 80.0

_NON_DIGITS = re.compile(r"[^0-9]")


class AlertQueryService:
    """Turns ``devices/<id>/alerts`` records into :class:`AlertEvent` values.

    Severity uses fixed display cut-offs (``CRITICAL_TEMPERATURE`` and
    ``CRITICAL_HUMIDITY``), independent of per-device thresholds.
    """

    def __init__(self, repository: DeviceRepository, rng: Optional[random.Random] = None) -> None:
        self.repository = repository
        self._rng = rng or random.Random()

    async def get_alerts(self, device_id: str) -> List[AlertEvent]:
        try:
            records = await self.repository.fetch_alert_records(device_id)
        except StoreError as exc:
            logger.error(
                "Failed to fetch alerts",
                extra={"device_id": device_id, "reason": str(exc)},
            )
            return []

        if not records:
            return []
        return list(self._project(device_id, records.items()))

    def _project(
        self, device_id: str, items: Iterable[tuple[str, Any]]
    ) -> Iterable[AlertEvent]:
        for key, record in items:
            if not isinstance(record, Mapping):
                continue
            event = self._to_event(device_id, key, record)
            if event is None:
                logger.warning(
                    "Skipping malformed alert record",
                    extra={"device_id": device_id, "reason": f"key={key}"},
                )
                continue
            yield event

    def _to_event(
        self, device_id: str, key: str, record: Mapping[str, Any]
    ) -> Optional[AlertEvent]:
        temperature = _as_float(record.get("temperature"))
        humidity = _as_float(record.get("humidity"))
        value = temperature if temperature is not None else humidity
        if value is None:
            return None

        timestamp = _as_float(record.get("timestamp"))
        if timestamp is None:
            return None
        try:
            occurred_at = datetime.fromtimestamp(timestamp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

        hot = temperature is not None and temperature > CRITICAL_TEMPERATURE
        humid = humidity is not None and humidity > CRITICAL_HUMIDITY
        threshold = record.get("temp_range") or record.get("hum_range") or "N/A"

        return AlertEvent(
            id=self._alert_id(key),
            device_id=device_id,
            type=AlertType.temperature if temperature is not None else AlertType.humidity,
            severity=AlertSeverity.critical if hot or humid else AlertSeverity.warning,
            message=(
                "Temperature exceeded maximum threshold"
                if hot
                else "Humidity threshold violation"
            ),
            value=value,
            threshold=str(threshold),
            acknowledged=bool(record.get("acknowledged", False)),
            timestamp=occurred_at,
        )

    def _alert_id(self, key: str) -> int:
        digits = _NON_DIGITS.sub("", key)
        if digits and int(digits):
            return int(digits)
        # Not stable across queries; keys without digits have no natural id.
        return int(self._rng.random() * 1000)


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@lru_cache
def build_default_alert_service() -> AlertQueryService:
    return AlertQueryService(build_default_repository())
