"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Set

DEFAULT_FIXED_TIMES = ("08:00", "13:00", "18:00")


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single temperature/humidity sample reported by a device."""

    sensor_id: str
    timestamp: datetime
    temperature: float
    humidity: float


@dataclass(frozen=True, slots=True)
class ThresholdConfig:
    """Acceptable ranges for a device, as configured by the operator."""

    temp_min: float = 18.0
    temp_max: float = 27.0
    hum_min: float = 40.0
    hum_max: float = 70.0


@dataclass(frozen=True, slots=True)
class QuietHours:
    start: str = "22:00"
    end: str = "06:00"


@dataclass(frozen=True, slots=True)
class NotificationSchedule:
    """User notification preferences.

    ``interval_hours``, ``max_per_day`` and ``quiet_hours`` are stored and
    round-tripped but not enforced by the dispatch logic.
    """

    enabled: bool = True
    schedule_type: str = "fixed"
    fixed_times: tuple[str, ...] = DEFAULT_FIXED_TIMES
    interval_hours: int = 4
    max_per_day: int = 3
    emergency_enabled: bool = True
    quiet_hours: QuietHours = field(default_factory=QuietHours)

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "NotificationSchedule":
        """Build a schedule from a stored payload, substituting defaults.

        An absent payload yields the full defaults. A present payload keeps
        its own values and fills missing fields from the defaults, except
        ``emergencyEnabled`` which is opt-in and falls back to ``False``.
        """
        if not payload:
            return cls()

        defaults = cls()
        fixed_times = payload.get("fixedTimes")
        if not isinstance(fixed_times, (list, tuple)):
            fixed_times = defaults.fixed_times
        quiet = payload.get("quietHours")
        if not isinstance(quiet, Mapping):
            quiet = {}
        return cls(
            enabled=_coalesce(payload.get("enabled"), defaults.enabled),
            schedule_type=payload.get("scheduleType") or defaults.schedule_type,
            fixed_times=tuple(str(value) for value in fixed_times),
            interval_hours=payload.get("intervalHours") or defaults.interval_hours,
            max_per_day=payload.get("maxPerDay") or defaults.max_per_day,
            emergency_enabled=_coalesce(payload.get("emergencyEnabled"), False),
            quiet_hours=QuietHours(
                start=quiet.get("start") or defaults.quiet_hours.start,
                end=quiet.get("end") or defaults.quiet_hours.end,
            ),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "scheduleType": self.schedule_type,
            "fixedTimes": list(self.fixed_times),
            "intervalHours": self.interval_hours,
            "maxPerDay": self.max_per_day,
            "emergencyEnabled": self.emergency_enabled,
            "quietHours": {"start": self.quiet_hours.start, "end": self.quiet_hours.end},
        }


@dataclass(frozen=True, slots=True)
class DeviceStatus:
    device_id: str
    name: str
    is_online: bool
    last_seen: Optional[datetime] = None
    minutes_ago: Optional[int] = None


@dataclass(slots=True)
class EmergencyState:
    """Per-device emergency escalation state, kept in memory only."""

    is_active: bool = False
    sent_count: int = 0
    last_sent_time: Optional[datetime] = None
    last_alert_state: bool = False


@dataclass(slots=True)
class DailySentTracker:
    """Scheduled report slots already delivered on ``last_reset_date``."""

    last_reset_date: Optional[date] = None
    sent_today: Set[str] = field(default_factory=set)

    def reset_if_new_day(self, today: date) -> bool:
        if self.last_reset_date == today:
            return False
        self.sent_today.clear()
        self.last_reset_date = today
        return True


@dataclass(frozen=True, slots=True)
class MonitorSnapshot:
    """Point-in-time copy of a monitor's in-memory state."""

    device_id: str
    running: bool
    emergency: EmergencyState
    last_reset_date: Optional[date]
    sent_today: List[str]


def _coalesce(value: Any, default: bool) -> bool:
    return default if value is None else bool(value)
