"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

_SLOT_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class AlertType(str, Enum):
    temperature = "temperature"
    humidity = "humidity"


class AlertSeverity(str, Enum):
    warning = "warning"
    critical = "critical"


class CheckOutcome(str, Enum):
    """How far a monitor check got before it stopped."""

    device_offline = "device_offline"
    no_reading = "no_reading"
    stale_reading = "stale_reading"
    no_config = "no_config"
    notifications_disabled = "notifications_disabled"
    evaluated = "evaluated"
    failed = "failed"


class AlertEvent(BaseModel):
    """A recorded threshold violation, normalized for display."""

    id: int
    device_id: str
    type: AlertType
    severity: AlertSeverity
    message: str
    value: float
    threshold: str = Field(..., description="Configured range at the time of the alert.")
    acknowledged: bool = False
    timestamp: datetime


class EmergencyStateView(BaseModel):
    is_active: bool
    sent_count: int = Field(..., ge=0)
    last_sent_time: Optional[datetime] = None
    last_alert_state: bool


class MonitorState(BaseModel):
    """In-memory state of the alert monitor for one device."""

    device_id: str
    running: bool
    emergency: EmergencyStateView
    last_reset_date: Optional[date] = None
    sent_today: List[str] = Field(default_factory=list)


class CheckResponse(BaseModel):
    outcome: CheckOutcome


class QuietHoursPayload(BaseModel):
    start: str = "22:00"
    end: str = "06:00"


class NotificationSchedulePayload(BaseModel):
    """Notification preferences as stored for a device."""

    enabled: bool = True
    scheduleType: str = "fixed"
    fixedTimes: List[str] = Field(default_factory=lambda: ["08:00", "13:00", "18:00"])
    intervalHours: int = Field(default=4, ge=1)
    maxPerDay: int = Field(default=3, ge=1)
    emergencyEnabled: bool = True
    quietHours: QuietHoursPayload = Field(default_factory=QuietHoursPayload)

    @field_validator("fixedTimes")
    @classmethod
    def _validate_slots(cls, value: List[str]) -> List[str]:
        for slot in value:
            if not _SLOT_PATTERN.match(slot):
                raise ValueError(f"Invalid time slot {slot!r}; expected HH:MM.")
        return value


class DeviceConfigUpdate(BaseModel):
    """Threshold update pushed to the device."""

    intervalSec: Optional[int] = Field(default=None, ge=1)
    tempMin: float
    tempMax: float
    humMin: float
    humMax: float
    deviceEnabled: bool = True


class DeviceStatusResponse(BaseModel):
    id: str
    name: str
    status: str
    isOnline: bool
    lastSeen: Optional[datetime] = None
    minutesAgo: Optional[int] = None


class ActionResponse(BaseModel):
    success: bool
    message: str
