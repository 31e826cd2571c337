"""Edge-triggered emergency escalation with a capped, spaced send budget."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from models.records import EmergencyState, SensorReading, ThresholdConfig
from notifications.telegram import Notifier

logger = logging.getLogger(__name__)

MAX_EMERGENCY_ALERTS = 3
EMERGENCY_INTERVAL = timedelta(minutes=15)


def compose_emergency_message(reading: SensorReading, config: ThresholdConfig) -> str:
    """One line per breached bound; metrics inside their range are omitted."""
    lines: list[str] = []

    temperature = reading.temperature
    if temperature < config.temp_min:
        lines.append(f"Temperature {temperature}°C is below minimum ({config.temp_min}°C)")
    elif temperature > config.temp_max:
        lines.append(f"Temperature {temperature}°C exceeds maximum ({config.temp_max}°C)")

    humidity = reading.humidity
    if humidity < config.hum_min:
        lines.append(f"Humidity {humidity}% is below minimum ({config.hum_min}%)")
    elif humidity > config.hum_max:
        lines.append(f"Humidity {humidity}% exceeds maximum ({config.hum_max}%)")

    return "\n".join(lines)


class EmergencyAlertStateMachine:
    """Tracks Normal/Alert transitions and rations emergency notifications.

    An excursion starts on a Normal->Alert edge and ends on the Alert->Normal
    edge; both reset the send budget. While an excursion lasts, at most
    ``MAX_EMERGENCY_ALERTS`` notifications go out, spaced at least
    ``EMERGENCY_INTERVAL`` apart. The count is consumed before the transport
    is called, so a failed delivery still uses one attempt.
    """

    def __init__(self, notifier: Notifier, state: Optional[EmergencyState] = None) -> None:
        self.notifier = notifier
        self.state = state if state is not None else EmergencyState()

    def advance(self, has_alert: bool, now: datetime) -> Optional[int]:
        """Apply one tick. Returns the attempt number to send, if any."""
        state = self.state

        if has_alert and not state.last_alert_state:
            logger.info("Alert detected, entering emergency mode")
            state.is_active = True
            state.sent_count = 0
            state.last_sent_time = None

        if not has_alert and state.last_alert_state:
            logger.info("Alert cleared, leaving emergency mode")
            state.is_active = False
            state.sent_count = 0
            state.last_sent_time = None

        state.last_alert_state = has_alert

        if not (state.is_active and has_alert):
            return None

        if state.sent_count >= MAX_EMERGENCY_ALERTS:
            logger.info(
                "Emergency alert budget exhausted",
                extra={"sent_count": state.sent_count},
            )
            return None

        cooled_down = (
            state.sent_count == 0
            or state.last_sent_time is None
            or now - state.last_sent_time >= EMERGENCY_INTERVAL
        )
        if not cooled_down:
            return None

        state.sent_count += 1
        state.last_sent_time = now
        return state.sent_count

    async def handle(
        self,
        has_alert: bool,
        reading: SensorReading,
        config: ThresholdConfig,
        now: datetime,
    ) -> bool:
        """Advance the machine and notify when an attempt is due.

        Returns ``True`` when a notification attempt was made.
        """
        attempt = self.advance(has_alert, now)
        if attempt is None:
            return False

        title = f"🚨 EMERGENCY ALERT ({attempt}/{MAX_EMERGENCY_ALERTS})"
        delivered = await self.notifier.send(title, compose_emergency_message(reading, config))
        if delivered:
            logger.info("Emergency alert sent", extra={"sent_count": attempt})
        else:
            logger.warning(
                "Emergency alert delivery failed; attempt still counted",
                extra={"sent_count": attempt},
            )
        return True
