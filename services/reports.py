"""Fixed time-of-day status reports, delivered once per slot per day."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from models.records import DailySentTracker, NotificationSchedule, SensorReading
from notifications.telegram import Notifier

logger = logging.getLogger(__name__)

STATUS_REPORT_TITLE = "📈 Status Report"


def slot_label(moment: datetime) -> str:
    return moment.strftime("%H:%M")


class ScheduledReportDispatcher:
    def __init__(self, notifier: Notifier, tracker: Optional[DailySentTracker] = None) -> None:
        self.notifier = notifier
        self.tracker = tracker if tracker is not None else DailySentTracker()

    def reset_if_new_day(self, now: datetime) -> bool:
        reset = self.tracker.reset_if_new_day(now.date())
        if reset:
            logger.info("Reset daily report tracking for %s", now.date().isoformat())
        return reset

    async def dispatch(
        self,
        reading: SensorReading,
        schedule: NotificationSchedule,
        now: datetime,
    ) -> Optional[str]:
        """Send the report for the slot matching ``now``, if not sent today.

        ``now`` must already be in the schedule's local time zone. Only the
        first matching slot is considered. Returns the dispatched slot.
        """
        self.reset_if_new_day(now)
        current = slot_label(now)

        for slot in schedule.fixed_times:
            if slot != current or slot in self.tracker.sent_today:
                continue

            body = (
                f"Temperature: {reading.temperature}°C\n"
                f"Humidity: {reading.humidity}%\n"
                f"Time: {current}"
            )
            delivered = await self.notifier.send(STATUS_REPORT_TITLE, body)
            self.tracker.sent_today.add(slot)
            if delivered:
                logger.info("Status report sent", extra={"slot": slot})
            else:
                logger.warning(
                    "Status report delivery failed; slot marked as sent",
                    extra={"slot": slot},
                )
            return slot

        return None
