"""Polling loop that drives threshold alerts and scheduled reports."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Callable, List, Optional, Set
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.schemas import CheckOutcome
from datastore.repository import DeviceRepository, build_default_repository
from models.records import MonitorSnapshot, SensorReading
from notifications.telegram import Notifier, build_default_notifier
from services.emergency import EmergencyAlertStateMachine
from services.evaluator import ThresholdEvaluator
from services.reports import ScheduledReportDispatcher
from settings import get_settings

logger = logging.getLogger(__name__)

STALE_AFTER = timedelta(minutes=5)
DEFAULT_POLL_INTERVAL = 30.0
DEFAULT_FIRST_CHECK_DELAY = 5.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_stale(reading: SensorReading, now: datetime, max_age: timedelta = STALE_AFTER) -> bool:
    """A reading exactly ``max_age`` old is still fresh."""
    return now - reading.timestamp > max_age


class AlertMonitor:
    """Owns the check lifecycle and the in-memory alert state for one device.

    Checks are serialized: the periodic timer, the fast first check and
    on-demand :meth:`run_check` calls all take the same lock, so the
    emergency state and the daily report tracker are never mutated
    concurrently.
    """

    def __init__(
        self,
        repository: DeviceRepository,
        notifier: Notifier,
        device_id: str,
        evaluator: Optional[ThresholdEvaluator] = None,
        emergency: Optional[EmergencyAlertStateMachine] = None,
        reports: Optional[ScheduledReportDispatcher] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        first_check_delay: float = DEFAULT_FIRST_CHECK_DELAY,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.repository = repository
        self.notifier = notifier
        self.device_id = device_id
        self.evaluator = evaluator or ThresholdEvaluator()
        self.emergency = emergency or EmergencyAlertStateMachine(notifier)
        self.reports = reports or ScheduledReportDispatcher(notifier)
        self.poll_interval = poll_interval
        self.first_check_delay = first_check_delay
        self.timezone = tz
        self._clock = clock
        self._running = False
        self._timers: List[asyncio.Task[None]] = []
        self._in_flight: Set[asyncio.Task[Optional[CheckOutcome]]] = set()
        self._check_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Begin periodic checks. Must be called from a running event loop."""
        if self._running:
            return
        loop = asyncio.get_running_loop()
        self._running = True
        self._timers = [
            loop.create_task(self._first_check(), name=f"alert-monitor-first-{self.device_id}"),
            loop.create_task(self._periodic(), name=f"alert-monitor-{self.device_id}"),
        ]
        logger.info(
            "Alert monitor started",
            extra={"device_id": self.device_id},
        )

    async def stop(self) -> None:
        """Cancel pending checks and wait for an in-flight check to finish."""
        if not self._running:
            return
        self._running = False
        timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        logger.info("Alert monitor stopped", extra={"device_id": self.device_id})

    async def run_check(self) -> CheckOutcome:
        """Run one check immediately, waiting for any check in progress."""
        async with self._check_lock:
            return await self._check()

    def snapshot(self) -> MonitorSnapshot:
        tracker = self.reports.tracker
        return MonitorSnapshot(
            device_id=self.device_id,
            running=self._running,
            emergency=dataclasses.replace(self.emergency.state),
            last_reset_date=tracker.last_reset_date,
            sent_today=sorted(tracker.sent_today),
        )

    async def _first_check(self) -> None:
        await asyncio.sleep(self.first_check_delay)
        logger.debug("Running initial alert check", extra={"device_id": self.device_id})
        await self._spawn_check()

    async def _periodic(self) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time() + self.poll_interval
        while self._running:
            await asyncio.sleep(max(0.0, next_run - loop.time()))
            await self._spawn_check()
            current = loop.time()
            # Missed periods are skipped rather than replayed back to back.
            while next_run <= current:
                next_run += self.poll_interval

    async def _spawn_check(self) -> None:
        # Shielded so that stop() cancels the timer without interrupting the check.
        task = asyncio.ensure_future(self._timed_check())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        await asyncio.shield(task)

    async def _timed_check(self) -> Optional[CheckOutcome]:
        async with self._check_lock:
            if not self._running:
                return None
            return await self._check()

    async def _check(self) -> CheckOutcome:
        try:
            outcome = await self._evaluate()
        except Exception:  # noqa: BLE001 - one failed check must not stop the loop
            logger.exception("Alert check failed", extra={"device_id": self.device_id})
            return CheckOutcome.failed
        logger.debug(
            "Alert check finished",
            extra={"device_id": self.device_id, "outcome": outcome.value},
        )
        return outcome

    async def _evaluate(self) -> CheckOutcome:
        device_id = self.device_id
        self.reports.reset_if_new_day(self._now())

        status = await self.repository.get_device_status(device_id)
        if not status.is_online:
            logger.info("Device offline, skipping alert check", extra={"device_id": device_id})
            return CheckOutcome.device_offline

        reading = await self.repository.get_latest_reading(device_id)
        if reading is None:
            logger.info("No usable reading", extra={"device_id": device_id})
            return CheckOutcome.no_reading

        now = self._now()
        if is_stale(reading, now):
            age_minutes = (now - reading.timestamp).total_seconds() / 60
            logger.info(
                "Reading too old, skipping alert check",
                extra={"device_id": device_id, "age_minutes": f"{age_minutes:.1f}"},
            )
            return CheckOutcome.stale_reading

        config = await self.repository.get_device_config(device_id)
        if config is None:
            logger.info("No threshold config", extra={"device_id": device_id})
            return CheckOutcome.no_config

        schedule = await self.repository.get_notification_schedule(device_id)
        if not schedule.enabled:
            logger.info("Notifications disabled", extra={"device_id": device_id})
            return CheckOutcome.notifications_disabled

        evaluation = self.evaluator.evaluate(reading, config)
        logger.debug(
            "Evaluated reading (temp_alert=%s, hum_alert=%s)",
            evaluation.temp_alert,
            evaluation.hum_alert,
            extra={
                "device_id": device_id,
                "temperature": reading.temperature,
                "humidity": reading.humidity,
            },
        )

        if schedule.emergency_enabled:
            await self.emergency.handle(evaluation.has_alert, reading, config, self._now())

        await self.reports.dispatch(reading, schedule, self._now())
        return CheckOutcome.evaluated

    def _now(self) -> datetime:
        return self._clock().astimezone(self.timezone)


def _resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown time zone, using UTC", extra={"reason": name})
        return timezone.utc


@lru_cache
def build_default_monitor() -> AlertMonitor:
    """Factory that wires the monitor with the configured backends."""
    settings = get_settings()
    return AlertMonitor(
        repository=build_default_repository(),
        notifier=build_default_notifier(),
        device_id=settings.device_id,
        poll_interval=settings.poll_interval_seconds,
        first_check_delay=settings.first_check_delay_seconds,
        tz=_resolve_timezone(settings.timezone),
    )
