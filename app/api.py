"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    ActionResponse,
    AlertEvent,
    CheckResponse,
    DeviceConfigUpdate,
    DeviceStatusResponse,
    EmergencyStateView,
    MonitorState,
    NotificationSchedulePayload,
)
from datastore.base import StoreError
from datastore.repository import DeviceRepository, build_default_repository
from models.records import NotificationSchedule
from services.alerts import AlertQueryService, build_default_alert_service
from services.monitor import AlertMonitor, build_default_monitor

router = APIRouter()


def get_monitor() -> AlertMonitor:
    return build_default_monitor()


def get_alert_service() -> AlertQueryService:
    return build_default_alert_service()


def get_repository() -> DeviceRepository:
    return build_default_repository()


def _store_unavailable(exc: StoreError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.get(
    "/alerts",
    response_model=List[AlertEvent],
    summary="List recorded alerts for a device.",
)
async def list_alerts(
    device_id: Optional[str] = Query(None, description="Defaults to the monitored device."),
    service: AlertQueryService = Depends(get_alert_service),
    monitor: AlertMonitor = Depends(get_monitor),
) -> List[AlertEvent]:
    return await service.get_alerts(device_id or monitor.device_id)


@router.get(
    "/monitor/state",
    response_model=MonitorState,
    summary="Inspect the in-memory alert monitor state.",
)
async def monitor_state(monitor: AlertMonitor = Depends(get_monitor)) -> MonitorState:
    snapshot = monitor.snapshot()
    emergency = snapshot.emergency
    return MonitorState(
        device_id=snapshot.device_id,
        running=snapshot.running,
        emergency=EmergencyStateView(
            is_active=emergency.is_active,
            sent_count=emergency.sent_count,
            last_sent_time=emergency.last_sent_time,
            last_alert_state=emergency.last_alert_state,
        ),
        last_reset_date=snapshot.last_reset_date,
        sent_today=snapshot.sent_today,
    )


@router.post(
    "/monitor/check",
    response_model=CheckResponse,
    summary="Run one alert check immediately.",
)
async def run_check(monitor: AlertMonitor = Depends(get_monitor)) -> CheckResponse:
    outcome = await monitor.run_check()
    return CheckResponse(outcome=outcome)


@router.get(
    "/devices/{device_id}/status",
    response_model=DeviceStatusResponse,
    summary="Report whether a device is online.",
)
async def device_status(
    device_id: str,
    repository: DeviceRepository = Depends(get_repository),
) -> DeviceStatusResponse:
    try:
        result = await repository.get_device_status(device_id)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return DeviceStatusResponse(
        id=result.device_id,
        name=result.name,
        status="online" if result.is_online else "offline",
        isOnline=result.is_online,
        lastSeen=result.last_seen,
        minutesAgo=result.minutes_ago,
    )


@router.put(
    "/devices/{device_id}/config",
    response_model=ActionResponse,
    summary="Push new thresholds to a device.",
)
async def update_device_config(
    device_id: str,
    update: DeviceConfigUpdate,
    repository: DeviceRepository = Depends(get_repository),
) -> ActionResponse:
    if update.tempMin > update.tempMax or update.humMin > update.humMax:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Minimum thresholds must not exceed maximum thresholds.",
        )
    try:
        await repository.save_device_config(
            device_id,
            {
                "interval": update.intervalSec,
                "temp_min": update.tempMin,
                "temp_max": update.tempMax,
                "hum_min": update.humMin,
                "hum_max": update.humMax,
                "device_enabled": update.deviceEnabled,
            },
        )
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return ActionResponse(success=True, message="Configuration sent to device")


@router.get(
    "/notification-schedule/{device_id}",
    response_model=NotificationSchedulePayload,
    summary="Fetch the effective notification schedule.",
)
async def get_notification_schedule(
    device_id: str,
    repository: DeviceRepository = Depends(get_repository),
) -> NotificationSchedulePayload:
    schedule = await repository.get_notification_schedule(device_id)
    return NotificationSchedulePayload.model_validate(schedule.to_payload())


@router.put(
    "/notification-schedule/{device_id}",
    response_model=ActionResponse,
    summary="Replace the notification schedule for a device.",
)
async def save_notification_schedule(
    device_id: str,
    payload: NotificationSchedulePayload,
    repository: DeviceRepository = Depends(get_repository),
) -> ActionResponse:
    schedule = NotificationSchedule.from_payload(payload.model_dump())
    try:
        await repository.save_notification_schedule(device_id, schedule)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return ActionResponse(success=True, message="Notification schedule saved")


@router.post(
    "/notifications/test",
    response_model=ActionResponse,
    summary="Send a test notification through the configured transport.",
)
async def send_test_notification(
    monitor: AlertMonitor = Depends(get_monitor),
) -> ActionResponse:
    delivered = await monitor.notifier.send(
        "🧪 Test Alert", "This is a test notification from your monitoring system."
    )
    if not delivered:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send test alert.",
        )
    return ActionResponse(success=True, message="Test alert sent successfully")


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
