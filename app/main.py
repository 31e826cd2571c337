from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from datastore.mock_rtdb import build_default_mock_database
from datastore.repository import build_default_repository
from logging_config import configure_logging
from notifications.telegram import build_default_notifier
from services.alerts import build_default_alert_service
from services.monitor import build_default_monitor
from settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    monitor = build_default_monitor()
    if get_settings().autostart:
        monitor.start()
    try:
        yield
    finally:
        await monitor.stop()
        await monitor.repository.database.aclose()
        await monitor.notifier.aclose()
        build_default_monitor.cache_clear()
        build_default_alert_service.cache_clear()
        build_default_repository.cache_clear()
        build_default_notifier.cache_clear()
        build_default_mock_database.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Server Room Alert Monitor",
        description="Threshold alerts and scheduled status reports for a monitored device.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
