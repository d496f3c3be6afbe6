from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api import STATUS_BY_KIND, create_router
from config import Settings, get_settings
from errors import BookingError
from logging_config import setup_logging
from notifications import EmailNotifier
from repository import BookingRepository, InMemoryDocumentStore, JsonFileDocumentStore
from serializer import WriteSerializer
from services import BookingService
from zone_time import Clock, utc_now

logger = logging.getLogger(__name__)


def build_store(settings: Settings):
    if settings.data_path:
        return JsonFileDocumentStore(settings.data_path)
    return InMemoryDocumentStore()


def create_app(
    settings: Optional[Settings] = None,
    store=None,
    clock: Clock = utc_now,
    notifier: Optional[EmailNotifier] = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    store = store if store is not None else build_store(settings)
    repo = BookingRepository(store, default_zone=settings.facility_tz)
    serializer = WriteSerializer()
    service = BookingService(
        repo,
        serializer,
        facility_zone=settings.facility_tz,
        rules=settings.booking_rules,
        clock=clock,
        open_hour=settings.open_hour,
        close_hour=settings.close_hour,
        lock_timeout=settings.lock_timeout_seconds,
        default_admin_email=settings.admin_email,
    )
    notifier = notifier or EmailNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        sender=settings.smtp_from,
        timeout=settings.smtp_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        serializer.open()
        logger.info(
            "Booking service started (env=%s, tz=%s, auth=%s)",
            settings.app_env,
            settings.facility_tz,
            settings.admin_auth_enabled,
        )
        yield
        serializer.close(wait=True)
        logger.info("Booking service stopped")

    app = FastAPI(title="Pista Booking API", version="1.0.0", lifespan=lifespan)
    app.state.store = store
    app.state.service = service
    app.state.serializer = serializer

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        return JSONResponse(
            status_code=STATUS_BY_KIND[exc.kind],
            content={"detail": {"kind": exc.kind.value, "message": exc.message}},
        )

    app.include_router(create_router(service, notifier, settings))
    return app


app = create_app()
