from __future__ import annotations

import logging
import secrets
from typing import Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Query, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from config import Settings
from errors import BookingError, ErrorKind
from models import (
    CreateReservationIn,
    CreateResourceIn,
    PublicReservationOut,
    PurgeIn,
    PurgeOut,
    Reservation,
    ReservationOut,
    ResourceOut,
    SettingsIn,
    SettingsOut,
    SlotOut,
    StatusOut,
    reservations_out,
)
from notifications import EmailNotifier
from serializer import SerializerClosedError
from services import BookingService

logger = logging.getLogger(__name__)

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.MISSING_FIELD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_DATE_FORMAT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_TIME_FORMAT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DATE_IN_PAST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_DURATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_INTERVAL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_RESOURCE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_TIME_ZONE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STORAGE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_error(exc: BookingError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_KIND[exc.kind],
        detail={"kind": exc.kind.value, "message": exc.message},
    )


def busy_error() -> HTTPException:
    logger.warning("Reservation write lock unavailable; rejecting request")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"kind": "Busy", "message": "The booking system is busy, please retry."},
    )


def admin_guard(settings: Settings):
    security = HTTPBasic(realm=settings.admin_auth_realm, auto_error=False)

    def require_admin(credentials: Optional[HTTPBasicCredentials] = Depends(security)) -> None:
        if not settings.admin_auth_enabled:
            return
        challenge = {"WWW-Authenticate": f'Basic realm="{settings.admin_auth_realm}", charset="UTF-8"'}
        if credentials is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required.",
                headers=challenge,
            )
        user_ok = secrets.compare_digest(credentials.username.encode("utf-8"), settings.admin_user.encode("utf-8"))
        pass_ok = secrets.compare_digest(credentials.password.encode("utf-8"), settings.admin_pass.encode("utf-8"))
        if not (user_ok and pass_ok):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials.",
                headers=challenge,
            )

    return require_admin


def create_router(service: BookingService, notifier: EmailNotifier, settings: Settings) -> APIRouter:
    router = APIRouter(prefix="/api")
    admin = APIRouter(prefix="/admin", dependencies=[Depends(admin_guard(settings))])

    def notify_created(reservation: Reservation) -> None:
        # Runs after the response; the stored reservation is never touched here.
        try:
            current = service.get_settings()
        except BookingError as exc:
            logger.warning(
                "Skipping notification for %s: settings unavailable (%s)",
                reservation.reservation_id,
                exc.message,
            )
            return
        notifier.notify_reservation_created(reservation, current)

    # -----------------------------
    # Public surface
    # -----------------------------
    @router.get("/status", response_model=StatusOut)
    def get_status() -> StatusOut:
        return StatusOut(env=settings.app_env, timezone=service.facility_zone)

    @router.get("/resources", response_model=List[ResourceOut])
    def list_resources() -> List[ResourceOut]:
        return [ResourceOut.from_resource(r) for r in service.list_resources()]

    @router.get("/resources/{resource_id}/slots", response_model=List[SlotOut])
    def list_slots(
        resource_id: str = Path(..., min_length=1),
        date: Optional[str] = Query(default=None),
    ) -> List[SlotOut]:
        try:
            slots = service.day_schedule(resource_id, date or service.today())
        except BookingError as exc:
            raise to_http_error(exc)
        return [SlotOut.from_slot(s) for s in slots]

    @router.get("/reservations", response_model=List[PublicReservationOut])
    def list_reservations(
        resource_id: Optional[str] = Query(default=None),
        date: Optional[str] = Query(default=None),
    ) -> List[PublicReservationOut]:
        items = service.list_reservations(resource_id, date)
        return [PublicReservationOut.from_reservation(r) for r in items]

    @router.post("/reservations", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
    def create_reservation(payload: CreateReservationIn, background_tasks: BackgroundTasks) -> ReservationOut:
        try:
            reservation = service.create_reservation(payload)
        except BookingError as exc:
            raise to_http_error(exc)
        except (TimeoutError, SerializerClosedError):
            raise busy_error()

        background_tasks.add_task(notify_created, reservation)
        return ReservationOut.from_reservation(reservation)

    # -----------------------------
    # Admin surface
    # -----------------------------
    @admin.get("/reservations", response_model=List[ReservationOut])
    def admin_list_reservations(
        resource_id: Optional[str] = Query(default=None),
        date: Optional[str] = Query(default=None),
    ) -> List[ReservationOut]:
        return reservations_out(service.list_reservations(resource_id, date))

    @admin.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
    def admin_delete_reservation(reservation_id: str = Path(..., min_length=1)) -> None:
        try:
            deleted = service.delete_reservation(reservation_id)
        except BookingError as exc:
            raise to_http_error(exc)
        except (TimeoutError, SerializerClosedError):
            raise busy_error()
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Reservation not found.",
            )
        return None

    @admin.post("/reservations/purge", response_model=PurgeOut)
    def admin_purge_reservations(payload: PurgeIn) -> PurgeOut:
        try:
            removed = service.delete_reservations_before_date(payload.before or service.today())
        except BookingError as exc:
            raise to_http_error(exc)
        except (TimeoutError, SerializerClosedError):
            raise busy_error()
        return PurgeOut(removed_count=removed)

    @admin.get("/resources", response_model=List[ResourceOut])
    def admin_list_resources() -> List[ResourceOut]:
        return [ResourceOut.from_resource(r) for r in service.list_resources()]

    @admin.post("/resources", response_model=ResourceOut, status_code=status.HTTP_201_CREATED)
    def admin_create_resource(payload: CreateResourceIn) -> ResourceOut:
        try:
            resource = service.create_resource(payload.name, payload.description)
        except BookingError as exc:
            raise to_http_error(exc)
        except (TimeoutError, SerializerClosedError):
            raise busy_error()
        return ResourceOut.from_resource(resource)

    @admin.delete("/resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
    def admin_delete_resource(resource_id: str = Path(..., min_length=1)) -> None:
        try:
            deleted = service.delete_resource(resource_id)
        except BookingError as exc:
            raise to_http_error(exc)
        except (TimeoutError, SerializerClosedError):
            raise busy_error()
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Resource not found.",
            )
        return None

    @admin.get("/settings", response_model=SettingsOut)
    def admin_get_settings() -> SettingsOut:
        return SettingsOut.from_settings(service.get_settings())

    @admin.put("/settings", response_model=SettingsOut)
    def admin_update_settings(payload: SettingsIn) -> SettingsOut:
        try:
            updated = service.update_settings(payload.admin_email, payload.smtp_password)
        except BookingError as exc:
            raise to_http_error(exc)
        except (TimeoutError, SerializerClosedError):
            raise busy_error()
        return SettingsOut.from_settings(updated)

    router.include_router(admin)
    return router
