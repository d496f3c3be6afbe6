from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional
from uuid import uuid4
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from conflicts import find_overlaps
from errors import (
    ConflictError,
    InvalidDateFormatError,
    InvalidResourceError,
    InvalidTimeZoneError,
    MissingFieldError,
)
from models import AppSettings, CreateReservationIn, Reservation, Resource, Slot
from repository import BookingRepository
from serializer import WriteSerializer
from validation import BookingRequest, BookingRules, check_interval, validate_booking
from zone_time import (
    Clock,
    current_local_date,
    local_date_of,
    parse_calendar_date,
    to_absolute_instant,
    utc_iso_z,
    utc_now,
)

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(
        self,
        repo: BookingRepository,
        serializer: WriteSerializer,
        facility_zone: str,
        rules: Optional[BookingRules] = None,
        clock: Clock = utc_now,
        open_hour: int = 8,
        close_hour: int = 21,
        lock_timeout: Optional[float] = None,
        default_admin_email: str = "",
    ) -> None:
        self._repo = repo
        self._serializer = serializer
        self.facility_zone = facility_zone
        self.rules = rules or BookingRules()
        self._clock = clock
        self.open_hour = open_hour
        self.close_hour = close_hour
        self._lock_timeout = lock_timeout
        self._default_admin_email = default_admin_email

    def today(self) -> str:
        return current_local_date(self.facility_zone, self._clock)

    def _exclusive(self, task):
        return self._serializer.run_exclusive(task, timeout=self._lock_timeout)

    # -----------------------------
    # Reservations
    # -----------------------------
    def create_reservation(self, payload: CreateReservationIn) -> Reservation:
        # Pure checks run before taking the write lock.
        request = validate_booking(payload, self.rules, self.today())
        start = to_absolute_instant(request.calendar_date, request.local_start_time, self.facility_zone)
        end = start + timedelta(minutes=request.duration_minutes)
        check_interval(start, end)

        return self._exclusive(lambda: self._check_and_insert(request, start, end))

    def _check_and_insert(self, request: BookingRequest, start, end) -> Reservation:
        if self._repo.get_resource(request.resource_id) is None:
            raise InvalidResourceError(f"Resource {request.resource_id} does not exist.")

        existing = self._repo.list_reservations(request.resource_id)
        conflicts = find_overlaps(request.resource_id, start, end, existing, request.calendar_date)
        if conflicts:
            intervals = [(c.start_utc, c.end_utc) for c in conflicts]
            first_start, first_end = intervals[0]
            logger.warning(
                "Reservation conflict on resource %s for %s %s (%d min)",
                request.resource_id,
                request.calendar_date,
                request.local_start_time,
                request.duration_minutes,
            )
            raise ConflictError(
                "Reservation conflict: the requested time overlaps an existing reservation "
                f"on this resource ({utc_iso_z(first_start)} - {utc_iso_z(first_end)}).",
                intervals,
            )

        reservation = Reservation(
            reservation_id=f"res_{uuid4().hex}",
            resource_id=request.resource_id,
            calendar_date=request.calendar_date,
            local_start_time=request.local_start_time,
            duration_minutes=request.duration_minutes,
            start_utc=start,
            end_utc=end,
            customer_name=request.customer_name,
            service_id=request.service_id,
            service_label=request.service_label,
            time_zone=self.facility_zone,
            created_at=self._clock(),
            customer_phone=request.customer_phone,
            customer_email=request.customer_email,
        )
        self._repo.insert_reservation(reservation)
        logger.info(
            "Created reservation %s on resource %s for %s %s",
            reservation.reservation_id,
            reservation.resource_id,
            reservation.calendar_date,
            reservation.local_start_time,
        )
        return reservation

    def list_reservations(
        self, resource_id: Optional[str] = None, calendar_date: Optional[str] = None
    ) -> List[Reservation]:
        items = self._repo.list_reservations(resource_id)
        if calendar_date:
            items = [r for r in items if r.calendar_date == calendar_date]
        items.sort(key=lambda r: r.start_utc)
        return items

    def delete_reservation(self, reservation_id: str) -> bool:
        deleted = self._exclusive(lambda: self._repo.delete_reservation(reservation_id))
        if deleted:
            logger.info("Deleted reservation %s", reservation_id)
        return deleted

    def delete_reservations_before_date(self, cutoff_date: str, zone_id: Optional[str] = None) -> int:
        """Remove reservations whose local date in ``zone_id`` is strictly before ``cutoff_date``."""
        try:
            parse_calendar_date(cutoff_date)
        except ValueError:
            raise InvalidDateFormatError("Invalid date format (YYYY-MM-DD).") from None
        zone = zone_id or self.facility_zone
        try:
            ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError):
            raise InvalidTimeZoneError(f"Unknown time zone: {zone}.") from None

        def local_date(r: Reservation) -> str:
            if r.time_zone == zone and r.calendar_date:
                return r.calendar_date
            return local_date_of(r.start_utc, zone)

        removed = self._exclusive(
            lambda: self._repo.delete_reservations_where(lambda r: local_date(r) < cutoff_date)
        )
        logger.info("Removed %d reservations dated before %s (%s)", removed, cutoff_date, zone)
        return removed

    # -----------------------------
    # Resources
    # -----------------------------
    def list_resources(self) -> List[Resource]:
        return self._repo.list_resources()

    def get_resource(self, resource_id: str) -> Optional[Resource]:
        return self._repo.get_resource(resource_id)

    def create_resource(self, name: str, description: Optional[str] = None) -> Resource:
        name = (name or "").strip()
        if not name:
            raise MissingFieldError("name", "Resource name is required.")
        resource = Resource(
            resource_id=f"pista_{uuid4().hex}",
            name=name,
            description=(description or "").strip(),
            created_at=self._clock(),
        )
        self._exclusive(lambda: self._repo.insert_resource(resource))
        logger.info("Created resource %s (%s)", resource.resource_id, resource.name)
        return resource

    def delete_resource(self, resource_id: str) -> bool:
        found, cascaded = self._exclusive(lambda: self._repo.delete_resource(resource_id))
        if found:
            logger.info("Deleted resource %s and %d reservations", resource_id, cascaded)
        return found

    def day_schedule(self, resource_id: str, calendar_date: str) -> List[Slot]:
        """Hourly slot grid between opening and closing hours for one resource and day."""
        if self._repo.get_resource(resource_id) is None:
            raise InvalidResourceError(f"Resource {resource_id} does not exist.")
        try:
            parse_calendar_date(calendar_date)
        except ValueError:
            raise InvalidDateFormatError("Invalid date format (YYYY-MM-DD).") from None

        existing = self._repo.list_reservations(resource_id)
        slots: List[Slot] = []
        for hour in range(self.open_hour, self.close_hour):
            label = f"{hour:02d}:00"
            start = to_absolute_instant(calendar_date, label, self.facility_zone)
            end = start + timedelta(hours=1)
            taken = find_overlaps(resource_id, start, end, existing, calendar_date)
            slots.append(
                Slot(
                    start_time=label,
                    end_time=f"{hour + 1:02d}:00",
                    start_utc=start,
                    end_utc=end,
                    available=not taken,
                )
            )
        return slots

    # -----------------------------
    # Settings
    # -----------------------------
    def get_settings(self) -> AppSettings:
        stored = self._repo.get_settings()
        if not stored.admin_email and self._default_admin_email:
            return AppSettings(admin_email=self._default_admin_email, smtp_password=stored.smtp_password)
        return stored

    def update_settings(
        self, admin_email: Optional[str] = None, smtp_password: Optional[str] = None
    ) -> AppSettings:
        def apply() -> AppSettings:
            current = self._repo.get_settings()
            updated = AppSettings(
                admin_email=current.admin_email if admin_email is None else admin_email.strip(),
                smtp_password=current.smtp_password if smtp_password is None else smtp_password,
            )
            self._repo.save_settings(updated)
            return updated

        updated = self._exclusive(apply)
        logger.info("Settings updated (admin email set: %s)", bool(updated.admin_email))
        return updated
