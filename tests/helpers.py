from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Tuple

from models import AppSettings, CreateReservationIn, Reservation

ZONE = "Europe/Madrid"
FIXED_NOW = datetime(2030, 1, 15, 10, 0, tzinfo=timezone.utc)
TODAY = "2030-01-15"


def fixed_clock() -> datetime:
    return FIXED_NOW


def reservation_payload(resource_id: str, /, **overrides: Any) -> CreateReservationIn:
    base = dict(
        resource_id=resource_id,
        calendar_date="2030-01-20",
        local_start_time="10:00",
        duration_minutes=60,
        customer_name="Ana Garcia",
        customer_phone="600000000",
        customer_email="ana@example.com",
        service_id="padel",
    )
    base.update(overrides)
    return CreateReservationIn(**base)


def make_reservation(
    resource_id: str,
    start: datetime,
    end: datetime,
    calendar_date: str = "2030-01-20",
    reservation_id: str = "res_1",
) -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        resource_id=resource_id,
        calendar_date=calendar_date,
        local_start_time="10:00",
        duration_minutes=int((end - start).total_seconds() // 60),
        start_utc=start,
        end_utc=end,
        customer_name="Someone",
        service_id="padel",
        service_label="padel",
        time_zone=ZONE,
        created_at=FIXED_NOW,
    )


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: List[Tuple[Reservation, AppSettings]] = []

    def notify_reservation_created(self, reservation: Reservation, settings: AppSettings) -> bool:
        self.calls.append((reservation, settings))
        return True
