from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from errors import (
    DateInPastError,
    InvalidDateFormatError,
    InvalidDurationError,
    InvalidIntervalError,
    InvalidTimeFormatError,
    MissingFieldError,
)
from models import CreateReservationIn
from zone_time import parse_calendar_date, parse_local_time


@dataclass(frozen=True)
class BookingRules:
    min_duration: int = 30
    max_duration: int = 180
    duration_step: int = 15

    def describe(self) -> str:
        return (
            f"min {self.min_duration}, max {self.max_duration}, "
            f"multiples of {self.duration_step}"
        )


@dataclass(frozen=True)
class BookingRequest:
    """A reservation request that passed every field rule."""

    resource_id: str
    calendar_date: str
    local_start_time: str
    duration_minutes: int
    customer_name: str
    service_id: str
    service_label: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional(value: Any) -> Optional[str]:
    cleaned = _clean(value)
    return cleaned or None


def _require(field: str, value: Any) -> str:
    cleaned = _clean(value)
    if not cleaned:
        raise MissingFieldError(field)
    return cleaned


def parse_duration(raw: Any, rules: BookingRules) -> int:
    """Normalize a duration in minutes, or raise InvalidDurationError."""
    error = InvalidDurationError(f"Invalid duration ({rules.describe()}).")
    if raw is None or isinstance(raw, bool):
        raise error
    try:
        value = float(str(raw).strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        raise error from None
    if not math.isfinite(value) or not value.is_integer():
        raise error
    minutes = int(value)
    if minutes < rules.min_duration or minutes > rules.max_duration:
        raise error
    if minutes % rules.duration_step != 0:
        raise error
    return minutes


def validate_booking(payload: CreateReservationIn, rules: BookingRules, today: str) -> BookingRequest:
    """
    Apply the booking field rules in a fixed order and stop at the first failure.

    ``today`` is the facility-local calendar date (YYYY-MM-DD); same-day
    bookings pass, earlier dates do not.
    """
    resource_id = _require("resource_id", payload.resource_id)
    calendar_date = _require("calendar_date", payload.calendar_date)
    local_start_time = _require("local_start_time", payload.local_start_time)
    customer_name = _require("customer_name", payload.customer_name)
    service_id = _clean(payload.service_id)
    if not service_id:
        raise MissingFieldError("service_id", "A service must be selected.")

    try:
        parse_calendar_date(calendar_date)
    except ValueError:
        raise InvalidDateFormatError("Invalid date format (YYYY-MM-DD).") from None

    # ISO dates compare correctly as strings
    if calendar_date < today:
        raise DateInPastError("The date must be on or after the facility's current date.")

    try:
        parse_local_time(local_start_time)
    except ValueError:
        raise InvalidTimeFormatError("Invalid time format (HH:mm).") from None

    duration = parse_duration(payload.duration_minutes, rules)

    return BookingRequest(
        resource_id=resource_id,
        calendar_date=calendar_date,
        local_start_time=local_start_time,
        duration_minutes=duration,
        customer_name=customer_name,
        service_id=service_id,
        service_label=_clean(payload.service_label) or service_id,
        customer_phone=_optional(payload.customer_phone),
        customer_email=_optional(payload.customer_email),
    )


def check_interval(start: datetime, end: datetime) -> None:
    if not (start < end):
        raise InvalidIntervalError("Invalid interval: start must be before end.")
