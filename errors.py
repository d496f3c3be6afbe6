from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    INVALID_DATE_FORMAT = "InvalidDateFormat"
    INVALID_TIME_FORMAT = "InvalidTimeFormat"
    DATE_IN_PAST = "DateInPast"
    INVALID_DURATION = "InvalidDuration"
    INVALID_INTERVAL = "InvalidInterval"
    INVALID_RESOURCE = "InvalidResource"
    INVALID_TIME_ZONE = "InvalidTimeZone"
    CONFLICT = "Conflict"
    STORAGE_UNAVAILABLE = "StorageUnavailable"


class BookingError(Exception):
    """Base class for domain/service errors.

    Every subclass pins a single ``kind`` so callers can branch on
    ``exc.kind`` instead of on the class.
    """

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingFieldError(BookingError):
    kind = ErrorKind.MISSING_FIELD

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Missing required field: {field}.")
        self.field = field


class InvalidDateFormatError(BookingError):
    kind = ErrorKind.INVALID_DATE_FORMAT


class InvalidTimeFormatError(BookingError):
    kind = ErrorKind.INVALID_TIME_FORMAT


class DateInPastError(BookingError):
    kind = ErrorKind.DATE_IN_PAST


class InvalidDurationError(BookingError):
    kind = ErrorKind.INVALID_DURATION


class InvalidIntervalError(BookingError):
    kind = ErrorKind.INVALID_INTERVAL


class InvalidResourceError(BookingError):
    kind = ErrorKind.INVALID_RESOURCE


class InvalidTimeZoneError(BookingError):
    kind = ErrorKind.INVALID_TIME_ZONE


class ConflictError(BookingError):
    kind = ErrorKind.CONFLICT

    def __init__(self, message: str, intervals=()) -> None:
        super().__init__(message)
        # (start_utc, end_utc) pairs only; never customer data
        self.intervals = list(intervals)


class StorageUnavailableError(BookingError):
    kind = ErrorKind.STORAGE_UNAVAILABLE
