from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Tuple
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]

DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
TIME_RE = re.compile(r"^[0-9]{2}:[0-9]{2}$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_offset_at(instant: datetime, zone_id: str) -> timedelta:
    """UTC offset observed in ``zone_id`` at the aware ``instant``."""
    offset = instant.astimezone(ZoneInfo(zone_id)).utcoffset()
    return offset if offset is not None else timedelta(0)


def to_absolute_instant(calendar_date: str, local_time: str, zone_id: str) -> datetime:
    """
    Convert a facility-local wall-clock date/time into an aware UTC datetime.

    The numeric fields are first read as if they were UTC. The zone offset at
    that guess is subtracted, then the offset is looked up again at the
    corrected instant; if it changed (a DST transition lies between the two),
    the naive guess is corrected once more with the new offset.

    Local times inside a spring-forward gap or a fall-back overlap are not
    rejected. They resolve to whatever this two-step lookup yields.
    """
    year, month, day = (int(p) for p in calendar_date.split("-"))
    hour, minute = (int(p) for p in local_time.split(":"))
    naive_utc = datetime(year, month, day, hour, minute, tzinfo=timezone.utc)

    offset = utc_offset_at(naive_utc, zone_id)
    candidate = naive_utc - offset
    adjusted = utc_offset_at(candidate, zone_id)
    if adjusted != offset:
        candidate = naive_utc - adjusted
    return candidate


def to_local(instant: datetime, zone_id: str) -> datetime:
    return instant.astimezone(ZoneInfo(zone_id))


def local_date_of(instant: datetime, zone_id: str) -> str:
    return to_local(instant, zone_id).date().isoformat()


def current_local_date(zone_id: str, clock: Clock = utc_now) -> str:
    """Today's calendar date (YYYY-MM-DD) as observed in ``zone_id``."""
    return local_date_of(clock(), zone_id)


def parse_calendar_date(value: str) -> date:
    """Strict YYYY-MM-DD parse. Raises ValueError on anything else."""
    if not DATE_RE.fullmatch(value):
        raise ValueError(f"not a YYYY-MM-DD date: {value!r}")
    return date.fromisoformat(value)


def parse_local_time(value: str) -> Tuple[int, int]:
    """Strict 24-hour HH:mm parse. Raises ValueError on anything else."""
    if not TIME_RE.fullmatch(value):
        raise ValueError(f"not an HH:mm time: {value!r}")
    hour, minute = int(value[:2]), int(value[3:])
    if hour > 23 or minute > 59:
        raise ValueError(f"time out of range: {value!r}")
    return hour, minute


def utc_iso_z(dt: datetime) -> str:
    # dt is aware
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_utc_iso(ts: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.
    Accepts 'Z' suffix by converting it to '+00:00'; naive values are read as UTC.
    """
    s = ts.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
