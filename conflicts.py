from __future__ import annotations

import math
from datetime import date, datetime
from typing import Iterable, List, Optional

from models import Reservation

MINUTES_PER_DAY = 24 * 60


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    Half-open interval overlap: [start, end)
    Overlap iff a_start < b_end AND b_start < a_end.
    Back-to-back is allowed (end == other.start is NOT overlap).
    """
    return a_start < b_end and b_start < a_end


def _span_days(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / 60 / MINUTES_PER_DAY)


def _near_date(candidate: date, other: str, window_days: int) -> bool:
    try:
        return abs((date.fromisoformat(other) - candidate).days) <= window_days
    except ValueError:
        return True


def find_overlaps(
    resource_id: str,
    start: datetime,
    end: datetime,
    existing: Iterable[Reservation],
    calendar_date: Optional[str] = None,
) -> List[Reservation]:
    """
    Return the reservations of ``resource_id`` whose interval overlaps [start, end).

    When ``calendar_date`` is given, reservations dated too far away to reach
    the requested interval are skipped before the instant comparison. The
    window grows with the longer of the two intervals plus a day for zone
    offsets, so it never hides a real overlap; the instant test alone decides
    what conflicts.
    """
    near: Optional[date] = None
    if calendar_date:
        near = date.fromisoformat(calendar_date)
    request_days = _span_days(start, end)

    conflicts: List[Reservation] = []
    for r in existing:
        if r.resource_id != resource_id:
            continue
        if near is not None and r.calendar_date:
            window = max(request_days, _span_days(r.start_utc, r.end_utc)) + 1
            if not _near_date(near, r.calendar_date, window):
                continue
        if intervals_overlap(start, end, r.start_utc, r.end_utc):
            conflicts.append(r)
    return conflicts
