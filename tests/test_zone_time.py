from datetime import datetime, timedelta, timezone

import pytest

from zone_time import (
    current_local_date,
    parse_calendar_date,
    parse_local_time,
    to_absolute_instant,
    to_local,
    utc_offset_at,
)

MADRID = "Europe/Madrid"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_winter_time_uses_standard_offset():
    assert to_absolute_instant("2030-01-20", "10:00", MADRID) == utc(2030, 1, 20, 9, 0)


def test_summer_time_uses_daylight_offset():
    assert to_absolute_instant("2030-07-01", "10:00", MADRID) == utc(2030, 7, 1, 8, 0)


def test_other_zone_west_of_utc():
    assert to_absolute_instant("2030-01-20", "10:00", "America/New_York") == utc(2030, 1, 20, 15, 0)


@pytest.mark.parametrize(
    "calendar_date, local_time",
    [
        ("2030-01-20", "10:00"),  # plain winter day
        ("2030-03-31", "10:00"),  # spring-forward day in Madrid
        ("2030-10-27", "10:00"),  # fall-back day in Madrid
        ("2030-03-31", "00:30"),  # before the spring-forward switch
    ],
)
def test_round_trip_recovers_local_date_and_time(calendar_date, local_time):
    instant = to_absolute_instant(calendar_date, local_time, MADRID)
    local = to_local(instant, MADRID)
    assert local.date().isoformat() == calendar_date
    assert local.strftime("%H:%M") == local_time


def test_offset_changes_across_spring_forward():
    before = to_absolute_instant("2030-03-31", "01:00", MADRID)
    after = to_absolute_instant("2030-03-31", "04:00", MADRID)
    assert utc_offset_at(before, MADRID) == timedelta(hours=1)
    assert utc_offset_at(after, MADRID) == timedelta(hours=2)
    # 3 wall-clock hours, but only 2 real hours
    assert after - before == timedelta(hours=2)


def test_nonexistent_local_time_resolves_deterministically():
    # 02:30 does not exist on 2030-03-31 in Madrid; the correction pass lands on 03:30 CEST.
    instant = to_absolute_instant("2030-03-31", "02:30", MADRID)
    assert instant == utc(2030, 3, 31, 1, 30)
    assert to_local(instant, MADRID).strftime("%H:%M") == "03:30"


def test_ambiguous_local_time_resolves_deterministically():
    # 02:30 happens twice on 2030-10-27 in Madrid; the lookup picks the CET occurrence.
    instant = to_absolute_instant("2030-10-27", "02:30", MADRID)
    assert instant == utc(2030, 10, 27, 1, 30)


def test_current_local_date_follows_the_zone_not_utc():
    late_utc = lambda: utc(2030, 1, 15, 23, 30)  # noqa: E731
    assert current_local_date(MADRID, late_utc) == "2030-01-16"
    assert current_local_date("UTC", late_utc) == "2030-01-15"


def test_parse_calendar_date_rejects_bad_values():
    assert parse_calendar_date("2030-02-28").isoformat() == "2030-02-28"
    for bad in ["2030-02-30", "20-01-2030", "2030-1-5", "2030-01-01\n", ""]:
        with pytest.raises(ValueError):
            parse_calendar_date(bad)


def test_parse_local_time_rejects_bad_values():
    assert parse_local_time("23:59") == (23, 59)
    for bad in ["24:00", "9:00", "10:60", "10.00", ""]:
        with pytest.raises(ValueError):
            parse_local_time(bad)
