from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from recovery.core.errors import ValidationError
from recovery.core.timeutils import (
    clock_label,
    date_key,
    elapsed_days,
    iter_days,
    local_now,
    parse_clock_label,
    plan_end_date,
    same_day,
)


def test_clock_label_is_zero_padded() -> None:
    assert clock_label(datetime(2026, 3, 2, 9, 5, 59)) == "09:05"
    assert clock_label(datetime(2026, 3, 2, 23, 0)) == "23:00"


def test_date_key_uses_the_local_calendar_day() -> None:
    ist = timezone(timedelta(hours=5, minutes=30))
    late_utc = datetime(2026, 3, 2, 22, 0, tzinfo=timezone.utc)
    assert date_key(late_utc) == date(2026, 3, 2)
    assert date_key(late_utc.astimezone(ist)) == date(2026, 3, 3)


@pytest.mark.parametrize("value,expected", [("00:00", (0, 0)), ("09:00", (9, 0)), ("23:59", (23, 59))])
def test_parse_clock_label_accepts_valid_times(value, expected) -> None:
    assert parse_clock_label(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "9:00", "0900", "", "ab:cd", "09:00:00"])
def test_parse_clock_label_rejects_malformed_times(value) -> None:
    with pytest.raises(ValidationError):
        parse_clock_label(value)


def test_plan_end_date_is_inclusive() -> None:
    start = date(2026, 3, 2)
    assert plan_end_date(start, 1) == start
    assert plan_end_date(start, 5) == date(2026, 3, 6)
    assert plan_end_date(date(2026, 12, 30), 3) == date(2027, 1, 1)


def test_day_helpers() -> None:
    start = date(2026, 3, 2)
    assert elapsed_days(start, date(2026, 3, 9)) == 7
    assert elapsed_days(start, date(2026, 3, 1)) == -1
    assert same_day(datetime(2026, 3, 2, 0, 1), datetime(2026, 3, 2, 23, 59))
    assert not same_day(datetime(2026, 3, 2, 23, 59), date(2026, 3, 3))
    assert list(iter_days(start, date(2026, 3, 4))) == [date(2026, 3, 2), date(2026, 3, 3), date(2026, 3, 4)]


def test_local_now_rejects_unknown_timezone() -> None:
    assert local_now("UTC").tzinfo is not None
    with pytest.raises(ValidationError):
        local_now("Mars/Olympus_Mons")
