"""Calendar helpers shared by plans, check-ins and reminders."""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from recovery.core.errors import ValidationError

_CLOCK_RE = re.compile(r"^(\d{2}):(\d{2})$")


def local_now(tz_name: str = "UTC") -> datetime:
    """Return an aware ``datetime`` in the configured timezone."""
    try:
        tz = ZoneInfo(tz_name)
    except ZoneInfoNotFoundError as exc:
        raise ValidationError(f"Unknown timezone {tz_name!r}", field="timezone") from exc
    return datetime.now(tz)


def date_key(now: datetime) -> date:
    """Calendar day of ``now`` in its own timezone."""
    return now.date()


def clock_label(now: datetime) -> str:
    """24-hour ``HH:MM`` label for ``now``."""
    return f"{now.hour:02d}:{now.minute:02d}"


def parse_clock_label(value: str) -> tuple[int, int]:
    """Validate an ``HH:MM`` string and return ``(hour, minute)``."""
    match = _CLOCK_RE.match(value or "")
    if not match:
        raise ValidationError("daily_reminder_time must use HH:MM", field="daily_reminder_time")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValidationError("daily_reminder_time is not a valid clock time", field="daily_reminder_time")
    return hour, minute


def same_day(first: datetime | date, second: datetime | date) -> bool:
    first_day = first.date() if isinstance(first, datetime) else first
    second_day = second.date() if isinstance(second, datetime) else second
    return first_day == second_day


def elapsed_days(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative when ``end`` is earlier)."""
    return (end - start).days


def plan_end_date(start: date, duration_days: int) -> date:
    """Inclusive last day of a plan lasting ``duration_days``."""
    return start + timedelta(days=duration_days - 1)


def iter_days(start: date, end: date):
    """Yield each day from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
