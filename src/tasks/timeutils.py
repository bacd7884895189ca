"""Shared helpers for the ``YYYY-MM-DD`` / ``HH:MM`` field formats."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


def format_hhmm(hours: int, minutes: int) -> str:
    return f"{hours:02d}:{minutes:02d}"


def parse_hhmm(value: str) -> Optional[tuple[int, int]]:
    """Return ``(hours, minutes)`` for a valid 24-hour ``HH:MM`` string."""
    match = _TIME_RE.match(value or "")
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours, minutes


def is_valid_time(value: Optional[str]) -> bool:
    return value is not None and parse_hhmm(value) is not None


def is_valid_date(value: Optional[str]) -> bool:
    if not value or len(value) != 10:
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def add_minutes(value: str, delta: int) -> str:
    """Shift an ``HH:MM`` time by ``delta`` minutes, wrapping around midnight.

    Only the clock wraps; the calendar date is never touched, so
    ``add_minutes("23:30", 60) == "00:30"``.
    """
    parsed = parse_hhmm(value)
    if parsed is None:
        raise ValueError(f"Invalid time: {value!r}")
    total = (parsed[0] * 60 + parsed[1] + delta) % MINUTES_PER_DAY
    return format_hhmm(total // 60, total % 60)


def today_iso(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()


def format_time_slot(value: Optional[str]) -> str:
    """Render an ``HH:MM`` slot as a 12-hour label (``"1 PM"``, ``"12 AM"``)."""
    if not value:
        return ""
    hour = int(value.split(":")[0])
    if hour == 12:
        return "12 PM"
    if hour > 12:
        return f"{hour - 12} PM"
    if hour == 0:
        return "12 AM"
    return f"{hour} AM"


def hourly_slots(first_hour: int = 6, last_hour: int = 23) -> list[str]:
    return [format_hhmm(hour, 0) for hour in range(first_hour, last_hour + 1)]
