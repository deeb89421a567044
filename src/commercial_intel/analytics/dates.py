"""Day-granularity date helpers shared by every analysis.

Source sheets store dates as ``DD/MM/YYYY`` strings.  Everything here works
on :class:`datetime.date` so time of day never leaks into comparisons.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime


def parse_day(value) -> date | None:
    """Parse a sheet date into a :class:`date`.

    Accepts ``DD/MM/YYYY`` strings, ISO ``YYYY-MM-DD`` strings (optionally
    with a time part) and ``date``/``datetime`` objects.  Returns None for
    missing or unparseable input instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None

    if "/" in s:
        parts = s.split("/")
        if len(parts) != 3:
            return None
        try:
            day, month, year = (int(p) for p in parts)
            return date(year, month, day)
        except ValueError:
            return None

    for fmt in ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(s[:19], fmt).date()
        except ValueError:
            continue
    return None


def days_between(earlier: date, later: date) -> int:
    """Whole days from *earlier* to *later* (negative if reversed)."""
    return (later - earlier).days


def shift_months(day: date, months: int) -> date:
    """Move *day* by a number of calendar months, clamping the day of month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def format_day(day: date | None) -> str:
    """ISO string for a day, empty string when unknown."""
    return day.isoformat() if day else ""
