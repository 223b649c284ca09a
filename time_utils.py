from __future__ import annotations

import re
from datetime import datetime, timedelta

MINUTES_PER_DAY = 24 * 60
_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def is_valid_hhmm(value: str) -> bool:
    return isinstance(value, str) and bool(_HHMM_RE.match(value))


def time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` string to minutes since midnight (0..1439)."""
    match = _HHMM_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to ``HH:MM``.

    Out-of-range input is clamped to 00:00..23:59 instead of wrapping across
    midnight, so an early adjustment of a 00:10 alarm stays on the same day.
    """
    minutes = max(0, min(MINUTES_PER_DAY - 1, int(minutes)))
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def format_hhmm(dt: datetime) -> str:
    return dt.strftime("%H:%M")


def day_index(dt: datetime) -> int:
    """Weekday index with 0 = Sunday .. 6 = Saturday."""
    return (dt.weekday() + 1) % 7


def add_minutes_hhmm(dt: datetime, minutes: int) -> str:
    # Wall-clock arithmetic, wraps across midnight.
    return format_hhmm(dt + timedelta(minutes=minutes))


def seconds_until_midnight(now: datetime) -> float:
    midnight = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return max(0.0, (midnight - now).total_seconds())


DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def format_days(days) -> str:
    days = sorted(set(days))
    if days == list(range(7)):
        return "every day"
    if days == [1, 2, 3, 4, 5]:
        return "weekdays"
    if days == [0, 6]:
        return "weekends"
    if not days:
        return "never"
    return ",".join(DAY_NAMES[d] for d in days)
