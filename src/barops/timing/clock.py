"""Wall-clock helpers for ``HH:MM`` operating hours and weekday keys."""

from __future__ import annotations

from typing import List

MINUTES_PER_DAY = 24 * 60
DEFAULT_BUCKET_MINUTES = 15

DAY_KEYS: List[str] = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]


def parse_clock_to_minutes(clock: object) -> int:
    """Convert an ``HH:MM`` string into minutes since midnight.

    Malformed input yields ``0`` and out-of-range parts are clamped
    (hours to 0-23, minutes to 0-59); this never raises.
    """
    if not isinstance(clock, str) or ":" not in clock:
        return 0
    hours_str, minutes_str = clock.strip().split(":", 1)
    try:
        hours = int(hours_str)
        minutes = int(minutes_str)
    except ValueError:
        return 0
    safe_hours = min(max(hours, 0), 23)
    safe_minutes = min(max(minutes, 0), 59)
    return safe_hours * 60 + safe_minutes


def format_clock(total_minutes: int) -> str:
    wrapped = int(total_minutes) % MINUTES_PER_DAY
    hours, minutes = divmod(wrapped, 60)
    return f"{hours:02d}:{minutes:02d}"


def crosses_midnight(opening_time: str, closing_time: str) -> bool:
    return parse_clock_to_minutes(closing_time) <= parse_clock_to_minutes(opening_time)


__all__ = [
    "DAY_KEYS",
    "DEFAULT_BUCKET_MINUTES",
    "MINUTES_PER_DAY",
    "crosses_midnight",
    "format_clock",
    "parse_clock_to_minutes",
]
