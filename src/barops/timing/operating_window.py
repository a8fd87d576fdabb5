"""Resolve business days and operating-hours windows to concrete UTC instants.

A venue's night does not end at midnight: anything before
``business_day_start_hour`` local time still belongs to the previous calendar
day. Operating hours are stored as ``HH:MM`` wall-clock pairs and become a
``[start, end)`` pair of aware UTC datetimes once a local date and timezone
are known.

The wall-clock to UTC conversion uses a two-pass offset correction (compute
UTC naively, look up the zone offset at that instant, recompute). This
stabilises most DST boundaries but is an approximation: when the offset
changes *during* the requested wall-clock time the result is not
disambiguated and may land an hour off.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

import pytz

from .clock import DAY_KEYS, crosses_midnight, parse_clock_to_minutes

BUSINESS_DAY_START_HOUR = 5


@dataclass(frozen=True)
class OperatingHours:
    """Opening/closing wall-clock pair for one weekday."""

    opening_time: str
    closing_time: str
    is_closed: bool = False

    @property
    def crosses_midnight(self) -> bool:
        return crosses_midnight(self.opening_time, self.closing_time)

    def to_dict(self) -> dict:
        return {
            "openingTime": self.opening_time,
            "closingTime": self.closing_time,
            "isClosed": self.is_closed,
        }


@dataclass(frozen=True)
class OperatingWindow:
    """Concrete UTC bounds of one service window."""

    start: dt.datetime
    end: dt.datetime

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60.0

    def contains(self, instant: dt.datetime) -> bool:
        return self.start <= ensure_utc(instant) < self.end

    def clamp(self, instant: dt.datetime) -> dt.datetime:
        """Clamp ``instant`` into ``[start, end]``."""
        value = ensure_utc(instant)
        if value < self.start:
            return self.start
        if value > self.end:
            return self.end
        return value


def ensure_utc(instant: dt.datetime) -> dt.datetime:
    """Return ``instant`` as an aware UTC datetime (naive values are taken as UTC)."""
    if instant.tzinfo is None:
        return pytz.utc.localize(instant)
    return instant.astimezone(pytz.utc)


def resolve_timezone(name: str) -> dt.tzinfo:
    # Unknown names raise pytz.UnknownTimeZoneError; callers validate upstream.
    return pytz.timezone(name)


def to_business_day_reference(instant: dt.datetime, start_hour: int = BUSINESS_DAY_START_HOUR) -> dt.datetime:
    """Shift ``instant`` back by ``start_hour`` hours so 1 AM counts as last night."""
    return ensure_utc(instant) - dt.timedelta(hours=start_hour)


def to_local(instant: dt.datetime, timezone: str) -> dt.datetime:
    return ensure_utc(instant).astimezone(resolve_timezone(timezone))


def local_date(instant: dt.datetime, timezone: str) -> dt.date:
    return to_local(instant, timezone).date()


def zoned_day_key(instant: dt.datetime, timezone: str) -> str:
    return DAY_KEYS[to_local(instant, timezone).weekday()]


def business_date(
    instant: dt.datetime,
    timezone: str,
    start_hour: int = BUSINESS_DAY_START_HOUR,
) -> dt.date:
    return local_date(to_business_day_reference(instant, start_hour), timezone)


def offset_at(instant: dt.datetime, timezone: str) -> dt.timedelta:
    """UTC offset of ``timezone`` in effect at ``instant``."""
    offset = to_local(instant, timezone).utcoffset()
    return offset if offset is not None else dt.timedelta(0)


def zoned_clock_to_utc(day: dt.date, clock: str, timezone: str) -> dt.datetime:
    """Resolve the wall-clock ``clock`` on local date ``day`` to a UTC instant."""
    clock_minutes = parse_clock_to_minutes(clock)
    hours, minutes = divmod(clock_minutes, 60)
    naive_utc = dt.datetime(day.year, day.month, day.day, hours, minutes, tzinfo=pytz.utc)

    timestamp = naive_utc
    for _ in range(2):
        timestamp = naive_utc - offset_at(timestamp, timezone)
    return timestamp


def build_operating_window(day: dt.date, hours: OperatingHours, timezone: str) -> OperatingWindow:
    """UTC window for ``hours`` on local date ``day``; closing moves to the next day when it wraps."""
    start = zoned_clock_to_utc(day, hours.opening_time, timezone)
    close_day = day + dt.timedelta(days=1) if hours.crosses_midnight else day
    end = zoned_clock_to_utc(close_day, hours.closing_time, timezone)
    return OperatingWindow(start=start, end=end)


def isoformat_utc(instant: dt.datetime) -> str:
    """ISO-8601 string in UTC with a trailing ``Z``."""
    return ensure_utc(instant).isoformat().replace("+00:00", "Z")


def week_start_date(day: dt.date) -> dt.date:
    """Monday of the configured week containing ``day``."""
    return day - dt.timedelta(days=day.weekday())


def business_week_start(
    day: dt.date,
    timezone: str,
    start_hour: int = BUSINESS_DAY_START_HOUR,
) -> dt.datetime:
    """UTC instant at which the business week containing ``day`` begins."""
    monday = week_start_date(day)
    return zoned_clock_to_utc(monday, f"{start_hour:02d}:00", timezone)


__all__ = [
    "BUSINESS_DAY_START_HOUR",
    "OperatingHours",
    "OperatingWindow",
    "build_operating_window",
    "business_date",
    "business_week_start",
    "ensure_utc",
    "isoformat_utc",
    "local_date",
    "offset_at",
    "resolve_timezone",
    "to_business_day_reference",
    "to_local",
    "week_start_date",
    "zoned_clock_to_utc",
    "zoned_day_key",
]
