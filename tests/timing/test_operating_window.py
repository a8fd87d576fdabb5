from __future__ import annotations

import datetime as dt

import pytest
import pytz

from barops.timing.operating_window import (
    OperatingHours,
    build_operating_window,
    business_date,
    business_week_start,
    isoformat_utc,
    to_business_day_reference,
    zoned_clock_to_utc,
    zoned_day_key,
)

UTC = dt.timezone.utc


def test_zoned_clock_to_utc_daylight_time():
    # Adelaide is on +10:30 in mid March.
    result = zoned_clock_to_utc(dt.date(2024, 3, 15), "15:00", "Australia/Adelaide")
    assert result == dt.datetime(2024, 3, 15, 4, 30, tzinfo=UTC)


def test_zoned_clock_to_utc_after_dst_ends():
    # Daylight saving ended on 2024-04-07; +09:30 afterwards.
    result = zoned_clock_to_utc(dt.date(2024, 4, 8), "12:00", "Australia/Adelaide")
    assert result == dt.datetime(2024, 4, 8, 2, 30, tzinfo=UTC)


def test_build_operating_window_crosses_midnight():
    hours = OperatingHours("15:00", "03:00")
    window = build_operating_window(dt.date(2024, 3, 15), hours, "Australia/Adelaide")
    assert window.start == dt.datetime(2024, 3, 15, 4, 30, tzinfo=UTC)
    assert window.end == dt.datetime(2024, 3, 15, 16, 30, tzinfo=UTC)
    assert window.minutes == pytest.approx(720.0)
    assert window.contains(dt.datetime(2024, 3, 15, 10, 0, tzinfo=UTC))
    assert not window.contains(window.end)


def test_window_clamp():
    window = build_operating_window(dt.date(2024, 3, 15), OperatingHours("16:00", "20:00"), "UTC")
    early = dt.datetime(2024, 3, 15, 12, 0, tzinfo=UTC)
    late = dt.datetime(2024, 3, 15, 23, 0, tzinfo=UTC)
    assert window.clamp(early) == window.start
    assert window.clamp(late) == window.end


def test_business_day_counts_early_morning_as_previous_night():
    # 03:30 Saturday local time still belongs to Friday's service.
    instant = dt.datetime(2024, 3, 15, 17, 0, tzinfo=UTC)
    assert zoned_day_key(instant, "Australia/Adelaide") == "saturday"
    assert business_date(instant, "Australia/Adelaide") == dt.date(2024, 3, 15)
    assert to_business_day_reference(instant, 5) == dt.datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def test_business_week_starts_on_monday():
    start = business_week_start(dt.date(2024, 3, 15), "UTC", 5)
    assert start == dt.datetime(2024, 3, 11, 5, 0, tzinfo=UTC)


def test_unknown_timezone_fails_fast():
    with pytest.raises(pytz.UnknownTimeZoneError):
        zoned_clock_to_utc(dt.date(2024, 3, 15), "16:00", "Mars/Olympus")


def test_isoformat_utc_uses_z_suffix():
    assert isoformat_utc(dt.datetime(2024, 3, 15, 4, 30, tzinfo=UTC)) == "2024-03-15T04:30:00Z"
