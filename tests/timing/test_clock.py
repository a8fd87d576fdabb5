from __future__ import annotations

from barops.timing.clock import crosses_midnight, format_clock, parse_clock_to_minutes


def test_parse_clock_to_minutes_handles_bad_input():
    assert parse_clock_to_minutes("16:30") == 990
    assert parse_clock_to_minutes("bad") == 0
    assert parse_clock_to_minutes("aa:bb") == 0
    assert parse_clock_to_minutes(None) == 0
    assert parse_clock_to_minutes("25:70") == 23 * 60 + 59


def test_format_clock_wraps_past_midnight():
    assert format_clock(990) == "16:30"
    assert format_clock(24 * 60 + 45) == "00:45"


def test_crosses_midnight():
    assert crosses_midnight("16:00", "02:00")
    assert crosses_midnight("16:00", "16:00")
    assert not crosses_midnight("09:00", "17:00")
