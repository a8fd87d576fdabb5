from __future__ import annotations

import pytest

from barops.config.venue_config import VenueConfig
from barops.ponr.weekly import WeeklySnapshot, last_open_day_key


def test_last_open_day_skips_closed_days():
    assert last_open_day_key(VenueConfig.from_mapping({})) == "sunday"
    config = VenueConfig.from_mapping(
        {
            "dailyOperatingHours": {
                "saturday": {"isClosed": True},
                "sunday": {"isClosed": True},
            }
        }
    )
    assert last_open_day_key(config) == "friday"


def test_all_days_closed():
    config = VenueConfig.from_mapping(
        {"dailyOperatingHours": {day: {"isClosed": True} for day in [
            "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
        ]}}
    )
    assert last_open_day_key(config) is None


def test_weekly_wage_percent():
    weekly = WeeklySnapshot("2024-03-11T05:00:00Z", 400000, 100000)
    assert weekly.wage_percent == pytest.approx(25.0)
    assert WeeklySnapshot("2024-03-11T05:00:00Z", None, 100000).wage_percent is None
    assert weekly.to_dict()["revenueToDateCents"] == 400000
