from __future__ import annotations

import textwrap

import pytest

from barops.config.venue_config import VenueConfig, sanitize_clock, sanitize_origin


def test_defaults_fill_an_empty_config():
    config = VenueConfig.from_mapping({})
    assert config.store_name == "BarOps Adelaide"
    assert config.timezone == "Australia/Adelaide"
    assert config.data_source_mode == "sample"
    assert config.weekly_ponr_wage_percent == 30.0
    assert config.business_day_start_hour == 5
    friday = config.operating_hours_for("friday")
    assert (friday.opening_time, friday.closing_time, friday.is_closed) == ("15:00", "03:00", False)
    assert config.target_for("saturday").revenue_target_cents == 255000
    assert config.target_for("monday").wage_target_percent == 28.0


def test_numbers_are_clamped_not_rejected():
    config = VenueConfig.from_mapping(
        {
            "averageHourlyRate": 1000,
            "refreshIntervalSeconds": 1,
            "averageBillLengthMinutes": "nan",
            "weeklyPointOfNoReturnWagePercent": -4,
            "businessDayStartHour": 20,
            "dailyTargets": {
                "monday": {"revenueTargetCents": -5, "wageTargetPercent": 150},
                "tuesday": {"revenueTargetCents": 9_000_000},
            },
        }
    )
    assert config.average_hourly_rate == 200
    assert config.refresh_interval_seconds == 15
    assert config.average_bill_length_minutes == 55
    assert config.weekly_ponr_wage_percent == 0
    assert config.business_day_start_hour == 12
    assert config.target_for("monday").revenue_target_cents == 0
    assert config.target_for("monday").wage_target_percent == 100
    assert config.target_for("tuesday").revenue_target_cents == 5_000_000
    assert config.target_for("tuesday").wage_target_percent == 28.0


def test_partial_daily_hours_fall_back_to_legacy_clocks():
    config = VenueConfig.from_mapping(
        {
            "openingTime": "18:00",
            "closingTime": "23:00",
            "dailyOperatingHours": {
                "monday": {"openingTime": "17:00", "closingTime": "25:99"},
                "sunday": {"isClosed": True},
            },
        }
    )
    monday = config.operating_hours_for("monday")
    assert (monday.opening_time, monday.closing_time) == ("17:00", "23:00")
    tuesday = config.operating_hours_for("tuesday")
    assert (tuesday.opening_time, tuesday.closing_time) == ("18:00", "23:00")
    assert config.operating_hours_for("sunday").is_closed


def test_integration_settings_are_sanitised():
    config = VenueConfig.from_mapping(
        {
            "dataSourceMode": "realtime",
            "square": {"environment": "staging", "accessToken": " tok ", "locationId": "L1"},
            "deputy": {"accessToken": "dep", "baseUrl": "https://acme.au.deputy.com/api/v1/resource"},
            "excludedOpenOrderLabels": [" Staff ", "", 7, "Comp"],
        }
    )
    assert config.data_source_mode == "realtime"
    assert config.square.environment == "production"
    assert config.square.access_token == "tok"
    assert config.deputy.base_url == "https://acme.au.deputy.com"
    assert config.excluded_open_order_labels == ["Staff", "Comp"]
    assert config.missing_realtime_settings() == []
    assert VenueConfig.from_mapping({}).missing_realtime_settings() == [
        "square.accessToken",
        "square.locationId",
        "deputy.accessToken",
        "deputy.baseUrl",
    ]


def test_sanitize_helpers():
    assert sanitize_clock("9:05", "00:00") == "09:05"
    assert sanitize_clock("24:00", "01:00") == "01:00"
    assert sanitize_clock(None, "01:00") == "01:00"
    assert sanitize_clock(960, "01:00") == "16:00"
    assert sanitize_origin("not a url") == ""
    assert sanitize_origin("http://localhost:8080/x?y=1") == "http://localhost:8080"


def test_venue_config_yaml_roundtrip(tmp_path):
    yaml_text = textwrap.dedent(
        """
        storeName: Corner Bar
        timezone: UTC
        averageHourlyRate: 35
        dailyOperatingHours:
          friday:
            openingTime: '16:00'
            closingTime: '02:00'
        dailyTargets:
          friday:
            revenueTargetCents: 300000
            wageTargetPercent: 22
        excludedOpenOrderLabels:
          - staff
        """
    ).strip()
    path = tmp_path / "venue.yaml"
    path.write_text(yaml_text, encoding="utf-8")
    config = VenueConfig.from_yaml(path)
    assert config.store_name == "Corner Bar"
    assert config.average_hourly_rate == 35
    assert config.target_for("friday").revenue_target_cents == 300000

    out_path = tmp_path / "out" / "venue.yaml"
    config.to_yaml(out_path)
    assert VenueConfig.from_yaml(out_path) == config


def test_yaml_must_be_a_mapping(tmp_path):
    path = tmp_path / "venue.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(TypeError):
        VenueConfig.from_yaml(path)
    with pytest.raises(FileNotFoundError):
        VenueConfig.from_yaml(tmp_path / "missing.yaml")
