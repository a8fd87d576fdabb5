from __future__ import annotations

import asyncio
import datetime as dt
import json

import pytest

from barops.config.venue_config import VenueConfig
from barops.live.carryover_cache import CarryoverBaselineCache
from barops.live.realtime import build_realtime_snapshot
from barops.live.recorded_sources import RecordedSources
from barops.ponr.solver import PonrStatus
from barops.series.domain_types import OpenOrderRecord, PaymentRecord, TimesheetRecord

UTC = dt.timezone.utc
FRIDAY_NOW = dt.datetime(2024, 3, 15, 17, 0, tzinfo=UTC)


def _config(**overrides) -> VenueConfig:
    data = {
        "timezone": "UTC",
        "openingTime": "16:00",
        "closingTime": "02:00",
        "dailyOperatingHours": {},
        "averageHourlyRate": 30,
        "excludedOpenOrderLabels": ["Staff"],
        "square": {"locationId": "LOC-1"},
    }
    data.update(overrides)
    return VenueConfig.from_mapping(data)


def _payments() -> list:
    rows = [
        PaymentRecord(dt.datetime(2024, 3, 15, 16, 5, tzinfo=UTC), 1000),
        PaymentRecord(dt.datetime(2024, 3, 15, 16, 50, tzinfo=UTC), 2000),
    ]
    for weeks in range(1, 5):
        night = dt.datetime(2024, 3, 15, 16, 5, tzinfo=UTC) - dt.timedelta(days=7 * weeks)
        rows.append(PaymentRecord(night, 10000))
        rows.append(PaymentRecord(night + dt.timedelta(hours=1), 10000))
    return rows


def _sources(staff_tab_cents: int = 2000, unavailable=()) -> RecordedSources:
    return RecordedSources(
        payments=_payments(),
        open_orders=[
            OpenOrderRecord(500, "Table 4", dt.datetime(2024, 3, 15, 16, 30, tzinfo=UTC)),
            OpenOrderRecord(staff_tab_cents, "Staff Tab"),
            OpenOrderRecord(700, "Table 9", dt.datetime(2024, 3, 15, 15, 0, tzinfo=UTC)),
        ],
        timesheets=[TimesheetRecord(start_at=dt.datetime(2024, 3, 15, 16, 0, tzinfo=UTC), employee_id=7)],
        employee_rates={7: 30.0},
        unavailable=unavailable,
    )


def _build(config, sources, cache=None, now=FRIDAY_NOW):
    return asyncio.run(build_realtime_snapshot(config, now, sources, carryover_cache=cache, now=now))


def test_realtime_snapshot_from_live_records():
    result = _build(_config(), _sources())
    snapshot = result.snapshot
    totals = snapshot.totals

    assert snapshot.day_key == "friday"
    assert totals.actual_revenue_cents == 3000
    assert totals.open_bills_cents == 500
    assert totals.adjusted_revenue_cents == 3500
    assert totals.labor_cost_cents == 3000
    assert totals.wage_percent == pytest.approx(3000 / 3500 * 100)

    buckets = snapshot.timeline.revenue_buckets
    assert len(buckets) == 40
    assert [bucket.closed_revenue_cents for bucket in buckets[:4]] == [1000, 0, 0, 2000]
    assert [bucket.labor_cost_cents for bucket in buckets[:5]] == [750, 750, 750, 750, 0]
    assert buckets[3].open_bills_cents == 500

    assert snapshot.comparison.last_week_revenue_cents == 20000
    assert snapshot.comparison.rolling_average_revenue_cents == 20000
    assert snapshot.projection.baseline_fraction == pytest.approx(0.5)
    assert snapshot.projection.raw_projected_total_cents == 7000
    assert snapshot.projection.ramped_projected_total_cents == 9275
    assert snapshot.timeline.historical_wage_percent_by_bucket == [24.0] * 40
    wage_series = snapshot.timeline.wage_series
    assert wage_series[0].current_percent == pytest.approx(75.0)
    assert wage_series[3].current_percent == pytest.approx(100.0)
    assert [point.current_percent for point in wage_series[4:]] == [None] * 36

    assert snapshot.weekly.revenue_to_date_cents == 3000
    assert snapshot.weekly.wages_to_date_cents == 3000
    assert snapshot.point_of_no_return.status is PonrStatus.NOT_LAST_SHIFT

    integration = result.integration
    assert set(integration.status.values()) == {"fulfilled"}
    assert integration.counts == {
        "squarePayments": 2,
        "squareOpenOrders": 3,
        "squareOpenOrdersExcluded": 1,
        "squareOpenOrdersExcludedCarryoverCents": 2000,
        "squareOpenOrdersExcludedDeltaCents": 0,
        "deputyTimesheets": 1,
        "deputyEmployees": 1,
    }
    json.dumps({"snapshot": snapshot.to_dict(), "integration": integration.to_dict()})


def test_open_tables_are_summarised_per_label():
    result = _build(_config(), _sources())
    assert [(table.label, table.count, table.total_cents) for table in result.open_tables] == [
        ("staff tab", 1, 2000),
        ("table 4", 1, 500),
        ("table 9", 1, 700),
    ]
    assert result.open_tables[1].to_dict() == {"label": "table 4", "count": 1, "totalCents": 500}


def test_excluded_tabs_only_count_growth_after_first_poll():
    cache = CarryoverBaselineCache()
    config = _config()
    _build(config, _sources(staff_tab_cents=2000), cache)
    later = _build(config, _sources(staff_tab_cents=2600), cache, now=FRIDAY_NOW + dt.timedelta(minutes=10))
    assert later.snapshot.totals.open_bills_cents == 1100
    assert later.integration.counts["squareOpenOrdersExcludedCarryoverCents"] == 2000
    assert later.integration.counts["squareOpenOrdersExcludedDeltaCents"] == 600
    assert len(cache) == 1


def test_failed_sources_degrade_instead_of_failing():
    result = _build(_config(), _sources(unavailable=["payments", "timesheets"]))
    snapshot = result.snapshot
    status = result.integration.status

    assert status["squarePayments"] == "rejected"
    assert status["deputyTimesheets"] == "rejected"
    assert status["historicalWeek1"] == "rejected"
    assert status["squareOpenOrders"] == "fulfilled"
    assert status["deputyEmployees"] == "fulfilled"
    assert snapshot.totals.actual_revenue_cents == 0
    assert snapshot.totals.labor_cost_cents == 0
    # No history: the revenue target stands in for the rolling average.
    assert snapshot.comparison.rolling_average_revenue_cents == 235000
    assert snapshot.comparison.last_week_revenue_cents == 0
    assert snapshot.timeline.baseline_fractions[-1] == pytest.approx(1.0)
    assert snapshot.weekly.revenue_to_date_cents is None
    assert snapshot.weekly.wages_to_date_cents is None


def test_last_shift_without_weekly_totals_is_unavailable():
    sunday = dt.datetime(2024, 3, 17, 17, 0, tzinfo=UTC)
    result = _build(_config(), _sources(unavailable=["payments"]), now=sunday)
    assert result.snapshot.day_key == "sunday"
    assert result.snapshot.point_of_no_return.status is PonrStatus.UNAVAILABLE


def test_last_shift_with_weekly_totals_is_evaluated():
    sunday = dt.datetime(2024, 3, 17, 17, 0, tzinfo=UTC)
    result = _build(_config(), _sources(), now=sunday)
    ponr = result.snapshot.point_of_no_return
    assert ponr.status in {PonrStatus.SAFE_ALL_SHIFT, PonrStatus.UPCOMING, PonrStatus.PASSED}
    assert ponr.shift_start_iso == "2024-03-17T16:00:00Z"


def test_closed_day_skips_tonight_sources():
    config = _config(dailyOperatingHours={"friday": {"isClosed": True}})
    result = _build(config, _sources())
    assert result.snapshot.is_closed
    assert result.snapshot.totals.wage_percent is None
    status = result.integration.status
    assert status["squarePayments"] == "skipped"
    assert status["historicalWeek4"] == "skipped"
    assert status["weeklyPayments"] == "fulfilled"
    assert result.snapshot.weekly.revenue_to_date_cents == 3000
    assert result.open_tables == []
