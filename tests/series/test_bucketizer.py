from __future__ import annotations

import datetime as dt

from barops.series.bucketizer import (
    bucketize_labor,
    bucketize_revenue,
    cumulative,
    current_staffing_rate,
    effective_now,
    total_labor_cents,
)
from barops.series.domain_types import PaymentRecord, TimesheetRecord

UTC = dt.timezone.utc
START = dt.datetime(2024, 3, 15, 16, 0, tzinfo=UTC)


def _at(minutes: float) -> dt.datetime:
    return START + dt.timedelta(minutes=minutes)


def test_cumulative():
    assert cumulative([1, 2, 3]) == [1, 3, 6]
    assert cumulative([]) == []


def test_effective_now_clamps():
    end = _at(600)
    assert effective_now(_at(-30), START, end) == START
    assert effective_now(_at(700), START, end) == end
    assert effective_now(_at(45), START, end) == _at(45)


def test_bucketize_revenue_drops_outside_events_and_negative_amounts():
    payments = [
        PaymentRecord(_at(5), 1000),
        PaymentRecord(_at(20), 500),
        PaymentRecord(_at(29), -100),
        PaymentRecord(_at(-1), 999),
        PaymentRecord(_at(31), 777),
    ]
    assert bucketize_revenue(payments, START, _at(30), 4) == [1000, 500, 0, 0]


def test_distribute_labor_splits_across_buckets():
    sheet = TimesheetRecord(start_at=_at(10), end_at=_at(40), hourly_rate=20.0)
    labor = bucketize_labor([sheet], START, _at(60), 4, fallback_rate=32.0)
    assert labor == [167, 500, 333, 0]


def test_open_shift_runs_to_effective_now():
    sheet = TimesheetRecord(start_at=START, hourly_rate=20.0)
    assert bucketize_labor([sheet], START, _at(30), 4, fallback_rate=32.0) == [500, 500, 0, 0]


def test_rate_precedence_and_noop_cases():
    rates = {7: 40.0}
    by_employee = TimesheetRecord(start_at=START, end_at=_at(15), employee_id=7)
    unknown = TimesheetRecord(start_at=START, end_at=_at(15), employee_id=99)
    explicit = TimesheetRecord(start_at=START, end_at=_at(15), employee_id=7, hourly_rate=10.0)
    empty = TimesheetRecord(start_at=_at(15), end_at=_at(15), hourly_rate=10.0)
    assert bucketize_labor([by_employee], START, _at(60), 4, 32.0, rates)[0] == 1000
    assert bucketize_labor([unknown], START, _at(60), 4, 32.0, rates)[0] == 800
    assert bucketize_labor([explicit], START, _at(60), 4, 32.0, rates)[0] == 250
    assert bucketize_labor([empty], START, _at(60), 4, 32.0, rates) == [0, 0, 0, 0]


def test_current_staffing_rate_sums_open_shifts():
    now = _at(90)
    sheets = [
        TimesheetRecord(start_at=START, hourly_rate=25.0),
        TimesheetRecord(start_at=_at(30), employee_id=7),
        TimesheetRecord(start_at=START, end_at=_at(60), hourly_rate=50.0),
        TimesheetRecord(start_at=_at(120), hourly_rate=50.0),
    ]
    assert current_staffing_rate(sheets, now, 32.0, {7: 40.0}) == 65.0


def test_total_labor_cents_clips_to_range():
    sheets = [TimesheetRecord(start_at=_at(-60), end_at=_at(60), hourly_rate=30.0)]
    assert total_labor_cents(sheets, START, _at(120), 32.0) == 3000
