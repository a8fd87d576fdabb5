"""Assign timestamped revenue and labour to fixed-size buckets."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable, List, Mapping, MutableSequence, Sequence

from barops.timing.clock import DEFAULT_BUCKET_MINUTES
from barops.timing.operating_window import ensure_utc

from .domain_types import PaymentRecord, TimesheetRecord

logger = logging.getLogger(__name__)


def cumulative(values: Sequence[float]) -> List[float]:
    """Running prefix sum; ``cumulative([]) == []``."""
    running = 0
    output = []
    for value in values:
        running += value
        output.append(running)
    return output


def effective_now(now: dt.datetime, window_start: dt.datetime, window_end: dt.datetime) -> dt.datetime:
    """Clamp ``now`` into ``[window_start, window_end]``."""
    value = ensure_utc(now)
    return min(max(value, ensure_utc(window_start)), ensure_utc(window_end))


def bucketize_revenue(
    payments: Iterable[PaymentRecord],
    window_start: dt.datetime,
    effective_now: dt.datetime,
    bucket_count: int,
    bucket_minutes: int = DEFAULT_BUCKET_MINUTES,
) -> List[int]:
    """Per-bucket revenue for payments inside ``[window_start, effective_now)``."""
    buckets = [0] * max(bucket_count, 0)
    start = ensure_utc(window_start)
    stop = ensure_utc(effective_now)
    width = dt.timedelta(minutes=bucket_minutes)
    dropped = 0
    for payment in payments:
        if payment.created_at < start or payment.created_at >= stop:
            dropped += 1
            continue
        index = int((payment.created_at - start) // width)
        if index < 0 or index >= len(buckets):
            dropped += 1
            continue
        buckets[index] += max(0, payment.amount_cents)
    if dropped:
        logger.debug("Dropped %d payments outside [%s, %s)", dropped, start, stop)
    return buckets


def distribute_labor(
    bucket_labor: MutableSequence[int],
    window_start: dt.datetime,
    effective_now: dt.datetime,
    timesheet: TimesheetRecord,
    fallback_rate: float,
    employee_rates: Mapping[int, float],
    bucket_minutes: int = DEFAULT_BUCKET_MINUTES,
) -> None:
    """Split one timesheet's cost across every bucket it overlaps (in place).

    Each bucket receives ``round(hours_in_bucket * rate * 100)`` cents; an open
    shift runs through ``effective_now``.
    """
    start_bound = ensure_utc(window_start)
    stop_bound = ensure_utc(effective_now)
    shift_start = timesheet.start_at
    shift_end = timesheet.end_at if timesheet.end_at is not None else stop_bound
    if shift_end <= shift_start:
        return

    cursor = max(shift_start, start_bound)
    end = min(shift_end, stop_bound)
    if end <= cursor:
        return

    rate = timesheet.resolve_rate(employee_rates, fallback_rate)
    if rate <= 0:
        return

    width = dt.timedelta(minutes=bucket_minutes)
    while cursor < end:
        index = int((cursor - start_bound) // width)
        if index < 0 or index >= len(bucket_labor):
            break
        bucket_end = start_bound + (index + 1) * width
        segment_end = min(end, bucket_end)
        hours = (segment_end - cursor).total_seconds() / 3600.0
        bucket_labor[index] += int(round(hours * rate * 100))
        cursor = segment_end


def bucketize_labor(
    timesheets: Iterable[TimesheetRecord],
    window_start: dt.datetime,
    effective_now: dt.datetime,
    bucket_count: int,
    fallback_rate: float,
    employee_rates: Mapping[int, float] | None = None,
    bucket_minutes: int = DEFAULT_BUCKET_MINUTES,
) -> List[int]:
    labor = [0] * max(bucket_count, 0)
    rates = employee_rates or {}
    for timesheet in timesheets:
        distribute_labor(
            labor,
            window_start,
            effective_now,
            timesheet,
            fallback_rate,
            rates,
            bucket_minutes,
        )
    return labor


def total_labor_cents(
    timesheets: Iterable[TimesheetRecord],
    range_start: dt.datetime,
    range_end: dt.datetime,
    fallback_rate: float,
    employee_rates: Mapping[int, float] | None = None,
) -> int:
    """Labour cost of all timesheets clipped to ``[range_start, range_end)``."""
    start = ensure_utc(range_start)
    end = ensure_utc(range_end)
    rates = employee_rates or {}
    total = 0
    for timesheet in timesheets:
        clipped_start = max(timesheet.start_at, start)
        clipped_end = min(timesheet.end_at if timesheet.end_at is not None else end, end)
        if clipped_end <= clipped_start:
            continue
        rate = timesheet.resolve_rate(rates, fallback_rate)
        if rate <= 0:
            continue
        hours = (clipped_end - clipped_start).total_seconds() / 3600.0
        total += int(round(hours * rate * 100))
    return total


def current_staffing_rate(
    timesheets: Iterable[TimesheetRecord],
    now: dt.datetime,
    fallback_rate: float,
    employee_rates: Mapping[int, float] | None = None,
) -> float:
    """Sum of hourly rates of everyone clocked in at ``now``."""
    rates = employee_rates or {}
    total = 0.0
    for timesheet in timesheets:
        if not timesheet.is_open_at(now):
            continue
        rate = timesheet.resolve_rate(rates, fallback_rate)
        if rate > 0:
            total += rate
    return total


__all__ = [
    "bucketize_labor",
    "bucketize_revenue",
    "cumulative",
    "current_staffing_rate",
    "distribute_labor",
    "effective_now",
    "total_labor_cents",
]
