"""Point-of-no-return search for the final shift of the week.

On the last open day the solver asks: if the rest of tonight's shift runs at
the expected revenue pace and with the people currently on the floor, at
what moment does the *weekly* wage percentage reach the configured ceiling?

Samples of ``(time, projected weekly wage %)`` are taken at shift start, at
every elapsed bucket boundary (actuals), at now, and at every remaining
bucket boundary (expected revenue, extrapolated labour). The crossing is the
first sample at or above the threshold, linearly interpolated against the
sample before it.
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from barops.series.projection import to_percent
from barops.timing.bucket_indexer import BucketIndexer
from barops.timing.operating_window import ensure_utc, isoformat_utc

from .weekly import WeeklySnapshot

logger = logging.getLogger(__name__)


class PonrStatus(str, enum.Enum):
    UNAVAILABLE = "unavailable"
    NOT_LAST_SHIFT = "not_last_shift"
    SAFE_ALL_SHIFT = "safe_all_shift"
    UPCOMING = "upcoming"
    PASSED = "passed"


@dataclass(frozen=True)
class PonrSample:
    time: dt.datetime
    projected_week_wage_percent: Optional[float]


@dataclass(frozen=True)
class PointOfNoReturnSnapshot:
    target_wage_percent: float
    status: PonrStatus
    point_time_iso: Optional[str] = None
    minutes_from_now: Optional[int] = None
    projected_week_wage_percent_at_now: Optional[float] = None
    projected_week_wage_percent_at_close: Optional[float] = None
    shift_start_iso: Optional[str] = None
    shift_end_iso: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "targetWagePercent": self.target_wage_percent,
            "status": self.status.value,
            "pointTimeIso": self.point_time_iso,
            "minutesFromNow": self.minutes_from_now,
            "projectedWeekWagePercentAtNow": self.projected_week_wage_percent_at_now,
            "projectedWeekWagePercentAtClose": self.projected_week_wage_percent_at_close,
            "shiftStartIso": self.shift_start_iso,
            "shiftEndIso": self.shift_end_iso,
        }


@dataclass(frozen=True)
class PonrInputs:
    """Everything the solver needs about tonight and the week so far.

    ``bucket_revenue_cents``/``bucket_labor_cents`` are tonight's observed
    per-bucket values through now (zero for future buckets).
    ``current_staffing_rate`` is the summed hourly rate of everyone clocked
    in at ``now``; when nobody is, ``fallback_hourly_rate`` (one average
    worker) is used instead.
    """

    now: dt.datetime
    day_key: str
    last_open_day_key: Optional[str]
    indexer: BucketIndexer
    bucket_revenue_cents: Sequence[int]
    bucket_labor_cents: Sequence[int]
    baseline_fractions: Sequence[float]
    projected_total_cents: int
    weekly: WeeklySnapshot
    current_staffing_rate: float
    fallback_hourly_rate: float
    threshold_percent: float
    is_closed: bool = False


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


# ----------------------------------------------------------------- crossing --
def find_threshold_crossing(
    samples: Sequence[PonrSample],
    threshold_percent: float,
) -> Optional[dt.datetime]:
    """Time at which the sampled percentage first reaches ``threshold_percent``."""
    previous: Optional[PonrSample] = None
    for sample in samples:
        percent = sample.projected_week_wage_percent
        if percent is None:
            previous = None
            continue
        if percent >= threshold_percent:
            if previous is None:
                return sample.time
            start_percent = previous.projected_week_wage_percent
            span = percent - start_percent
            alpha = _clamp((threshold_percent - start_percent) / span, 0.0, 1.0) if span > 0 else 1.0
            return previous.time + (sample.time - previous.time) * alpha
        previous = sample
    return None


# ----------------------------------------------------------- expected curve --
def cumulative_fraction_at(
    fractions: Sequence[float],
    minutes: float,
    bucket_minutes: float,
) -> float:
    """Baseline share of the night reached ``minutes`` after opening.

    ``fractions[k]`` is the share at the end of bucket ``k``; the curve starts
    at 0 at opening and is linear within a bucket.
    """
    if not fractions or bucket_minutes <= 0 or minutes <= 0:
        return 0.0
    position = minutes / bucket_minutes
    last_index = len(fractions) - 1
    if position >= last_index + 1:
        return _clamp(float(fractions[last_index]), 0.0, 1.0)
    index = int(position)
    lower = float(fractions[index - 1]) if index > 0 else 0.0
    upper = float(fractions[index])
    return _clamp(lower + (upper - lower) * (position - index), 0.0, 1.0)


def aligned_expected_revenue(
    fractions: Sequence[float],
    projected_total_cents: int,
    observed_now_cents: int,
    elapsed_minutes: float,
    bucket_minutes: float,
    shift_offset_minutes: float = 0.0,
):
    """Return ``f(minutes) -> expected cumulative shift revenue``.

    The baseline is rebased to zero at shift start, scaled by the projected
    total and shifted so it passes through the observed revenue at now.
    """
    pre_shift = cumulative_fraction_at(fractions, shift_offset_minutes, bucket_minutes)

    def expected(minutes: float) -> float:
        share = cumulative_fraction_at(fractions, shift_offset_minutes + minutes, bucket_minutes)
        return (share - pre_shift) * projected_total_cents

    offset = observed_now_cents - expected(elapsed_minutes)

    def aligned(minutes: float) -> float:
        return max(0.0, expected(minutes) + offset)

    return aligned


# ------------------------------------------------------------------ samples --
def build_ponr_samples(
    inputs: PonrInputs,
    revenue_before_cents: int,
    wages_before_cents: int,
    staffing_rate: float,
) -> List[PonrSample]:
    indexer = inputs.indexer
    now = indexer.effective_now(inputs.now)
    shift_start = indexer.window_start

    def week_percent(shift_revenue: float, shift_labor: float) -> Optional[float]:
        return to_percent(wages_before_cents + shift_labor, revenue_before_cents + shift_revenue)

    revenue = [int(value) for value in inputs.bucket_revenue_cents]
    labor = [int(value) for value in inputs.bucket_labor_cents]
    samples = [PonrSample(shift_start, week_percent(0, 0))]

    running_revenue = 0
    running_labor = 0
    for index in range(indexer.num_buckets):
        boundary = indexer.bucket_end(index)
        if boundary >= now:
            break
        running_revenue += revenue[index] if index < len(revenue) else 0
        running_labor += labor[index] if index < len(labor) else 0
        samples.append(PonrSample(boundary, week_percent(running_revenue, running_labor)))

    revenue_now = sum(revenue)
    labor_now = sum(labor)
    if now > shift_start:
        samples.append(PonrSample(now, week_percent(revenue_now, labor_now)))

    elapsed = indexer.elapsed_minutes(now)
    expected = aligned_expected_revenue(
        inputs.baseline_fractions,
        inputs.projected_total_cents,
        revenue_now,
        elapsed,
        indexer.bucket_minutes,
    )
    for index in range(indexer.num_buckets):
        boundary = indexer.bucket_end(index)
        if boundary <= now:
            continue
        minutes = (boundary - shift_start).total_seconds() / 60.0
        hours_ahead = (boundary - now).total_seconds() / 3600.0
        projected_labor = labor_now + staffing_rate * hours_ahead * 100.0
        samples.append(PonrSample(boundary, week_percent(expected(minutes), projected_labor)))
    return samples


# ------------------------------------------------------------------- solver --
def solve_point_of_no_return(inputs: PonrInputs) -> PointOfNoReturnSnapshot:
    indexer = inputs.indexer
    shift_start_iso = isoformat_utc(indexer.window_start)
    shift_end_iso = isoformat_utc(indexer.window_end)

    def outcome(status: PonrStatus, **fields) -> PointOfNoReturnSnapshot:
        return PointOfNoReturnSnapshot(
            target_wage_percent=inputs.threshold_percent,
            status=status,
            shift_start_iso=shift_start_iso,
            shift_end_iso=shift_end_iso,
            **fields,
        )

    if inputs.last_open_day_key is None:
        return outcome(PonrStatus.UNAVAILABLE)
    now = ensure_utc(inputs.now)
    if inputs.is_closed or inputs.day_key != inputs.last_open_day_key:
        return outcome(PonrStatus.NOT_LAST_SHIFT)
    if not (indexer.window_start <= now < indexer.window_end):
        return outcome(PonrStatus.NOT_LAST_SHIFT)
    if not inputs.weekly.is_complete:
        logger.info("Weekly totals incomplete; point of no return unavailable")
        return outcome(PonrStatus.UNAVAILABLE)

    shift_revenue = sum(int(value) for value in inputs.bucket_revenue_cents)
    shift_labor = sum(int(value) for value in inputs.bucket_labor_cents)
    revenue_before = max(0, inputs.weekly.revenue_to_date_cents - shift_revenue)
    wages_before = max(0, inputs.weekly.wages_to_date_cents - shift_labor)
    staffing_rate = inputs.current_staffing_rate
    if staffing_rate <= 0:
        staffing_rate = inputs.fallback_hourly_rate

    samples = build_ponr_samples(inputs, revenue_before, wages_before, staffing_rate)
    at_now = to_percent(wages_before + shift_labor, revenue_before + shift_revenue)
    at_close = samples[-1].projected_week_wage_percent if samples else None
    crossing = find_threshold_crossing(samples, inputs.threshold_percent)
    logger.debug(
        "PONR: %d samples, threshold %.2f%%, crossing=%s", len(samples), inputs.threshold_percent, crossing
    )

    if crossing is None:
        return outcome(
            PonrStatus.SAFE_ALL_SHIFT,
            projected_week_wage_percent_at_now=at_now,
            projected_week_wage_percent_at_close=at_close,
        )

    status = PonrStatus.PASSED if crossing <= now else PonrStatus.UPCOMING
    return outcome(
        status,
        point_time_iso=isoformat_utc(crossing),
        minutes_from_now=int(round((crossing - now).total_seconds() / 60.0)),
        projected_week_wage_percent_at_now=at_now,
        projected_week_wage_percent_at_close=at_close,
    )


__all__ = [
    "PointOfNoReturnSnapshot",
    "PonrInputs",
    "PonrSample",
    "PonrStatus",
    "aligned_expected_revenue",
    "build_ponr_samples",
    "cumulative_fraction_at",
    "find_threshold_crossing",
    "solve_point_of_no_return",
]
