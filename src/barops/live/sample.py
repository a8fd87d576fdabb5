"""Synthetic but deterministic snapshots for demos and dashboards without integrations.

Every number is derived from seeded hashes of the store name, weekday and
service date, so repeated polls of the same night agree with each other. The
synthetic inputs then go through the same projection, wage-series and
point-of-no-return code as live data.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from barops.config.venue_config import VenueConfig
from barops.ponr.solver import PonrInputs, solve_point_of_no_return
from barops.ponr.weekly import WeeklySnapshot
from barops.series.baseline import (
    ComparableNight,
    average_series,
    build_baseline_fractions,
    interpolated_baseline_fraction,
)
from barops.series.bucketizer import cumulative
from barops.series.projection import compute_projection, projected_vs_target_percent, to_percent
from barops.series.wage_series import compute_wage_series
from barops.timing.clock import DAY_KEYS
from barops.timing.operating_window import ensure_utc, isoformat_utc

from .seeding import build_demand_shape, scale_shape_to_total, seed_from_string, seeded_unit
from .service_day import ServiceDay
from .snapshot import (
    Comparison,
    LiveSnapshot,
    Timeline,
    Totals,
    build_closed_snapshot,
    build_revenue_buckets,
)

logger = logging.getLogger(__name__)

COMPARABLE_NIGHT_COUNT = 4


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


@dataclass(frozen=True)
class HistorySnapshot:
    day_key: str
    last_week_revenue_cents: int
    rolling_average_revenue_cents: int
    comparable_nights: List[ComparableNight] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "dayKey": self.day_key,
            "lastWeekRevenueCents": self.last_week_revenue_cents,
            "rollingAverageRevenueCents": self.rolling_average_revenue_cents,
            "comparableNights": [night.to_dict() for night in self.comparable_nights],
        }


def build_comparable_nights(
    key_seed: int,
    target_revenue_cents: int,
    target_wage_percent: float,
    bucket_count: int,
) -> List[ComparableNight]:
    nights = []
    for night_index in range(COMPARABLE_NIGHT_COUNT):
        night_seed = key_seed + night_index * 97
        performance = 0.8 + seeded_unit(night_seed, 100 + night_index) * 0.42
        total = int(round(target_revenue_cents * performance))
        bucket_revenue = scale_shape_to_total(build_demand_shape(bucket_count, night_seed), total)

        wage_by_bucket = []
        for bucket_index in range(bucket_count):
            progress = bucket_index / (bucket_count - 1) if bucket_count > 1 else 0.0
            drift = (seeded_unit(night_seed, 300 + bucket_index) - 0.5) * 3.2
            wave = math.sin(progress * math.pi) * 1.1
            wage_by_bucket.append(_clamp(target_wage_percent + wave + drift, 12, 45))

        nights.append(ComparableNight.from_bucket_revenue(bucket_revenue, wage_by_bucket))
    return nights


def _history_for(config: VenueConfig, service_day: ServiceDay) -> HistorySnapshot:
    key_seed = seed_from_string(f"{service_day.day_key}:{config.store_name}")
    nights = build_comparable_nights(
        key_seed,
        service_day.target.revenue_target_cents,
        service_day.target.wage_target_percent,
        service_day.indexer.num_buckets,
    )
    totals = [night.total_revenue_cents for night in nights]
    return HistorySnapshot(
        day_key=service_day.day_key,
        last_week_revenue_cents=totals[0] if totals else 0,
        rolling_average_revenue_cents=int(round(sum(totals) / len(totals))) if totals else 0,
        comparable_nights=nights,
    )


def build_history_snapshot(config: VenueConfig, reference: Optional[dt.datetime] = None) -> HistorySnapshot:
    """Seeded comparable nights for the service day containing ``reference``."""
    reference = ensure_utc(reference or dt.datetime.now(dt.timezone.utc))
    return _history_for(config, ServiceDay.resolve(config, reference))


def build_labor_series(
    closed_revenue_by_bucket: List[int],
    completed_bucket_count: int,
    target_wage_percent: float,
    average_hourly_rate: float,
) -> List[int]:
    """Cumulative synthetic labour: the larger of a fixed crew and a revenue-tracking cost, never decreasing."""
    cumulative_revenue = cumulative(closed_revenue_by_bucket)
    bucket_count = len(closed_revenue_by_bucket)
    cumulative_labor: List[int] = []
    for index in range(bucket_count):
        if index >= completed_bucket_count:
            cumulative_labor.append(cumulative_labor[-1] if cumulative_labor else 0)
            continue
        progress = index / (bucket_count - 1) if bucket_count > 1 else 0.0
        staff = 2 + round(progress * 2)
        fixed = int(round(average_hourly_rate * 100 * staff * 0.25)) * (index + 1)
        swing = 0.92 + 0.14 * math.sin(progress * math.pi)
        variable = int(round(cumulative_revenue[index] * (target_wage_percent / 100) * swing))
        previous = cumulative_labor[-1] if cumulative_labor else 0
        cumulative_labor.append(max(fixed, variable, previous))
    return cumulative_labor


def _sample_staffing_rate(config: VenueConfig, completed_bucket_count: int, bucket_count: int) -> float:
    index = max(0, completed_bucket_count - 1)
    progress = index / (bucket_count - 1) if bucket_count > 1 else 0.0
    return config.average_hourly_rate * (2 + round(progress * 2))


def build_sample_weekly(
    config: VenueConfig,
    service_day: ServiceDay,
    actual_revenue_cents: int,
    labor_cost_cents: int,
) -> WeeklySnapshot:
    """Seeded totals for the open days before tonight plus tonight so far."""
    seed = seed_from_string(f"{config.store_name}:{service_day.local_date.isoformat()}:weekly")
    prior_revenue = 0
    prior_wages = 0
    for index in range(service_day.day_index):
        prior_key = DAY_KEYS[index]
        if config.operating_hours_for(prior_key).is_closed:
            continue
        target = config.target_for(prior_key)
        revenue = int(round(target.revenue_target_cents * (0.84 + seeded_unit(seed, 300 + index) * 0.32)))
        wage_factor = 0.9 + seeded_unit(seed, 500 + index) * 0.22
        prior_revenue += revenue
        prior_wages += int(round(revenue * (target.wage_target_percent / 100) * wage_factor))
    return WeeklySnapshot(
        week_start_iso=isoformat_utc(service_day.week_start),
        revenue_to_date_cents=max(0, prior_revenue + actual_revenue_cents),
        wages_to_date_cents=max(0, prior_wages + labor_cost_cents),
    )


def build_sample_snapshot(
    config: VenueConfig,
    reference: Optional[dt.datetime] = None,
    now: Optional[dt.datetime] = None,
) -> LiveSnapshot:
    """Deterministic snapshot for the service day containing ``reference``.

    ``now`` positions the night (how many buckets have elapsed) and defaults
    to ``reference``.
    """
    generated_at = dt.datetime.now(dt.timezone.utc)
    reference = ensure_utc(reference or generated_at)
    now = ensure_utc(now or reference)
    service_day = ServiceDay.resolve(config, reference)
    indexer = service_day.indexer
    target = service_day.target

    if service_day.is_closed:
        weekly = build_sample_weekly(config, service_day, 0, 0)
        ponr = solve_point_of_no_return(
            PonrInputs(
                now=now,
                day_key=service_day.day_key,
                last_open_day_key=service_day.last_open_day_key,
                indexer=indexer,
                bucket_revenue_cents=[],
                bucket_labor_cents=[],
                baseline_fractions=[],
                projected_total_cents=0,
                weekly=weekly,
                current_staffing_rate=0.0,
                fallback_hourly_rate=config.average_hourly_rate,
                threshold_percent=config.weekly_ponr_wage_percent,
                is_closed=True,
            )
        )
        logger.info("Sample snapshot for closed day %s", service_day.day_key)
        return build_closed_snapshot(
            service_day.day_key, target.wage_target_percent, weekly, ponr, generated_at
        )

    history = _history_for(config, service_day)
    labels = indexer.labels
    bucket_count = indexer.num_buckets

    key_seed = seed_from_string(
        f"{config.store_name}:{service_day.day_key}:{service_day.local_date.isoformat()}"
    )
    tonight_performance = 0.86 + seeded_unit(key_seed, 777) * 0.3
    nightly_expectation = int(round(history.rolling_average_revenue_cents * tonight_performance))
    full_night = scale_shape_to_total(build_demand_shape(bucket_count, key_seed + 1000), nightly_expectation)
    if not full_night:
        full_night = [0] * bucket_count

    elapsed_minutes = indexer.elapsed_minutes(now)
    elapsed_fraction = indexer.elapsed_fraction(now)
    completed = indexer.completed_bucket_count(now)

    closed_revenue = [value if index < completed else 0 for index, value in enumerate(full_night)]
    cumulative_closed = cumulative(closed_revenue)
    actual_revenue = cumulative_closed[completed - 1] if completed > 0 else 0

    lookback = max(1, round(config.average_bill_length_minutes / indexer.bucket_minutes))
    recent_closed = sum(closed_revenue[max(0, completed - lookback):completed])
    open_bills_multiplier = 0.16 + seeded_unit(key_seed, 901) * 0.2
    open_bills = int(round(recent_closed * open_bills_multiplier)) if completed > 0 else 0
    adjusted_revenue = actual_revenue + open_bills

    baseline_fractions = build_baseline_fractions(
        [night.bucket_revenue_cents for night in history.comparable_nights]
    )
    baseline_now = interpolated_baseline_fraction(
        baseline_fractions, elapsed_minutes, indexer.bucket_minutes
    )
    projection = compute_projection(
        adjusted_revenue, baseline_now, history.rolling_average_revenue_cents, elapsed_fraction
    )

    cumulative_labor = build_labor_series(
        closed_revenue, completed, target.wage_target_percent, config.average_hourly_rate
    )
    labor_by_bucket = [
        max(0, value - (cumulative_labor[index - 1] if index > 0 else 0))
        for index, value in enumerate(cumulative_labor)
    ]
    labor_cost = cumulative_labor[completed - 1] if completed > 0 else 0

    historical_wage = average_series(
        [night.wage_percent_by_bucket for night in history.comparable_nights]
    )
    wage_series = compute_wage_series(
        labels,
        cumulative_closed,
        cumulative_labor,
        target.wage_target_percent,
        historical_wage,
        completed_bucket_count=completed,
    )

    weekly = build_sample_weekly(config, service_day, actual_revenue, labor_cost)
    ponr = solve_point_of_no_return(
        PonrInputs(
            now=now,
            day_key=service_day.day_key,
            last_open_day_key=service_day.last_open_day_key,
            indexer=indexer,
            bucket_revenue_cents=closed_revenue,
            bucket_labor_cents=labor_by_bucket,
            baseline_fractions=baseline_fractions,
            projected_total_cents=projection.ramped_projected_total_cents,
            weekly=weekly,
            current_staffing_rate=_sample_staffing_rate(config, completed, bucket_count),
            fallback_hourly_rate=config.average_hourly_rate,
            threshold_percent=config.weekly_ponr_wage_percent,
        )
    )

    logger.info(
        "Sample snapshot %s %s: %d/%d buckets, projected %d cents",
        config.store_name,
        service_day.local_date.isoformat(),
        completed,
        bucket_count,
        projection.ramped_projected_total_cents,
    )
    return LiveSnapshot(
        generated_at_iso=isoformat_utc(generated_at),
        day_key=service_day.day_key,
        totals=Totals(
            actual_revenue_cents=actual_revenue,
            open_bills_cents=open_bills,
            adjusted_revenue_cents=adjusted_revenue,
            projected_revenue_cents=projection.ramped_projected_total_cents,
            projected_vs_target_percent=projected_vs_target_percent(
                projection.ramped_projected_total_cents, target.revenue_target_cents
            ),
            labor_cost_cents=labor_cost,
            wage_percent=to_percent(labor_cost, adjusted_revenue),
        ),
        comparison=Comparison(
            last_week_revenue_cents=history.last_week_revenue_cents,
            rolling_average_revenue_cents=history.rolling_average_revenue_cents,
        ),
        projection=projection,
        timeline=Timeline(
            revenue_buckets=build_revenue_buckets(
                labels, closed_revenue, labor_by_bucket, open_bills, completed
            ),
            baseline_fractions=baseline_fractions,
            wage_series=wage_series,
            historical_wage_percent_by_bucket=historical_wage,
        ),
        weekly=weekly,
        point_of_no_return=ponr,
    )


__all__ = [
    "HistorySnapshot",
    "build_comparable_nights",
    "build_history_snapshot",
    "build_labor_series",
    "build_sample_snapshot",
    "build_sample_weekly",
]
