"""Assemble a snapshot from live point-of-sale and rostering data.

All upstream reads for one poll are issued concurrently and settled
individually. A failed source zeroes the series it feeds (revenue for
payments, labour for timesheets) and is reported in the
:class:`IntegrationSummary`; the snapshot itself is still produced. Only the
point-of-no-return solver refuses to guess, reporting ``unavailable`` when
the week-to-date totals could not be read.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from barops.config.venue_config import VenueConfig
from barops.ponr.solver import PonrInputs, solve_point_of_no_return
from barops.ponr.weekly import WeeklySnapshot
from barops.series.baseline import (
    baseline_fraction_at_index,
    build_baseline_fractions,
    build_fallback_fractions,
    normalize_fractions,
)
from barops.series.bucketizer import (
    bucketize_labor,
    bucketize_revenue,
    cumulative,
    current_staffing_rate,
    total_labor_cents,
)
from barops.series.domain_types import OpenOrderRecord, PaymentRecord, TimesheetRecord
from barops.series.projection import compute_projection, projected_vs_target_percent, to_percent
from barops.series.wage_series import compute_wage_series
from barops.timing.operating_window import ensure_utc, isoformat_utc

from .carryover_cache import CarryoverBaselineCache
from .open_orders import (
    OpenTableSummary,
    normalize_excluded_labels,
    partition_open_orders,
    summarize_open_tables,
)
from .service_day import ServiceDay
from .settled import SKIPPED, Settled, gather_settled
from .snapshot import (
    Comparison,
    LiveSnapshot,
    Timeline,
    Totals,
    build_closed_snapshot,
    build_revenue_buckets,
)

logger = logging.getLogger(__name__)

HISTORICAL_WEEKS = 4


class RealtimeSources(Protocol):
    """Already-parsed upstream records; vendor wire formats live elsewhere."""

    async def fetch_payments(self, start: dt.datetime, end: dt.datetime) -> Sequence[PaymentRecord]:
        ...

    async def fetch_open_orders(self) -> Sequence[OpenOrderRecord]:
        ...

    async def fetch_timesheets(self, start: dt.datetime, end: dt.datetime) -> Sequence[TimesheetRecord]:
        ...

    async def fetch_employee_rates(self) -> Mapping[int, float]:
        ...


STATUS_KEYS = {
    "square_payments": "squarePayments",
    "square_open_orders": "squareOpenOrders",
    "deputy_timesheets": "deputyTimesheets",
    "deputy_employees": "deputyEmployees",
    "historical_week_1": "historicalWeek1",
    "historical_week_2": "historicalWeek2",
    "historical_week_3": "historicalWeek3",
    "historical_week_4": "historicalWeek4",
    "weekly_payments": "weeklyPayments",
    "weekly_timesheets": "weeklyTimesheets",
}


@dataclass(frozen=True)
class IntegrationSummary:
    fetched_at_iso: str
    status: Dict[str, str] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)
    mode: str = "realtime"

    @classmethod
    def from_results(
        cls,
        fetched_at: dt.datetime,
        results: Mapping[str, Settled],
        counts: Mapping[str, int],
    ) -> "IntegrationSummary":
        status = {}
        for name, key in STATUS_KEYS.items():
            result = results.get(name)
            status[key] = result.status if result is not None else SKIPPED
        return cls(fetched_at_iso=isoformat_utc(fetched_at), status=status, counts=dict(counts))

    @property
    def failed_sources(self) -> List[str]:
        return [key for key, value in self.status.items() if value == "rejected"]

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "fetchedAtIso": self.fetched_at_iso,
            "status": dict(self.status),
            "counts": dict(self.counts),
        }


@dataclass(frozen=True)
class RealtimeBuildResult:
    snapshot: LiveSnapshot
    integration: IntegrationSummary
    open_tables: List[OpenTableSummary] = field(default_factory=list)


def _empty_counts() -> Dict[str, int]:
    return {
        "squarePayments": 0,
        "squareOpenOrders": 0,
        "squareOpenOrdersExcluded": 0,
        "squareOpenOrdersExcludedCarryoverCents": 0,
        "squareOpenOrdersExcludedDeltaCents": 0,
        "deputyTimesheets": 0,
        "deputyEmployees": 0,
    }


def _weekly_snapshot(
    service_day: ServiceDay,
    now: dt.datetime,
    results: Mapping[str, Settled],
    fallback_rate: float,
    employee_rates: Mapping[int, float],
) -> WeeklySnapshot:
    week_start = service_day.week_start
    revenue: Optional[int] = None
    wages: Optional[int] = None
    payments = results.get("weekly_payments")
    if payments is not None and payments.ok:
        revenue = sum(
            max(0, payment.amount_cents)
            for payment in payments.value or []
            if week_start <= payment.created_at < now
        )
    timesheets = results.get("weekly_timesheets")
    if timesheets is not None and timesheets.ok:
        wages = total_labor_cents(timesheets.value or [], week_start, now, fallback_rate, employee_rates)
    return WeeklySnapshot(
        week_start_iso=isoformat_utc(week_start),
        revenue_to_date_cents=revenue,
        wages_to_date_cents=wages,
    )


async def build_realtime_snapshot(
    config: VenueConfig,
    reference: dt.datetime,
    sources: RealtimeSources,
    carryover_cache: Optional[CarryoverBaselineCache] = None,
    now: Optional[dt.datetime] = None,
) -> RealtimeBuildResult:
    """Fetch, bucketize and project tonight's figures for the day containing ``reference``."""
    reference = ensure_utc(reference)
    now = ensure_utc(now or reference)
    cache = carryover_cache if carryover_cache is not None else CarryoverBaselineCache()
    service_day = ServiceDay.resolve(config, reference)
    target = service_day.target
    week_end = max(now, service_day.week_start)

    if service_day.is_closed:
        results = await gather_settled(
            deputy_employees=sources.fetch_employee_rates(),
            weekly_payments=sources.fetch_payments(service_day.week_start, week_end),
            weekly_timesheets=sources.fetch_timesheets(service_day.week_start, week_end),
        )
        employee_rates = results["deputy_employees"].value_or({})
        weekly = _weekly_snapshot(service_day, now, results, config.average_hourly_rate, employee_rates)
        ponr = solve_point_of_no_return(
            PonrInputs(
                now=now,
                day_key=service_day.day_key,
                last_open_day_key=service_day.last_open_day_key,
                indexer=service_day.indexer,
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
        generated_at = dt.datetime.now(dt.timezone.utc)
        logger.info("Realtime snapshot for closed day %s", service_day.day_key)
        counts = _empty_counts()
        counts["deputyEmployees"] = len(employee_rates)
        return RealtimeBuildResult(
            snapshot=build_closed_snapshot(
                service_day.day_key, target.wage_target_percent, weekly, ponr, generated_at
            ),
            integration=IntegrationSummary.from_results(generated_at, results, counts),
        )

    window = service_day.window
    indexer = service_day.indexer
    bucket_count = indexer.num_buckets
    effective = indexer.effective_now(now)
    elapsed_fraction = indexer.elapsed_fraction(now)
    completed = indexer.completed_bucket_count(now)
    logger.debug(
        "Realtime window %s: %s -> %s, effective now %s",
        service_day.day_key,
        window.start.isoformat(),
        window.end.isoformat(),
        effective.isoformat(),
    )

    comparable_windows = [
        service_day.comparable_window(config, week) for week in range(1, HISTORICAL_WEEKS + 1)
    ]
    historical = {
        f"historical_week_{week}": sources.fetch_payments(cw.start, cw.end)
        for week, cw in enumerate(comparable_windows, start=1)
    }
    results = await gather_settled(
        square_payments=sources.fetch_payments(window.start, window.end),
        square_open_orders=sources.fetch_open_orders(),
        deputy_timesheets=sources.fetch_timesheets(window.start, window.end),
        deputy_employees=sources.fetch_employee_rates(),
        weekly_payments=sources.fetch_payments(service_day.week_start, week_end),
        weekly_timesheets=sources.fetch_timesheets(service_day.week_start, week_end),
        **historical,
    )

    payments = list(results["square_payments"].value_or([]))
    open_orders = list(results["square_open_orders"].value_or([]))
    timesheets = list(results["deputy_timesheets"].value_or([]))
    employee_rates = dict(results["deputy_employees"].value_or({}))

    # ----- tonight's revenue and open tabs
    closed_revenue = bucketize_revenue(
        payments, window.start, effective, bucket_count, indexer.bucket_minutes
    )
    excluded_labels = normalize_excluded_labels(config.excluded_open_order_labels)
    partition = partition_open_orders(open_orders, excluded_labels, window.start)
    carryover = cache.baseline_for(
        config.square.location_id, window.start, excluded_labels, partition.excluded_cents, now
    )
    excluded_delta = max(0, partition.excluded_cents - carryover)
    open_bills = partition.included_cents + excluded_delta
    logger.debug(
        "Open orders: %d total, %d included, %d before window, %d excluded (%d cents, carryover %d)",
        len(open_orders),
        len(partition.included),
        len(partition.outside_window),
        len(partition.excluded),
        partition.excluded_cents,
        carryover,
    )

    # ----- tonight's labour
    labor_by_bucket = bucketize_labor(
        timesheets,
        window.start,
        effective,
        bucket_count,
        config.average_hourly_rate,
        employee_rates,
        indexer.bucket_minutes,
    )

    cumulative_closed = cumulative(closed_revenue)
    cumulative_labor = cumulative(labor_by_bucket)
    actual_revenue = cumulative_closed[completed - 1] if completed > 0 else 0
    reported_open_bills = open_bills if completed > 0 else 0
    adjusted_revenue = actual_revenue + reported_open_bills
    labor_cost = cumulative_labor[completed - 1] if completed > 0 else 0

    # ----- comparables
    comparable_series: List[List[int]] = []
    comparable_totals: List[int] = []
    for week, cw in enumerate(comparable_windows, start=1):
        result = results[f"historical_week_{week}"]
        if not result.ok:
            continue
        bucketed = bucketize_revenue(
            result.value or [], cw.start, cw.end, bucket_count, indexer.bucket_minutes
        )
        comparable_series.append(bucketed)
        comparable_totals.append(sum(bucketed))

    last_week_revenue = comparable_totals[0] if comparable_totals else 0
    if comparable_totals:
        rolling_average = int(round(sum(comparable_totals) / len(comparable_totals)))
    else:
        rolling_average = target.revenue_target_cents

    baseline_fractions = normalize_fractions(
        build_baseline_fractions(comparable_series)
        if comparable_series
        else build_fallback_fractions(bucket_count),
        bucket_count,
    )
    baseline_now = baseline_fraction_at_index(baseline_fractions, max(0, completed - 1))
    projection = compute_projection(adjusted_revenue, baseline_now, rolling_average, elapsed_fraction)

    historical_wage = [target.wage_target_percent] * bucket_count
    wage_series = compute_wage_series(
        indexer.labels,
        cumulative_closed,
        cumulative_labor,
        target.wage_target_percent,
        historical_wage,
        completed_bucket_count=completed,
    )

    # ----- week to date and point of no return
    weekly = _weekly_snapshot(service_day, now, results, config.average_hourly_rate, employee_rates)
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
            current_staffing_rate=current_staffing_rate(
                timesheets, now, config.average_hourly_rate, employee_rates
            ),
            fallback_hourly_rate=config.average_hourly_rate,
            threshold_percent=config.weekly_ponr_wage_percent,
        )
    )

    generated_at = dt.datetime.now(dt.timezone.utc)
    snapshot = LiveSnapshot(
        generated_at_iso=isoformat_utc(generated_at),
        day_key=service_day.day_key,
        totals=Totals(
            actual_revenue_cents=actual_revenue,
            open_bills_cents=reported_open_bills,
            adjusted_revenue_cents=adjusted_revenue,
            projected_revenue_cents=projection.ramped_projected_total_cents,
            projected_vs_target_percent=projected_vs_target_percent(
                projection.ramped_projected_total_cents, target.revenue_target_cents
            ),
            labor_cost_cents=labor_cost,
            wage_percent=to_percent(labor_cost, adjusted_revenue),
        ),
        comparison=Comparison(
            last_week_revenue_cents=last_week_revenue,
            rolling_average_revenue_cents=rolling_average,
        ),
        projection=projection,
        timeline=Timeline(
            revenue_buckets=build_revenue_buckets(
                indexer.labels, closed_revenue, labor_by_bucket, open_bills, completed
            ),
            baseline_fractions=baseline_fractions,
            wage_series=wage_series,
            historical_wage_percent_by_bucket=historical_wage,
        ),
        weekly=weekly,
        point_of_no_return=ponr,
    )

    counts = {
        "squarePayments": len(payments),
        "squareOpenOrders": len(open_orders),
        "squareOpenOrdersExcluded": len(partition.excluded),
        "squareOpenOrdersExcludedCarryoverCents": carryover,
        "squareOpenOrdersExcludedDeltaCents": excluded_delta,
        "deputyTimesheets": len(timesheets),
        "deputyEmployees": len(employee_rates),
    }
    integration = IntegrationSummary.from_results(generated_at, results, counts)
    if integration.failed_sources:
        logger.warning("Realtime snapshot degraded; failed sources: %s", ", ".join(integration.failed_sources))
    logger.info(
        "Realtime snapshot %s %s: %d/%d buckets, projected %d cents",
        config.store_name,
        service_day.local_date.isoformat(),
        completed,
        bucket_count,
        projection.ramped_projected_total_cents,
    )
    return RealtimeBuildResult(
        snapshot=snapshot,
        integration=integration,
        open_tables=summarize_open_tables(open_orders),
    )


__all__ = [
    "IntegrationSummary",
    "RealtimeBuildResult",
    "RealtimeSources",
    "build_realtime_snapshot",
]
