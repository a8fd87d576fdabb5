"""Immutable value objects making up one live snapshot."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional

from barops.ponr.solver import PointOfNoReturnSnapshot
from barops.ponr.weekly import WeeklySnapshot
from barops.series.projection import ProjectionMetrics
from barops.series.wage_series import WagePoint
from barops.timing.operating_window import isoformat_utc

CLOSED_LABEL = "Closed"


@dataclass(frozen=True)
class Totals:
    actual_revenue_cents: int = 0
    open_bills_cents: int = 0
    adjusted_revenue_cents: int = 0
    projected_revenue_cents: int = 0
    projected_vs_target_percent: float = 0.0
    labor_cost_cents: int = 0
    wage_percent: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "actualRevenueCents": self.actual_revenue_cents,
            "openBillsCents": self.open_bills_cents,
            "adjustedRevenueCents": self.adjusted_revenue_cents,
            "projectedRevenueCents": self.projected_revenue_cents,
            "projectedVsTargetPercent": self.projected_vs_target_percent,
            "laborCostCents": self.labor_cost_cents,
            "wagePercent": self.wage_percent,
        }


@dataclass(frozen=True)
class Comparison:
    last_week_revenue_cents: int = 0
    rolling_average_revenue_cents: int = 0

    def to_dict(self) -> dict:
        return {
            "lastWeekRevenueCents": self.last_week_revenue_cents,
            "rollingAverageRevenueCents": self.rolling_average_revenue_cents,
        }


@dataclass(frozen=True)
class RevenueBucket:
    bucket_index: int
    label: str
    closed_revenue_cents: int
    open_bills_cents: int
    labor_cost_cents: int

    def to_dict(self) -> dict:
        return {
            "bucketIndex": self.bucket_index,
            "label": self.label,
            "closedRevenueCents": self.closed_revenue_cents,
            "openBillsCents": self.open_bills_cents,
            "laborCostCents": self.labor_cost_cents,
        }


@dataclass(frozen=True)
class Timeline:
    revenue_buckets: List[RevenueBucket] = field(default_factory=list)
    baseline_fractions: List[float] = field(default_factory=list)
    wage_series: List[WagePoint] = field(default_factory=list)
    historical_wage_percent_by_bucket: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "revenueBuckets": [bucket.to_dict() for bucket in self.revenue_buckets],
            "baselineFractions": list(self.baseline_fractions),
            "wageSeries": [point.to_dict() for point in self.wage_series],
            "historicalWagePercentByBucket": list(self.historical_wage_percent_by_bucket),
        }


@dataclass(frozen=True)
class LiveSnapshot:
    """Everything the dashboard shows for one poll of one venue."""

    generated_at_iso: str
    day_key: str
    totals: Totals
    comparison: Comparison
    projection: ProjectionMetrics
    timeline: Timeline
    weekly: WeeklySnapshot
    point_of_no_return: PointOfNoReturnSnapshot

    @property
    def is_closed(self) -> bool:
        buckets = self.timeline.revenue_buckets
        return len(buckets) == 1 and buckets[0].label == CLOSED_LABEL

    def to_dict(self) -> dict:
        return {
            "generatedAtIso": self.generated_at_iso,
            "dayKey": self.day_key,
            "totals": self.totals.to_dict(),
            "comparison": self.comparison.to_dict(),
            "projection": self.projection.to_dict(),
            "timeline": self.timeline.to_dict(),
            "weekly": self.weekly.to_dict(),
            "pointOfNoReturn": self.point_of_no_return.to_dict(),
        }


def build_revenue_buckets(
    labels: List[str],
    closed_revenue_by_bucket: List[int],
    labor_by_bucket: List[int],
    open_bills_cents: int,
    completed_bucket_count: int,
) -> List[RevenueBucket]:
    """Per-bucket rows; open bills sit on the last elapsed bucket."""
    open_bills_index = max(0, completed_bucket_count - 1)
    buckets = []
    for index, label in enumerate(labels):
        open_bills = open_bills_cents if index == open_bills_index and completed_bucket_count > 0 else 0
        buckets.append(
            RevenueBucket(
                bucket_index=index,
                label=label,
                closed_revenue_cents=closed_revenue_by_bucket[index] if index < len(closed_revenue_by_bucket) else 0,
                open_bills_cents=open_bills,
                labor_cost_cents=labor_by_bucket[index] if index < len(labor_by_bucket) else 0,
            )
        )
    return buckets


def build_closed_snapshot(
    day_key: str,
    target_wage_percent: float,
    weekly: WeeklySnapshot,
    point_of_no_return: PointOfNoReturnSnapshot,
    generated_at: dt.datetime,
) -> LiveSnapshot:
    """Snapshot for a day marked closed: zero totals and one ``Closed`` bucket."""
    return LiveSnapshot(
        generated_at_iso=isoformat_utc(generated_at),
        day_key=day_key,
        totals=Totals(),
        comparison=Comparison(),
        projection=ProjectionMetrics.zero(),
        timeline=Timeline(
            revenue_buckets=[RevenueBucket(0, CLOSED_LABEL, 0, 0, 0)],
            baseline_fractions=[0.0],
            wage_series=[WagePoint(CLOSED_LABEL, None, target_wage_percent, target_wage_percent)],
            historical_wage_percent_by_bucket=[target_wage_percent],
        ),
        weekly=weekly,
        point_of_no_return=point_of_no_return,
    )


__all__ = [
    "CLOSED_LABEL",
    "Comparison",
    "LiveSnapshot",
    "RevenueBucket",
    "Timeline",
    "Totals",
    "build_closed_snapshot",
    "build_revenue_buckets",
]
