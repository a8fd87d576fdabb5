"""Wage cost as a percentage of revenue, bucket by bucket."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .projection import to_percent


@dataclass(frozen=True)
class WagePoint:
    label: str
    current_percent: Optional[float]
    target_percent: float
    historical_percent: float

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "currentPercent": self.current_percent,
            "targetPercent": self.target_percent,
            "historicalPercent": self.historical_percent,
        }


def compute_wage_series(
    labels: Sequence[str],
    cumulative_revenue_cents: Sequence[float],
    cumulative_labor_cents: Sequence[float],
    target_wage_percent: float,
    historical_wage_percent_by_bucket: Sequence[float],
    completed_bucket_count: Optional[int] = None,
) -> List[WagePoint]:
    """One :class:`WagePoint` per label.

    ``current_percent`` is ``None`` without revenue and for every bucket at or
    after ``completed_bucket_count`` (buckets that have not started yet).
    """
    points = []
    for index, label in enumerate(labels):
        elapsed = completed_bucket_count is None or index < completed_bucket_count
        revenue = cumulative_revenue_cents[index] if index < len(cumulative_revenue_cents) else 0
        labor = cumulative_labor_cents[index] if index < len(cumulative_labor_cents) else 0
        if index < len(historical_wage_percent_by_bucket):
            historical = historical_wage_percent_by_bucket[index]
        else:
            historical = target_wage_percent
        points.append(
            WagePoint(
                label=label,
                current_percent=to_percent(labor, revenue) if elapsed else None,
                target_percent=target_wage_percent,
                historical_percent=historical,
            )
        )
    return points
