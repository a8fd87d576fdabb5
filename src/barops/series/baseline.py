"""Historical demand curves: the expected share of a night's revenue by bucket.

Each comparable night (the trailing four same-weekday services) contributes its
own cumulative-revenue-fraction curve. The curves are averaged with equal
weight; a night with fewer buckets keeps its last value for the remaining
indices. The resulting baseline is non-decreasing and bounded in ``[0, 1]``.

When the historical bucket count differs from tonight's,
:func:`normalize_fractions` truncates the curve or extends it with a linear
ramp towards 1.0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from .bucketizer import cumulative

EMPTY_BASELINE_SENTINEL = 0.02


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


@dataclass(frozen=True)
class ComparableNight:
    """One historical reference night."""

    total_revenue_cents: int
    bucket_revenue_cents: List[int] = field(default_factory=list)
    cumulative_fractions: List[float] = field(default_factory=list)
    wage_percent_by_bucket: List[float] = field(default_factory=list)

    @classmethod
    def from_bucket_revenue(
        cls,
        bucket_revenue_cents: Sequence[int],
        wage_percent_by_bucket: Sequence[float] | None = None,
    ) -> "ComparableNight":
        buckets = [int(value) for value in bucket_revenue_cents]
        total = sum(buckets)
        if total > 0:
            fractions = [value / total for value in cumulative(buckets)]
        else:
            fractions = [0.0 for _ in buckets]
        return cls(
            total_revenue_cents=total,
            bucket_revenue_cents=buckets,
            cumulative_fractions=fractions,
            wage_percent_by_bucket=list(wage_percent_by_bucket or []),
        )

    def to_dict(self) -> dict:
        return {
            "totalRevenueCents": self.total_revenue_cents,
            "bucketRevenueCents": list(self.bucket_revenue_cents),
            "cumulativeFractions": list(self.cumulative_fractions),
            "wagePercentByBucket": list(self.wage_percent_by_bucket),
        }


def build_baseline_fractions(comparable_series: Sequence[Sequence[float]]) -> List[float]:
    """Average the cumulative revenue fractions of the comparable nights."""
    max_buckets = max((len(series) for series in comparable_series), default=0)
    if max_buckets == 0:
        return [EMPTY_BASELINE_SENTINEL]

    curves = []
    for series in comparable_series:
        values = np.clip(np.asarray(series, dtype=float), 0.0, None)
        total = float(values.sum())
        if total <= 0:
            curves.append(np.zeros(max_buckets))
            continue
        running = np.cumsum(values)
        # Shorter nights repeat their final value up to max_buckets.
        indices = np.minimum(np.arange(max_buckets), len(values) - 1)
        curves.append(np.clip(running[indices] / total, 0.0, 1.0))

    if not any(curve.any() for curve in curves):
        return [EMPTY_BASELINE_SENTINEL]

    average = np.clip(np.mean(np.vstack(curves), axis=0), 0.0, 1.0)
    return [float(value) for value in average]


def build_fallback_fractions(bucket_count: int) -> List[float]:
    """Linear ramp ``(i + 1) / n`` used when no history is available."""
    if bucket_count <= 0:
        return [0.0]
    if bucket_count == 1:
        return [1.0]
    return [(index + 1) / bucket_count for index in range(bucket_count)]


def normalize_fractions(fractions: Sequence[float], bucket_count: int) -> List[float]:
    """Fit a baseline curve onto ``bucket_count`` buckets."""
    if bucket_count <= 0:
        return [0.0]
    if len(fractions) == bucket_count:
        return [float(value) for value in fractions]
    if not fractions:
        return build_fallback_fractions(bucket_count)
    if len(fractions) > bucket_count:
        return [float(value) for value in fractions[:bucket_count]]

    output = [float(value) for value in fractions]
    last = output[-1]
    remaining = bucket_count - len(output)
    for step in range(1, remaining + 1):
        output.append(_clamp(last + (1.0 - last) * step / remaining, 0.0, 1.0))
    return output


def baseline_fraction_at_index(fractions: Sequence[float], bucket_index: int) -> float:
    if not fractions:
        return EMPTY_BASELINE_SENTINEL
    safe_index = int(_clamp(bucket_index, 0, len(fractions) - 1))
    return _clamp(float(fractions[safe_index]), 0.0, 1.0)


def interpolated_baseline_fraction(
    fractions: Sequence[float],
    elapsed_minutes: float,
    bucket_minutes: float,
) -> float:
    """Baseline fraction at a fractional bucket position (``elapsed / bucket``)."""
    if not fractions:
        return EMPTY_BASELINE_SENTINEL
    if not math.isfinite(elapsed_minutes) or elapsed_minutes <= 0:
        return _clamp(float(fractions[0]), 0.0, 1.0)
    if not math.isfinite(bucket_minutes) or bucket_minutes <= 0:
        return baseline_fraction_at_index(fractions, 0)

    max_index = len(fractions) - 1
    position = _clamp(elapsed_minutes / bucket_minutes, 0.0, float(max_index))
    lower_index = int(math.floor(position))
    upper_index = min(max_index, lower_index + 1)
    alpha = position - lower_index
    lower = baseline_fraction_at_index(fractions, lower_index)
    upper = baseline_fraction_at_index(fractions, upper_index)
    return _clamp(lower + (upper - lower) * alpha, 0.0, 1.0)


def average_series(rows: Sequence[Sequence[float]]) -> List[float]:
    """Pointwise mean where each index only averages rows that reach it."""
    max_buckets = max((len(row) for row in rows), default=0)
    averaged: List[float] = []
    for index in range(max_buckets):
        values = [row[index] for row in rows if index < len(row)]
        averaged.append(sum(values) / len(values) if values else 0.0)
    return averaged


__all__ = [
    "ComparableNight",
    "EMPTY_BASELINE_SENTINEL",
    "average_series",
    "baseline_fraction_at_index",
    "build_baseline_fractions",
    "build_fallback_fractions",
    "interpolated_baseline_fraction",
    "normalize_fractions",
]
