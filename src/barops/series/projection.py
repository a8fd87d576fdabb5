"""Confidence-ramped end-of-night revenue projection.

Dividing revenue-so-far by the expected fraction of the night elapsed is very
noisy in the first hour, when both numbers are small. The projection therefore
blends that raw extrapolation with the historical rolling average, using a
weight that grows with the baseline fraction:

``ramp_weight = clamp(max(b, 0.03) * 1.65, 0.1, 1)``

``ramped = round(raw * ramp_weight + rolling_average * (1 - ramp_weight))``

The ramped figure is the one reported; the raw figure is kept for diagnostics.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

MIN_GUARDED_BASELINE = 0.03
RAMP_SLOPE = 1.65
MIN_RAMP_WEIGHT = 0.1


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13, -0.5 -> 0)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ProjectionMetrics:
    baseline_fraction: float
    raw_projected_total_cents: int
    ramped_projected_total_cents: int
    ramp_weight: float
    elapsed_fraction: float

    @classmethod
    def zero(cls) -> "ProjectionMetrics":
        return cls(0.0, 0, 0, 0.0, 0.0)

    def to_dict(self) -> dict:
        return {
            "baselineFraction": self.baseline_fraction,
            "rawProjectedTotalCents": self.raw_projected_total_cents,
            "rampedProjectedTotalCents": self.ramped_projected_total_cents,
            "rampWeight": self.ramp_weight,
            "elapsedFraction": self.elapsed_fraction,
        }


def compute_projection(
    current_revenue_cents: int,
    baseline_fraction_at_now: float,
    rolling_average_revenue_cents: int,
    elapsed_fraction: float,
) -> ProjectionMetrics:
    stable_baseline = _clamp(baseline_fraction_at_now, 0.0, 1.0)
    guarded_baseline = max(stable_baseline, MIN_GUARDED_BASELINE)

    if stable_baseline > 0:
        raw_projected = round_half_up(current_revenue_cents / guarded_baseline)
    else:
        raw_projected = int(rolling_average_revenue_cents)

    ramp_weight = _clamp(guarded_baseline * RAMP_SLOPE, MIN_RAMP_WEIGHT, 1.0)
    ramped_projected = round_half_up(
        raw_projected * ramp_weight + rolling_average_revenue_cents * (1.0 - ramp_weight)
    )

    return ProjectionMetrics(
        baseline_fraction=stable_baseline,
        raw_projected_total_cents=raw_projected,
        ramped_projected_total_cents=ramped_projected,
        ramp_weight=ramp_weight,
        elapsed_fraction=_clamp(elapsed_fraction, 0.0, 1.0),
    )


def to_percent(numerator: float, denominator: float) -> Optional[float]:
    """``numerator / denominator * 100``, or ``None`` when the denominator is not positive."""
    if denominator <= 0:
        return None
    return numerator / denominator * 100.0


def projected_vs_target_percent(projected_cents: int, target_cents: int) -> float:
    if target_cents <= 0:
        return 0.0
    return (projected_cents - target_cents) / target_cents * 100.0
