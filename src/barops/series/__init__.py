"""
Per-bucket revenue, labour, baseline and projection maths.
"""

from .baseline import (
    ComparableNight,
    average_series,
    build_baseline_fractions,
    build_fallback_fractions,
    normalize_fractions,
)
from .bucketizer import bucketize_labor, bucketize_revenue, cumulative, distribute_labor
from .domain_types import OpenOrderRecord, PaymentRecord, TimesheetRecord
from .projection import ProjectionMetrics, compute_projection, round_half_up, to_percent
from .wage_series import WagePoint, compute_wage_series

__all__ = [
    "ComparableNight",
    "OpenOrderRecord",
    "PaymentRecord",
    "ProjectionMetrics",
    "TimesheetRecord",
    "WagePoint",
    "average_series",
    "build_baseline_fractions",
    "build_fallback_fractions",
    "bucketize_labor",
    "bucketize_revenue",
    "compute_projection",
    "compute_wage_series",
    "cumulative",
    "distribute_labor",
    "normalize_fractions",
    "round_half_up",
    "to_percent",
]
