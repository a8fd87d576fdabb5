"""
Weekly wage-percent point-of-no-return solver.
"""

from .solver import (
    PointOfNoReturnSnapshot,
    PonrInputs,
    PonrSample,
    PonrStatus,
    find_threshold_crossing,
    solve_point_of_no_return,
)
from .weekly import WeeklySnapshot, last_open_day_key

__all__ = [
    "PointOfNoReturnSnapshot",
    "PonrInputs",
    "PonrSample",
    "PonrStatus",
    "WeeklySnapshot",
    "find_threshold_crossing",
    "last_open_day_key",
    "solve_point_of_no_return",
]
