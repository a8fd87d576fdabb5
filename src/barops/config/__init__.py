"""
Venue configuration loading and sanitisation.
"""

from .realtime_env import with_realtime_env
from .venue_config import DailyTarget, DeputyAccess, SquareAccess, VenueConfig

__all__ = [
    "DailyTarget",
    "DeputyAccess",
    "SquareAccess",
    "VenueConfig",
    "with_realtime_env",
]
