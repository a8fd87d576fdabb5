"""
Clock, business-day and operating-window resolution for BarOps Live.
"""

from .bucket_indexer import BucketIndexer
from .clock import (
    DAY_KEYS,
    DEFAULT_BUCKET_MINUTES,
    parse_clock_to_minutes,
)
from .operating_window import (
    BUSINESS_DAY_START_HOUR,
    OperatingHours,
    OperatingWindow,
    build_operating_window,
    business_date,
    to_business_day_reference,
    zoned_clock_to_utc,
    zoned_day_key,
)

__all__ = [
    "BUSINESS_DAY_START_HOUR",
    "BucketIndexer",
    "DAY_KEYS",
    "DEFAULT_BUCKET_MINUTES",
    "OperatingHours",
    "OperatingWindow",
    "build_operating_window",
    "business_date",
    "parse_clock_to_minutes",
    "to_business_day_reference",
    "zoned_clock_to_utc",
    "zoned_day_key",
]
