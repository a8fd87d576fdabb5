"""Resolve a reference instant to the venue's service day and its bucket grid."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass

from barops.config.venue_config import DailyTarget, VenueConfig
from barops.ponr.weekly import last_open_day_key
from barops.timing.bucket_indexer import BucketIndexer
from barops.timing.clock import DAY_KEYS, parse_clock_to_minutes
from barops.timing.operating_window import (
    OperatingHours,
    OperatingWindow,
    build_operating_window,
    business_date,
    business_week_start,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceDay:
    day_key: str
    local_date: dt.date
    hours: OperatingHours
    target: DailyTarget
    window: OperatingWindow
    indexer: BucketIndexer
    week_start: dt.datetime
    last_open_day_key: str | None

    @property
    def is_closed(self) -> bool:
        return self.hours.is_closed

    @property
    def day_index(self) -> int:
        return DAY_KEYS.index(self.day_key)

    @classmethod
    def resolve(cls, config: VenueConfig, reference: dt.datetime) -> "ServiceDay":
        start_hour = config.business_day_start_hour
        day = business_date(reference, config.timezone, start_hour)
        day_key = DAY_KEYS[day.weekday()]
        hours = config.operating_hours_for(day_key)
        window = build_operating_window(day, hours, config.timezone)
        indexer = BucketIndexer.for_window(
            window, opening_minute_of_day=parse_clock_to_minutes(hours.opening_time)
        )
        logger.debug(
            "Service day %s (%s): window %s -> %s, %d buckets",
            day.isoformat(),
            day_key,
            window.start.isoformat(),
            window.end.isoformat(),
            indexer.num_buckets,
        )
        return cls(
            day_key=day_key,
            local_date=day,
            hours=hours,
            target=config.target_for(day_key),
            window=window,
            indexer=indexer,
            week_start=business_week_start(day, config.timezone, start_hour),
            last_open_day_key=last_open_day_key(config),
        )

    def comparable_window(self, config: VenueConfig, weeks_back: int) -> OperatingWindow:
        """Same weekday's window ``weeks_back`` weeks earlier, resolved in local time."""
        day = self.local_date - dt.timedelta(days=7 * weeks_back)
        return build_operating_window(day, self.hours, config.timezone)


__all__ = ["ServiceDay"]
