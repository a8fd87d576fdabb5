"""Week-to-date aggregates and the last open day of the configured week."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from barops.series.projection import to_percent
from barops.timing.clock import DAY_KEYS


@dataclass(frozen=True)
class WeeklySnapshot:
    """Revenue and wages since the start of the business week, through now.

    Either total is ``None`` when the upstream fetch behind it failed.
    """

    week_start_iso: str
    revenue_to_date_cents: Optional[int]
    wages_to_date_cents: Optional[int]

    @property
    def is_complete(self) -> bool:
        return self.revenue_to_date_cents is not None and self.wages_to_date_cents is not None

    @property
    def wage_percent(self) -> Optional[float]:
        if not self.is_complete:
            return None
        return to_percent(self.wages_to_date_cents, self.revenue_to_date_cents)

    def to_dict(self) -> dict:
        return {
            "weekStartIso": self.week_start_iso,
            "revenueToDateCents": self.revenue_to_date_cents,
            "wagesToDateCents": self.wages_to_date_cents,
            "wagePercent": self.wage_percent,
        }


def last_open_day_key(config) -> Optional[str]:
    """Last weekday (Monday..Sunday order) whose hours are not marked closed."""
    for day_key in reversed(DAY_KEYS):
        if not config.operating_hours_for(day_key).is_closed:
            return day_key
    return None


__all__ = ["WeeklySnapshot", "last_open_day_key"]
