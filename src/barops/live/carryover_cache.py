"""Remember how much excluded open-order value was already open at first poll."""

from __future__ import annotations

import datetime as dt
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 200

CacheKey = Tuple[str, str, Tuple[str, ...]]


@dataclass(frozen=True)
class CarryoverEntry:
    baseline_cents: int
    captured_at: dt.datetime


class CarryoverBaselineCache:
    """Bounded map of service day -> excluded open-order baseline.

    The first value written for a key is kept for the rest of the service
    day; when the cache is full the oldest entry is evicted before a new one
    is inserted, so it never holds more than ``capacity`` entries.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive.")
        self.capacity = int(capacity)
        self._entries: "OrderedDict[CacheKey, CarryoverEntry]" = OrderedDict()

    @staticmethod
    def make_key(location_id: str, window_start: dt.datetime, excluded_labels: Iterable[str]) -> CacheKey:
        return (location_id, window_start.isoformat(), tuple(sorted(excluded_labels)))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> Optional[CarryoverEntry]:
        return self._entries.get(key)

    def baseline_for(
        self,
        location_id: str,
        window_start: dt.datetime,
        excluded_labels: Iterable[str],
        current_excluded_cents: int,
        now: Optional[dt.datetime] = None,
    ) -> int:
        """Stored baseline for the service day, capturing ``current_excluded_cents`` on first sight."""
        labels = list(excluded_labels)
        if not labels:
            return 0
        key = self.make_key(location_id, window_start, labels)
        existing = self._entries.get(key)
        if existing is not None:
            return existing.baseline_cents

        while len(self._entries) >= self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted carryover baseline for %s", evicted)

        baseline = max(0, int(current_excluded_cents))
        self._entries[key] = CarryoverEntry(
            baseline_cents=baseline,
            captured_at=now or dt.datetime.now(dt.timezone.utc),
        )
        logger.debug("Captured carryover baseline %d cents for %s", baseline, key)
        return baseline

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["CarryoverBaselineCache", "CarryoverEntry", "DEFAULT_CAPACITY"]
