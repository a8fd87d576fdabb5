"""Fixed-size time buckets spanning one operating window."""

from __future__ import annotations

import datetime as dt
import math
from typing import List

from .clock import DEFAULT_BUCKET_MINUTES, format_clock
from .operating_window import OperatingWindow, ensure_utc


class BucketIndexer:
    """Maps instants inside an operating window to compact bucket indices."""

    def __init__(
        self,
        window_start: dt.datetime,
        window_end: dt.datetime,
        bucket_minutes: int = DEFAULT_BUCKET_MINUTES,
        opening_minute_of_day: int | None = None,
    ):
        if bucket_minutes <= 0:
            raise ValueError("bucket_minutes must be positive.")
        if 1440 % bucket_minutes != 0:
            raise ValueError("bucket_minutes must divide 1440.")
        self.window_start = ensure_utc(window_start)
        self.window_end = ensure_utc(window_end)
        if self.window_end < self.window_start:
            raise ValueError("window_end must not precede window_start.")
        self.bucket_minutes = int(bucket_minutes)
        window_minutes = (self.window_end - self.window_start).total_seconds() / 60.0
        self._num_buckets = max(1, math.ceil(window_minutes / self.bucket_minutes))
        self._opening_minute = opening_minute_of_day

    @classmethod
    def for_window(
        cls,
        window: OperatingWindow,
        bucket_minutes: int = DEFAULT_BUCKET_MINUTES,
        opening_minute_of_day: int | None = None,
    ) -> "BucketIndexer":
        return cls(window.start, window.end, bucket_minutes, opening_minute_of_day)

    # ---------------------------------------------------------------- properties
    @property
    def num_buckets(self) -> int:
        return self._num_buckets

    @property
    def bucket_delta(self) -> dt.timedelta:
        return dt.timedelta(minutes=self.bucket_minutes)

    @property
    def window_minutes(self) -> float:
        return (self.window_end - self.window_start).total_seconds() / 60.0

    @property
    def labels(self) -> List[str]:
        """``HH:MM`` label of each bucket start (local opening clock when known)."""
        if self._opening_minute is None:
            base = self.window_start.hour * 60 + self.window_start.minute
        else:
            base = self._opening_minute
        return [
            format_clock(base + index * self.bucket_minutes) for index in range(self._num_buckets)
        ]

    # ----------------------------------------------------------------- indexing
    def bucket_of_datetime(self, instant: dt.datetime) -> int | None:
        """Index of the bucket holding ``instant`` or ``None`` outside the window."""
        value = ensure_utc(instant)
        if value < self.window_start:
            return None
        index = int((value - self.window_start) // self.bucket_delta)
        if index >= self._num_buckets:
            return None
        return index

    def bucket_start(self, index: int) -> dt.datetime:
        return self.window_start + index * self.bucket_delta

    def bucket_end(self, index: int) -> dt.datetime:
        return min(self.window_start + (index + 1) * self.bucket_delta, self.window_end)

    def boundaries(self) -> List[dt.datetime]:
        """End instant of every bucket, the last one clamped to the window end."""
        return [self.bucket_end(index) for index in range(self._num_buckets)]

    # ------------------------------------------------------------------- timing
    def effective_now(self, now: dt.datetime) -> dt.datetime:
        value = ensure_utc(now)
        return min(max(value, self.window_start), self.window_end)

    def elapsed_minutes(self, now: dt.datetime) -> float:
        return (self.effective_now(now) - self.window_start).total_seconds() / 60.0

    def elapsed_fraction(self, now: dt.datetime) -> float:
        window = max(1.0, self.window_minutes)
        return min(max(self.elapsed_minutes(now) / window, 0.0), 1.0)

    def completed_bucket_count(self, now: dt.datetime) -> int:
        count = math.ceil(self.elapsed_minutes(now) / self.bucket_minutes)
        return min(max(count, 0), self._num_buckets)
