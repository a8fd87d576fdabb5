"""High-level API that turns a venue config into one live snapshot per poll.

:class:`LiveSnapshotService` picks the sample or realtime builder, keeps the
carryover cache alive across polls and returns a :class:`SnapshotRunResult`
holding the snapshot, the integration summary (realtime only) and a tidy
per-bucket pandas frame of the timeline.

Example
-------
>>> config = VenueConfig.from_yaml("venue.yaml")
>>> service = LiveSnapshotService(config, sources=RecordedSources.from_json("capture.json"))
>>> result = service.run(source="realtime")
>>> result.timeline_frame[["label", "closed_revenue_cents", "wage_percent"]].tail()
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from barops.config.venue_config import DATA_SOURCE_MODES, VenueConfig
from barops.timing.bucket_indexer import BucketIndexer
from barops.timing.operating_window import ensure_utc

from .carryover_cache import CarryoverBaselineCache
from .errors import RealtimeBuildError, RealtimeConfigError
from .open_orders import OpenTableSummary
from .realtime import IntegrationSummary, RealtimeSources, build_realtime_snapshot
from .sample import build_sample_snapshot
from .service_day import ServiceDay
from .snapshot import LiveSnapshot

logger = logging.getLogger(__name__)

TIMELINE_COLUMNS = [
    "bucket_index",
    "label",
    "bucket_start",
    "closed_revenue_cents",
    "open_bills_cents",
    "labor_cost_cents",
    "cumulative_revenue_cents",
    "cumulative_labor_cents",
    "baseline_fraction",
    "wage_percent",
    "target_wage_percent",
    "historical_wage_percent",
]


@dataclass(frozen=True)
class SnapshotRunResult:
    """Structured payload returned by :meth:`LiveSnapshotService.run`."""

    snapshot: LiveSnapshot
    integration: Optional[IntegrationSummary]
    timeline_frame: pd.DataFrame
    source: str
    open_tables: List[OpenTableSummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        payload = {"source": self.source, "snapshot": self.snapshot.to_dict()}
        if self.integration is not None:
            payload["integration"] = self.integration.to_dict()
            payload["openTables"] = [table.to_dict() for table in self.open_tables]
        return payload


class LiveSnapshotService:
    """Builds snapshots for one venue in sample or realtime mode.

    ``sources`` is required for realtime mode; the service never talks to
    vendor APIs itself.
    """

    def __init__(
        self,
        config: VenueConfig,
        *,
        sources: RealtimeSources | None = None,
        carryover_cache: CarryoverBaselineCache | None = None,
    ) -> None:
        self._config = config
        self._sources = sources
        self._carryover_cache = carryover_cache or CarryoverBaselineCache()

    @property
    def config(self) -> VenueConfig:
        return self._config

    @property
    def carryover_cache(self) -> CarryoverBaselineCache:
        return self._carryover_cache

    def run(
        self,
        reference: dt.datetime | None = None,
        *,
        source: str | None = None,
        now: dt.datetime | None = None,
    ) -> SnapshotRunResult:
        """Build the snapshot for the service day containing ``reference``.

        Parameters
        ----------
        reference:
            Instant selecting the service day; defaults to ``now``.
        source:
            ``"sample"`` or ``"realtime"``; defaults to the config's mode.
        now:
            Current instant; defaults to the wall clock.
        """
        mode = source or self._config.data_source_mode
        if mode not in DATA_SOURCE_MODES:
            raise ValueError(f"Unknown data source {mode!r}; expected one of {', '.join(DATA_SOURCE_MODES)}.")
        now = ensure_utc(now or dt.datetime.now(dt.timezone.utc))
        reference = ensure_utc(reference or now)

        integration = None
        open_tables: List[OpenTableSummary] = []
        if mode == "realtime":
            realtime = self._run_realtime(reference, now)
            snapshot, integration, open_tables = realtime.snapshot, realtime.integration, realtime.open_tables
        else:
            snapshot = build_sample_snapshot(self._config, reference, now)

        service_day = ServiceDay.resolve(self._config, reference)
        frame = build_timeline_frame(snapshot, None if service_day.is_closed else service_day.indexer)
        return SnapshotRunResult(
            snapshot=snapshot,
            integration=integration,
            timeline_frame=frame,
            source=mode,
            open_tables=open_tables,
        )

    # ----------------------------------------------------------------- helpers
    def _run_realtime(self, reference: dt.datetime, now: dt.datetime):
        if self._sources is None:
            missing = self._config.missing_realtime_settings() or ["realtimeSources"]
            error = RealtimeConfigError(missing)
            logger.error("Realtime mode unavailable (%s): missing %s", error.debug_code, ", ".join(missing))
            raise error
        try:
            result = asyncio.run(
                build_realtime_snapshot(
                    self._config,
                    reference,
                    self._sources,
                    carryover_cache=self._carryover_cache,
                    now=now,
                )
            )
        except RealtimeConfigError:
            raise
        except Exception as exc:
            error = RealtimeBuildError(f"Realtime snapshot failed: {exc}")
            logger.exception("Realtime snapshot failed (%s)", error.debug_code)
            raise error from exc
        return result


def build_timeline_frame(snapshot: LiveSnapshot, indexer: BucketIndexer | None = None) -> pd.DataFrame:
    """One row per bucket joining revenue, labour, baseline and wage figures."""
    timeline = snapshot.timeline
    rows = []
    running_revenue = 0
    running_labor = 0
    for bucket in timeline.revenue_buckets:
        index = bucket.bucket_index
        running_revenue += bucket.closed_revenue_cents
        running_labor += bucket.labor_cost_cents
        point = timeline.wage_series[index] if index < len(timeline.wage_series) else None
        rows.append(
            {
                "bucket_index": index,
                "label": bucket.label,
                "bucket_start": indexer.bucket_start(index) if indexer is not None else pd.NaT,
                "closed_revenue_cents": bucket.closed_revenue_cents,
                "open_bills_cents": bucket.open_bills_cents,
                "labor_cost_cents": bucket.labor_cost_cents,
                "cumulative_revenue_cents": running_revenue,
                "cumulative_labor_cents": running_labor,
                "baseline_fraction": (
                    timeline.baseline_fractions[index] if index < len(timeline.baseline_fractions) else float("nan")
                ),
                "wage_percent": point.current_percent if point is not None else None,
                "target_wage_percent": point.target_percent if point is not None else None,
                "historical_wage_percent": point.historical_percent if point is not None else None,
            }
        )
    return pd.DataFrame(rows, columns=TIMELINE_COLUMNS)


__all__ = ["LiveSnapshotService", "SnapshotRunResult", "build_timeline_frame"]
