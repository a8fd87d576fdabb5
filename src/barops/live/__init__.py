"""
Snapshot assembly for BarOps Live: sample and realtime builders plus the orchestration service.
"""

from .carryover_cache import CarryoverBaselineCache
from .errors import RealtimeBuildError, RealtimeConfigError
from .realtime import IntegrationSummary, RealtimeSources, build_realtime_snapshot
from .recorded_sources import RecordedSources
from .sample import build_history_snapshot, build_sample_snapshot
from .service import LiveSnapshotService, SnapshotRunResult
from .settled import Settled, gather_settled, settled
from .snapshot import LiveSnapshot

__all__ = [
    "CarryoverBaselineCache",
    "IntegrationSummary",
    "LiveSnapshot",
    "LiveSnapshotService",
    "RealtimeBuildError",
    "RealtimeConfigError",
    "RealtimeSources",
    "RecordedSources",
    "Settled",
    "SnapshotRunResult",
    "build_history_snapshot",
    "build_realtime_snapshot",
    "build_sample_snapshot",
    "gather_settled",
    "settled",
]
