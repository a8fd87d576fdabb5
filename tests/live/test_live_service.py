from __future__ import annotations

import datetime as dt

import pandas as pd
import pytest

from barops.config.venue_config import VenueConfig
from barops.live.errors import RealtimeBuildError, RealtimeConfigError
from barops.live.recorded_sources import RecordedSources
from barops.live.service import TIMELINE_COLUMNS, LiveSnapshotService, build_timeline_frame
from barops.series.domain_types import OpenOrderRecord, PaymentRecord

UTC = dt.timezone.utc
FRIDAY_EVENING = dt.datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


class _StubSources:
    """Upstream that hands back a malformed payment row."""

    async def fetch_payments(self, start, end):
        return [None]

    async def fetch_open_orders(self):
        return []

    async def fetch_timesheets(self, start, end):
        return []

    async def fetch_employee_rates(self):
        return {}


def test_sample_run_builds_timeline_frame():
    service = LiveSnapshotService(VenueConfig.from_mapping({}))
    result = service.run(FRIDAY_EVENING, now=FRIDAY_EVENING)

    assert result.source == "sample"
    assert result.integration is None
    frame = result.timeline_frame
    assert isinstance(frame, pd.DataFrame)
    assert list(frame.columns) == TIMELINE_COLUMNS
    assert len(frame) == len(result.snapshot.timeline.revenue_buckets) == 48
    assert frame["bucket_start"].iloc[0] == dt.datetime(2024, 3, 15, 4, 30, tzinfo=UTC)
    assert frame["cumulative_revenue_cents"].iloc[-1] == result.snapshot.totals.actual_revenue_cents
    assert "integration" not in result.to_dict()
    assert "openTables" not in result.to_dict()


def test_realtime_run_uses_injected_sources():
    config = VenueConfig.from_mapping({"timezone": "UTC", "dailyOperatingHours": {}})
    sources = RecordedSources(
        payments=[PaymentRecord(dt.datetime(2024, 3, 15, 16, 5, tzinfo=UTC), 1500)],
    )
    service = LiveSnapshotService(config, sources=sources)
    now = dt.datetime(2024, 3, 15, 17, 0, tzinfo=UTC)
    result = service.run(now, source="realtime", now=now)

    assert result.source == "realtime"
    assert result.snapshot.totals.actual_revenue_cents == 1500
    assert result.to_dict()["integration"]["status"]["squarePayments"] == "fulfilled"
    assert result.timeline_frame["closed_revenue_cents"].sum() == 1500
    assert result.open_tables == []
    assert result.to_dict()["openTables"] == []


def test_realtime_run_carries_open_tables():
    config = VenueConfig.from_mapping({"timezone": "UTC", "dailyOperatingHours": {}})
    sources = RecordedSources(
        open_orders=[OpenOrderRecord(500, "Table 4"), OpenOrderRecord(250, " table 4 "), OpenOrderRecord(300, None)],
    )
    now = dt.datetime(2024, 3, 15, 17, 0, tzinfo=UTC)
    result = LiveSnapshotService(config, sources=sources).run(now, source="realtime", now=now)

    assert result.to_dict()["openTables"] == [
        {"label": "(unlabelled)", "count": 1, "totalCents": 300},
        {"label": "table 4", "count": 2, "totalCents": 750},
    ]


def test_realtime_without_sources_reports_missing_settings():
    service = LiveSnapshotService(VenueConfig.from_mapping({}))
    with pytest.raises(RealtimeConfigError) as excinfo:
        service.run(FRIDAY_EVENING, source="realtime")
    assert "square.accessToken" in excinfo.value.missing
    assert excinfo.value.debug_code.startswith("CFG-")


def test_realtime_without_sources_but_full_credentials():
    config = VenueConfig.from_mapping(
        {
            "square": {"accessToken": "tok", "locationId": "L1"},
            "deputy": {"accessToken": "dep", "baseUrl": "https://acme.au.deputy.com"},
        }
    )
    with pytest.raises(RealtimeConfigError) as excinfo:
        LiveSnapshotService(config).run(FRIDAY_EVENING, source="realtime")
    assert excinfo.value.missing == ["realtimeSources"]


def test_unexpected_failures_are_wrapped():
    config = VenueConfig.from_mapping({"timezone": "UTC", "dailyOperatingHours": {}})
    service = LiveSnapshotService(config, sources=_StubSources())
    now = dt.datetime(2024, 3, 15, 17, 0, tzinfo=UTC)
    with pytest.raises(RealtimeBuildError) as excinfo:
        service.run(now, source="realtime", now=now)
    assert excinfo.value.debug_code.startswith("RTL-")
    assert isinstance(excinfo.value.__cause__, AttributeError)


def test_unknown_source_is_rejected():
    with pytest.raises(ValueError):
        LiveSnapshotService(VenueConfig.from_mapping({})).run(FRIDAY_EVENING, source="warehouse")


def test_closed_day_frame_has_single_row():
    config = VenueConfig.from_mapping({"dailyOperatingHours": {"friday": {"isClosed": True}}})
    result = LiveSnapshotService(config).run(FRIDAY_EVENING, now=FRIDAY_EVENING)
    frame = build_timeline_frame(result.snapshot)
    assert len(frame) == 1
    assert frame["label"].iloc[0] == "Closed"
    assert pd.isna(frame["bucket_start"].iloc[0])
