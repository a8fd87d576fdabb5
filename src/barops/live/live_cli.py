"""CLI that prints one live snapshot for a venue."""

from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import re
from typing import Sequence

from rich.console import Console
from rich.table import Table

from barops.config.realtime_env import with_realtime_env
from barops.config.venue_config import VenueConfig

from .errors import RealtimeBuildError, RealtimeConfigError
from .recorded_sources import RecordedSources
from .service import LiveSnapshotService, SnapshotRunResult

logger = logging.getLogger(__name__)

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        required=False,
        default=None,
        help="Venue config YAML. Built-in defaults are used when omitted.",
    )
    parser.add_argument(
        "--source",
        choices=["sample", "realtime"],
        default=None,
        help="Data source; defaults to the config's dataSourceMode.",
    )
    parser.add_argument(
        "--records",
        required=False,
        default=None,
        help="JSON capture of payments, open orders, timesheets and employee rates for realtime mode.",
    )
    parser.add_argument(
        "--date",
        required=False,
        default=None,
        help="YYYY-MM-DD (noon UTC of that day) or an ISO-8601 instant. Defaults to now.",
    )
    parser.add_argument("--json", action="store_true", help="Print the snapshot as JSON.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def parse_reference(value: str | None) -> dt.datetime | None:
    """Resolve ``--date``; ``None`` means "use the current time"."""
    if not value:
        return None
    text = value.strip()
    if _DATE_ONLY.match(text):
        try:
            day = dt.date.fromisoformat(text)
        except ValueError:
            logger.warning("Ignoring invalid --date %r; using now", value)
            return None
        return dt.datetime(day.year, day.month, day.day, 12, 0, tzinfo=dt.timezone.utc)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError:
        logger.warning("Ignoring unparseable --date %r; using now", value)
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=dt.timezone.utc)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    console = Console()

    config = VenueConfig.from_yaml(args.config) if args.config else VenueConfig.from_mapping({})
    source = args.source or config.data_source_mode
    sources = None
    if source == "realtime":
        config, missing = with_realtime_env(config)
        if args.records:
            sources = RecordedSources.from_json(args.records)
        elif missing:
            logger.info("No --records capture and missing credentials: %s", ", ".join(missing))

    reference = parse_reference(args.date)
    service = LiveSnapshotService(config, sources=sources)
    try:
        result = service.run(reference, source=source, now=reference)
    except (RealtimeConfigError, RealtimeBuildError) as exc:
        console.print_json(json.dumps(exc.to_payload()))
        raise SystemExit(2) from exc

    if args.json:
        console.print_json(json.dumps(result.to_dict()))
        return
    render(console, config, result)


def _cents(value: int | None) -> str:
    if value is None:
        return "-"
    return f"${value / 100:,.2f}"


def _percent(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value:.1f}%"


def render(console: Console, config: VenueConfig, result: SnapshotRunResult) -> None:
    snapshot = result.snapshot
    totals = snapshot.totals

    summary = Table(title=f"{config.store_name} - {snapshot.day_key.capitalize()} ({result.source})")
    summary.add_column("Metric")
    summary.add_column("Value", justify="right")
    summary.add_row("Actual revenue", _cents(totals.actual_revenue_cents))
    summary.add_row("Open bills", _cents(totals.open_bills_cents))
    summary.add_row("Adjusted revenue", _cents(totals.adjusted_revenue_cents))
    summary.add_row("Projected revenue", _cents(totals.projected_revenue_cents))
    summary.add_row("Projected vs target", _percent(totals.projected_vs_target_percent))
    summary.add_row("Labour cost", _cents(totals.labor_cost_cents))
    summary.add_row("Wage %", _percent(totals.wage_percent))
    summary.add_row("Last week", _cents(snapshot.comparison.last_week_revenue_cents))
    summary.add_row("Rolling average", _cents(snapshot.comparison.rolling_average_revenue_cents))
    console.print(summary)

    projection = snapshot.projection
    projection_table = Table(title="Projection")
    for column in ("Baseline", "Elapsed", "Ramp weight", "Raw", "Ramped"):
        projection_table.add_column(column, justify="right")
    projection_table.add_row(
        f"{projection.baseline_fraction:.3f}",
        f"{projection.elapsed_fraction:.3f}",
        f"{projection.ramp_weight:.3f}",
        _cents(projection.raw_projected_total_cents),
        _cents(projection.ramped_projected_total_cents),
    )
    console.print(projection_table)

    weekly = snapshot.weekly
    ponr = snapshot.point_of_no_return
    week_table = Table(title="Week to date")
    week_table.add_column("Metric")
    week_table.add_column("Value", justify="right")
    week_table.add_row("Week start", weekly.week_start_iso)
    week_table.add_row("Revenue", _cents(weekly.revenue_to_date_cents))
    week_table.add_row("Wages", _cents(weekly.wages_to_date_cents))
    week_table.add_row("Wage %", _percent(weekly.wage_percent))
    week_table.add_row("PONR status", ponr.status.value)
    week_table.add_row("PONR threshold", _percent(ponr.target_wage_percent))
    week_table.add_row("PONR time", ponr.point_time_iso or "-")
    week_table.add_row(
        "Minutes from now", str(ponr.minutes_from_now) if ponr.minutes_from_now is not None else "-"
    )
    console.print(week_table)

    if result.integration is not None:
        integration_table = Table(title="Integrations")
        integration_table.add_column("Source")
        integration_table.add_column("Status")
        for name, status in result.integration.status.items():
            integration_table.add_row(name, status)
        console.print(integration_table)

    if result.open_tables:
        tables = Table(title="Open tables")
        tables.add_column("Label")
        tables.add_column("Orders", justify="right")
        tables.add_column("Total", justify="right")
        for table in result.open_tables:
            tables.add_row(table.label, str(table.count), _cents(table.total_cents))
        console.print(tables)


if __name__ == "__main__":
    main()
