"""Open tabs: label-based exclusion, reporting-window filter and per-label summary."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from barops.series.domain_types import OpenOrderRecord
from barops.timing.operating_window import ensure_utc


def normalize_label(value: str) -> str:
    return value.strip().lower()


def normalize_excluded_labels(labels: Iterable[str]) -> List[str]:
    """Trimmed, lower-cased, de-duplicated labels in first-seen order."""
    seen: Dict[str, None] = {}
    for label in labels:
        normalized = normalize_label(label)
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def matches_any_excluded_label(label: Optional[str], excluded_labels: Sequence[str]) -> bool:
    """True when the normalised ``label`` contains any of ``excluded_labels``."""
    if not label:
        return False
    normalized = normalize_label(label)
    if not normalized:
        return False
    return any(excluded in normalized for excluded in excluded_labels)


def is_in_reporting_window(order: OpenOrderRecord, window_start: dt.datetime) -> bool:
    if order.created_at is None:
        return True
    return order.created_at >= ensure_utc(window_start)


@dataclass(frozen=True)
class OpenOrderPartition:
    included: List[OpenOrderRecord] = field(default_factory=list)
    excluded: List[OpenOrderRecord] = field(default_factory=list)
    outside_window: List[OpenOrderRecord] = field(default_factory=list)

    @property
    def included_cents(self) -> int:
        return sum(max(0, order.amount_cents) for order in self.included)

    @property
    def excluded_cents(self) -> int:
        return sum(max(0, order.amount_cents) for order in self.excluded)


def partition_open_orders(
    orders: Iterable[OpenOrderRecord],
    excluded_labels: Sequence[str],
    window_start: dt.datetime,
) -> OpenOrderPartition:
    """Split orders into excluded, included and stale (opened before tonight's window)."""
    partition = OpenOrderPartition()
    for order in orders:
        if matches_any_excluded_label(order.label, excluded_labels):
            partition.excluded.append(order)
        elif is_in_reporting_window(order, window_start):
            partition.included.append(order)
        else:
            partition.outside_window.append(order)
    return partition


@dataclass(frozen=True)
class OpenTableSummary:
    label: str
    count: int
    total_cents: int

    def to_dict(self) -> dict:
        return {"label": self.label, "count": self.count, "totalCents": self.total_cents}


UNLABELLED = "(unlabelled)"


def summarize_open_tables(orders: Iterable[OpenOrderRecord]) -> List[OpenTableSummary]:
    """Count and total of open orders per normalised label, sorted by label."""
    counts: Dict[str, int] = {}
    totals: Dict[str, int] = {}
    for order in orders:
        label = normalize_label(order.label) if order.label else ""
        key = label or UNLABELLED
        counts[key] = counts.get(key, 0) + 1
        totals[key] = totals.get(key, 0) + max(0, order.amount_cents)
    return [OpenTableSummary(label, counts[label], totals[label]) for label in sorted(counts)]


__all__ = [
    "OpenOrderPartition",
    "OpenTableSummary",
    "is_in_reporting_window",
    "matches_any_excluded_label",
    "normalize_excluded_labels",
    "normalize_label",
    "partition_open_orders",
    "summarize_open_tables",
]
