"""File-backed realtime source that replays a JSON capture.

Capture layout::

    {
      "payments": [{"createdAt": "...Z", "amountCents": 1250}, ...],
      "openOrders": [{"label": "Table 4", "createdAt": "...Z", "amountCents": 4300}, ...],
      "timesheets": [{"startAt": "...Z", "endAt": null, "employeeId": 7}, ...],
      "employeeRates": {"7": 31.5},
      "unavailable": ["openOrders"]
    }

Names listed under ``unavailable`` (``payments``, ``openOrders``,
``timesheets``, ``employeeRates``) raise :class:`ConnectionError` when
fetched, which reproduces an upstream outage.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from barops.series.domain_types import OpenOrderRecord, PaymentRecord, TimesheetRecord, parse_number
from barops.timing.operating_window import ensure_utc

logger = logging.getLogger(__name__)


class RecordedSources:
    def __init__(
        self,
        payments: Iterable[PaymentRecord] = (),
        open_orders: Iterable[OpenOrderRecord] = (),
        timesheets: Iterable[TimesheetRecord] = (),
        employee_rates: Optional[Mapping[int, float]] = None,
        unavailable: Iterable[str] = (),
    ):
        self.payments: List[PaymentRecord] = list(payments)
        self.open_orders: List[OpenOrderRecord] = list(open_orders)
        self.timesheets: List[TimesheetRecord] = list(timesheets)
        self.employee_rates: Dict[int, float] = dict(employee_rates or {})
        self.unavailable = set(unavailable)

    # ------------------------------------------------------------------ loading --
    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "RecordedSources":
        payments = [PaymentRecord.from_mapping(row) for row in data.get("payments", []) or []]
        timesheets = [TimesheetRecord.from_mapping(row) for row in data.get("timesheets", []) or []]
        open_orders = [OpenOrderRecord.from_mapping(row) for row in data.get("openOrders", []) or []]
        rates: Dict[int, float] = {}
        for key, value in (data.get("employeeRates", {}) or {}).items():
            employee_id = parse_number(key)
            rate = parse_number(value)
            if employee_id is not None and rate is not None and rate > 0:
                rates[int(employee_id)] = rate
        sources = cls(
            payments=[row for row in payments if row is not None],
            open_orders=open_orders,
            timesheets=[row for row in timesheets if row is not None],
            employee_rates=rates,
            unavailable=data.get("unavailable", []) or [],
        )
        skipped = (len(payments) - len(sources.payments)) + (len(timesheets) - len(sources.timesheets))
        if skipped:
            logger.warning("Skipped %d malformed records in capture", skipped)
        return sources

    @classmethod
    def from_json(cls, path: str | Path) -> "RecordedSources":
        capture_path = Path(path)
        if not capture_path.exists():
            raise FileNotFoundError(f"Recorded capture not found at {capture_path}")
        with capture_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, Mapping):
            raise TypeError("Recorded capture must contain a JSON object at the top level")
        sources = cls.from_mapping(data)
        logger.info(
            "Loaded capture %s: %d payments, %d open orders, %d timesheets",
            capture_path,
            len(sources.payments),
            len(sources.open_orders),
            len(sources.timesheets),
        )
        return sources

    # ---------------------------------------------------------------- fetching --
    def _check(self, name: str) -> None:
        if name in self.unavailable:
            raise ConnectionError(f"{name} unavailable in capture")

    async def fetch_payments(self, start: dt.datetime, end: dt.datetime) -> List[PaymentRecord]:
        self._check("payments")
        lower, upper = ensure_utc(start), ensure_utc(end)
        return [payment for payment in self.payments if lower <= payment.created_at < upper]

    async def fetch_open_orders(self) -> List[OpenOrderRecord]:
        self._check("openOrders")
        return list(self.open_orders)

    async def fetch_timesheets(self, start: dt.datetime, end: dt.datetime) -> List[TimesheetRecord]:
        self._check("timesheets")
        lower, upper = ensure_utc(start), ensure_utc(end)
        return [
            sheet
            for sheet in self.timesheets
            if sheet.start_at < upper and (sheet.end_at is None or sheet.end_at > lower)
        ]

    async def fetch_employee_rates(self) -> Dict[int, float]:
        self._check("employeeRates")
        return dict(self.employee_rates)


__all__ = ["RecordedSources"]
