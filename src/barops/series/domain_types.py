"""Core dataclasses for the point-of-sale and rostering records fed to the engine."""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Mapping, Optional

from barops.timing.operating_window import ensure_utc


def parse_number(value: object) -> Optional[float]:
    """Return a finite float or ``None`` for anything unusable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_instant(value: object) -> Optional[dt.datetime]:
    """Parse ISO-8601 strings, epoch seconds/milliseconds or datetimes into UTC."""
    if isinstance(value, dt.datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000.0 if value > 1e12 else float(value)
        return dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(dt.datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class PaymentRecord:
    """Completed point-of-sale payment."""

    created_at: dt.datetime
    amount_cents: int

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> Optional["PaymentRecord"]:
        created_at = parse_instant(data.get("createdAt", data.get("created_at")))
        amount = parse_number(data.get("amountCents", data.get("amount_cents")))
        if created_at is None or amount is None:
            return None
        return cls(created_at=created_at, amount_cents=int(round(amount)))


@dataclass(frozen=True)
class OpenOrderRecord:
    """Open tab or table that has not been paid yet."""

    amount_cents: int
    label: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "OpenOrderRecord":
        label = data.get("label")
        order_id = data.get("id")
        amount = parse_number(data.get("amountCents", data.get("amount_cents"))) or 0.0
        return cls(
            amount_cents=max(0, int(round(amount))),
            label=label.strip() if isinstance(label, str) and label.strip() else None,
            created_at=parse_instant(data.get("createdAt", data.get("created_at"))),
            id=str(order_id) if order_id is not None else None,
        )


@dataclass(frozen=True)
class TimesheetRecord:
    """Clock-in/clock-out interval; ``end_at`` is ``None`` while still on shift."""

    start_at: dt.datetime
    end_at: Optional[dt.datetime] = None
    employee_id: Optional[int] = None
    hourly_rate: Optional[float] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> Optional["TimesheetRecord"]:
        start_at = parse_instant(data.get("startAt", data.get("start_at")))
        if start_at is None:
            return None
        employee = parse_number(data.get("employeeId", data.get("employee_id")))
        return cls(
            start_at=start_at,
            end_at=parse_instant(data.get("endAt", data.get("end_at"))),
            employee_id=int(round(employee)) if employee is not None else None,
            hourly_rate=parse_number(data.get("hourlyRate", data.get("hourly_rate"))),
        )

    def is_open_at(self, instant: dt.datetime) -> bool:
        moment = ensure_utc(instant)
        if self.start_at > moment:
            return False
        return self.end_at is None or moment < self.end_at

    def resolve_rate(self, employee_rates: Mapping[int, float], fallback_rate: float) -> float:
        """Timesheet rate, else the employee's rate, else ``fallback_rate``."""
        if self.hourly_rate is not None:
            return self.hourly_rate
        if self.employee_id is not None:
            return employee_rates.get(self.employee_id, fallback_rate)
        return fallback_rate
