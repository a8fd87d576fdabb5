"""Venue configuration: operating hours, nightly targets and integration settings.

Configuration is user-editable, so every value is sanitised rather than
rejected: out-of-range numbers are clamped, malformed clocks fall back to the
defaults and unknown enum values collapse to their safe choice. Only a
structurally wrong document (a YAML file whose top level is not a mapping)
raises.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Mapping, Optional
from urllib.parse import urlsplit

import yaml

from barops.timing.clock import DAY_KEYS
from barops.timing.operating_window import BUSINESS_DAY_START_HOUR, OperatingHours

logger = logging.getLogger(__name__)

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

DATA_SOURCE_MODES = ("sample", "realtime")
SQUARE_ENVIRONMENTS = ("production", "sandbox")


@dataclass(frozen=True)
class DailyTarget:
    revenue_target_cents: int
    wage_target_percent: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "revenueTargetCents": self.revenue_target_cents,
            "wageTargetPercent": self.wage_target_percent,
        }


@dataclass(frozen=True)
class SquareAccess:
    environment: str = "production"
    access_token: str = ""
    location_id: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "environment": self.environment,
            "accessToken": self.access_token,
            "locationId": self.location_id,
        }


@dataclass(frozen=True)
class DeputyAccess:
    access_token: str = ""
    base_url: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {"accessToken": self.access_token, "baseUrl": self.base_url}


DEFAULT_DAILY_TARGETS: Dict[str, DailyTarget] = {
    "monday": DailyTarget(120000, 28.0),
    "tuesday": DailyTarget(125000, 28.0),
    "wednesday": DailyTarget(135000, 27.0),
    "thursday": DailyTarget(160000, 26.0),
    "friday": DailyTarget(235000, 24.0),
    "saturday": DailyTarget(255000, 24.0),
    "sunday": DailyTarget(170000, 26.0),
}

DEFAULT_OPERATING_HOURS: Dict[str, OperatingHours] = {
    "monday": OperatingHours("16:00", "01:00"),
    "tuesday": OperatingHours("16:00", "01:00"),
    "wednesday": OperatingHours("16:00", "01:00"),
    "thursday": OperatingHours("16:00", "02:00"),
    "friday": OperatingHours("15:00", "03:00"),
    "saturday": OperatingHours("15:00", "03:00"),
    "sunday": OperatingHours("15:00", "00:00"),
}

DEFAULT_STORE_NAME = "BarOps Adelaide"
DEFAULT_TIMEZONE = "Australia/Adelaide"
DEFAULT_OPENING_TIME = "16:00"
DEFAULT_CLOSING_TIME = "02:00"
DEFAULT_WEEKLY_PONR_WAGE_PERCENT = 30.0


# ---------------------------------------------------------------------- helpers
def _pick(data: Mapping[str, object], *keys: str) -> object:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _clamp_number(value: object, low: float, high: float, fallback: float) -> float:
    if isinstance(value, bool):
        number = fallback
    else:
        try:
            number = float(value) if value is not None else fallback
        except (TypeError, ValueError):
            number = fallback
    if not math.isfinite(number):
        number = fallback
    return min(max(number, low), high)


def _sanitize_text(value: object, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def sanitize_clock(value: object, fallback: str) -> str:
    """Normalise ``H:MM``/``HH:MM`` to ``HH:MM``; anything else returns ``fallback``."""
    # YAML 1.1 loads unquoted 16:00 as the base-60 integer 960.
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < 24 * 60:
        return f"{value // 60:02d}:{value % 60:02d}"
    if not isinstance(value, str):
        return fallback
    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        return fallback
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours > 23 or minutes > 59:
        return fallback
    return f"{hours:02d}:{minutes:02d}"


def sanitize_origin(value: object) -> str:
    """Reduce a URL to ``scheme://host[:port]``; invalid input gives ``""``."""
    if not isinstance(value, str) or not value.strip():
        return ""
    parts = urlsplit(value.strip())
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


def _sanitize_target(value: object, fallback: DailyTarget) -> DailyTarget:
    source = value if isinstance(value, Mapping) else {}
    revenue = _pick(source, "revenueTargetCents", "revenue_target_cents")
    wage = _pick(source, "wageTargetPercent", "wage_target_percent")
    return DailyTarget(
        revenue_target_cents=int(
            round(_clamp_number(revenue, 0, 5_000_000, fallback.revenue_target_cents))
        ),
        wage_target_percent=_clamp_number(wage, 0, 100, fallback.wage_target_percent),
    )


def _sanitize_hours(value: object, fallback: OperatingHours) -> OperatingHours:
    source = value if isinstance(value, Mapping) else {}
    is_closed = _pick(source, "isClosed", "is_closed")
    return OperatingHours(
        opening_time=sanitize_clock(
            _pick(source, "openingTime", "opening_time"), fallback.opening_time
        ),
        closing_time=sanitize_clock(
            _pick(source, "closingTime", "closing_time"), fallback.closing_time
        ),
        is_closed=is_closed if isinstance(is_closed, bool) else fallback.is_closed,
    )


def _sanitize_square(value: object) -> SquareAccess:
    source = value if isinstance(value, Mapping) else {}
    environment = _pick(source, "environment")
    token = _pick(source, "accessToken", "access_token")
    location = _pick(source, "locationId", "location_id")
    return SquareAccess(
        environment="sandbox" if environment == "sandbox" else "production",
        access_token=token.strip() if isinstance(token, str) else "",
        location_id=location.strip() if isinstance(location, str) else "",
    )


def _sanitize_deputy(value: object) -> DeputyAccess:
    source = value if isinstance(value, Mapping) else {}
    token = _pick(source, "accessToken", "access_token")
    return DeputyAccess(
        access_token=token.strip() if isinstance(token, str) else "",
        base_url=sanitize_origin(_pick(source, "baseUrl", "base_url")),
    )


def _sanitize_labels(value: object) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    labels = []
    for entry in value:
        if isinstance(entry, str) and entry.strip():
            labels.append(entry.strip())
    return labels


# ----------------------------------------------------------------------- config
@dataclass(frozen=True)
class VenueConfig:
    """Everything the engine needs to know about one venue."""

    store_name: str = DEFAULT_STORE_NAME
    timezone: str = DEFAULT_TIMEZONE
    opening_time: str = DEFAULT_OPENING_TIME
    closing_time: str = DEFAULT_CLOSING_TIME
    daily_operating_hours: Dict[str, OperatingHours] = field(
        default_factory=lambda: dict(DEFAULT_OPERATING_HOURS)
    )
    daily_targets: Dict[str, DailyTarget] = field(
        default_factory=lambda: dict(DEFAULT_DAILY_TARGETS)
    )
    average_bill_length_minutes: int = 55
    average_hourly_rate: float = 32.0
    refresh_interval_seconds: int = 60
    data_source_mode: str = "sample"
    square: SquareAccess = field(default_factory=SquareAccess)
    deputy: DeputyAccess = field(default_factory=DeputyAccess)
    excluded_open_order_labels: List[str] = field(default_factory=list)
    weekly_ponr_wage_percent: float = DEFAULT_WEEKLY_PONR_WAGE_PERCENT
    business_day_start_hour: int = BUSINESS_DAY_START_HOUR

    # --------------------------------------------------------------------- I/O --
    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "VenueConfig":
        """Build a sanitised config from a (possibly partial) mapping.

        Keys may use either camelCase or snake_case. When a
        ``dailyOperatingHours`` block is present, days missing from it inherit
        the legacy ``openingTime``/``closingTime`` pair; otherwise the
        built-in defaults apply.
        """
        source = data or {}
        if not isinstance(source, Mapping):
            raise TypeError("Venue config expects a mapping at the top level")

        legacy_opening = sanitize_clock(
            _pick(source, "openingTime", "opening_time"), DEFAULT_OPENING_TIME
        )
        legacy_closing = sanitize_clock(
            _pick(source, "closingTime", "closing_time"), DEFAULT_CLOSING_TIME
        )
        legacy_hours = OperatingHours(legacy_opening, legacy_closing, False)

        hours_block = _pick(source, "dailyOperatingHours", "daily_operating_hours")
        targets_block = _pick(source, "dailyTargets", "daily_targets")
        hours_source = hours_block if isinstance(hours_block, Mapping) else None
        targets_source = targets_block if isinstance(targets_block, Mapping) else {}

        operating_hours: Dict[str, OperatingHours] = {}
        targets: Dict[str, DailyTarget] = {}
        for day_key in DAY_KEYS:
            fallback_hours = legacy_hours if hours_source is not None else DEFAULT_OPERATING_HOURS[day_key]
            operating_hours[day_key] = _sanitize_hours(
                (hours_source or {}).get(day_key), fallback_hours
            )
            targets[day_key] = _sanitize_target(
                targets_source.get(day_key), DEFAULT_DAILY_TARGETS[day_key]
            )

        mode = _pick(source, "dataSourceMode", "data_source_mode")
        return cls(
            store_name=_sanitize_text(_pick(source, "storeName", "store_name"), DEFAULT_STORE_NAME),
            timezone=_sanitize_text(_pick(source, "timezone"), DEFAULT_TIMEZONE),
            opening_time=legacy_opening,
            closing_time=legacy_closing,
            daily_operating_hours=operating_hours,
            daily_targets=targets,
            average_bill_length_minutes=int(
                round(
                    _clamp_number(
                        _pick(source, "averageBillLengthMinutes", "average_bill_length_minutes"),
                        1,
                        240,
                        55,
                    )
                )
            ),
            average_hourly_rate=_clamp_number(
                _pick(source, "averageHourlyRate", "average_hourly_rate"), 5, 200, 32.0
            ),
            refresh_interval_seconds=int(
                round(
                    _clamp_number(
                        _pick(source, "refreshIntervalSeconds", "refresh_interval_seconds"),
                        15,
                        900,
                        60,
                    )
                )
            ),
            data_source_mode="realtime" if mode == "realtime" else "sample",
            square=_sanitize_square(_pick(source, "square")),
            deputy=_sanitize_deputy(_pick(source, "deputy")),
            excluded_open_order_labels=_sanitize_labels(
                _pick(source, "excludedOpenOrderLabels", "excluded_open_order_labels")
            ),
            weekly_ponr_wage_percent=_clamp_number(
                _pick(
                    source,
                    "weeklyPointOfNoReturnWagePercent",
                    "weekly_ponr_wage_percent",
                ),
                0,
                100,
                DEFAULT_WEEKLY_PONR_WAGE_PERCENT,
            ),
            business_day_start_hour=int(
                round(
                    _clamp_number(
                        _pick(source, "businessDayStartHour", "business_day_start_hour"),
                        0,
                        12,
                        BUSINESS_DAY_START_HOUR,
                    )
                )
            ),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "VenueConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Venue config YAML not found at {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, Mapping):
            raise TypeError("Venue config YAML must contain a mapping at the top level")
        config = cls.from_mapping(data)
        logger.info("Loaded venue config for %s (%s) from %s", config.store_name, config.timezone, config_path)
        return config

    def to_dict(self) -> Dict[str, object]:
        return {
            "storeName": self.store_name,
            "timezone": self.timezone,
            "openingTime": self.opening_time,
            "closingTime": self.closing_time,
            "dailyOperatingHours": {
                day: hours.to_dict() for day, hours in self.daily_operating_hours.items()
            },
            "dailyTargets": {day: target.to_dict() for day, target in self.daily_targets.items()},
            "averageBillLengthMinutes": self.average_bill_length_minutes,
            "averageHourlyRate": self.average_hourly_rate,
            "refreshIntervalSeconds": self.refresh_interval_seconds,
            "dataSourceMode": self.data_source_mode,
            "square": self.square.to_dict(),
            "deputy": self.deputy.to_dict(),
            "excludedOpenOrderLabels": list(self.excluded_open_order_labels),
            "weeklyPointOfNoReturnWagePercent": self.weekly_ponr_wage_percent,
            "businessDayStartHour": self.business_day_start_hour,
        }

    def to_yaml(self, path: str | Path) -> None:
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(self.to_dict(), handle, sort_keys=True)

    # ---------------------------------------------------------------- accessors --
    def operating_hours_for(self, day_key: str) -> OperatingHours:
        fallback = OperatingHours(self.opening_time, self.closing_time, False)
        return self.daily_operating_hours.get(day_key, fallback)

    def target_for(self, day_key: str) -> DailyTarget:
        return self.daily_targets.get(day_key, DEFAULT_DAILY_TARGETS.get(day_key, DailyTarget(0, 0.0)))

    def with_integrations(
        self,
        *,
        square: SquareAccess | None = None,
        deputy: DeputyAccess | None = None,
    ) -> "VenueConfig":
        return replace(
            self,
            square=square if square is not None else self.square,
            deputy=deputy if deputy is not None else self.deputy,
        )

    def missing_realtime_settings(self) -> List[str]:
        missing = []
        if not self.square.access_token:
            missing.append("square.accessToken")
        if not self.square.location_id:
            missing.append("square.locationId")
        if not self.deputy.access_token:
            missing.append("deputy.accessToken")
        if not self.deputy.base_url:
            missing.append("deputy.baseUrl")
        return missing


__all__ = [
    "DEFAULT_DAILY_TARGETS",
    "DEFAULT_OPERATING_HOURS",
    "DailyTarget",
    "DeputyAccess",
    "SquareAccess",
    "VenueConfig",
    "sanitize_clock",
    "sanitize_origin",
]
