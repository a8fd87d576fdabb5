"""Errors surfaced to callers of the realtime builder, with short debug codes."""

from __future__ import annotations

import datetime as dt
import secrets
import string
from typing import List, Optional

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def build_debug_code(prefix: str, when: Optional[dt.datetime] = None) -> str:
    """``<PREFIX>-<yyyymmddhhmmss>-<6 random chars>``, quotable in support tickets."""
    moment = when or dt.datetime.now(dt.timezone.utc)
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))
    return f"{prefix}-{moment.strftime('%Y%m%d%H%M%S')}-{suffix}"


class RealtimeConfigError(RuntimeError):
    """Realtime mode requested without the credentials it needs."""

    def __init__(self, missing: List[str], debug_code: Optional[str] = None):
        self.missing = list(missing)
        self.debug_code = debug_code or build_debug_code("CFG")
        super().__init__(f"Realtime integration is missing: {', '.join(self.missing)}")

    def to_payload(self) -> dict:
        return {
            "error": "realtime_config_missing",
            "message": str(self),
            "missing": list(self.missing),
            "debugCode": self.debug_code,
        }


class RealtimeBuildError(RuntimeError):
    """Unexpected failure while assembling a realtime snapshot."""

    def __init__(self, message: str, debug_code: Optional[str] = None):
        self.debug_code = debug_code or build_debug_code("RTL")
        super().__init__(message)

    def to_payload(self) -> dict:
        return {
            "error": "realtime_build_failed",
            "message": str(self),
            "debugCode": self.debug_code,
        }


__all__ = ["RealtimeBuildError", "RealtimeConfigError", "build_debug_code"]
