"""Fan-out helper: await many upstream calls and keep every outcome."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

FULFILLED = "fulfilled"
REJECTED = "rejected"
SKIPPED = "skipped"


@dataclass(frozen=True)
class Settled(Generic[T]):
    status: str
    value: Optional[T] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == FULFILLED

    def value_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default

    @classmethod
    def skipped(cls) -> "Settled[T]":
        return cls(status=SKIPPED)


async def settled(work: Awaitable[T], name: str = "upstream") -> Settled[T]:
    """Await ``work``; an ``Exception`` becomes a rejected result instead of propagating."""
    try:
        value = await work
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        reason = str(exc) or exc.__class__.__name__
        logger.warning("%s failed: %s", name, reason)
        return Settled(status=REJECTED, reason=reason)
    return Settled(status=FULFILLED, value=value)


async def gather_settled(**work: Awaitable) -> dict:
    """Run named awaitables concurrently and return ``{name: Settled}``."""
    names = list(work)
    results = await asyncio.gather(*(settled(work[name], name) for name in names))
    return dict(zip(names, results))


__all__ = ["FULFILLED", "REJECTED", "SKIPPED", "Settled", "gather_settled", "settled"]
