"""Deterministic pseudo-random helpers for sample mode.

The hash and unit generator reproduce the dashboard's browser-side values so
the same store, day and date render the same synthetic night everywhere.
"""

from __future__ import annotations

import math
from typing import List

from barops.series.projection import round_half_up

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619


def seed_from_string(text: str) -> int:
    """32-bit FNV-1a over the UTF-16 code units of ``text``."""
    value = FNV_OFFSET_BASIS
    encoded = text.encode("utf-16-le")
    for offset in range(0, len(encoded), 2):
        code_unit = encoded[offset] | (encoded[offset + 1] << 8)
        value ^= code_unit
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return value


def seeded_unit(seed: float, index: int) -> float:
    """Value in ``[0, 1)`` derived from ``seed`` and ``index``."""
    raw = math.sin(seed * 0.001 + index * 12.9898) * 43758.5453
    return raw - math.floor(raw)


def build_demand_shape(bucket_count: int, seed: int) -> List[float]:
    """Early peak, main rush and late bump, each bucket scaled by seeded noise."""
    shape = []
    for index in range(bucket_count):
        progress = index / (bucket_count - 1) if bucket_count > 1 else 0.0
        early = math.exp(-(((progress - 0.2) * 5) ** 2)) * 0.55
        rush = math.exp(-(((progress - 0.56) * 5.5) ** 2)) * 1.25
        late = math.exp(-(((progress - 0.82) * 8) ** 2)) * 0.5
        noise = 0.8 + seeded_unit(seed, index) * 0.45
        shape.append((0.08 + early + rush + late) * noise)
    return shape


def scale_shape_to_total(shape: List[float], total_cents: int) -> List[int]:
    """Integer cents proportional to ``shape`` summing exactly to ``total_cents``."""
    shape_sum = sum(shape)
    if not shape or shape_sum <= 0:
        return []
    scaled = [round_half_up(value / shape_sum * total_cents) for value in shape]
    scaled[-1] += total_cents - sum(scaled)
    return scaled


__all__ = [
    "build_demand_shape",
    "scale_shape_to_total",
    "seed_from_string",
    "seeded_unit",
]
