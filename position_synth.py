"""
Deterministic vehicle position synthesizer.

Produces a stable, visually spread coordinate for a vehicle without any
network access. The same ``(vehicle_id, line_id, direction)`` always maps to
the same point, so a vehicle that is only known by its countdown feed does
not jump around the map between refreshes.

Hash
----
djb2: ``h = h * 33 + ord(c)`` seeded with 5381 over
``"{vehicle_id}-{line_id}-{direction}"``, truncated to 32 unsigned bits after
every step. This is not a cryptographic hash. Changing the seed, the
multiplier, the separator or the truncation moves every synthesized vehicle,
so treat all four as fixed.

Spread
------
Two offsets come from non-overlapping decimal slices of the hash
(``h % 10000`` and ``(h // 10000) % 10000``), each scaled to +/-0.015 degrees
around the route's base point.
"""
from __future__ import annotations

from typing import Optional

from route_topology import (
    AREA_BASE_POINTS,
    ROUTE_BASE_POINTS,
    Coordinate,
    clamp_to_bounds,
)


HASH_SEED = 5381
HASH_MULTIPLIER = 33
HASH_MASK = 0xFFFFFFFF

# Maximum distance (degrees) from the base point on each axis
SPREAD_DEG = 0.015


def rolling_hash(text: str) -> int:
    h = HASH_SEED
    for ch in text:
        h = (h * HASH_MULTIPLIER + ord(ch)) & HASH_MASK
    return h


def vehicle_hash(vehicle_id: Optional[str], line_id: Optional[str], direction: Optional[str]) -> int:
    return rolling_hash(f"{vehicle_id or ''}-{line_id or ''}-{direction or ''}")


def base_point_for(line_id: Optional[str], h: int) -> Coordinate:
    """Route base point, or a hash-selected named area for unknown routes."""
    base = ROUTE_BASE_POINTS.get(str(line_id or ""))
    if base is not None:
        return base
    return AREA_BASE_POINTS[h % len(AREA_BASE_POINTS)]


def synthesize_position(
    vehicle_id: Optional[str],
    line_id: Optional[str],
    direction: Optional[str],
) -> Coordinate:
    h = vehicle_hash(vehicle_id, line_id, direction)
    base = base_point_for(line_id, h)

    offset_lat = (h % 10000) / 10000
    offset_lon = ((h // 10000) % 10000) / 10000

    lat = base.lat + (offset_lat - 0.5) * 2 * SPREAD_DEG
    lon = base.lon + (offset_lon - 0.5) * 2 * SPREAD_DEG
    return clamp_to_bounds(lat, lon)


__all__ = [
    "HASH_SEED",
    "SPREAD_DEG",
    "rolling_hash",
    "vehicle_hash",
    "base_point_for",
    "synthesize_position",
]
