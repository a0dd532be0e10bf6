"""Linear interpolation helpers for moving vehicles towards their next stop."""
from __future__ import annotations

from typing import Optional

from route_topology import Coordinate


# Countdowns at or beyond this many seconds leave the vehicle at its base point
MAX_HORIZON_S = 300.0


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def interpolate(start: Coordinate, end: Coordinate, progress: float) -> Coordinate:
    p = clamp01(progress)
    return Coordinate(
        start.lat + (end.lat - start.lat) * p,
        start.lon + (end.lon - start.lon) * p,
    )


def approach_position(
    base: Coordinate,
    stop: Optional[Coordinate],
    time_to_station: Optional[float],
    max_horizon_s: float = MAX_HORIZON_S,
) -> Coordinate:
    """Place a vehicle between ``base`` and ``stop`` by countdown.

    ``progress = min(1, tts / horizon)`` measures how far away the vehicle
    still is, so the result moves towards the stop as the countdown drops.
    Without a stop or a positive countdown the base point is returned.
    """
    if stop is None or time_to_station is None or time_to_station <= 0:
        return base
    progress = min(1.0, float(time_to_station) / max_horizon_s)
    return Coordinate(
        base.lat + (stop.lat - base.lat) * (1 - progress),
        base.lon + (stop.lon - base.lon) * (1 - progress),
    )


def progress_from_countdown(
    previous_time_to_station: Optional[float],
    current_time_to_station: float,
) -> float:
    """Fraction of the previous countdown that has elapsed, in [0, 1]."""
    if previous_time_to_station is None or previous_time_to_station <= 0:
        return 0.0
    elapsed = previous_time_to_station - current_time_to_station
    return clamp01(elapsed / previous_time_to_station)


__all__ = [
    "MAX_HORIZON_S",
    "clamp01",
    "interpolate",
    "approach_position",
    "progress_from_countdown",
]
