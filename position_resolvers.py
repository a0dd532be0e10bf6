"""Text and route based position resolvers.

Upstream countdown feeds rarely carry GPS. What they do carry is a free-text
``currentLocation`` ("Approaching Oxford Circus") and a route/direction. These
resolvers turn either into a plausible coordinate. Neither can fail: no
landmark match falls through to the route resolver, and an unknown route
uses route "1".
"""
from __future__ import annotations

import random
from typing import Any, Optional, Tuple

from route_topology import LANDMARKS, Coordinate, endpoints_for_route
from vehicle_record import SOURCE_ROUTE_BASED, SOURCE_TEXT_LOCATION


# Co-located vehicles are nudged apart by up to this many degrees per axis
LANDMARK_JITTER_DEG = 0.0025

# Route resolver offset range, scaled by a progress draw in [0, 1]
ROUTE_OFFSET_DEG = 0.01


def match_landmark(text: Optional[str]) -> Optional[Coordinate]:
    """First landmark whose name appears in ``text`` (case-insensitive)."""
    if not text:
        return None
    haystack = text.lower()
    for name, coord in LANDMARKS:
        if name.lower() in haystack:
            return coord
    return None


def resolve_from_route(
    line_id: Optional[str],
    direction: Optional[str],
    rng: Any = None,
) -> Coordinate:
    rng = rng or random
    base = endpoints_for_route(line_id).for_direction(direction)
    progress = rng.random()
    lat_offset = (rng.random() * 2 * ROUTE_OFFSET_DEG - ROUTE_OFFSET_DEG) * progress
    lon_offset = (rng.random() * 2 * ROUTE_OFFSET_DEG - ROUTE_OFFSET_DEG) * progress
    return Coordinate(base.lat + lat_offset, base.lon + lon_offset)


def resolve_from_text(
    text: Optional[str],
    line_id: Optional[str],
    direction: Optional[str],
    rng: Any = None,
) -> Coordinate:
    rng = rng or random
    landmark = match_landmark(text)
    if landmark is None:
        return resolve_from_route(line_id, direction, rng)
    return Coordinate(
        landmark.lat + rng.uniform(-LANDMARK_JITTER_DEG, LANDMARK_JITTER_DEG),
        landmark.lon + rng.uniform(-LANDMARK_JITTER_DEG, LANDMARK_JITTER_DEG),
    )


def resolve_record_position(
    current_location: Optional[str],
    line_id: Optional[str],
    direction: Optional[str],
    rng: Any = None,
) -> Tuple[Coordinate, str]:
    """Coordinate plus provenance tag for an upstream record.

    The tag reflects which input was used, not whether a landmark matched:
    a record with location text is ``text_location`` even when the text
    fell through to the route table.
    """
    if current_location and current_location.strip():
        return resolve_from_text(current_location, line_id, direction, rng), SOURCE_TEXT_LOCATION
    return resolve_from_route(line_id, direction, rng), SOURCE_ROUTE_BASED


__all__ = [
    "LANDMARK_JITTER_DEG",
    "ROUTE_OFFSET_DEG",
    "match_landmark",
    "resolve_from_route",
    "resolve_from_text",
    "resolve_record_position",
]
