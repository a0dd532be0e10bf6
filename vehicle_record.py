"""Vehicle record shared by the position resolvers, simulator and merge policy."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from route_topology import Coordinate


# Provenance tags
SOURCE_TEXT_LOCATION = "text_location"
SOURCE_ROUTE_BASED = "route_based"
SOURCE_SIMULATED = "simulated"
SOURCE_SIMULATED_FALLBACK = "simulated_fallback"
SOURCE_LIVE_PROVIDER = "live_provider"
SOURCE_FALLBACK = "fallback"

POSITION_SOURCES = frozenset({
    SOURCE_TEXT_LOCATION,
    SOURCE_ROUTE_BASED,
    SOURCE_SIMULATED,
    SOURCE_SIMULATED_FALLBACK,
    SOURCE_LIVE_PROVIDER,
    SOURCE_FALLBACK,
})

DEFAULT_TIME_TO_STATION_S = 120


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class VehicleRecord:
    """A single positioned vehicle.

    Frozen so the simulated fleet can be handed out as a snapshot: a tick
    builds new records with ``dataclasses.replace`` instead of mutating.
    ``speed`` is the distance in degrees covered per simulation tick.
    """
    vehicle_id: str
    line_id: str
    direction: str
    lat: float
    lon: float
    heading: int
    speed: float
    time_to_station: int
    last_updated: str
    position_source: str
    has_real_position: bool
    line_name: Optional[str] = None
    station_name: Optional[str] = None
    destination_name: Optional[str] = None
    current_location: Optional[str] = None
    route_area: Optional[str] = None
    mode_name: str = "bus"
    next_stop: Optional[Coordinate] = None
    destination: Optional[Coordinate] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    def tagged(self, position_source: str, *, has_real_position: Optional[bool] = None) -> "VehicleRecord":
        """Copy with a new provenance tag."""
        if has_real_position is None:
            has_real_position = self.has_real_position
        return replace(
            self,
            position_source=position_source,
            has_real_position=has_real_position,
            time_to_station=int(self.time_to_station or DEFAULT_TIME_TO_STATION_S),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "vehicleId": self.vehicle_id,
            "lineId": self.line_id,
            "lineName": self.line_name or self.line_id,
            "direction": self.direction,
            "lat": self.lat,
            "lon": self.lon,
            "heading": self.heading,
            "speed": self.speed,
            "timeToStation": int(self.time_to_station),
            "lastUpdated": self.last_updated,
            "positionSource": self.position_source,
            "hasRealPosition": self.has_real_position,
            "stationName": self.station_name,
            "destinationName": self.destination_name,
            "currentLocation": self.current_location,
            "routeArea": self.route_area,
            "modeName": self.mode_name,
            "nextStopCoords": self.next_stop.to_dict() if self.next_stop else None,
            "destinationCoords": self.destination.to_dict() if self.destination else None,
        }


__all__ = [
    "SOURCE_TEXT_LOCATION",
    "SOURCE_ROUTE_BASED",
    "SOURCE_SIMULATED",
    "SOURCE_SIMULATED_FALLBACK",
    "SOURCE_LIVE_PROVIDER",
    "SOURCE_FALLBACK",
    "POSITION_SOURCES",
    "DEFAULT_TIME_TO_STATION_S",
    "VehicleRecord",
    "utc_now_iso",
]
