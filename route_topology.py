"""Static London route topology and reference coordinates.

Everything in this module is immutable reference data loaded once at import
time: route stop sequences, inbound/outbound base points, synthesizer base
points, named areas and the landmark table used to place vehicles from
free-text locations.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Tuple


# Operating bounding box for synthesized and simulated vehicles
MIN_LAT = 51.3
MAX_LAT = 51.7
MIN_LON = -0.5
MAX_LON = 0.2

DEFAULT_ROUTE_ID = "1"
DEFAULT_TRACKED_ROUTES: Tuple[str, ...] = ("1", "12", "18", "24", "38")
SIMULATED_ROUTE_IDS: Tuple[str, ...] = (
    "1", "12", "18", "24", "38", "55", "73", "94", "137", "148",
)


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class RouteStop:
    name: str
    lat: float
    lon: float

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)


@dataclass(frozen=True)
class RouteEndpoints:
    inbound: Coordinate
    outbound: Coordinate

    def for_direction(self, direction: Optional[str]) -> Coordinate:
        if (direction or "").strip().lower() == "inbound":
            return self.inbound
        return self.outbound


def _stops(*rows: Tuple[str, float, float]) -> Tuple[RouteStop, ...]:
    return tuple(RouteStop(name, lat, lon) for name, lat, lon in rows)


ROUTE_STOPS: Mapping[str, Tuple[RouteStop, ...]] = MappingProxyType({
    "1": _stops(
        ("Trafalgar Square", 51.5081, -0.1246),
        ("Marble Arch", 51.5135, -0.1585),
        ("Oxford Circus", 51.5155, -0.1412),
        ("Westminster", 51.5074, -0.1278),
        ("Waterloo", 51.5030, -0.1050),
        ("Canada Water", 51.5007, -0.0760),
    ),
    "12": _stops(
        ("Shepherds Bush", 51.4926, -0.1946),
        ("Notting Hill Gate", 51.4995, -0.1805),
        ("Marble Arch", 51.5135, -0.1585),
        ("Oxford Circus", 51.5155, -0.1412),
        ("Trafalgar Square", 51.5074, -0.1278),
        ("Victoria", 51.4950, -0.1445),
    ),
    "18": _stops(
        ("Clapham Junction", 51.4643, -0.1695),
        ("Chelsea", 51.4725, -0.1535),
        ("South Kensington", 51.4851, -0.1405),
        ("Victoria", 51.4950, -0.1445),
        ("Trafalgar Square", 51.5074, -0.1278),
        ("Tottenham Court Road", 51.5165, -0.1310),
    ),
    "24": _stops(
        ("Camden Town", 51.5452, -0.1428),
        ("Regents Park", 51.5322, -0.1575),
        ("Oxford Circus", 51.5155, -0.1412),
        ("Trafalgar Square", 51.5074, -0.1278),
        ("Pimlico", 51.5007, -0.0760),
    ),
    "38": _stops(
        ("Victoria", 51.4950, -0.1445),
        ("Trafalgar Square", 51.5074, -0.1278),
        ("Oxford Circus", 51.5155, -0.1412),
        ("Tottenham Court Road", 51.5165, -0.1310),
        ("Kings Cross", 51.5250, -0.1200),
    ),
})

# Used for any route without its own stop sequence
DEFAULT_ROUTE_STOPS: Tuple[RouteStop, ...] = _stops(
    ("Central London", 51.5074, -0.1278),
    ("North London", 51.5400, -0.1430),
    ("South London", 51.4643, -0.1695),
    ("East London", 51.5207, -0.0744),
    ("West London", 51.4926, -0.1946),
)

ROUTE_ENDPOINTS: Mapping[str, RouteEndpoints] = MappingProxyType({
    "1": RouteEndpoints(Coordinate(51.5007, -0.0760), Coordinate(51.5074, -0.1278)),
    "12": RouteEndpoints(Coordinate(51.5074, -0.1278), Coordinate(51.4926, -0.1946)),
    "18": RouteEndpoints(Coordinate(51.5250, -0.1200), Coordinate(51.4643, -0.1695)),
    "24": RouteEndpoints(Coordinate(51.5074, -0.1278), Coordinate(51.5452, -0.1428)),
    "38": RouteEndpoints(Coordinate(51.5207, -0.0744), Coordinate(51.4926, -0.1946)),
})

# Synthesizer anchor per known route
ROUTE_BASE_POINTS: Mapping[str, Coordinate] = MappingProxyType({
    "1": Coordinate(51.5007, -0.0760),
    "12": Coordinate(51.4926, -0.1946),
    "18": Coordinate(51.4643, -0.1695),
    "24": Coordinate(51.5452, -0.1428),
    "38": Coordinate(51.5207, -0.0744),
    "55": Coordinate(51.5165, -0.1310),
    "73": Coordinate(51.4927, -0.1850),
    "94": Coordinate(51.5165, -0.1310),
    "137": Coordinate(51.5076, 0.0188),
    "148": Coordinate(51.5338, -0.0982),
})

# Synthesizer anchors for unknown routes, picked by hash
AREA_BASE_POINTS: Tuple[Coordinate, ...] = (
    Coordinate(51.5074, -0.1278),  # Westminster
    Coordinate(51.5155, -0.0723),  # City of London
    Coordinate(51.5400, -0.1430),  # Camden
    Coordinate(51.5360, -0.1030),  # Islington
    Coordinate(51.5415, -0.0025),  # Stratford
    Coordinate(51.5050, -0.0235),  # Canary Wharf
    Coordinate(51.4950, -0.1445),  # Victoria
    Coordinate(51.4643, -0.1695),  # Clapham
)

NAMED_AREAS: Tuple[Tuple[str, Coordinate], ...] = (
    ("Westminster", Coordinate(51.5074, -0.1278)),
    ("City of London", Coordinate(51.5155, -0.0723)),
    ("Camden", Coordinate(51.5400, -0.1430)),
    ("Islington", Coordinate(51.5360, -0.1030)),
    ("Hackney", Coordinate(51.5435, -0.0255)),
    ("Southwark", Coordinate(51.5030, -0.1050)),
    ("Lambeth", Coordinate(51.4950, -0.1150)),
    ("Kensington", Coordinate(51.5025, -0.1975)),
    ("Hammersmith", Coordinate(51.4925, -0.2225)),
    ("Wandsworth", Coordinate(51.4575, -0.1925)),
    ("Canary Wharf", Coordinate(51.5050, -0.0235)),
    ("Stratford", Coordinate(51.5415, -0.0025)),
)

# Scanned in order; the first substring match wins, so the generic
# "Approaching"/"At"/"Near" prefixes sit at the end.
LANDMARKS: Tuple[Tuple[str, Coordinate], ...] = (
    ("Oxford Circus", Coordinate(51.5155, -0.1412)),
    ("Trafalgar Square", Coordinate(51.5081, -0.1246)),
    ("Piccadilly Circus", Coordinate(51.5101, -0.1340)),
    ("Leicester Square", Coordinate(51.5113, -0.1281)),
    ("Charing Cross", Coordinate(51.5081, -0.1246)),
    ("Bank", Coordinate(51.5134, -0.0890)),
    ("Liverpool Street", Coordinate(51.5175, -0.0820)),
    ("Victoria Station", Coordinate(51.4950, -0.1445)),
    ("Waterloo", Coordinate(51.5030, -0.1050)),
    ("London Bridge", Coordinate(51.5050, -0.0860)),
    ("Paddington", Coordinate(51.5154, -0.1755)),
    ("Kings Cross", Coordinate(51.5308, -0.1238)),
    ("St Pancras", Coordinate(51.5308, -0.1238)),
    ("Euston", Coordinate(51.5280, -0.1330)),
    ("Marble Arch", Coordinate(51.5135, -0.1585)),
    ("Hyde Park Corner", Coordinate(51.5028, -0.1528)),
    ("Knightsbridge", Coordinate(51.5020, -0.1600)),
    ("South Kensington", Coordinate(51.4851, -0.1405)),
    ("Gloucester Road", Coordinate(51.4945, -0.1829)),
    ("Earls Court", Coordinate(51.4920, -0.1970)),
    ("Approaching", Coordinate(51.5074, -0.1278)),
    ("At", Coordinate(51.5074, -0.1278)),
    ("Near", Coordinate(51.5074, -0.1278)),
    ("Just left", Coordinate(51.5074, -0.1278)),
)

# Pre-populated stop-name coordinates for the geocode cache
SEED_STOP_POINTS: Mapping[str, Coordinate] = MappingProxyType({
    "Victoria Station": Coordinate(51.4424, -0.1439),
    "King's Cross St. Pancras": Coordinate(51.5308, -0.1249),
    "Liverpool Street Station": Coordinate(51.5176, -0.0833),
    "Piccadilly Circus": Coordinate(51.5098, -0.1342),
    "Oxford Circus": Coordinate(51.5155, -0.1412),
    "Tottenham Court Road": Coordinate(51.5161, -0.1315),
    "Russell Square": Coordinate(51.5223, -0.1244),
    "British Museum": Coordinate(51.5194, -0.1270),
    "Covent Garden": Coordinate(51.5132, -0.1237),
    "Leicester Square": Coordinate(51.5112, -0.1281),
    "Charing Cross": Coordinate(51.5058, -0.1246),
    "Westminster Station": Coordinate(51.4974, -0.1256),
    "Tower Bridge": Coordinate(51.5055, -0.0754),
    "London Bridge Station": Coordinate(51.5055, -0.0860),
    "Bank of England": Coordinate(51.5158, -0.0882),
    "St Paul's Cathedral": Coordinate(51.5137, -0.0982),
    "Tower of London": Coordinate(51.5081, -0.0759),
    "Packington Street": Coordinate(51.5342, -0.1039),
    "King's Cross Station": Coordinate(51.5330, -0.1239),
    "Waterloo Station": Coordinate(51.5030, -0.1050),
    "Paddington Station": Coordinate(51.5154, -0.1755),
    "Marble Arch": Coordinate(51.5135, -0.1585),
    "Knightsbridge": Coordinate(51.5020, -0.1600),
    "South Kensington": Coordinate(51.4851, -0.1405),
    "Earls Court": Coordinate(51.4920, -0.1970),
    "Hammersmith": Coordinate(51.4925, -0.2225),
    "Westminster Abbey": Coordinate(51.4970, -0.1272),
    "Trafalgar Square": Coordinate(51.5081, -0.1246),
    "Piccadilly": Coordinate(51.5101, -0.1340),
    "Regent Street": Coordinate(51.5138, -0.1413),
    "Bond Street": Coordinate(51.5141, -0.1494),
    "Oxford Street": Coordinate(51.5159, -0.1443),
    "Soho": Coordinate(51.5156, -0.1298),
    "Holborn": Coordinate(51.5177, -0.1209),
    "The British Museum": Coordinate(51.5194, -0.1270),
    "Camden Town": Coordinate(51.5400, -0.1430),
    "Islington": Coordinate(51.5360, -0.1030),
    "King's Cross": Coordinate(51.5330, -0.1239),
    "Shoreditch": Coordinate(51.5276, -0.0809),
    "Old Street": Coordinate(51.5253, -0.0893),
    "Barbican": Coordinate(51.5225, -0.0987),
    "St Paul's": Coordinate(51.5137, -0.0982),
    "Bank": Coordinate(51.5134, -0.0890),
    "Monument": Coordinate(51.5105, -0.0865),
    "Tower Hill": Coordinate(51.5083, -0.0760),
    "Whitechapel": Coordinate(51.5160, -0.0623),
    "Bethnal Green": Coordinate(51.5292, -0.0546),
    "Stratford": Coordinate(51.5415, -0.0025),
    "Canary Wharf": Coordinate(51.5050, -0.0235),
    "Isle of Dogs": Coordinate(51.5068, -0.0155),
    "Limehouse": Coordinate(51.5108, -0.0247),
    "Rotherhithe": Coordinate(51.5017, -0.0448),
    "Bermondsey": Coordinate(51.4960, -0.0556),
    "Elephant & Castle": Coordinate(51.4956, -0.1046),
    "Southwark": Coordinate(51.5030, -0.0973),
    "Borough": Coordinate(51.5049, -0.0896),
    "London Bridge": Coordinate(51.5055, -0.0860),
    "Tower Gateway": Coordinate(51.5072, -0.0748),
    "DLR": Coordinate(51.5068, -0.0155),
})


def in_bounds(lat: float, lon: float) -> bool:
    return MIN_LAT <= lat <= MAX_LAT and MIN_LON <= lon <= MAX_LON


def clamp_to_bounds(lat: float, lon: float) -> Coordinate:
    return Coordinate(
        max(MIN_LAT, min(MAX_LAT, lat)),
        max(MIN_LON, min(MAX_LON, lon)),
    )


def stops_for_route(route_id: Optional[str]) -> Tuple[RouteStop, ...]:
    return ROUTE_STOPS.get(str(route_id or ""), DEFAULT_ROUTE_STOPS)


def endpoints_for_route(route_id: Optional[str]) -> RouteEndpoints:
    """Inbound/outbound base points; unknown routes use route "1"."""
    return ROUTE_ENDPOINTS.get(str(route_id or ""), ROUTE_ENDPOINTS[DEFAULT_ROUTE_ID])


def area_for(lat: float, lon: float) -> str:
    """Name of the nearest named London area (plain degree distance)."""
    closest = "Central London"
    best = float("inf")
    for name, point in NAMED_AREAS:
        d2 = (lat - point.lat) ** 2 + (lon - point.lon) ** 2
        if d2 < best:
            best = d2
            closest = name
    return closest


def point_along_stops(stops: Sequence[RouteStop], fraction: float) -> Coordinate:
    """Linear position at ``fraction`` (0..1) of the way along a stop sequence."""
    if not stops:
        raise ValueError("route has no stops")
    if len(stops) == 1:
        return stops[0].coordinate
    fraction = max(0.0, min(1.0, fraction))
    span = fraction * (len(stops) - 1)
    segment = min(int(span), len(stops) - 2)
    seg_progress = span - segment
    a = stops[segment]
    b = stops[segment + 1]
    return Coordinate(
        a.lat + (b.lat - a.lat) * seg_progress,
        a.lon + (b.lon - a.lon) * seg_progress,
    )


__all__ = [
    "MIN_LAT",
    "MAX_LAT",
    "MIN_LON",
    "MAX_LON",
    "DEFAULT_ROUTE_ID",
    "DEFAULT_TRACKED_ROUTES",
    "SIMULATED_ROUTE_IDS",
    "Coordinate",
    "RouteStop",
    "RouteEndpoints",
    "ROUTE_STOPS",
    "DEFAULT_ROUTE_STOPS",
    "ROUTE_ENDPOINTS",
    "ROUTE_BASE_POINTS",
    "AREA_BASE_POINTS",
    "NAMED_AREAS",
    "LANDMARKS",
    "SEED_STOP_POINTS",
    "in_bounds",
    "clamp_to_bounds",
    "stops_for_route",
    "endpoints_for_route",
    "area_for",
    "point_along_stops",
]
