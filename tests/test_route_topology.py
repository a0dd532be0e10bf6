import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from route_topology import (  # noqa: E402
    DEFAULT_ROUTE_STOPS,
    ROUTE_ENDPOINTS,
    ROUTE_STOPS,
    Coordinate,
    area_for,
    clamp_to_bounds,
    endpoints_for_route,
    in_bounds,
    point_along_stops,
    stops_for_route,
)


def test_bounds_are_inclusive():
    assert in_bounds(51.3, -0.5)
    assert in_bounds(51.7, 0.2)
    assert not in_bounds(51.7001, 0.0)
    assert not in_bounds(51.5, 0.2001)


def test_clamp_to_bounds():
    assert clamp_to_bounds(52.0, -1.0) == Coordinate(51.7, -0.5)
    assert clamp_to_bounds(51.5, -0.1) == Coordinate(51.5, -0.1)


def test_unknown_route_endpoints_fall_back_to_route_one():
    assert endpoints_for_route("N999") == ROUTE_ENDPOINTS["1"]
    assert endpoints_for_route(None) == ROUTE_ENDPOINTS["1"]


def test_direction_match_is_case_insensitive():
    endpoints = ROUTE_ENDPOINTS["24"]
    assert endpoints.for_direction("INBOUND") == endpoints.inbound
    assert endpoints.for_direction("outbound") == endpoints.outbound
    assert endpoints.for_direction(None) == endpoints.outbound


def test_stops_for_unknown_route_use_default_sequence():
    assert stops_for_route("148") == DEFAULT_ROUTE_STOPS
    assert stops_for_route("12") == ROUTE_STOPS["12"]


def test_area_for_picks_nearest_named_area():
    assert area_for(51.5074, -0.1278) == "Westminster"
    assert area_for(51.5410, -0.0030) == "Stratford"
    assert area_for(51.4930, -0.2220) == "Hammersmith"


def test_point_along_stops_endpoints_and_midpoint():
    stops = ROUTE_STOPS["24"]
    assert point_along_stops(stops, 0.0) == stops[0].coordinate
    end = point_along_stops(stops, 1.0)
    assert end.lat == pytest.approx(stops[-1].lat)
    assert end.lon == pytest.approx(stops[-1].lon)
    mid = point_along_stops(stops, 0.5)
    assert mid.lat == pytest.approx(stops[2].lat)
    assert mid.lon == pytest.approx(stops[2].lon)


def test_point_along_stops_requires_stops():
    with pytest.raises(ValueError):
        point_along_stops((), 0.5)
