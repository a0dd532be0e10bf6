import random
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from position_resolvers import (  # noqa: E402
    LANDMARK_JITTER_DEG,
    ROUTE_OFFSET_DEG,
    match_landmark,
    resolve_from_route,
    resolve_from_text,
    resolve_record_position,
)
from route_topology import ROUTE_ENDPOINTS, Coordinate  # noqa: E402


class FixedRng:
    """Every draw lands at the same fraction of its range."""

    def __init__(self, value: float):
        self.value = value

    def random(self):
        return self.value

    def uniform(self, a, b):
        return a + (b - a) * self.value


def test_landmark_match_is_case_insensitive_and_ordered():
    assert match_landmark("approaching OXFORD circus") == Coordinate(51.5155, -0.1412)
    # "Oxford Circus" is listed before the generic "Approaching" prefix
    assert match_landmark("Approaching Oxford Circus") == Coordinate(51.5155, -0.1412)


def test_generic_prefix_matches_inside_words():
    assert match_landmark("Bus Station") == Coordinate(51.5074, -0.1278)


def test_no_landmark_for_blank_or_unknown_text():
    assert match_landmark("") is None
    assert match_landmark(None) is None
    assert match_landmark("Bromley") is None


def test_text_resolver_centres_jitter_on_landmark():
    point = resolve_from_text("Approaching Oxford Circus", "12", "outbound", FixedRng(0.5))
    assert point.lat == pytest.approx(51.5155)
    assert point.lon == pytest.approx(-0.1412)


def test_text_resolver_jitter_is_bounded():
    rng = random.Random(3)
    for _ in range(100):
        point = resolve_from_text("Near Waterloo", "1", "inbound", rng)
        assert abs(point.lat - 51.5030) <= LANDMARK_JITTER_DEG + 1e-12
        assert abs(point.lon - (-0.1050)) <= LANDMARK_JITTER_DEG + 1e-12


def test_text_resolver_falls_back_to_route():
    point = resolve_from_text("Bromley", "1", "inbound", FixedRng(0.5))
    assert point == ROUTE_ENDPOINTS["1"].inbound


def test_route_resolver_picks_direction_endpoint():
    assert resolve_from_route("12", "inbound", FixedRng(0.5)) == ROUTE_ENDPOINTS["12"].inbound
    assert resolve_from_route("12", "outbound", FixedRng(0.5)) == ROUTE_ENDPOINTS["12"].outbound


def test_route_resolver_unknown_route_uses_route_one():
    assert resolve_from_route("N999", "outbound", FixedRng(0.5)) == ROUTE_ENDPOINTS["1"].outbound
    assert resolve_from_route(None, None, FixedRng(0.5)) == ROUTE_ENDPOINTS["1"].outbound


def test_route_resolver_offset_scales_with_progress():
    base = ROUTE_ENDPOINTS["18"].inbound
    point = resolve_from_route("18", "inbound", FixedRng(1.0))
    assert point.lat == pytest.approx(base.lat + ROUTE_OFFSET_DEG)
    assert point.lon == pytest.approx(base.lon + ROUTE_OFFSET_DEG)


def test_route_resolver_stays_within_offset():
    base = ROUTE_ENDPOINTS["38"].outbound
    rng = random.Random(11)
    for _ in range(100):
        point = resolve_from_route("38", "outbound", rng)
        assert abs(point.lat - base.lat) <= ROUTE_OFFSET_DEG
        assert abs(point.lon - base.lon) <= ROUTE_OFFSET_DEG


def test_record_position_tags_by_input():
    _, source = resolve_record_position("Near Bromley", "1", "inbound", FixedRng(0.5))
    assert source == "text_location"
    _, source = resolve_record_position("   ", "1", "inbound", FixedRng(0.5))
    assert source == "route_based"
    _, source = resolve_record_position(None, "1", "inbound", FixedRng(0.5))
    assert source == "route_based"
