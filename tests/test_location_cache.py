import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from location_cache import CoverageCache, GeocodeCache, coverage_key, normalize_place_name  # noqa: E402
from route_topology import Coordinate  # noqa: E402


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_normalize_place_name():
    assert normalize_place_name("  Oxford   CIRCUS ") == "oxford circus"
    assert normalize_place_name(None) == ""


def test_seeded_entries_resolve_case_insensitively():
    cache = GeocodeCache()
    assert cache.get("Oxford Circus") == Coordinate(51.5155, -0.1412)
    assert cache.get("oxford  circus") == Coordinate(51.5155, -0.1412)
    assert "Oxford Circus" in cache
    assert cache.get("") is None


def test_set_and_get_use_normalized_key():
    cache = GeocodeCache(seed={})
    cache.set("Crystal  Palace", Coordinate(51.4183, -0.0723))
    assert cache.get("crystal palace") == Coordinate(51.4183, -0.0723)
    assert len(cache) == 1


def test_eviction_clears_everything_then_reseeds():
    clock = FakeClock(0.0)
    cache = GeocodeCache(seed={"Bank": Coordinate(51.5134, -0.089)}, ttl_s=100, clock=clock)
    cache.set("Crystal Palace", Coordinate(51.4183, -0.0723))

    clock.now = 50.0
    assert cache.evict_if_due() is False
    assert cache.get("Crystal Palace") is not None

    clock.now = 100.0
    assert cache.evict_if_due() is True
    assert cache.get("Crystal Palace") is None
    assert cache.get("Bank") == Coordinate(51.5134, -0.089)
    assert cache.evictions == 1

    # the age restarts after an eviction
    assert cache.evict_if_due() is False


def test_coverage_key_rounds_to_six_places():
    assert coverage_key(51.12345671, -0.1, 2000) == coverage_key(51.12345669, -0.1, 2000)
    assert coverage_key(51.5, -0.1, 2000) != coverage_key(51.5, -0.1, 1000)


def test_coverage_cache_stores_both_verdicts():
    clock = FakeClock()
    cache = CoverageCache(ttl_s=10, clock=clock)
    cache.set(51.5, -0.1, 2000, True)
    cache.set(48.85, 2.35, 2000, False)
    assert cache.get(51.5, -0.1, 2000) is True
    assert cache.get(48.85, 2.35, 2000) is False
    assert cache.get(51.5, -0.1, 500) is None

    clock.now = 10.0
    assert cache.evict_if_due(clock.now)
    assert len(cache) == 0


def test_base_cache_cannot_be_instantiated():
    from location_cache import _WholeCache

    with pytest.raises(TypeError):
        _WholeCache(60, FakeClock())
