import asyncio
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from location_cache import CoverageCache  # noqa: E402
from provider_errors import ProviderUnavailable  # noqa: E402
from service_coverage import CoverageChecker  # noqa: E402


class FakeSpatialSearch:
    def __init__(self, places=None, stops=None, place_error=None, stop_error=None):
        self.places = places or []
        self.stops = stops or []
        self.place_error = place_error
        self.stop_error = stop_error
        self.calls = []

    async def places_near(self, lat, lon, radius):
        self.calls.append(("place", radius))
        if self.place_error:
            raise self.place_error
        return self.places

    async def stop_points_near(self, lat, lon, radius):
        self.calls.append(("stop_point", radius))
        if self.stop_error:
            raise self.stop_error
        return self.stops


def _checker(tfl):
    return CoverageChecker(tfl, CoverageCache())


def test_place_match_short_circuits():
    tfl = FakeSpatialSearch(places=[{"id": "p"}])
    assert asyncio.run(_checker(tfl).is_covered(51.5, -0.12)) is True
    assert tfl.calls == [("place", 2000)]


def test_stop_point_fallback_after_place_failure():
    tfl = FakeSpatialSearch(place_error=ProviderUnavailable("tfl", "timeout"), stops=[{"id": "s"}])
    assert asyncio.run(_checker(tfl).is_covered(51.5, -0.12)) is True
    assert tfl.calls == [("place", 2000), ("stop_point", 2000)]


def test_false_only_when_both_probes_come_back_empty():
    tfl = FakeSpatialSearch(stop_error=ProviderUnavailable("tfl", "503", status=503))
    assert asyncio.run(_checker(tfl).is_covered(48.8566, 2.3522)) is False


def test_verdicts_are_cached():
    tfl = FakeSpatialSearch()
    checker = _checker(tfl)

    async def main():
        first = await checker.is_covered(48.8566, 2.3522)
        second = await checker.is_covered(48.8566, 2.3522)
        return first, second

    assert asyncio.run(main()) == (False, False)
    assert len(tfl.calls) == 2


def test_custom_radius_is_a_separate_entry():
    tfl = FakeSpatialSearch(places=[{"id": "p"}])
    checker = _checker(tfl)

    async def main():
        await checker.is_covered(51.5, -0.12)
        await checker.is_covered(51.5, -0.12, radius=500)

    asyncio.run(main())
    assert tfl.calls == [("place", 2000), ("place", 500)]


def test_non_numeric_coordinates_are_not_covered():
    tfl = FakeSpatialSearch(places=[{"id": "p"}])
    checker = _checker(tfl)
    assert asyncio.run(checker.is_covered("51.5", -0.12)) is False
    assert asyncio.run(checker.is_covered(None, None)) is False
    assert asyncio.run(checker.is_covered(float("nan"), 0.0)) is False
    assert tfl.calls == []
