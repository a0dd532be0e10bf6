import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from geocode_cascade import GeocodeCascade, LocationValidator  # noqa: E402
from geocoders import GeocodeHit, Geocoder  # noqa: E402
from location_cache import GeocodeCache  # noqa: E402
from provider_errors import ProviderUnavailable  # noqa: E402


class StubGeocoder(Geocoder):
    def __init__(self, name: str, hit: Optional[GeocodeHit] = None, error: Optional[Exception] = None,
                 configured: bool = True):
        self.name = name
        self.hit = hit
        self.error = error
        self.configured = configured
        self.queries: List[str] = []

    def is_configured(self) -> bool:
        return self.configured

    async def search(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.hit


class StubCoverage:
    def __init__(self, covered: bool = True):
        self.covered = covered
        self.calls = []

    async def is_covered(self, lat, lon, radius=None):
        self.calls.append((lat, lon))
        return self.covered


def _chain(*geocoders, cache=None):
    return GeocodeCascade(list(geocoders), cache or GeocodeCache())


def test_seeded_name_resolves_without_provider_calls():
    tfl = StubGeocoder("tfl_stop_point")
    result = asyncio.run(_chain(tfl).resolve("Oxford Circus"))
    assert result.found
    assert result.lat == pytest.approx(51.5155)
    assert result.lon == pytest.approx(-0.1412)
    assert result.source == "cache"
    assert tfl.queries == []


def test_unknown_name_exhausts_providers():
    tfl = StubGeocoder("tfl_stop_point")
    osm = StubGeocoder("nominatim")
    result = asyncio.run(_chain(tfl, osm).resolve("Xyzzy Nowhere"))
    assert not result.found
    assert result.lat is None
    assert [o.status for o in result.outcomes] == ["empty", "empty"]


def test_providers_are_tried_in_order_and_failures_advance():
    tfl = StubGeocoder("tfl_stop_point", error=ProviderUnavailable("tfl", "timeout"))
    google = StubGeocoder("google", configured=False)
    osm = StubGeocoder("nominatim", hit=GeocodeHit(51.4183, -0.0723, "nominatim"))
    result = asyncio.run(_chain(tfl, google, osm).resolve("Crystal Palace Park"))

    assert result.found
    assert result.source == "nominatim"
    assert [(o.provider, o.status) for o in result.outcomes] == [
        ("tfl_stop_point", "error"),
        ("google", "skipped"),
        ("nominatim", "hit"),
    ]
    assert google.queries == []
    assert tfl.queries == ["Crystal Palace Park"]


def test_first_hit_stops_the_chain():
    tfl = StubGeocoder("tfl_stop_point", hit=GeocodeHit(51.49, -0.14, "tfl_stop_point"))
    osm = StubGeocoder("nominatim", hit=GeocodeHit(0.0, 0.0, "nominatim"))
    result = asyncio.run(_chain(tfl, osm).resolve("Victoria Coach Station"))
    assert result.source == "tfl_stop_point"
    assert osm.queries == []


def test_second_resolution_is_served_from_cache():
    osm = StubGeocoder("nominatim", hit=GeocodeHit(51.4183, -0.0723, "nominatim"))
    cascade = _chain(osm)

    async def main():
        first = await cascade.resolve("Crystal Palace Park")
        second = await cascade.resolve("crystal palace park")
        return first, second

    first, second = asyncio.run(main())
    assert first.source == "nominatim"
    assert second.source == "cache"
    assert (second.lat, second.lon) == (first.lat, first.lon)
    assert osm.queries == ["Crystal Palace Park"]


def test_blank_name_is_not_found():
    osm = StubGeocoder("nominatim", hit=GeocodeHit(1.0, 1.0, "nominatim"))
    result = asyncio.run(_chain(osm).resolve("   "))
    assert not result.found
    assert osm.queries == []


def test_cached_lookup_never_queries():
    osm = StubGeocoder("nominatim", hit=GeocodeHit(1.0, 1.0, "nominatim"))
    cascade = _chain(osm)
    assert cascade.cached("Oxford Circus") is not None
    assert cascade.cached("Crystal Palace Park") is None
    assert osm.queries == []


def test_validator_reports_coverage():
    coverage = StubCoverage(covered=True)
    validator = LocationValidator(_chain(StubGeocoder("tfl_stop_point")), coverage)
    result = asyncio.run(validator.resolve_location("Oxford Circus"))
    assert result.to_dict() == {
        "input": "Oxford Circus",
        "found": True,
        "lat": 51.5155,
        "lon": -0.1412,
        "inLondon": True,
    }
    assert coverage.calls == [(51.5155, -0.1412)]


def test_validator_not_found_skips_coverage():
    coverage = StubCoverage()
    validator = LocationValidator(_chain(StubGeocoder("nominatim")), coverage)
    result = asyncio.run(validator.resolve_location("Xyzzy Nowhere"))
    assert result.to_dict() == {"input": "Xyzzy Nowhere", "found": False}
    assert coverage.calls == []
