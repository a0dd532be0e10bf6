"""
Geocode resolution cascade.

``GeocodeCascade.resolve(name)`` answers from the cache when it can, then
walks its geocoders in priority order:

    cache-hit ──────────────────────────────► found
    provider-query[0] ─ hit ─► cache write ─► found
        │ empty / error / skipped
        ▼
    provider-query[1] ...
        │
        ▼
    exhausted ──────────────────────────────► not found

Each provider is asked once per resolution. A provider that is not configured
(for example Google without an API key) is recorded as ``skipped`` and never
contacted. Failures are logged and advance the chain; ``resolve`` itself does
not raise for provider trouble.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from geocoders import (
    OUTCOME_EMPTY,
    OUTCOME_ERROR,
    OUTCOME_HIT,
    OUTCOME_SKIPPED,
    Geocoder,
    ResolverOutcome,
)
from location_cache import GeocodeCache
from provider_errors import ProviderUnavailable
from route_topology import Coordinate


SOURCE_CACHE = "cache"


@dataclass
class CascadeResult:
    query: str
    found: bool
    lat: Optional[float] = None
    lon: Optional[float] = None
    source: Optional[str] = None  # "cache" or the geocoder name
    outcomes: List[ResolverOutcome] = field(default_factory=list)

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if not self.found or self.lat is None or self.lon is None:
            return None
        return Coordinate(self.lat, self.lon)


@dataclass
class LocationValidation:
    input: Optional[str]
    found: bool
    lat: Optional[float] = None
    lon: Optional[float] = None
    in_london: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"input": self.input, "found": self.found}
        if self.found:
            out.update({"lat": self.lat, "lon": self.lon, "inLondon": self.in_london})
        return out


class GeocodeCascade:
    def __init__(self, geocoders: Sequence[Geocoder], cache: GeocodeCache) -> None:
        self.geocoders = list(geocoders)
        self.cache = cache

    def cached(self, name: Optional[str]) -> Optional[Coordinate]:
        """Cache-only lookup; never touches the network."""
        return self.cache.get(name)

    async def resolve(self, name: Optional[str]) -> CascadeResult:
        query = (name or "").strip()
        if not query:
            return CascadeResult(query=query, found=False)

        hit = self.cache.get(query)
        if hit is not None:
            return CascadeResult(query=query, found=True, lat=hit.lat, lon=hit.lon, source=SOURCE_CACHE)

        outcomes: List[ResolverOutcome] = []
        for geocoder in self.geocoders:
            if not geocoder.is_configured():
                outcomes.append(ResolverOutcome(geocoder.name, OUTCOME_SKIPPED))
                continue
            try:
                result = await geocoder.search(query)
            except ProviderUnavailable as e:
                print(f"[geocode] {geocoder.name} failed for {query!r}: {e}")
                outcomes.append(ResolverOutcome(geocoder.name, OUTCOME_ERROR, error=str(e)))
                continue
            if result is None:
                outcomes.append(ResolverOutcome(geocoder.name, OUTCOME_EMPTY))
                continue

            outcomes.append(ResolverOutcome(geocoder.name, OUTCOME_HIT, hit=result))
            self.cache.set(query, Coordinate(result.lat, result.lon))
            return CascadeResult(
                query=query,
                found=True,
                lat=result.lat,
                lon=result.lon,
                source=geocoder.name,
                outcomes=outcomes,
            )

        print(f"[geocode] no provider resolved {query!r}")
        return CascadeResult(query=query, found=False, outcomes=outcomes)


class LocationValidator:
    """Place name -> coordinates plus a London service-coverage verdict."""

    def __init__(self, cascade: GeocodeCascade, coverage: Any) -> None:
        self.cascade = cascade
        self.coverage = coverage

    async def resolve_location(self, name: Optional[str]) -> LocationValidation:
        if not name or not name.strip():
            return LocationValidation(input=name, found=False)
        result = await self.cascade.resolve(name)
        if not result.found:
            return LocationValidation(input=name, found=False)
        in_london = await self.coverage.is_covered(result.lat, result.lon)
        return LocationValidation(
            input=name,
            found=True,
            lat=result.lat,
            lon=result.lon,
            in_london=in_london,
        )


__all__ = [
    "SOURCE_CACHE",
    "CascadeResult",
    "LocationValidation",
    "GeocodeCascade",
    "LocationValidator",
]
