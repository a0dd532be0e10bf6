"""
Geocoders Module

Ordered place-name lookup providers used by the geocode cascade. Each
provider subclasses ``Geocoder`` and answers one question: "where is this
place?". Providers issue at most one upstream request per ``search`` call and
never retry; the cascade decides what happens next.

Example usage:
    from geocoders import Geocoder
    from geocoders.tfl import StopPointGeocoder
    from geocoders.google import GoogleGeocoder
    from geocoders.nominatim import NominatimGeocoder

    resolvers = [
        StopPointGeocoder(tfl_client),
        GoogleGeocoder(api_key=os.getenv("GOOGLE_GEOCODING_API_KEY"), client=http),
        NominatimGeocoder(client=http),
    ]

    hit = await resolvers[0].search("Oxford Circus")
    # Returns: GeocodeHit(lat=51.5155, lon=-0.1412, source="tfl_stop_point") or None
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from provider_errors import MalformedPayload, ProviderUnavailable


OUTCOME_HIT = "hit"
OUTCOME_EMPTY = "empty"
OUTCOME_ERROR = "error"
OUTCOME_SKIPPED = "skipped"


@dataclass(frozen=True)
class GeocodeHit:
    """Coordinates returned by a provider."""
    lat: float
    lon: float
    source: str  # provider name, e.g. "nominatim"


@dataclass(frozen=True)
class ResolverOutcome:
    """What one provider did during a single resolution."""
    provider: str
    status: str  # hit / empty / error / skipped
    hit: Optional[GeocodeHit] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "provider": self.provider,
            "status": self.status,
            "lat": self.hit.lat if self.hit else None,
            "lon": self.hit.lon if self.hit else None,
            "error": self.error,
        }


class Geocoder(ABC):
    """
    Abstract base class for place-name lookup providers.

    Implementations should:
    - Report ``is_configured() == False`` when a required credential is
      missing, so the cascade can skip them without a request
    - Return ``None`` from ``search`` when the provider answered but found
      nothing
    - Raise ``ProviderUnavailable`` for transport errors, timeouts, non-2xx
      responses and unusable bodies
    """

    name: str = "geocoder"

    def is_configured(self) -> bool:
        return True

    @abstractmethod
    async def search(self, query: str) -> Optional[GeocodeHit]:
        """
        Look up a single place name.

        Returns:
            GeocodeHit with the best match, or None when nothing matched.
        """
        pass


async def fetch_json(
    client: httpx.AsyncClient,
    provider: str,
    url: str,
    params: Dict[str, Any],
    *,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
    secret_params: frozenset = frozenset(),
    record_api_call: Optional[Callable[[str, str, int], None]] = None,
) -> Any:
    """GET ``url`` once and decode JSON, mapping every failure to ``ProviderUnavailable``."""
    try:
        response = await client.get(url, params=params, headers=headers, timeout=timeout)
    except httpx.TimeoutException as exc:
        raise ProviderUnavailable(provider, "timeout") from exc
    except httpx.HTTPError as exc:
        raise ProviderUnavailable(provider, f"request failed: {exc}") from exc

    if record_api_call:
        masked = {k: ("***" if k in secret_params else v) for k, v in params.items()}
        record_api_call("GET", str(httpx.URL(url, params=masked)), response.status_code)

    if response.status_code >= 400:
        raise ProviderUnavailable(
            provider, f"returned {response.status_code}", status=response.status_code
        )
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedPayload(provider, "invalid JSON") from exc


__all__ = [
    "OUTCOME_HIT",
    "OUTCOME_EMPTY",
    "OUTCOME_ERROR",
    "OUTCOME_SKIPPED",
    "GeocodeHit",
    "ResolverOutcome",
    "Geocoder",
    "fetch_json",
]
