"""Google Maps geocoding API, used only when an API key is configured."""
from __future__ import annotations

import os
from typing import Callable, Optional

import httpx

from provider_errors import MalformedPayload

from . import GeocodeHit, Geocoder, fetch_json


GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
PROVIDER_TIMEOUT_S = float(os.getenv("PROVIDER_TIMEOUT_S", "15"))


class GoogleGeocoder(Geocoder):
    name = "google"

    def __init__(
        self,
        api_key: Optional[str],
        client: httpx.AsyncClient,
        *,
        url: str = GOOGLE_GEOCODE_URL,
        region: str = "uk",
        timeout: float = PROVIDER_TIMEOUT_S,
        record_api_call: Optional[Callable[[str, str, int], None]] = None,
    ) -> None:
        self._api_key = (api_key or "").strip() or None
        self._client = client
        self._url = url
        self._region = region
        self._timeout = timeout
        self._record_api_call = record_api_call

    def is_configured(self) -> bool:
        return self._api_key is not None

    async def search(self, query: str) -> Optional[GeocodeHit]:
        data = await fetch_json(
            self._client,
            self.name,
            self._url,
            {"address": query, "region": self._region, "key": self._api_key},
            timeout=self._timeout,
            secret_params=frozenset({"key"}),
            record_api_call=self._record_api_call,
        )
        if not isinstance(data, dict):
            raise MalformedPayload(self.name, "response is not an object")
        results = data.get("results") or []
        if not results:
            return None
        try:
            location = results[0]["geometry"]["location"]
            return GeocodeHit(lat=float(location["lat"]), lon=float(location["lng"]), source=self.name)
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayload(self.name, "result has no usable location") from exc


__all__ = ["GOOGLE_GEOCODE_URL", "GoogleGeocoder"]
