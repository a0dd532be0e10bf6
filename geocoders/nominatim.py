"""OpenStreetMap Nominatim search, the last geocoder in the chain."""
from __future__ import annotations

import os
from typing import Callable, Optional

import httpx

from provider_errors import MalformedPayload

from . import GeocodeHit, Geocoder, fetch_json


NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "london-vehicle-tracker/1.0")
PROVIDER_TIMEOUT_S = float(os.getenv("PROVIDER_TIMEOUT_S", "15"))


class NominatimGeocoder(Geocoder):
    name = "nominatim"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        url: str = NOMINATIM_URL,
        user_agent: str = NOMINATIM_USER_AGENT,
        timeout: float = PROVIDER_TIMEOUT_S,
        record_api_call: Optional[Callable[[str, str, int], None]] = None,
    ) -> None:
        self._client = client
        self._url = url
        self._user_agent = user_agent
        self._timeout = timeout
        self._record_api_call = record_api_call

    async def search(self, query: str) -> Optional[GeocodeHit]:
        # Nominatim's usage policy requires an identifying User-Agent
        data = await fetch_json(
            self._client,
            self.name,
            self._url,
            {"q": query, "format": "json", "limit": 1},
            timeout=self._timeout,
            headers={"User-Agent": self._user_agent, "Accept-Language": "en"},
            record_api_call=self._record_api_call,
        )
        if not isinstance(data, list):
            raise MalformedPayload(self.name, "response is not a list")
        if not data:
            return None
        first = data[0]
        try:
            return GeocodeHit(lat=float(first["lat"]), lon=float(first["lon"]), source=self.name)
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayload(self.name, "result has no usable lat/lon") from exc


__all__ = ["NOMINATIM_URL", "NOMINATIM_USER_AGENT", "NominatimGeocoder"]
