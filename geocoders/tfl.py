"""TfL stop-point name search as a geocoder."""
from __future__ import annotations

from typing import Optional

from tfl_client import TflClient

from . import GeocodeHit, Geocoder


class StopPointGeocoder(Geocoder):
    """First TfL bus stop point whose name matches the query."""

    name = "tfl_stop_point"

    def __init__(self, tfl_client: TflClient) -> None:
        self._tfl = tfl_client

    async def search(self, query: str) -> Optional[GeocodeHit]:
        matches = await self._tfl.search_stop_points(query)
        if not matches:
            return None
        first = matches[0]
        return GeocodeHit(lat=first["lat"], lon=first["lon"], source=self.name)


__all__ = ["StopPointGeocoder"]
