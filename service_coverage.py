"""London service-coverage check backed by TfL spatial search."""
from __future__ import annotations

import math
import os
from typing import Any, Optional

from location_cache import CoverageCache
from provider_errors import ProviderUnavailable


COVERAGE_RADIUS_M = int(os.getenv("COVERAGE_RADIUS_M", "2000"))


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class CoverageChecker:
    """Is there any TfL place or stop point near a coordinate?

    Deliberately has no bounding-box shortcut: TfL coverage is irregular, so
    the verdict comes from the live place and stop-point searches only.
    """

    def __init__(self, tfl_client: Any, cache: CoverageCache, radius: int = COVERAGE_RADIUS_M) -> None:
        self._tfl = tfl_client
        self.cache = cache
        self.radius = radius

    async def is_covered(self, lat: Any, lon: Any, radius: Optional[int] = None) -> bool:
        if not _is_number(lat) or not _is_number(lon):
            return False
        radius = self.radius if radius is None else int(radius)

        cached = self.cache.get(lat, lon, radius)
        if cached is not None:
            return cached

        probes = (
            ("place", self._tfl.places_near),
            ("stop_point", self._tfl.stop_points_near),
        )
        for label, probe in probes:
            try:
                matches = await probe(lat, lon, radius)
            except ProviderUnavailable as e:
                print(f"[coverage] {label} lookup failed: {e}")
                continue
            if matches:
                self.cache.set(lat, lon, radius, True)
                return True

        self.cache.set(lat, lon, radius, False)
        return False


__all__ = ["COVERAGE_RADIUS_M", "CoverageChecker"]
