"""
In-memory caches for place-name geocodes and coverage verdicts.

Both caches use whole-cache eviction: entries carry no individual expiry,
and once the cache is older than its TTL the next sweep drops everything at
once. The geocode cache then re-seeds the fixed stop-name table, so landmark
lookups keep resolving without a network call. Every other name goes back to
the providers after a sweep, all at the same time.

Neither cache takes a lock. Two coroutines resolving the same uncached key
may both reach the providers; the last write wins and both values are
equivalent.
"""
from __future__ import annotations

import os
import re
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Mapping, Optional, Tuple

from route_topology import SEED_STOP_POINTS, Coordinate


GEOCODE_CACHE_TTL_S = float(os.getenv("GEOCODE_CACHE_TTL_S", "3600"))

_WHITESPACE = re.compile(r"\s+")


def normalize_place_name(name: Optional[str]) -> str:
    """Cache key for a place name: trimmed, inner whitespace collapsed, casefolded."""
    return _WHITESPACE.sub(" ", (name or "").strip()).casefold()


def coverage_key(lat: float, lon: float, radius: int) -> Tuple[float, float, int]:
    return (round(float(lat), 6), round(float(lon), 6), int(radius))


class _WholeCache(ABC):
    def __init__(self, ttl_s: float, clock: Callable[[], float]) -> None:
        self.ttl_s = ttl_s
        self._clock = clock
        self._filled_at = clock()
        self.evictions = 0

    def _reset_age(self) -> None:
        self._filled_at = self._clock()

    def age(self, now: Optional[float] = None) -> float:
        return (self._clock() if now is None else now) - self._filled_at

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry and restart the age clock."""
        pass

    def evict_if_due(self, now: Optional[float] = None) -> bool:
        """Drop every entry when the cache is older than its TTL."""
        if self.age(now) < self.ttl_s:
            return False
        self.clear()
        self.evictions += 1
        return True


class GeocodeCache(_WholeCache):
    """Place name -> ``Coordinate``, pre-seeded with known London stops."""

    def __init__(
        self,
        seed: Optional[Mapping[str, Coordinate]] = None,
        *,
        ttl_s: float = GEOCODE_CACHE_TTL_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(ttl_s, clock)
        self._seed = dict(SEED_STOP_POINTS if seed is None else seed)
        self._entries: Dict[str, Coordinate] = {}
        self._load_seed()

    def _load_seed(self) -> None:
        for name, coord in self._seed.items():
            self._entries[normalize_place_name(name)] = coord

    def get(self, name: Optional[str]) -> Optional[Coordinate]:
        key = normalize_place_name(name)
        if not key:
            return None
        return self._entries.get(key)

    def set(self, name: str, coord: Coordinate) -> None:
        key = normalize_place_name(name)
        if key:
            self._entries[key] = coord

    def clear(self) -> None:
        self._entries.clear()
        self._load_seed()
        self._reset_age()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._entries)


class CoverageCache(_WholeCache):
    """``(lat, lon, radius)`` rounded to 1e-6 -> coverage verdict."""

    def __init__(
        self,
        *,
        ttl_s: float = GEOCODE_CACHE_TTL_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(ttl_s, clock)
        self._entries: Dict[Tuple[float, float, int], bool] = {}

    def get(self, lat: float, lon: float, radius: int) -> Optional[bool]:
        return self._entries.get(coverage_key(lat, lon, radius))

    def set(self, lat: float, lon: float, radius: int, covered: bool) -> None:
        self._entries[coverage_key(lat, lon, radius)] = bool(covered)

    def clear(self) -> None:
        self._entries.clear()
        self._reset_age()

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "GEOCODE_CACHE_TTL_S",
    "normalize_place_name",
    "coverage_key",
    "GeocodeCache",
    "CoverageCache",
]
