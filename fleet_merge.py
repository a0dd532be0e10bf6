"""
Live/simulated merge policy.

``FleetMerger`` is the one place that mixes upstream countdown data with the
simulated fleet. Three read paths hang off it:

``resolve_fleet``
    Per-route arrivals, fetched one route at a time with a short pause in
    between, at most three records per route, duplicates dropped (first
    wins). Positions come from the text/route resolvers. Short results are
    topped up from the simulated fleet and everything is cut to the target
    size, so callers always get a full map when the fleet is big enough.

``live_vehicles``
    The mode-wide arrivals feed with hash-synthesized positions pulled
    towards each vehicle's next stop. Empty feed -> the simulated fleet.

``selected_vehicle_position``
    One vehicle: its own arrivals, else the fleet member, else a route "1"
    placeholder. Never raises for an unknown id.
"""
from __future__ import annotations

import asyncio
import os
import random
from dataclasses import replace
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set

from fleet_sim import FLEET_SIZE, FleetSimulator
from interpolation import approach_position
from position_resolvers import resolve_from_route, resolve_record_position
from position_synth import synthesize_position
from provider_errors import ProviderUnavailable
from route_topology import (
    DEFAULT_ROUTE_ID,
    DEFAULT_TRACKED_ROUTES,
    Coordinate,
    area_for,
    clamp_to_bounds,
)
from vehicle_record import (
    DEFAULT_TIME_TO_STATION_S,
    SOURCE_FALLBACK,
    SOURCE_LIVE_PROVIDER,
    SOURCE_SIMULATED,
    SOURCE_SIMULATED_FALLBACK,
    VehicleRecord,
    utc_now_iso,
)


ROUTE_FETCH_DELAY_S = float(os.getenv("ROUTE_FETCH_DELAY_S", "0.2"))
ROUTE_RECORD_LIMIT = int(os.getenv("ROUTE_RECORD_LIMIT", "3"))

LIVE_SPEED_MIN = 0.0005
LIVE_SPEED_RANGE = 0.001


def parse_route_ids(raw: Optional[str]) -> List[str]:
    """``"1, 12,,18"`` -> ``["1", "12", "18"]``."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _time_to_station(value: Optional[float]) -> int:
    # A zero countdown is reported upstream for "due"; treat it like unknown
    if not value:
        return DEFAULT_TIME_TO_STATION_S
    return int(value)


def _heading(bearing: Optional[float], rng: Any) -> int:
    if bearing:
        return int(bearing) % 360
    return rng.randrange(360)


class FleetMerger:
    def __init__(
        self,
        telemetry: Any,
        simulator: FleetSimulator,
        *,
        stop_lookup: Any = None,
        geocode_cache: Any = None,
        route_delay_s: float = ROUTE_FETCH_DELAY_S,
        per_route_limit: int = ROUTE_RECORD_LIMIT,
        rng: Any = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.telemetry = telemetry
        self.simulator = simulator
        self.stop_lookup = stop_lookup
        if geocode_cache is None and stop_lookup is not None:
            geocode_cache = stop_lookup.cache
        self.geocode_cache = geocode_cache
        self.route_delay_s = route_delay_s
        self.per_route_limit = per_route_limit
        self._rng = rng or random.Random()
        self._sleep = sleep

    # ------------------------------------------------------------------
    # resolve_fleet
    # ------------------------------------------------------------------

    def _cached_stop(self, name: Optional[str]) -> Optional[Coordinate]:
        if self.geocode_cache is None or not name:
            return None
        return self.geocode_cache.get(name)

    def _record_from_prediction(self, pred: Any, now_iso: str) -> VehicleRecord:
        direction = pred.direction or "inbound"
        coord, source = resolve_record_position(
            pred.current_location, pred.line_id, direction, self._rng
        )
        next_stop = self._cached_stop(pred.station_name)
        if next_stop is not None:
            coord = approach_position(coord, next_stop, pred.time_to_station)
        coord = clamp_to_bounds(coord.lat, coord.lon)
        area = area_for(coord.lat, coord.lon)
        line_id = pred.line_id or DEFAULT_ROUTE_ID
        return VehicleRecord(
            vehicle_id=pred.vehicle_id,
            line_id=line_id,
            direction=direction,
            lat=coord.lat,
            lon=coord.lon,
            heading=_heading(pred.bearing, self._rng),
            speed=LIVE_SPEED_MIN + self._rng.random() * LIVE_SPEED_RANGE,
            time_to_station=_time_to_station(pred.time_to_station),
            last_updated=pred.timestamp or now_iso,
            position_source=source,
            has_real_position=True,
            line_name=pred.line_name,
            station_name=pred.station_name,
            destination_name=pred.destination_name,
            current_location=pred.current_location or f"Route {line_id}, {area}",
            route_area=area,
            mode_name=pred.mode_name or "bus",
            next_stop=next_stop,
        )

    async def _collect_live(self, route_ids: Sequence[str]) -> List[VehicleRecord]:
        seen: Set[str] = set()
        live: List[VehicleRecord] = []
        now_iso = utc_now_iso()
        for i, route_id in enumerate(route_ids):
            if i > 0 and self.route_delay_s > 0:
                await self._sleep(self.route_delay_s)
            try:
                predictions = await self.telemetry.line_arrivals(route_id)
            except ProviderUnavailable as e:
                print(f"[merge] route {route_id} skipped: {e}")
                continue
            for pred in predictions[: self.per_route_limit]:
                if pred.vehicle_id in seen:
                    continue
                seen.add(pred.vehicle_id)
                live.append(self._record_from_prediction(pred, now_iso))
        return live

    async def resolve_fleet(
        self,
        route_ids: Optional[Sequence[str]] = None,
        target_size: int = FLEET_SIZE,
    ) -> List[VehicleRecord]:
        """Live vehicles for ``route_ids`` topped up to ``target_size`` from the simulated fleet."""
        routes = list(route_ids) if route_ids else list(DEFAULT_TRACKED_ROUTES)
        target_size = max(0, int(target_size))
        snapshot = self.simulator.snapshot()

        try:
            live = await self._collect_live(routes)
            live_ids = {v.vehicle_id for v in live}
            merged = live[:target_size]
            needed = target_size - len(merged)
            if needed > 0:
                fill = [v for v in snapshot if v.vehicle_id not in live_ids][:needed]
                merged.extend(v.tagged(SOURCE_SIMULATED, has_real_position=False) for v in fill)
        except Exception as e:
            print(f"[merge] live phase failed, serving simulated fleet: {e}")
            return [
                v.tagged(SOURCE_SIMULATED_FALLBACK, has_real_position=False)
                for v in snapshot[:target_size]
            ]

        real = sum(1 for v in merged if v.has_real_position)
        print(f"[merge] total={len(merged)} real={real} routes={','.join(routes)}")
        return merged

    # ------------------------------------------------------------------
    # live_vehicles
    # ------------------------------------------------------------------

    async def _lookup_stop(self, name: Optional[str]) -> Optional[Coordinate]:
        if not name:
            return None
        if self.stop_lookup is None:
            return self._cached_stop(name)
        result = await self.stop_lookup.resolve(name)
        return result.coordinate

    async def _live_record(self, pred: Any, now_iso: str) -> VehicleRecord:
        line_id = pred.line_id or DEFAULT_ROUTE_ID
        direction = pred.direction or "inbound"
        base = synthesize_position(pred.vehicle_id, line_id, direction)

        next_stop, destination = await asyncio.gather(
            self._lookup_stop(pred.station_name or pred.current_location),
            self._lookup_stop(pred.destination_name),
        )
        coord = approach_position(base, next_stop, pred.time_to_station)

        return VehicleRecord(
            vehicle_id=pred.vehicle_id,
            line_id=line_id,
            direction=direction,
            lat=coord.lat,
            lon=coord.lon,
            heading=int(pred.bearing or 0) % 360,
            speed=0.0,
            time_to_station=int(pred.time_to_station or 0),
            last_updated=pred.timestamp or now_iso,
            position_source=SOURCE_LIVE_PROVIDER,
            has_real_position=True,
            line_name=pred.line_name or "Unknown",
            station_name=pred.station_name or "Unknown Stop",
            destination_name=pred.destination_name or "Unknown Destination",
            current_location=pred.current_location or pred.station_name or "Unknown",
            route_area=area_for(coord.lat, coord.lon),
            mode_name=pred.mode_name or "bus",
            next_stop=next_stop,
            destination=destination,
        )

    async def live_vehicles(self, limit: int = FLEET_SIZE) -> List[VehicleRecord]:
        """Up to ``limit`` vehicles from the mode-wide arrivals feed, or the simulated fleet when it is empty."""
        try:
            predictions = await self.telemetry.mode_arrivals("bus")
        except ProviderUnavailable as e:
            print(f"[merge] live feed unavailable: {e}")
            predictions = []

        seen: Set[str] = set()
        unique = []
        for pred in predictions:
            if len(unique) >= limit:
                break
            if pred.vehicle_id in seen:
                continue
            seen.add(pred.vehicle_id)
            unique.append(pred)

        if not unique:
            print("[merge] no live vehicles, falling back to simulated fleet")
            return [
                replace(
                    v.tagged(SOURCE_SIMULATED, has_real_position=False),
                    next_stop=resolve_from_route(v.line_id, v.direction, self._rng),
                    destination=None,
                )
                for v in self.simulator.snapshot()[:limit]
            ]

        now_iso = utc_now_iso()
        records = list(await asyncio.gather(*(self._live_record(pred, now_iso) for pred in unique)))
        print(f"[merge] live feed vehicles={len(records)}")
        return records

    # ------------------------------------------------------------------
    # selected_vehicle_position
    # ------------------------------------------------------------------

    async def selected_vehicle_position(self, vehicle_id: str) -> VehicleRecord:
        try:
            arrivals = await self.telemetry.vehicle_arrivals(vehicle_id)
        except ProviderUnavailable as e:
            print(f"[merge] arrivals for {vehicle_id} unavailable: {e}")
            arrivals = []

        if arrivals:
            return self._record_from_prediction(arrivals[0], utc_now_iso())

        simulated = self.simulator.find(vehicle_id)
        if simulated is not None:
            return simulated.tagged(SOURCE_SIMULATED, has_real_position=False)

        coord = resolve_from_route(DEFAULT_ROUTE_ID, "inbound", self._rng)
        return VehicleRecord(
            vehicle_id=vehicle_id,
            line_id=DEFAULT_ROUTE_ID,
            direction="inbound",
            lat=coord.lat,
            lon=coord.lon,
            heading=180,
            speed=0.0,
            time_to_station=DEFAULT_TIME_TO_STATION_S,
            last_updated=utc_now_iso(),
            position_source=SOURCE_FALLBACK,
            has_real_position=False,
            line_name=DEFAULT_ROUTE_ID,
            current_location="Central London",
            route_area=area_for(coord.lat, coord.lon),
        )


__all__ = [
    "ROUTE_FETCH_DELAY_S",
    "ROUTE_RECORD_LIMIT",
    "parse_route_ids",
    "FleetMerger",
]
