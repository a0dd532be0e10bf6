"""
Simulated backup fleet.

The fleet is a fixed-size tuple of ``VehicleRecord`` owned by
``FleetSimulator``. Every tick computes a brand-new tuple and swaps it in with
a single attribute assignment, so a reader holding the result of
``snapshot()`` always sees one complete generation of the fleet.

Tick rules
----------
- Project each vehicle ``speed`` degrees along its heading plus a tiny jitter.
- If the projection leaves the operating box, reverse the heading and keep
  the old position for this tick (bounce).
- Otherwise commit the move and walk ``time_to_station`` down by 5 s with up
  to 10 s of random slack, never below 30 s.
"""
from __future__ import annotations

import asyncio
import math
import os
import random
from dataclasses import replace
from typing import Any, Optional, Sequence, Tuple

from route_topology import (
    SIMULATED_ROUTE_IDS,
    area_for,
    clamp_to_bounds,
    in_bounds,
    point_along_stops,
    stops_for_route,
)
from vehicle_record import SOURCE_SIMULATED, VehicleRecord, utc_now_iso


FLEET_SIZE = int(os.getenv("FLEET_SIZE", "64"))
SIM_TICK_S = float(os.getenv("SIM_TICK_S", "5"))

MOVE_JITTER_DEG = 0.000005
TIME_TO_STATION_STEP_S = 5
TIME_TO_STATION_JITTER_S = 10
MIN_TIME_TO_STATION_S = 30


def _make_vehicle(index: int, route_id: str, lat: float, lon: float, now_iso: str) -> VehicleRecord:
    area = area_for(lat, lon)
    inbound = index % 2 == 0
    return VehicleRecord(
        vehicle_id=f"SIM{index + 1000:04d}",
        line_id=route_id,
        direction="inbound" if inbound else "outbound",
        lat=lat,
        lon=lon,
        heading=(index * 45) % 360,
        speed=0.0012 + (index % 10) * 0.0001,
        time_to_station=60 + (index % 7) * 30,
        last_updated=now_iso,
        position_source=SOURCE_SIMULATED,
        has_real_position=False,
        line_name=f"Bus {route_id}",
        station_name=f"{area} Bus Stop",
        destination_name="Canada Water" if inbound else "Victoria Station",
        current_location=f"Route {route_id}, {area}",
        route_area=area,
    )


def build_initial_fleet(
    size: int = FLEET_SIZE,
    route_ids: Sequence[str] = SIMULATED_ROUTE_IDS,
) -> Tuple[VehicleRecord, ...]:
    """Lay ``size`` vehicles out along the simulated routes' stop sequences."""
    now_iso = utc_now_iso()
    vehicles = []
    for i in range(size):
        route_id = route_ids[i % len(route_ids)]
        fraction = (i % 20) / 20
        point = point_along_stops(stops_for_route(route_id), fraction)
        lat_offset = ((i * 13) % 100 - 50) * 0.0001
        lon_offset = ((i * 17) % 100 - 50) * 0.0001
        placed = clamp_to_bounds(point.lat + lat_offset, point.lon + lon_offset)
        vehicles.append(_make_vehicle(i, route_id, placed.lat, placed.lon, now_iso))
    print(f"[fleet] created {len(vehicles)} simulated vehicles")
    return tuple(vehicles)


def advance_vehicle(vehicle: VehicleRecord, rng: Any = None, now_iso: Optional[str] = None) -> VehicleRecord:
    """One simulation step for a single vehicle."""
    rng = rng or random
    now_iso = now_iso or utc_now_iso()
    heading_rad = math.radians(vehicle.heading)
    new_lat = (
        vehicle.lat
        + math.cos(heading_rad) * vehicle.speed
        + rng.uniform(-MOVE_JITTER_DEG, MOVE_JITTER_DEG)
    )
    new_lon = (
        vehicle.lon
        + math.sin(heading_rad) * vehicle.speed
        + rng.uniform(-MOVE_JITTER_DEG, MOVE_JITTER_DEG)
    )

    if not in_bounds(new_lat, new_lon):
        return replace(
            vehicle,
            heading=(vehicle.heading + 180) % 360,
            last_updated=now_iso,
        )

    time_to_station = max(
        MIN_TIME_TO_STATION_S,
        vehicle.time_to_station
        - TIME_TO_STATION_STEP_S
        + rng.uniform(0, TIME_TO_STATION_JITTER_S),
    )
    return replace(
        vehicle,
        lat=new_lat,
        lon=new_lon,
        time_to_station=int(time_to_station),
        route_area=area_for(new_lat, new_lon),
        last_updated=now_iso,
    )


class FleetSimulator:
    """Owns the simulated fleet and advances it on a fixed period."""

    def __init__(
        self,
        fleet: Optional[Sequence[VehicleRecord]] = None,
        *,
        size: int = FLEET_SIZE,
        tick_interval_s: float = SIM_TICK_S,
        rng: Any = None,
    ) -> None:
        if fleet is None:
            fleet = build_initial_fleet(size)
        self._fleet: Tuple[VehicleRecord, ...] = tuple(fleet)
        self.tick_interval_s = tick_interval_s
        self._rng = rng or random.Random()
        self.tick_count = 0

    def snapshot(self) -> Tuple[VehicleRecord, ...]:
        return self._fleet

    def find(self, vehicle_id: str) -> Optional[VehicleRecord]:
        for vehicle in self._fleet:
            if vehicle.vehicle_id == vehicle_id:
                return vehicle
        return None

    def tick(self) -> Tuple[VehicleRecord, ...]:
        now_iso = utc_now_iso()
        current = self._fleet
        advanced = tuple(advance_vehicle(v, self._rng, now_iso) for v in current)
        self._fleet = advanced
        self.tick_count += 1
        return advanced

    async def run(self) -> None:
        """Tick forever; meant to run as a background task."""
        print(f"[fleet] simulation loop started interval={self.tick_interval_s}s size={len(self._fleet)}")
        while True:
            await asyncio.sleep(self.tick_interval_s)
            try:
                self.tick()
            except Exception as exc:
                print(f"[fleet] tick failed: {exc}")


__all__ = [
    "FLEET_SIZE",
    "SIM_TICK_S",
    "MIN_TIME_TO_STATION_S",
    "build_initial_fleet",
    "advance_vehicle",
    "FleetSimulator",
]
