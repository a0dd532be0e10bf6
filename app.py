"""
London Vehicle Tracker - position and geocode API (FastAPI)

Purpose
=======
Serve plausible, stable bus positions for a London map when TfL's countdown
feed carries no GPS, and resolve free-form place names to coordinates with a
London coverage verdict.

Key features
------------
- Per-route TfL arrivals merged with a continuously simulated backup fleet so
  the map always has a full complement of vehicles.
- Mode-wide live feed with hash-synthesized positions pulled towards each
  vehicle's next stop.
- Place-name validation through an ordered geocoder chain (TfL stop points,
  Google when keyed, Nominatim) with an in-memory cache.
- Recent upstream calls exposed for debugging.

Run
---
$ uvicorn app:app --reload --port 8080

Environment
-----------
- PYTHON >= 3.10
- pip install fastapi uvicorn httpx
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import asyncio, os, time
from collections import deque

import httpx
from fastapi import FastAPI, HTTPException, Query

from fleet_merge import FleetMerger, parse_route_ids
from fleet_sim import FLEET_SIZE, SIM_TICK_S, FleetSimulator
from geocode_cascade import GeocodeCascade, LocationValidator
from geocoders.google import GoogleGeocoder
from geocoders.nominatim import NominatimGeocoder
from geocoders.tfl import StopPointGeocoder
from location_cache import GEOCODE_CACHE_TTL_S, CoverageCache, GeocodeCache
from service_coverage import COVERAGE_RADIUS_M, CoverageChecker
from tfl_client import PROVIDER_TIMEOUT_S, TflClient


# ---------------------------
# Config
# ---------------------------
GOOGLE_GEOCODING_API_KEY = os.getenv("GOOGLE_GEOCODING_API_KEY")
CACHE_SWEEP_S = float(os.getenv("CACHE_SWEEP_S", "300"))
TEST_VEHICLE_LIMIT = 50


# ---------------------------
# Upstream call log
# ---------------------------
API_CALL_LOG = deque(maxlen=100)


def record_api_call(method: str, url: str, status: int) -> None:
    item = {"ts": int(time.time() * 1000), "method": method, "url": url, "status": status}
    API_CALL_LOG.append(item)


# ---------------------------
# App & state
# ---------------------------
app = FastAPI(title="London Vehicle Tracker")


def build_services(http_client: httpx.AsyncClient) -> Dict[str, Any]:
    """Wire the core services around one shared HTTP client."""
    tfl = TflClient.from_env(client=http_client, record_api_call=record_api_call)
    geocode_cache = GeocodeCache(ttl_s=GEOCODE_CACHE_TTL_S)
    coverage_cache = CoverageCache(ttl_s=GEOCODE_CACHE_TTL_S)
    stop_geocoder = StopPointGeocoder(tfl)
    cascade = GeocodeCascade(
        [
            stop_geocoder,
            GoogleGeocoder(GOOGLE_GEOCODING_API_KEY, http_client, record_api_call=record_api_call),
            NominatimGeocoder(http_client, record_api_call=record_api_call),
        ],
        geocode_cache,
    )
    # Next-stop lookups for live vehicles only consult TfL, sharing the cache
    stop_cascade = GeocodeCascade([stop_geocoder], geocode_cache)
    coverage = CoverageChecker(tfl, coverage_cache, radius=COVERAGE_RADIUS_M)
    simulator = FleetSimulator(size=FLEET_SIZE, tick_interval_s=SIM_TICK_S)
    return {
        "tfl_client": tfl,
        "geocode_cache": geocode_cache,
        "coverage_cache": coverage_cache,
        "cascade": cascade,
        "validator": LocationValidator(cascade, coverage),
        "simulator": simulator,
        "merger": FleetMerger(tfl, simulator, stop_lookup=stop_cascade),
    }


async def cache_sweeper() -> None:
    while True:
        await asyncio.sleep(CACHE_SWEEP_S)
        try:
            if app.state.geocode_cache.evict_if_due():
                app.state.coverage_cache.clear()
                print(f"[geocode] cleared location caches (size now {len(app.state.geocode_cache)})")
        except Exception as e:
            print(f"[geocode] cache sweep error: {e}")


@app.on_event("startup")
async def init_services() -> None:
    app.state.http_client = httpx.AsyncClient(timeout=PROVIDER_TIMEOUT_S)
    for name, service in build_services(app.state.http_client).items():
        setattr(app.state, name, service)
    app.state.background_tasks = [
        asyncio.create_task(app.state.simulator.run()),
        asyncio.create_task(cache_sweeper()),
    ]
    print(f"[startup] services ready fleet={len(app.state.simulator.snapshot())}")


@app.on_event("shutdown")
async def shutdown_services() -> None:
    for task in getattr(app.state, "background_tasks", []):
        task.cancel()
    http_client = getattr(app.state, "http_client", None)
    if http_client is not None:
        await http_client.aclose()


def _serialize(vehicles) -> List[Dict[str, Any]]:
    return [v.to_dict() for v in vehicles]


# ---------------------------
# Health
# ---------------------------
@app.get("/v1/health")
async def health():
    return {"ok": True}


@app.get("/v1/api_calls")
async def api_calls():
    return list(API_CALL_LOG)


# ---------------------------
# Vehicles
# ---------------------------
@app.get("/api/vehicles/tracking")
async def vehicle_tracking(
    route_ids: Optional[str] = Query(None),
    target: int = Query(FLEET_SIZE, ge=0, le=500),
):
    vehicles = await app.state.merger.resolve_fleet(parse_route_ids(route_ids), target)
    return _serialize(vehicles)


@app.get("/api/vehicles/live")
async def live_vehicles():
    return _serialize(await app.state.merger.live_vehicles())


@app.get("/api/vehicles/simulated")
async def simulated_vehicles():
    return _serialize(app.state.simulator.snapshot())


@app.get("/api/vehicles/test")
async def preview_vehicles(count: int = Query(10, ge=1, le=TEST_VEHICLE_LIMIT)):
    return _serialize(app.state.simulator.snapshot()[:count])


@app.get("/api/vehicles/{vehicle_id}/position")
async def vehicle_position(vehicle_id: str):
    vehicle = await app.state.merger.selected_vehicle_position(vehicle_id)
    return vehicle.to_dict()


# ---------------------------
# Locations
# ---------------------------
@app.get("/api/locations/validate")
async def validate_location(name: Optional[str] = Query(None)):
    if not name or not name.strip():
        raise HTTPException(status_code=400, detail="name is required")
    result = await app.state.validator.resolve_location(name)
    return result.to_dict()
