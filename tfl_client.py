"""Async client for the TfL Unified API (arrivals, stop points, places)."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from provider_errors import MalformedPayload, ProviderUnavailable


TFL_API_BASE = os.getenv("TFL_API_BASE", "https://api.tfl.gov.uk")
PROVIDER_TIMEOUT_S = float(os.getenv("PROVIDER_TIMEOUT_S", "15"))


def _coerce_float(value: Any) -> Optional[float]:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def _coerce_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class ArrivalPrediction:
    """One upstream countdown record for a vehicle approaching a stop."""
    vehicle_id: str
    line_id: str
    direction: Optional[str] = None
    line_name: Optional[str] = None
    current_location: Optional[str] = None
    station_name: Optional[str] = None
    destination_name: Optional[str] = None
    bearing: Optional[float] = None
    time_to_station: Optional[float] = None
    timestamp: Optional[str] = None
    mode_name: Optional[str] = None

    @classmethod
    def from_payload(cls, item: Any) -> Optional["ArrivalPrediction"]:
        """Parse a TfL Prediction object; ``None`` when it has no vehicle."""
        if not isinstance(item, dict):
            return None
        vehicle_id = _coerce_str(item.get("vehicleId"))
        if vehicle_id is None:
            return None
        return cls(
            vehicle_id=vehicle_id,
            line_id=_coerce_str(item.get("lineId")) or "",
            direction=_coerce_str(item.get("direction")),
            line_name=_coerce_str(item.get("lineName")),
            current_location=_coerce_str(item.get("currentLocation")),
            station_name=_coerce_str(item.get("stationName")),
            destination_name=_coerce_str(item.get("destinationName")),
            bearing=_coerce_float(item.get("bearing")),
            time_to_station=_coerce_float(item.get("timeToStation")),
            timestamp=_coerce_str(item.get("timestamp")),
            mode_name=_coerce_str(item.get("modeName")),
        )


class TflClient:
    """Thin wrapper over the TfL endpoints the position engine consumes.

    Every method issues exactly one request and raises ``ProviderUnavailable``
    (or ``MalformedPayload``) on any failure; callers decide the fallback.
    """

    def __init__(
        self,
        base_url: str = TFL_API_BASE,
        app_id: Optional[str] = None,
        app_key: Optional[str] = None,
        *,
        timeout: float = PROVIDER_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
        record_api_call: Optional[Callable[[str, str, int], None]] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._app_id = app_id
        self._app_key = app_key
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._record_api_call = record_api_call

    @classmethod
    def from_env(
        cls,
        client: Optional[httpx.AsyncClient] = None,
        record_api_call: Optional[Callable[[str, str, int], None]] = None,
    ) -> "TflClient":
        """Build a ``TflClient`` from environment configuration.

        Optional environment variables:
        * ``TFL_API_BASE`` - defaults to ``https://api.tfl.gov.uk``
        * ``TFL_APP_ID`` / ``TFL_APP_KEY`` - sent as query parameters when set
        * ``PROVIDER_TIMEOUT_S`` - per-request timeout, default 15
        """
        return cls(
            base_url=(os.getenv("TFL_API_BASE") or TFL_API_BASE).strip(),
            app_id=(os.getenv("TFL_APP_ID") or "").strip() or None,
            app_key=(os.getenv("TFL_APP_KEY") or "").strip() or None,
            timeout=PROVIDER_TIMEOUT_S,
            client=client,
            record_api_call=record_api_call,
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    def _auth_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self._app_id:
            params["app_id"] = self._app_id
        if self._app_key:
            params["app_key"] = self._app_key
        return params

    def _log_url(self, url: str, params: Dict[str, Any]) -> str:
        masked = {k: ("***" if k in {"app_id", "app_key"} else v) for k, v in params.items()}
        return str(httpx.URL(url, params=masked))

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        client = await self._ensure_client()
        url = f"{self._base_url}/{path.lstrip('/')}"
        query = {**(params or {}), **self._auth_params()}
        try:
            response = await client.get(url, params=query, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            raise ProviderUnavailable("tfl", f"timeout GET {path}") from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailable("tfl", f"GET {path} failed: {exc}") from exc

        if self._record_api_call:
            self._record_api_call("GET", self._log_url(url, query), response.status_code)

        if response.status_code >= 400:
            raise ProviderUnavailable(
                "tfl", f"GET {path} returned {response.status_code}", status=response.status_code
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedPayload("tfl", f"GET {path} returned invalid JSON") from exc

    async def _get_predictions(self, path: str) -> List[ArrivalPrediction]:
        data = await self._get_json(path)
        if not isinstance(data, list):
            raise MalformedPayload("tfl", f"GET {path} did not return a list")
        predictions: List[ArrivalPrediction] = []
        for item in data:
            parsed = ArrivalPrediction.from_payload(item)
            if parsed is not None:
                predictions.append(parsed)
        return predictions

    async def line_arrivals(self, route_id: str) -> List[ArrivalPrediction]:
        return await self._get_predictions(f"Line/{route_id}/Arrivals")

    async def mode_arrivals(self, mode: str = "bus") -> List[ArrivalPrediction]:
        return await self._get_predictions(f"Mode/{mode}/Arrivals")

    async def vehicle_arrivals(self, vehicle_id: str) -> List[ArrivalPrediction]:
        return await self._get_predictions(f"Vehicle/{vehicle_id}/Arrivals")

    async def search_stop_points(self, query: str, modes: str = "bus") -> List[Dict[str, Any]]:
        """Stop points matching a free-text name, as ``{name, lat, lon}``."""
        data = await self._get_json("StopPoint/Search", {"query": query, "modes": modes})
        if not isinstance(data, dict):
            raise MalformedPayload("tfl", "StopPoint/Search did not return an object")
        matches = data.get("matches") or []
        if not isinstance(matches, list):
            raise MalformedPayload("tfl", "StopPoint/Search matches is not a list")
        results: List[Dict[str, Any]] = []
        for match in matches:
            if not isinstance(match, dict):
                continue
            lat = _coerce_float(match.get("lat"))
            lon = _coerce_float(match.get("lon"))
            if lat is None or lon is None:
                continue
            results.append({"name": match.get("name") or query, "lat": lat, "lon": lon})
        return results

    async def places_near(self, lat: float, lon: float, radius: int) -> List[Any]:
        data = await self._get_json(
            "Place/",
            {"Lat": lat, "Lon": lon, "radius": radius, "numberOfPlacesToReturn": 5},
        )
        if isinstance(data, dict):
            data = data.get("places") or []
        if not isinstance(data, list):
            raise MalformedPayload("tfl", "Place search did not return a list")
        return data

    async def stop_points_near(self, lat: float, lon: float, radius: int) -> List[Any]:
        data = await self._get_json("StopPoint", {"lat": lat, "lon": lon, "radius": radius})
        if isinstance(data, dict):
            data = data.get("stopPoints") or []
        if not isinstance(data, list):
            raise MalformedPayload("tfl", "StopPoint search did not return a list")
        return data


__all__ = [
    "TFL_API_BASE",
    "PROVIDER_TIMEOUT_S",
    "ArrivalPrediction",
    "TflClient",
]
