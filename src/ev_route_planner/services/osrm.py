from __future__ import annotations

import hashlib
import time
from typing import Any

import httpx
from django.conf import settings
from django.core.cache import cache

from ev_route_planner.exceptions import ExternalServiceError, NoRouteFoundError
from ev_route_planner.services.types import GeoPoint, RouteSummary

METERS_TO_MILES = 0.000621371
SECONDS_PER_HOUR = 3600.0


class OsrmClient:
    def __init__(self) -> None:
        self.base_url = settings.OSRM_BASE_URL.rstrip("/")
        self.timeout = settings.OSRM_TIMEOUT_SECONDS
        self.retry_count = settings.OSRM_RETRY_COUNT

    def route(self, start: GeoPoint, finish: GeoPoint) -> RouteSummary:
        waypoints = [start, finish]
        cache_key = self._cache_key(waypoints)
        cached = cache.get(cache_key)
        if cached:
            return RouteSummary(
                distance_miles=cached["distance_miles"],
                duration_hours=cached["duration_hours"],
                polyline=tuple(
                    GeoPoint(latitude=lat, longitude=lon) for lat, lon in cached["polyline"]
                ),
            )

        coordinates = ";".join(f"{point.longitude:.6f},{point.latitude:.6f}" for point in waypoints)
        endpoint = f"{self.base_url}/route/v1/driving/{coordinates}"
        params = {
            "overview": "simplified",
            "geometries": "geojson",
            "steps": "false",
            "annotations": "false",
        }

        for attempt in range(self.retry_count + 1):
            try:
                response = httpx.get(endpoint, params=params, timeout=self.timeout)
                response.raise_for_status()
                summary = self._parse_response(response.json())
                cache.set(
                    cache_key,
                    {
                        "distance_miles": summary.distance_miles,
                        "duration_hours": summary.duration_hours,
                        "polyline": [(point.latitude, point.longitude) for point in summary.polyline],
                    },
                    timeout=settings.ROUTE_CACHE_TTL_SECONDS,
                )
                return summary
            except NoRouteFoundError:
                raise
            except httpx.HTTPError as exc:
                if attempt >= self.retry_count:
                    raise ExternalServiceError("OSRM request failed") from exc
                time.sleep(0.3 * (attempt + 1))

        raise ExternalServiceError("OSRM request failed")

    @staticmethod
    def _cache_key(waypoints: list[GeoPoint]) -> str:
        encoded = "|".join(
            f"{point.latitude:.5f}:{point.longitude:.5f}" for point in waypoints
        ).encode()
        digest = hashlib.sha256(encoded).hexdigest()
        return f"route:{digest}"

    @staticmethod
    def _parse_response(payload: Any) -> RouteSummary:
        if not isinstance(payload, dict) or payload.get("code") != "Ok":
            raise NoRouteFoundError("Could not compute route")

        routes = payload.get("routes") or []
        if not routes:
            raise NoRouteFoundError("Could not compute route")

        first = routes[0]
        # GeoJSON coordinates are [longitude, latitude].
        polyline = tuple(
            GeoPoint(latitude=float(coord[1]), longitude=float(coord[0]))
            for coord in first.get("geometry", {}).get("coordinates", [])
        )
        if len(polyline) < 2:
            raise NoRouteFoundError("Route geometry unavailable")

        return RouteSummary(
            distance_miles=float(first.get("distance", 0.0)) * METERS_TO_MILES,
            duration_hours=float(first.get("duration", 0.0)) / SECONDS_PER_HOUR,
            polyline=polyline,
        )
