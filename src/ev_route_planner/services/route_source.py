from __future__ import annotations

import logging
from typing import Protocol

from ev_route_planner.services.geocoding import GeocodingClient
from ev_route_planner.services.osrm import OsrmClient
from ev_route_planner.services.types import GeoPoint, Location, RouteSummary

logger = logging.getLogger(__name__)


class RouteSource(Protocol):
    def resolve(self, origin: Location, destination: Location) -> RouteSummary:
        """Return the driving route between two locations or raise RouteUnavailableError."""
        ...


class OsrmRouteSource:
    def __init__(
        self,
        geocoding_client: GeocodingClient | None = None,
        osrm_client: OsrmClient | None = None,
    ) -> None:
        self.geocoding_client = (
            geocoding_client if geocoding_client is not None else GeocodingClient()
        )
        self.osrm_client = osrm_client if osrm_client is not None else OsrmClient()

    def resolve(self, origin: Location, destination: Location) -> RouteSummary:
        start = self._to_point(origin)
        finish = self._to_point(destination)
        route = self.osrm_client.route(start, finish)
        logger.debug(
            "Resolved route %s -> %s: %.1f miles, %d polyline points",
            origin,
            destination,
            route.distance_miles,
            len(route.polyline),
        )
        return route

    def _to_point(self, location: Location) -> GeoPoint:
        if isinstance(location, GeoPoint):
            return location
        return self.geocoding_client.geocode(location).point
