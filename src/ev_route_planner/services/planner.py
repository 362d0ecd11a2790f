from __future__ import annotations

import hashlib
import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from django.conf import settings

from ev_route_planner.exceptions import ExternalServiceError, InvalidRequestError
from ev_route_planner.services.cache import DjangoPlanCache, PlanCache
from ev_route_planner.services.catalog import StationCatalog
from ev_route_planner.services.charging_stops import stops_needed
from ev_route_planner.services.cost_estimation import TripCostEstimator
from ev_route_planner.services.route_source import OsrmRouteSource, RouteSource
from ev_route_planner.services.station_matching import StationMatcher
from ev_route_planner.services.types import GeoPoint, Location, RouteSummary, TripPlan, TripRequest

logger = logging.getLogger(__name__)

_route_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="route-source")


def validate_trip_request(request: TripRequest) -> None:
    for label, location in (("origin", request.origin), ("destination", request.destination)):
        if isinstance(location, GeoPoint):
            if not (-90.0 <= location.latitude <= 90.0 and -180.0 <= location.longitude <= 180.0):
                raise InvalidRequestError(f"{label} coordinate is out of range")
        elif not isinstance(location, str) or not location.strip():
            raise InvalidRequestError(f"{label} must not be empty")

    range_miles = request.vehicle_range_miles
    if isinstance(range_miles, bool) or not isinstance(range_miles, (int, float)):
        raise InvalidRequestError("Vehicle range must be a number")
    if not math.isfinite(range_miles) or range_miles <= 0:
        raise InvalidRequestError("Vehicle range must be greater than zero")

    battery = request.battery_percent
    if isinstance(battery, bool) or not isinstance(battery, int):
        raise InvalidRequestError("Battery percent must be an integer")
    if not 0 <= battery <= 100:
        raise InvalidRequestError("Battery percent must be between 0 and 100")


def trip_cache_key(request: TripRequest) -> str:
    encoded = json.dumps(
        [
            _location_key(request.origin),
            _location_key(request.destination),
            repr(float(request.vehicle_range_miles)),
            request.battery_percent,
        ]
    ).encode()
    return f"route-plan:{hashlib.sha256(encoded).hexdigest()}"


def _location_key(location: Location) -> str:
    if isinstance(location, GeoPoint):
        return f"point:{location.latitude!r},{location.longitude!r}"
    return f"text:{location}"


class RoutePlanningService:
    """Resolve a route, count charging stops and price the nearby stations.

    Results are cached per exact request for ``cache_ttl_seconds``. A failed
    plan never writes to the cache, so an earlier entry for the same key stays
    as it was.
    """

    def __init__(
        self,
        route_source: RouteSource | None = None,
        catalog: StationCatalog | None = None,
        cache_store: PlanCache | None = None,
        station_matcher: StationMatcher | None = None,
        cost_estimator: TripCostEstimator | None = None,
        *,
        cache_ttl_seconds: float | None = None,
        max_station_distance_miles: float | None = None,
        safety_buffer: float | None = None,
        energy_per_mile_kwh: float | None = None,
        extra_station_options: int | None = None,
        route_deadline_seconds: float | None = None,
    ) -> None:
        self.route_source = route_source if route_source is not None else OsrmRouteSource()
        self.catalog = catalog if catalog is not None else StationCatalog()
        self.cache_store = cache_store if cache_store is not None else DjangoPlanCache()
        self.station_matcher = (
            station_matcher if station_matcher is not None else StationMatcher()
        )
        self.cost_estimator = cost_estimator if cost_estimator is not None else TripCostEstimator()

        self.cache_ttl_seconds = _default(cache_ttl_seconds, settings.ROUTE_PLAN_CACHE_TTL_SECONDS)
        self.max_station_distance_miles = _default(
            max_station_distance_miles, settings.MAX_STATION_DISTANCE_MILES
        )
        self.safety_buffer = _default(safety_buffer, settings.CHARGING_SAFETY_BUFFER)
        self.energy_per_mile_kwh = _default(energy_per_mile_kwh, settings.ENERGY_PER_MILE_KWH)
        self.extra_station_options = _default(
            extra_station_options, settings.EXTRA_STATION_OPTIONS
        )
        self.route_deadline_seconds = _default(
            route_deadline_seconds, settings.ROUTE_SOURCE_DEADLINE_SECONDS
        )

    def plan(self, request: TripRequest, deadline_seconds: float | None = None) -> TripPlan:
        validate_trip_request(request)

        cache_key = trip_cache_key(request)
        cached = self.cache_store.get(cache_key)
        if cached is not None:
            logger.debug("Trip plan cache hit for %s", cache_key)
            return cached

        route = self._resolve_route(request, deadline_seconds)

        charging_stops_needed = stops_needed(
            total_distance_miles=route.distance_miles,
            vehicle_range_miles=request.vehicle_range_miles,
            battery_percent=request.battery_percent,
            safety_buffer=self.safety_buffer,
        )

        matched = self.station_matcher.match(
            self.catalog.all(),
            route.polyline,
            max_distance_miles=self.max_station_distance_miles,
        )
        selection = matched[: charging_stops_needed + self.extra_station_options]

        stops = self.cost_estimator.estimate(
            selection,
            vehicle_range_miles=request.vehicle_range_miles,
            safety_buffer=self.safety_buffer,
            energy_per_mile_kwh=self.energy_per_mile_kwh,
        )
        priced = stops[:charging_stops_needed]
        totals = self.cost_estimator.aggregate(priced)
        unpriced_stops = charging_stops_needed - len(priced)
        if unpriced_stops:
            logger.warning(
                "Only %d of %d required charging stops have a station within %.1f miles of the route",
                len(priced),
                charging_stops_needed,
                self.max_station_distance_miles,
            )

        trip_plan = TripPlan(
            request=request,
            route=route,
            charging_stops_needed=charging_stops_needed,
            stops=tuple(stops),
            total_estimated_energy_kwh=totals.energy_kwh,
            total_estimated_cost=totals.cost,
            total_charging_hours=totals.charging_hours,
            unpriced_stops=unpriced_stops,
        )
        self.cache_store.set(cache_key, trip_plan, self.cache_ttl_seconds)
        logger.info(
            "Planned %.1f mile trip: %d stops needed, %d of %d nearby stations offered",
            route.distance_miles,
            charging_stops_needed,
            len(stops),
            len(matched),
        )
        return trip_plan

    def _resolve_route(self, request: TripRequest, deadline_seconds: float | None) -> RouteSummary:
        deadline = _default(deadline_seconds, self.route_deadline_seconds)
        if deadline is None or deadline <= 0:
            return self.route_source.resolve(request.origin, request.destination)

        future = _route_executor.submit(
            self.route_source.resolve, request.origin, request.destination
        )
        try:
            return future.result(timeout=deadline)
        except FutureTimeoutError as exc:
            future.cancel()
            logger.warning(
                "Route source exceeded %.1fs deadline for %s -> %s",
                deadline,
                request.origin,
                request.destination,
            )
            raise ExternalServiceError(
                f"Route source did not respond within {deadline:g} seconds"
            ) from exc


def _default(value, fallback):
    return fallback if value is None else value
