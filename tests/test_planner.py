from __future__ import annotations

import threading

import pytest

from ev_route_planner.exceptions import (
    ExternalServiceError,
    InvalidRequestError,
    NoRouteFoundError,
)
from ev_route_planner.services.cache import MemoryPlanCache
from ev_route_planner.services.planner import RoutePlanningService, trip_cache_key
from ev_route_planner.services.types import GeoPoint, RouteSummary, TripRequest
from tests.helpers import ROUTE_POLYLINE, station


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FakeRouteSource:
    def __init__(self, *routes: RouteSummary) -> None:
        self.routes = list(routes)
        self.calls: list[tuple[object, object]] = []

    def resolve(self, origin, destination) -> RouteSummary:
        self.calls.append((origin, destination))
        return self.routes[min(len(self.calls), len(self.routes)) - 1]


class FakeCatalog:
    def __init__(self, stations) -> None:
        self.stations = list(stations)
        self.reads = 0

    def all(self):
        self.reads += 1
        return list(self.stations)


def _route(distance_miles: float) -> RouteSummary:
    return RouteSummary(distance_miles=distance_miles, duration_hours=distance_miles / 60.0, polyline=ROUTE_POLYLINE)


def _stations():
    return [
        station(1, 31.0, -100.00, power_kw=50.0, cost_per_kwh=0.35),  # 0 miles
        station(2, 32.0, -100.01, power_kw=150.0, cost_per_kwh=0.50),  # ~0.6 miles
        station(3, 33.0, -100.03, power_kw=100.0, cost_per_kwh=0.40),  # ~1.7 miles
        station(4, 34.0, -100.06, power_kw=50.0, cost_per_kwh=0.30),  # ~3.4 miles
        station(5, 35.0, -100.08, power_kw=50.0, cost_per_kwh=0.30),  # ~4.5 miles
        station(6, 36.0, -100.50, power_kw=50.0, cost_per_kwh=0.30),  # ~28 miles
    ]


def _service(route_source, catalog, cache_store=None, **overrides) -> RoutePlanningService:
    return RoutePlanningService(
        route_source=route_source,
        catalog=catalog,
        cache_store=cache_store if cache_store is not None else MemoryPlanCache(),
        cache_ttl_seconds=300,
        max_station_distance_miles=5.0,
        safety_buffer=0.8,
        energy_per_mile_kwh=0.3,
        extra_station_options=2,
        **overrides,
    )


REQUEST = TripRequest(
    origin="New York, NY", destination="Boston, MA", vehicle_range_miles=250.0, battery_percent=80
)


def test_plan_counts_stops_and_prices_nearest_stations() -> None:
    service = _service(FakeRouteSource(_route(450.0)), FakeCatalog(_stations()))

    plan = service.plan(REQUEST)

    assert plan.charging_stops_needed == 2
    assert [stop.station.station_id for stop in plan.stops] == [1, 2, 3, 4]
    assert plan.unpriced_stops == 0
    distances = [stop.distance_from_route_miles for stop in plan.stops]
    assert distances == sorted(distances)
    assert all(distance <= 5.0 for distance in distances)

    # Totals cover only the two stops the trip needs.
    assert plan.total_estimated_energy_kwh == pytest.approx(120.0)
    assert plan.total_estimated_cost == pytest.approx(60 * 0.35 + 60 * 0.50)
    assert plan.total_charging_hours == pytest.approx(60 / 50 + 60 / 150)


def test_short_trip_needs_no_stops_but_offers_options() -> None:
    service = _service(FakeRouteSource(_route(150.0)), FakeCatalog(_stations()))

    plan = service.plan(REQUEST)

    assert plan.charging_stops_needed == 0
    assert len(plan.stops) == 2
    assert plan.total_estimated_cost == 0.0
    assert plan.total_charging_hours == 0.0


def test_malformed_station_is_skipped() -> None:
    stations = _stations()
    stations[0] = station(1, 31.0, -100.0, power_kw=0.0)
    service = _service(FakeRouteSource(_route(450.0)), FakeCatalog(stations))

    plan = service.plan(REQUEST)

    assert [stop.station.station_id for stop in plan.stops] == [2, 3, 4]


def test_empty_catalog_produces_plan_without_stations() -> None:
    service = _service(FakeRouteSource(_route(450.0)), FakeCatalog([]))

    plan = service.plan(REQUEST)

    assert plan.charging_stops_needed == 2
    assert plan.stops == ()
    assert plan.total_estimated_cost == 0.0
    assert plan.unpriced_stops == 2


def test_repeat_request_is_served_from_cache() -> None:
    route_source = FakeRouteSource(_route(450.0), _route(900.0))
    catalog = FakeCatalog(_stations())
    service = _service(route_source, catalog)

    first = service.plan(REQUEST)
    second = service.plan(REQUEST)

    assert second is first
    assert len(route_source.calls) == 1
    assert catalog.reads == 1


def test_expired_entry_triggers_new_route_resolution() -> None:
    clock = FakeClock()
    route_source = FakeRouteSource(_route(450.0), _route(900.0))
    service = _service(route_source, FakeCatalog(_stations()), cache_store=MemoryPlanCache(clock=clock))

    first = service.plan(REQUEST)
    clock.now += 301
    second = service.plan(REQUEST)

    assert len(route_source.calls) == 2
    assert first.route.distance_miles == 450.0
    assert second.route.distance_miles == 900.0


def test_cache_key_depends_on_every_request_field() -> None:
    keys = {
        trip_cache_key(REQUEST),
        trip_cache_key(TripRequest("New York, NY", "Boston", 250.0, 80)),
        trip_cache_key(TripRequest("new york, ny", "Boston, MA", 250.0, 80)),
        trip_cache_key(TripRequest("New York, NY", "Boston, MA", 260.0, 80)),
        trip_cache_key(TripRequest("New York, NY", "Boston, MA", 250.0, 70)),
        trip_cache_key(TripRequest(GeoPoint(40.7, -74.0), "Boston, MA", 250.0, 80)),
    }
    assert len(keys) == 6
    assert trip_cache_key(REQUEST) == trip_cache_key(
        TripRequest("New York, NY", "Boston, MA", 250.0, 80)
    )


@pytest.mark.parametrize(
    "request_",
    [
        TripRequest("", "Boston, MA", 250.0, 80),
        TripRequest("New York, NY", "   ", 250.0, 80),
        TripRequest("New York, NY", "Boston, MA", 0.0, 80),
        TripRequest("New York, NY", "Boston, MA", 250.0, 101),
        TripRequest("New York, NY", "Boston, MA", 250.0, -5),
        TripRequest(GeoPoint(95.0, 0.0), "Boston, MA", 250.0, 80),
    ],
)
def test_invalid_request_fails_before_route_resolution(request_: TripRequest) -> None:
    route_source = FakeRouteSource(_route(450.0))
    service = _service(route_source, FakeCatalog(_stations()))

    with pytest.raises(InvalidRequestError):
        service.plan(request_)
    assert route_source.calls == []


def test_route_failure_is_not_cached() -> None:
    cache_store = MemoryPlanCache()

    class FailingRouteSource:
        def resolve(self, origin, destination):
            raise NoRouteFoundError("Could not compute route")

    service = _service(FailingRouteSource(), FakeCatalog(_stations()), cache_store=cache_store)

    with pytest.raises(NoRouteFoundError):
        service.plan(REQUEST)
    assert len(cache_store) == 0


def test_slow_route_source_fails_after_deadline() -> None:
    release = threading.Event()

    class SlowRouteSource:
        def resolve(self, origin, destination):
            release.wait(5)
            return _route(450.0)

    cache_store = MemoryPlanCache()
    service = _service(SlowRouteSource(), FakeCatalog(_stations()), cache_store=cache_store)

    try:
        with pytest.raises(ExternalServiceError):
            service.plan(REQUEST, deadline_seconds=0.05)
    finally:
        release.set()
    assert len(cache_store) == 0


def test_too_few_nearby_stations_are_reported_as_unpriced(caplog) -> None:
    service = _service(FakeRouteSource(_route(450.0)), FakeCatalog(_stations()[:1]))

    with caplog.at_level("WARNING", logger="ev_route_planner.services.planner"):
        plan = service.plan(REQUEST)

    assert plan.charging_stops_needed == 2
    assert plan.unpriced_stops == 1
    assert plan.total_estimated_cost == pytest.approx(60 * 0.35)
    assert "Only 1 of 2 required charging stops" in caplog.text


def test_injected_store_receives_the_plan() -> None:
    cache_store = MemoryPlanCache()
    service = _service(FakeRouteSource(_route(450.0)), FakeCatalog(_stations()), cache_store=cache_store)

    plan = service.plan(REQUEST)

    assert service.cache_store is cache_store
    assert len(cache_store) == 1
    assert cache_store.get(trip_cache_key(REQUEST)) is plan


class MissingReadCache(MemoryPlanCache):
    """Holds entries but reports every read as a miss, forcing a fresh plan."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []
        self.evictions: list[str] = []

    def get(self, key):
        return None

    def set(self, key, value, ttl_seconds) -> None:
        self.writes.append(key)
        super().set(key, value, ttl_seconds)

    def evict(self, key) -> None:
        self.evictions.append(key)
        super().evict(key)


def test_route_failure_leaves_prior_entry_untouched() -> None:
    cache_store = MissingReadCache()
    key = trip_cache_key(REQUEST)
    MemoryPlanCache.set(cache_store, key, "previous plan", 300)

    class FailingRouteSource:
        def resolve(self, origin, destination):
            raise NoRouteFoundError("Could not compute route")

    service = _service(FailingRouteSource(), FakeCatalog(_stations()), cache_store=cache_store)

    with pytest.raises(NoRouteFoundError):
        service.plan(REQUEST)

    assert cache_store.writes == []
    assert cache_store.evictions == []
    assert MemoryPlanCache.get(cache_store, key) == "previous plan"
