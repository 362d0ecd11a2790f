from __future__ import annotations

import pytest

from ev_route_planner.services.geo import distance_miles
from ev_route_planner.services.station_matching import StationMatcher
from ev_route_planner.services.types import GeoPoint
from tests.helpers import ROUTE_POLYLINE, station

# 0.01 degrees of longitude at latitude ~32 is roughly 0.59 miles.


def test_keeps_only_stations_within_max_distance_sorted_by_proximity() -> None:
    stations = [
        station(1, 32.0, -100.05),  # ~2.9 miles off route
        station(2, 33.0, -100.01),  # ~0.6 miles
        station(3, 34.0, -101.00),  # ~57 miles
        station(4, 31.0, -100.00),  # on a polyline point
    ]

    matched = StationMatcher().match(stations, ROUTE_POLYLINE, max_distance_miles=5.0)

    assert [candidate.station.station_id for candidate in matched] == [4, 2, 1]
    assert matched[0].distance_from_route_miles == 0.0
    distances = [candidate.distance_from_route_miles for candidate in matched]
    assert distances == sorted(distances)
    assert all(distance <= 5.0 for distance in distances)


def test_distance_is_minimum_over_polyline_points() -> None:
    candidate = station(1, 33.2, -100.0)

    matched = StationMatcher().match([candidate], ROUTE_POLYLINE, max_distance_miles=50.0)

    nearest_vertex = GeoPoint(latitude=33.0, longitude=-100.0)
    assert matched[0].distance_from_route_miles == pytest.approx(
        distance_miles(candidate.point, nearest_vertex)
    )


def test_ties_are_broken_by_station_id() -> None:
    stations = [station(9, 31.0, -100.0), station(3, 32.0, -100.0), station(5, 33.0, -100.0)]

    matched = StationMatcher().match(stations, ROUTE_POLYLINE, max_distance_miles=1.0)

    assert [candidate.station.station_id for candidate in matched] == [3, 5, 9]


def test_boundary_distance_is_included() -> None:
    candidate = station(1, 32.0, -100.05)
    boundary = StationMatcher.distance_from_route(candidate.point, ROUTE_POLYLINE)

    assert StationMatcher().match([candidate], ROUTE_POLYLINE, max_distance_miles=boundary)
    assert not StationMatcher().match([candidate], ROUTE_POLYLINE, max_distance_miles=boundary - 1e-6)


def test_empty_inputs_return_empty_list() -> None:
    matcher = StationMatcher()

    assert matcher.match([], ROUTE_POLYLINE, max_distance_miles=5.0) == []
    assert matcher.match([station(1, 30.0, -100.0)], (), max_distance_miles=5.0) == []
    assert matcher.match([station(1, 45.0, -80.0)], ROUTE_POLYLINE, max_distance_miles=5.0) == []


def test_within_radius_orders_by_distance() -> None:
    center = GeoPoint(latitude=40.7128, longitude=-74.0060)
    stations = [
        station(1, 40.7580, -73.9855),  # ~3.3 miles
        station(2, 40.7200, -74.0000),  # ~0.6 miles
        station(3, 41.5000, -74.0060),  # ~54 miles
    ]

    nearby = StationMatcher.within_radius(stations, center, radius_miles=5.0)

    assert [candidate.station.station_id for candidate in nearby] == [2, 1]
