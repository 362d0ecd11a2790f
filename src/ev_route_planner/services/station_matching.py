from __future__ import annotations

from collections.abc import Iterable, Sequence

from ev_route_planner.services.geo import haversine_miles
from ev_route_planner.services.types import GeoPoint, MatchedStation, Station


class StationMatcher:
    """Find catalog stations that sit close to a route polyline.

    The polyline is a coarse route overview, so every point is scanned for every
    station. Distance from route is the smallest great-circle distance to any
    polyline point.
    """

    def match(
        self,
        stations: Iterable[Station],
        polyline: Sequence[GeoPoint],
        max_distance_miles: float,
    ) -> list[MatchedStation]:
        if not polyline:
            return []

        matched: list[MatchedStation] = []
        for station in stations:
            distance_from_route = self.distance_from_route(station.point, polyline)
            if distance_from_route > max_distance_miles:
                continue
            matched.append(
                MatchedStation(station=station, distance_from_route_miles=distance_from_route)
            )

        return sorted(
            matched,
            key=lambda candidate: (
                candidate.distance_from_route_miles,
                candidate.station.station_id,
            ),
        )

    @staticmethod
    def distance_from_route(point: GeoPoint, polyline: Sequence[GeoPoint]) -> float:
        return min(
            haversine_miles(point.latitude, point.longitude, vertex.latitude, vertex.longitude)
            for vertex in polyline
        )

    @staticmethod
    def within_radius(
        stations: Iterable[Station], center: GeoPoint, radius_miles: float
    ) -> list[MatchedStation]:
        nearby = [
            MatchedStation(
                station=station,
                distance_from_route_miles=haversine_miles(
                    center.latitude,
                    center.longitude,
                    station.point.latitude,
                    station.point.longitude,
                ),
            )
            for station in stations
        ]
        return sorted(
            (candidate for candidate in nearby if candidate.distance_from_route_miles <= radius_miles),
            key=lambda candidate: (
                candidate.distance_from_route_miles,
                candidate.station.station_id,
            ),
        )
