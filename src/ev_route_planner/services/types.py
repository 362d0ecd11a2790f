from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(slots=True, frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


Location = Union[str, GeoPoint]


@dataclass(slots=True, frozen=True)
class GeocodeResult:
    point: GeoPoint
    country_code: str
    display_name: str = ""


@dataclass(slots=True, frozen=True)
class RouteSummary:
    distance_miles: float
    duration_hours: float
    polyline: tuple[GeoPoint, ...]


@dataclass(slots=True, frozen=True)
class Station:
    station_id: int
    name: str
    address: str
    point: GeoPoint
    power_kw: float
    cost_per_kwh: float
    connector_type: str
    verified: bool
    rating: float | None
    review_count: int


@dataclass(slots=True, frozen=True)
class MatchedStation:
    station: Station
    distance_from_route_miles: float


@dataclass(slots=True, frozen=True)
class TripRequest:
    origin: Location
    destination: Location
    vehicle_range_miles: float
    battery_percent: int


@dataclass(slots=True, frozen=True)
class StopPlan:
    station: Station
    distance_from_route_miles: float
    energy_kwh: float
    charging_hours: float
    charging_cost: float


@dataclass(slots=True, frozen=True)
class TripTotals:
    energy_kwh: float
    cost: float
    charging_hours: float


@dataclass(slots=True, frozen=True)
class TripPlan:
    request: TripRequest
    route: RouteSummary
    charging_stops_needed: int
    stops: tuple[StopPlan, ...]
    total_estimated_energy_kwh: float
    total_estimated_cost: float
    total_charging_hours: float
    unpriced_stops: int = 0
