from __future__ import annotations

from ev_route_planner.models import Account, ChargingStation, StationRegistration, StationReview
from ev_route_planner.schemas import (
    AccountResponse,
    ChargingStopResponse,
    Coordinate,
    GeocodeResponse,
    NearbyStationResponse,
    RegistrationResponse,
    ReviewResponse,
    RoutePlanResponse,
    RouteResponse,
    StationResponse,
    UserSummaryResponse,
)
from ev_route_planner.services.types import (
    GeocodeResult,
    GeoPoint,
    Location,
    MatchedStation,
    Station,
    TripPlan,
)


def trip_plan_response(plan: TripPlan, energy_per_mile_kwh: float) -> RoutePlanResponse:
    route = plan.route
    stations = [
        ChargingStopResponse(
            **_station_fields(stop.station),
            distance_from_route=round(stop.distance_from_route_miles, 2),
            estimated_energy_kwh=round(stop.energy_kwh, 3),
            estimated_charging_time=round(stop.charging_hours, 2),
            estimated_charging_cost=round(stop.charging_cost, 2),
        )
        for stop in plan.stops
    ]

    return RoutePlanResponse(
        route=RouteResponse(
            origin=_location(plan.request.origin),
            destination=_location(plan.request.destination),
            distance=round(route.distance_miles, 2),
            duration=round(route.duration_hours, 2),
            polyline=[
                Coordinate(latitude=round(point.latitude, 6), longitude=round(point.longitude, 6))
                for point in route.polyline
            ],
            charging_stops=plan.charging_stops_needed,
            estimated_energy_kwh=round(route.distance_miles * energy_per_mile_kwh, 3),
            charged_energy_kwh=round(plan.total_estimated_energy_kwh, 3),
            total_cost=round(plan.total_estimated_cost, 2),
            total_charging_time=round(plan.total_charging_hours, 2),
            unpriced_stops=plan.unpriced_stops,
        ),
        stations=stations,
    )


def nearby_station_response(candidate: MatchedStation) -> NearbyStationResponse:
    return NearbyStationResponse(
        **_station_fields(candidate.station),
        distance=round(candidate.distance_from_route_miles, 2),
    )


def station_response(row: ChargingStation) -> StationResponse:
    return StationResponse(
        id=row.id,
        name=row.name,
        address=row.address,
        city=row.city,
        state=row.state,
        latitude=row.latitude,
        longitude=row.longitude,
        power_kw=row.power_kw,
        cost_per_kwh=row.cost_per_kwh,
        connector_type=row.connector_type,
        verified=row.verified,
        rating=row.rating,
        review_count=row.review_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def review_response(review: StationReview) -> ReviewResponse:
    user = review.user
    return ReviewResponse(
        id=review.id,
        station_id=review.station_id,
        user_id=review.user_id,
        user_name=user.first_name or user.email,
        rating=review.rating,
        comment=review.comment,
        created_at=review.created_at,
    )


def registration_response(registration: StationRegistration) -> RegistrationResponse:
    return RegistrationResponse(
        id=registration.id,
        business_name=registration.business_name,
        station_name=registration.station_name,
        station_address=registration.station_address,
        status=registration.status,
        station_id=registration.station_id,
        submitted_at=registration.submitted_at,
        reviewed_at=registration.reviewed_at,
    )


def account_response(account: Account) -> AccountResponse:
    user = account.user
    return AccountResponse(
        id=user.id,
        email=user.email,
        name=user.first_name,
        role=account.effective_role,
        date_joined=user.date_joined,
    )


def user_summary_response(account: Account) -> UserSummaryResponse:
    user = account.user
    return UserSummaryResponse(
        **account_response(account).model_dump(),
        active=user.is_active,
        last_login=user.last_login,
    )


def geocode_response(address: str, result: GeocodeResult) -> GeocodeResponse:
    return GeocodeResponse(
        address=address,
        location=Coordinate(latitude=result.point.latitude, longitude=result.point.longitude),
        formatted_address=result.display_name or address,
        country_code=result.country_code,
    )


def _station_fields(station: Station) -> dict:
    return {
        "id": station.station_id,
        "name": station.name,
        "address": station.address,
        "latitude": station.point.latitude,
        "longitude": station.point.longitude,
        "power_kw": station.power_kw,
        "cost_per_kwh": station.cost_per_kwh,
        "connector_type": station.connector_type,
        "verified": station.verified,
        "rating": station.rating,
        "review_count": station.review_count,
    }


def _location(location: Location) -> Coordinate | str:
    if isinstance(location, GeoPoint):
        return Coordinate(latitude=location.latitude, longitude=location.longitude)
    return location
