from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError, transaction
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from pydantic import BaseModel, ValidationError

from ev_route_planner.auth import issue_token, require_auth
from ev_route_planner.exceptions import (
    InvalidLocationError,
    InvalidRequestError,
    RouteUnavailableError,
)
from ev_route_planner.models import Account, ChargingStation, StationRegistration, StationReview
from ev_route_planner.presenters import (
    account_response,
    geocode_response,
    nearby_station_response,
    registration_response,
    review_response,
    station_response,
    trip_plan_response,
    user_summary_response,
)
from ev_route_planner.schemas import (
    Coordinate,
    GeocodeRequest,
    LoginRequest,
    NearbyRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    RegistrationCreateRequest,
    ReviewCreateRequest,
    RoutePlanRequest,
    StationCreateRequest,
    StationUpdateRequest,
    TokenResponse,
)
from ev_route_planner.services.catalog import StationCatalog
from ev_route_planner.services.geocoding import GeocodingClient
from ev_route_planner.services.planner import RoutePlanningService
from ev_route_planner.services.registration import approve_registration, reject_registration
from ev_route_planner.services.reviews import add_review
from ev_route_planner.services.station_matching import StationMatcher
from ev_route_planner.services.types import GeoPoint, TripRequest

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MANAGER_ROLES = (Account.Role.OWNER, Account.Role.ADMIN)

_planner_service: RoutePlanningService | None = None
_geocoding_client: GeocodingClient | None = None


def get_route_planner() -> RoutePlanningService:
    global _planner_service
    if _planner_service is None:
        _planner_service = RoutePlanningService()
    return _planner_service


def get_geocoding_client() -> GeocodingClient:
    global _geocoding_client
    if _geocoding_client is None:
        _geocoding_client = GeocodingClient()
    return _geocoding_client


@require_GET
def health_view(_: HttpRequest) -> HttpResponse:
    total_stations = ChargingStation.objects.count()
    verified_stations = ChargingStation.objects.filter(verified=True).count()
    return JsonResponse(
        {
            "status": "ok",
            "stations": {
                "total": total_stations,
                "verified": verified_stations,
            },
        }
    )


@csrf_exempt
@require_POST
def register_view(request: HttpRequest) -> HttpResponse:
    payload, error = _validated(request, RegisterRequest)
    if error is not None:
        return error

    email = payload.email.lower()
    user_model = get_user_model()
    if user_model.objects.filter(username=email).exists():
        return _error_response("email_taken", "An account with this email already exists", 409)

    try:
        with transaction.atomic():
            user = user_model.objects.create_user(
                username=email, email=email, password=payload.password, first_name=payload.name
            )
            account = Account.objects.create(user=user, role=payload.role)
    except IntegrityError:
        return _error_response("email_taken", "An account with this email already exists", 409)

    logger.info("Registered %s account %s", account.role, user.pk)
    response = TokenResponse(token=issue_token(account), user=account_response(account))
    return _json(response, status=201)


@csrf_exempt
@require_POST
def login_view(request: HttpRequest) -> HttpResponse:
    payload, error = _validated(request, LoginRequest)
    if error is not None:
        return error

    user = authenticate(request, username=payload.email.lower(), password=payload.password)
    if user is None:
        return _error_response("invalid_credentials", "Invalid email or password", status=401)

    account, _ = Account.objects.get_or_create(user=user)
    response = TokenResponse(token=issue_token(account), user=account_response(account))
    return _json(response)


@csrf_exempt
@require_http_methods(["GET", "PUT"])
@require_auth()
def profile_view(request: HttpRequest) -> HttpResponse:
    account = request.account
    if request.method == "GET":
        return _json(account_response(account))

    payload, error = _validated(request, ProfileUpdateRequest)
    if error is not None:
        return error

    user = account.user
    update_fields = []
    if payload.name is not None:
        user.first_name = payload.name
        update_fields.append("first_name")
    if payload.password is not None:
        user.set_password(payload.password)
        update_fields.append("password")
    if update_fields:
        user.save(update_fields=update_fields)
        logger.info("User %s updated profile fields %s", user.pk, update_fields)
    return _json(account_response(account))


@require_GET
@require_auth(roles=[Account.Role.ADMIN])
def users_view(_: HttpRequest) -> HttpResponse:
    accounts = Account.objects.select_related("user").order_by("user_id")
    return JsonResponse(
        [
            user_summary_response(account).model_dump(mode="json", by_alias=True)
            for account in accounts
        ],
        safe=False,
    )


@csrf_exempt
@require_http_methods(["GET", "POST"])
def stations_view(request: HttpRequest) -> HttpResponse:
    if request.method == "POST":
        return _create_station(request)

    queryset = ChargingStation.objects.order_by("id")
    if request.GET.get("verified") in {"1", "true"}:
        queryset = queryset.filter(verified=True)
    return JsonResponse(
        [station_response(row).model_dump(mode="json", by_alias=True) for row in queryset],
        safe=False,
    )


@require_auth()
def _create_station(request: HttpRequest) -> HttpResponse:
    payload, error = _validated(request, StationCreateRequest)
    if error is not None:
        return error

    account = request.account
    station = ChargingStation.objects.create(
        **payload.model_dump(),
        verified=account.effective_role in MANAGER_ROLES,
        created_by=account.user,
    )
    logger.info("Station %s added by user %s", station.pk, account.user_id)
    return _json(station_response(station), status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
def station_detail_view(request: HttpRequest, station_id: int) -> HttpResponse:
    if request.method == "PUT":
        return _update_station(request, station_id)
    if request.method == "DELETE":
        return _delete_station(request, station_id)

    station = get_object_or_404(ChargingStation, pk=station_id)
    return _json(station_response(station))


@require_auth()
def _update_station(request: HttpRequest, station_id: int) -> HttpResponse:
    station = get_object_or_404(ChargingStation, pk=station_id)
    account = request.account
    if account.effective_role != Account.Role.ADMIN and station.created_by_id != account.user_id:
        return _error_response("forbidden", "Only the station owner or an admin can edit", 403)

    payload, error = _validated(request, StationUpdateRequest)
    if error is not None:
        return error

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(station, field, value)
    station.save()
    return _json(station_response(station))


@require_auth(roles=[Account.Role.ADMIN])
def _delete_station(request: HttpRequest, station_id: int) -> HttpResponse:
    station = get_object_or_404(ChargingStation, pk=station_id)
    station.delete()
    logger.info("Station %s deleted by admin %s", station_id, request.account.user_id)
    return JsonResponse({"deleted": station_id})


@csrf_exempt
@require_http_methods(["GET", "POST"])
def station_reviews_view(request: HttpRequest, station_id: int) -> HttpResponse:
    station = get_object_or_404(ChargingStation, pk=station_id)
    if request.method == "POST":
        return _create_review(request, station)

    reviews = StationReview.objects.filter(station=station).select_related("user")
    return JsonResponse(
        [review_response(review).model_dump(mode="json", by_alias=True) for review in reviews],
        safe=False,
    )


@require_auth()
def _create_review(request: HttpRequest, station: ChargingStation) -> HttpResponse:
    payload, error = _validated(request, ReviewCreateRequest)
    if error is not None:
        return error

    review = add_review(station, request.account.user, payload.rating, payload.comment)
    return _json(review_response(review), status=201)


@csrf_exempt
@require_POST
@require_auth()
def nearby_stations_view(request: HttpRequest) -> HttpResponse:
    payload, error = _validated(request, NearbyRequest)
    if error is not None:
        return error

    radius = payload.radius_miles or float(settings.NEARBY_DEFAULT_RADIUS_MILES)
    nearby = StationMatcher.within_radius(
        StationCatalog().all(),
        GeoPoint(latitude=payload.latitude, longitude=payload.longitude),
        radius,
    )
    return JsonResponse(
        {
            "radiusMiles": radius,
            "places": [
                nearby_station_response(candidate).model_dump(mode="json", by_alias=True)
                for candidate in nearby[: payload.limit]
            ],
        }
    )


@csrf_exempt
@require_POST
@require_auth()
def route_plan_view(request: HttpRequest) -> HttpResponse:
    payload, error = _validated(request, RoutePlanRequest)
    if error is not None:
        return error

    trip_request = TripRequest(
        origin=_to_location(payload.origin),
        destination=_to_location(payload.destination),
        vehicle_range_miles=payload.ev_range,
        battery_percent=payload.battery_percent,
    )

    planner = get_route_planner()
    try:
        plan = planner.plan(trip_request)
    except InvalidLocationError as exc:
        return _error_response("invalid_location", str(exc), status=400)
    except InvalidRequestError as exc:
        return _error_response("invalid_request", str(exc), status=400)
    except RouteUnavailableError as exc:
        logger.warning("Route unavailable for user %s: %s", request.account.user_id, exc)
        return _error_response("route_unavailable", str(exc), status=502)
    except Exception:
        logger.exception("Route planning failed")
        return _error_response("internal_error", "Failed to plan route", status=500)

    return _json(trip_plan_response(plan, planner.energy_per_mile_kwh))


@csrf_exempt
@require_POST
@require_auth()
def geocode_view(request: HttpRequest) -> HttpResponse:
    payload, error = _validated(request, GeocodeRequest)
    if error is not None:
        return error

    try:
        result = get_geocoding_client().geocode(payload.address)
    except InvalidLocationError as exc:
        return _error_response("invalid_location", str(exc), status=400)
    except RouteUnavailableError as exc:
        logger.warning("Geocoding unavailable for %r: %s", payload.address, exc)
        return _error_response("geocoding_unavailable", str(exc), status=502)

    return _json(geocode_response(payload.address, result))


@csrf_exempt
@require_http_methods(["GET", "POST"])
@require_auth(roles=MANAGER_ROLES)
def registrations_view(request: HttpRequest) -> HttpResponse:
    account = request.account
    if request.method == "GET":
        queryset = StationRegistration.objects.all()
        if account.effective_role != Account.Role.ADMIN:
            queryset = queryset.filter(owner=account.user)
        status = request.GET.get("status")
        if status:
            queryset = queryset.filter(status=status)
        return JsonResponse(
            [
                registration_response(row).model_dump(mode="json", by_alias=True)
                for row in queryset
            ],
            safe=False,
        )

    payload, error = _validated(request, RegistrationCreateRequest)
    if error is not None:
        return error

    registration = StationRegistration.objects.create(owner=account.user, **payload.model_dump())
    logger.info("Registration %s submitted by user %s", registration.pk, account.user_id)
    return _json(registration_response(registration), status=201)


@csrf_exempt
@require_POST
@require_auth(roles=[Account.Role.ADMIN])
def registration_approve_view(request: HttpRequest, registration_id: int) -> HttpResponse:
    get_object_or_404(StationRegistration, pk=registration_id)
    try:
        approved = approve_registration(registration_id)
    except InvalidRequestError as exc:
        return _error_response("invalid_request", str(exc), status=409)

    logger.info(
        "Registration %s approved as station %s",
        approved.registration_id,
        approved.station.station_id,
    )
    registration = StationRegistration.objects.get(pk=registration_id)
    return _json(registration_response(registration))


@csrf_exempt
@require_POST
@require_auth(roles=[Account.Role.ADMIN])
def registration_reject_view(request: HttpRequest, registration_id: int) -> HttpResponse:
    get_object_or_404(StationRegistration, pk=registration_id)
    try:
        registration = reject_registration(registration_id)
    except InvalidRequestError as exc:
        return _error_response("invalid_request", str(exc), status=409)
    return _json(registration_response(registration))


def _to_location(value: Coordinate | str) -> GeoPoint | str:
    if isinstance(value, Coordinate):
        return GeoPoint(latitude=value.latitude, longitude=value.longitude)
    return value


def _validated(
    request: HttpRequest, model: type[ModelT]
) -> tuple[ModelT, None] | tuple[None, JsonResponse]:
    payload = _parse_json_payload(request)
    if isinstance(payload, JsonResponse):
        return None, payload

    try:
        return model.model_validate(payload), None
    except ValidationError as exc:
        return None, JsonResponse(
            {
                "error": {
                    "code": "validation_error",
                    "message": "Invalid request payload",
                    "details": exc.errors(include_url=False, include_context=False),
                }
            },
            status=400,
        )


def _parse_json_payload(request: HttpRequest) -> dict[str, Any] | JsonResponse:
    if not request.body:
        return {}

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return _error_response("invalid_json", "Request body must be valid JSON", status=400)

    if not isinstance(payload, dict):
        return _error_response("invalid_json", "JSON body must be an object", status=400)

    return payload


def _json(model: BaseModel, status: int = 200) -> JsonResponse:
    return JsonResponse(model.model_dump(mode="json", by_alias=True), status=status)


def _error_response(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)
