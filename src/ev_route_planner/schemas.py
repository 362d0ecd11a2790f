from __future__ import annotations

from datetime import datetime
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class Coordinate(ApiModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class RoutePlanRequest(RequestModel):
    origin: Union[Coordinate, str]
    destination: Union[Coordinate, str]
    ev_range: float = Field(gt=0.0, le=2000.0)
    battery_percent: int = Field(default=80, ge=0, le=100)


class StationSummary(ApiModel):
    id: int
    name: str
    address: str
    latitude: float
    longitude: float
    power_kw: float
    cost_per_kwh: float
    connector_type: str
    verified: bool
    rating: float | None
    review_count: int


class StationResponse(StationSummary):
    city: str
    state: str
    created_at: datetime
    updated_at: datetime


class ChargingStopResponse(StationSummary):
    distance_from_route: float
    estimated_energy_kwh: float
    estimated_charging_time: float
    estimated_charging_cost: float


class RouteResponse(ApiModel):
    origin: Union[Coordinate, str]
    destination: Union[Coordinate, str]
    distance: float
    duration: float
    polyline: list[Coordinate]
    charging_stops: int
    estimated_energy_kwh: float
    charged_energy_kwh: float
    total_cost: float
    total_charging_time: float
    unpriced_stops: int


class RoutePlanResponse(ApiModel):
    route: RouteResponse
    stations: list[ChargingStopResponse]


class StationCreateRequest(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=50)
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    power_kw: float = Field(gt=0.0, le=1000.0)
    cost_per_kwh: float = Field(default=0.0, ge=0.0)
    connector_type: str = Field(default="", max_length=50)


class StationUpdateRequest(RequestModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = Field(default=None, min_length=1, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=50)
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
    power_kw: float | None = Field(default=None, gt=0.0, le=1000.0)
    cost_per_kwh: float | None = Field(default=None, ge=0.0)
    connector_type: str | None = Field(default=None, max_length=50)


class NearbyRequest(RequestModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    radius_miles: float | None = Field(default=None, gt=0.0, le=500.0)
    limit: int = Field(default=20, ge=1, le=200)


class NearbyStationResponse(StationSummary):
    distance: float


class ReviewCreateRequest(RequestModel):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(default="", max_length=2000)


class ReviewResponse(ApiModel):
    id: int
    station_id: int
    user_id: int
    user_name: str
    rating: int
    comment: str
    created_at: datetime


class RegistrationCreateRequest(RequestModel):
    business_name: str = Field(min_length=1, max_length=255)
    station_name: str = Field(min_length=1, max_length=255)
    station_address: str = Field(min_length=1, max_length=255)
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    power_kw: float = Field(gt=0.0, le=1000.0)
    cost_per_kwh: float = Field(ge=0.0)
    connector_type: str = Field(min_length=1, max_length=50)


class RegistrationResponse(ApiModel):
    id: int
    business_name: str
    station_name: str
    station_address: str
    status: str
    station_id: int | None
    submitted_at: datetime
    reviewed_at: datetime | None


class RegisterRequest(RequestModel):
    email: str = Field(max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=1, max_length=150)
    role: Literal["user", "owner"] = "user"


class LoginRequest(RequestModel):
    email: str = Field(max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=128)


class AccountResponse(ApiModel):
    id: int
    email: str
    name: str
    role: str
    date_joined: datetime


class TokenResponse(ApiModel):
    token: str
    user: AccountResponse


class ProfileUpdateRequest(RequestModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    password: str | None = Field(default=None, min_length=8, max_length=128)


class UserSummaryResponse(AccountResponse):
    active: bool
    last_login: datetime | None


class GeocodeRequest(RequestModel):
    address: str = Field(min_length=1, max_length=500)


class GeocodeResponse(ApiModel):
    address: str
    location: Coordinate
    formatted_address: str
    country_code: str
