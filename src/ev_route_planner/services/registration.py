from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from ev_route_planner.exceptions import InvalidRequestError
from ev_route_planner.models import ChargingStation, StationRegistration
from ev_route_planner.services.catalog import to_station
from ev_route_planner.services.types import GeoPoint, Station


@dataclass(slots=True, frozen=True)
class PendingRegistration:
    registration_id: int
    owner_id: int
    business_name: str
    station_name: str
    station_address: str
    point: GeoPoint
    power_kw: float
    cost_per_kwh: float
    connector_type: str


@dataclass(slots=True, frozen=True)
class ApprovedStation:
    registration_id: int
    owner_id: int
    station: Station


def to_pending(registration: StationRegistration) -> PendingRegistration:
    if registration.status != StationRegistration.Status.PENDING:
        raise InvalidRequestError(f"Registration {registration.pk} is already {registration.status}")
    return PendingRegistration(
        registration_id=registration.pk,
        owner_id=registration.owner_id,
        business_name=registration.business_name,
        station_name=registration.station_name,
        station_address=registration.station_address,
        point=GeoPoint(latitude=registration.latitude, longitude=registration.longitude),
        power_kw=registration.power_kw,
        cost_per_kwh=registration.cost_per_kwh,
        connector_type=registration.connector_type,
    )


@transaction.atomic
def approve_registration(registration_id: int) -> ApprovedStation:
    """Turn a pending owner submission into a verified catalog station."""
    registration = StationRegistration.objects.select_for_update().get(pk=registration_id)
    pending = to_pending(registration)

    row = ChargingStation.objects.create(
        name=pending.station_name,
        address=pending.station_address,
        latitude=pending.point.latitude,
        longitude=pending.point.longitude,
        power_kw=pending.power_kw,
        cost_per_kwh=pending.cost_per_kwh,
        connector_type=pending.connector_type,
        verified=True,
        created_by_id=pending.owner_id,
    )

    registration.status = StationRegistration.Status.APPROVED
    registration.station = row
    registration.reviewed_at = timezone.now()
    registration.save(update_fields=["status", "station", "reviewed_at"])

    return ApprovedStation(
        registration_id=pending.registration_id,
        owner_id=pending.owner_id,
        station=to_station(row),
    )


@transaction.atomic
def reject_registration(registration_id: int) -> StationRegistration:
    registration = StationRegistration.objects.select_for_update().get(pk=registration_id)
    to_pending(registration)
    registration.status = StationRegistration.Status.REJECTED
    registration.reviewed_at = timezone.now()
    registration.save(update_fields=["status", "reviewed_at"])
    return registration
