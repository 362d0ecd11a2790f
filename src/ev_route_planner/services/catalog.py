from __future__ import annotations

from ev_route_planner.models import ChargingStation
from ev_route_planner.services.types import GeoPoint, Station


def to_station(row: ChargingStation) -> Station:
    return Station(
        station_id=row.id,
        name=row.name,
        address=row.address,
        point=GeoPoint(latitude=row.latitude, longitude=row.longitude),
        power_kw=row.power_kw,
        cost_per_kwh=row.cost_per_kwh,
        connector_type=row.connector_type,
        verified=row.verified,
        rating=row.rating,
        review_count=row.review_count,
    )


class StationCatalog:
    """Read-only view of the station registry used by the planner."""

    def all(self) -> list[Station]:
        # Materialized in one query so a planning call sees a fixed snapshot.
        return [to_station(row) for row in ChargingStation.objects.order_by("id")]

    def get_by_id(self, station_id: int) -> Station | None:
        row = ChargingStation.objects.filter(pk=station_id).first()
        if row is None:
            return None
        return to_station(row)
