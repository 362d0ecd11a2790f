from __future__ import annotations

from ev_route_planner.services.types import GeoPoint, Station


def station(
    station_id: int,
    latitude: float,
    longitude: float,
    power_kw: float = 50.0,
    cost_per_kwh: float = 0.35,
) -> Station:
    return Station(
        station_id=station_id,
        name=f"Station {station_id}",
        address=f"{station_id} Test Ave",
        point=GeoPoint(latitude=latitude, longitude=longitude),
        power_kw=power_kw,
        cost_per_kwh=cost_per_kwh,
        connector_type="CCS",
        verified=True,
        rating=None,
        review_count=0,
    )


# A straight north-south route along longitude -100 from latitude 30 to 36.
ROUTE_POLYLINE = tuple(GeoPoint(latitude=30.0 + step, longitude=-100.0) for step in range(7))
