from __future__ import annotations

from pathlib import Path

import pytest
from django.core.management import call_command

from ev_route_planner.models import ChargingStation

HEADER = "Station Name,Address,City,State,Latitude,Longitude,Power kW,Cost per kWh,Connector Type"


@pytest.mark.django_db
def test_import_charging_stations_deduplicates_and_keeps_fastest(tmp_path: Path) -> None:
    csv_path = tmp_path / "stations.csv"
    csv_path.write_text(
        "\n".join(
            [
                HEADER,
                "Hub A,100 Main St,Tulsa,OK,36.15,-95.99,50,0.30,CCS",
                "Hub A Upgrade,100 main st ,Tulsa,OK,36.15,-95.99,150,0.45,CCS",
                "Broken,200 River Rd,Denver,CO,39.74,-104.99,0,0.30,CHAdeMO",
                "No Coords,300 Lake Dr,Austin,TX,,,50,0.30,J1772",
                "Hub C,400 Hill Rd,Austin,TX,30.27,-97.74,62.5,,Tesla",
            ]
        ),
        encoding="utf-8",
    )

    call_command("import_charging_stations", csv_path=str(csv_path), verified=True)

    stations = list(ChargingStation.objects.order_by("address"))
    assert [station.name for station in stations] == ["Hub A Upgrade", "Hub C"]
    assert stations[0].power_kw == pytest.approx(150.0)
    assert stations[1].cost_per_kwh == 0.0
    assert all(station.verified for station in stations)


@pytest.mark.django_db
def test_import_updates_existing_station(tmp_path: Path, make_station) -> None:
    existing = make_station(name="Old Name", address="100 Main St", city="Tulsa", state="OK")
    csv_path = tmp_path / "stations.csv"
    csv_path.write_text(
        "\n".join([HEADER, "New Name,100 Main St,Tulsa,OK,36.15,-95.99,75,0.28,CCS"]),
        encoding="utf-8",
    )

    call_command("import_charging_stations", csv_path=str(csv_path))

    existing.refresh_from_db()
    assert ChargingStation.objects.count() == 1
    assert existing.name == "New Name"
    assert existing.power_kw == pytest.approx(75.0)
