from __future__ import annotations

from pathlib import Path
from typing import Any

import polars as pl
from django.core.management.base import BaseCommand, CommandError

from ev_route_planner.models import ChargingStation

COLUMN_MAP = {
    "Station Name": "name",
    "Address": "address",
    "City": "city",
    "State": "state",
    "Latitude": "latitude",
    "Longitude": "longitude",
    "Power kW": "power_kw",
    "Cost per kWh": "cost_per_kwh",
    "Connector Type": "connector_type",
}

UPDATE_FIELDS = [
    "name",
    "city",
    "state",
    "latitude",
    "longitude",
    "power_kw",
    "cost_per_kwh",
    "connector_type",
]


def station_key(address: str, city: str, state: str) -> str:
    return "|".join(part.strip().upper() for part in (address, city, state))


class Command(BaseCommand):
    help = "Import and normalize charging stations from a CSV using Polars."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--csv-path",
            type=str,
            required=True,
            help="Path to the source charging stations CSV",
        )
        parser.add_argument(
            "--verified",
            action="store_true",
            help="Mark imported stations as verified",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        csv_path = Path(options["csv_path"])
        if not csv_path.exists():
            raise CommandError(f"CSV file does not exist: {csv_path}")

        records = self._load_and_transform(csv_path).to_dicts()

        existing = {
            station_key(station.address, station.city, station.state): station
            for station in ChargingStation.objects.all()
        }

        to_create: list[ChargingStation] = []
        to_update: list[ChargingStation] = []

        for row in records:
            station = existing.get(row["station_key"])
            values = {field: row[field] for field in UPDATE_FIELDS}
            if station is None:
                to_create.append(
                    ChargingStation(
                        address=row["address"], verified=options["verified"], **values
                    )
                )
                continue

            for field, value in values.items():
                setattr(station, field, value)
            to_update.append(station)

        if to_create:
            ChargingStation.objects.bulk_create(to_create, batch_size=1000)
        if to_update:
            ChargingStation.objects.bulk_update(to_update, UPDATE_FIELDS, batch_size=1000)

        self.stdout.write(
            self.style.SUCCESS(
                f"Imported charging stations: {len(records)} rows normalized, "
                f"{len(to_create)} created, {len(to_update)} updated"
            )
        )

    @staticmethod
    def _load_and_transform(csv_path: Path) -> pl.DataFrame:
        frame = pl.read_csv(csv_path, infer_schema_length=5000)
        missing_columns = set(COLUMN_MAP).difference(frame.columns)
        if missing_columns:
            raise CommandError(f"Missing expected columns: {sorted(missing_columns)}")

        def text(column: str) -> pl.Expr:
            return (
                pl.col(column)
                .cast(pl.Utf8, strict=False)
                .str.strip_chars()
                .fill_null("")
                .alias(COLUMN_MAP[column])
            )

        def number(column: str, default: float | None = None) -> pl.Expr:
            expr = pl.col(column).cast(pl.Float64, strict=False)
            if default is not None:
                expr = expr.fill_null(default)
            return expr.alias(COLUMN_MAP[column])

        return (
            frame.select(
                text("Station Name"),
                text("Address"),
                text("City"),
                text("State"),
                number("Latitude"),
                number("Longitude"),
                number("Power kW"),
                number("Cost per kWh", default=0.0),
                text("Connector Type"),
            )
            .filter(
                (pl.col("name").str.len_chars() > 0)
                & (pl.col("address").str.len_chars() > 0)
                & pl.col("latitude").is_between(-90.0, 90.0)
                & pl.col("longitude").is_between(-180.0, 180.0)
                & (pl.col("power_kw") > 0)
                & (pl.col("cost_per_kwh") >= 0)
            )
            .with_columns(
                pl.concat_str(
                    [
                        pl.col("address").str.to_uppercase(),
                        pl.col("city").str.to_uppercase(),
                        pl.col("state").str.to_uppercase(),
                    ],
                    separator="|",
                ).alias("station_key")
            )
            .sort(["station_key", "power_kw"], descending=[False, True])
            .unique(subset=["station_key"], keep="first", maintain_order=True)
        )
