from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from ev_route_planner.exceptions import InvalidParameterError, InvalidStationDataError
from ev_route_planner.services.types import MatchedStation, StopPlan, TripTotals

logger = logging.getLogger(__name__)

DEFAULT_ENERGY_PER_MILE_KWH = 0.3


class TripCostEstimator:
    def estimate(
        self,
        candidates: Iterable[MatchedStation],
        vehicle_range_miles: float,
        safety_buffer: float,
        energy_per_mile_kwh: float = DEFAULT_ENERGY_PER_MILE_KWH,
    ) -> list[StopPlan]:
        """Estimate charging time and cost at each candidate station.

        Each stop replenishes ``vehicle_range_miles * safety_buffer`` miles.
        Stations with malformed power or price data are logged and left out.
        """
        if energy_per_mile_kwh <= 0:
            raise InvalidParameterError("Energy per mile must be greater than zero")

        charge_amount_miles = vehicle_range_miles * safety_buffer
        energy_kwh = charge_amount_miles * energy_per_mile_kwh

        stops: list[StopPlan] = []
        for candidate in candidates:
            try:
                stops.append(self._estimate_stop(candidate, energy_kwh))
            except InvalidStationDataError as exc:
                logger.warning("Skipping station %s: %s", exc.station_id, exc)
        return stops

    @staticmethod
    def aggregate(stops: Iterable[StopPlan]) -> TripTotals:
        energy_kwh = 0.0
        cost = 0.0
        charging_hours = 0.0
        for stop in stops:
            energy_kwh += stop.energy_kwh
            cost += stop.charging_cost
            charging_hours += stop.charging_hours
        return TripTotals(energy_kwh=energy_kwh, cost=cost, charging_hours=charging_hours)

    @staticmethod
    def _estimate_stop(candidate: MatchedStation, energy_kwh: float) -> StopPlan:
        station = candidate.station
        power_kw = station.power_kw
        cost_per_kwh = station.cost_per_kwh

        if not isinstance(power_kw, (int, float)) or not math.isfinite(power_kw) or power_kw <= 0:
            raise InvalidStationDataError(station.station_id, "power must be a positive number")
        if (
            not isinstance(cost_per_kwh, (int, float))
            or not math.isfinite(cost_per_kwh)
            or cost_per_kwh < 0
        ):
            raise InvalidStationDataError(station.station_id, "cost per kWh must be non-negative")

        return StopPlan(
            station=station,
            distance_from_route_miles=candidate.distance_from_route_miles,
            energy_kwh=energy_kwh,
            charging_hours=energy_kwh / power_kw,
            charging_cost=energy_kwh * cost_per_kwh,
        )
