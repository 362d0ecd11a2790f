from __future__ import annotations

import math

from ev_route_planner.exceptions import InvalidParameterError

DEFAULT_SAFETY_BUFFER = 0.8


def available_range_miles(vehicle_range_miles: float, battery_percent: float) -> float:
    return vehicle_range_miles * battery_percent / 100.0


def stops_needed(
    total_distance_miles: float,
    vehicle_range_miles: float,
    battery_percent: float,
    safety_buffer: float = DEFAULT_SAFETY_BUFFER,
) -> int:
    """Return how many charging stops a trip needs.

    The starting charge covers ``vehicle_range * battery_percent / 100`` miles.
    Every stop after that is assumed to add only ``vehicle_range * safety_buffer``
    miles, leaving the rest of the battery as margin.
    """
    if vehicle_range_miles <= 0:
        raise InvalidParameterError("Vehicle range must be greater than zero")
    if safety_buffer <= 0:
        raise InvalidParameterError("Safety buffer must be greater than zero")
    if not 0 <= battery_percent <= 100:
        raise InvalidParameterError("Battery percent must be between 0 and 100")

    available_range = available_range_miles(vehicle_range_miles, battery_percent)
    if total_distance_miles <= available_range:
        return 0

    remaining = total_distance_miles - available_range
    usable_range_per_stop = vehicle_range_miles * safety_buffer
    return math.ceil(remaining / usable_range_per_stop)
