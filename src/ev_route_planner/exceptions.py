class RoutePlannerError(Exception):
    """Base exception for route planning errors."""


class InvalidRequestError(RoutePlannerError):
    """Raised when a request has a bad shape or out-of-range values."""


class InvalidParameterError(InvalidRequestError):
    """Raised when a planning parameter would make the computation undefined."""


class RouteUnavailableError(RoutePlannerError):
    """Raised when the route source cannot produce a route."""


class ExternalServiceError(RouteUnavailableError):
    """Raised when an upstream API call fails or exceeds its deadline."""


class InvalidLocationError(RouteUnavailableError):
    """Raised when an input location cannot be resolved to a coordinate."""


class NoRouteFoundError(RouteUnavailableError):
    """Raised when a drivable route cannot be generated."""


class InvalidStationDataError(RoutePlannerError):
    """Raised when a single station carries malformed numeric data."""

    def __init__(self, station_id: int, message: str) -> None:
        super().__init__(message)
        self.station_id = station_id
