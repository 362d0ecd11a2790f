from __future__ import annotations

import hashlib
import logging
import time
from typing import Any

import httpx
from django.conf import settings
from django.core.cache import cache

from ev_route_planner.exceptions import ExternalServiceError, InvalidLocationError
from ev_route_planner.services.types import GeocodeResult, GeoPoint

logger = logging.getLogger(__name__)


class GeocodingClient:
    """Resolve free-text places to coordinates through a Nominatim search endpoint.

    Lookups are memoized in the Django cache for ``GEOCODE_CACHE_TTL_SECONDS``.
    When ``country_codes`` is set (comma separated ISO codes) the search is
    limited to those countries; an empty value searches worldwide.
    """

    def __init__(self, country_codes: str | None = None) -> None:
        self.base_url = settings.GEOCODING_BASE_URL.rstrip("/")
        self.timeout = settings.GEOCODING_TIMEOUT_SECONDS
        self.retry_count = settings.GEOCODING_RETRY_COUNT
        self.user_agent = settings.GEOCODING_USER_AGENT
        if country_codes is None:
            country_codes = settings.GEOCODING_COUNTRY_CODES
        self.country_codes = country_codes.replace(" ", "").lower()

    def geocode(self, query: str) -> GeocodeResult:
        place = " ".join(query.split())
        if not place:
            raise InvalidLocationError("Location must not be empty")

        cache_key = self.cache_key(place)
        cached = cache.get(cache_key)
        if cached is not None:
            return _from_cached(cached)

        result = _first_match(self._search(place))
        cache.set(cache_key, _to_cached(result), timeout=settings.GEOCODE_CACHE_TTL_SECONDS)
        return result

    def cache_key(self, place: str) -> str:
        digest = hashlib.sha256(f"{place.lower()}|{self.country_codes}".encode()).hexdigest()
        return f"geocode:{digest}"

    def _search(self, place: str) -> Any:
        params: dict[str, Any] = {"q": place, "format": "jsonv2", "limit": 1, "addressdetails": 1}
        if self.country_codes:
            params["countrycodes"] = self.country_codes
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}

        last_error: Exception | None = None
        for attempt in range(self.retry_count + 1):
            if attempt:
                time.sleep(0.3 * attempt)
            try:
                response = httpx.get(
                    f"{self.base_url}/search", params=params, headers=headers, timeout=self.timeout
                )
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                logger.warning("Geocoding attempt %d for %r failed: %s", attempt + 1, place, exc)

        raise ExternalServiceError("Geocoding request failed") from last_error


def _first_match(payload: Any) -> GeocodeResult:
    if not isinstance(payload, list) or not payload:
        raise InvalidLocationError("Location could not be resolved")

    match = payload[0]
    try:
        point = GeoPoint(latitude=float(match["lat"]), longitude=float(match["lon"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidLocationError("Invalid geocoding response") from exc

    address = match.get("address") or {}
    return GeocodeResult(
        point=point,
        country_code=str(address.get("country_code", "")).lower(),
        display_name=str(match.get("display_name", "")),
    )


def _to_cached(result: GeocodeResult) -> dict[str, Any]:
    return {
        "lat": result.point.latitude,
        "lon": result.point.longitude,
        "country": result.country_code,
        "name": result.display_name,
    }


def _from_cached(entry: dict[str, Any]) -> GeocodeResult:
    return GeocodeResult(
        point=GeoPoint(latitude=entry["lat"], longitude=entry["lon"]),
        country_code=entry["country"],
        display_name=entry["name"],
    )
