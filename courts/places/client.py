"""
Places Client - HTTP client wrapper for the Google Places web service.

Provides:
- Text search around a point (candidate venues)
- Place details (the enriched record the court filter classifies)
- Address geocoding (manual discovery triggers)
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

from .exceptions import (
    ProviderError,
    ProviderQuotaExceeded,
    ProviderTransportError,
    ProviderUnavailable,
)
from .rate_limiter import QuotaTracker, RateLimiter

logger = logging.getLogger(__name__)

DETAIL_FIELDS = [
    "place_id",
    "name",
    "formatted_address",
    "geometry",
    "rating",
    "user_ratings_total",
    "formatted_phone_number",
    "website",
    "opening_hours",
    "price_level",
    "photos",
    "types",
    "business_status",
]


class PlacesClient:
    """
    Wrapper for the Google Places API.

    Every call goes through the shared RateLimiter so concurrent workers
    draw from one quota. The credential is checked per call: a client can be
    built without a key, and only fails once it is actually used.

    Usage:
        client = PlacesClient()
        places = client.search_by_text("tennis court", 40.7128, -74.0060, 10000)
        details = client.get_details(places[0]["place_id"])
    """

    BASE_URL = "https://maps.googleapis.com/maps/api/place"
    GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(
        self,
        api_key: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Places API key. If not provided, uses settings.GOOGLE_PLACES_API_KEY
            rate_limiter: Quota limiter shared across calls (default: RateLimiter())
            timeout: Seconds per HTTP call (default: settings.PLACES_REQUEST_TIMEOUT)
        """
        self.api_key = api_key or getattr(settings, "GOOGLE_PLACES_API_KEY", "")
        self.rate_limiter = rate_limiter or RateLimiter()
        self.timeout = timeout or getattr(settings, "PLACES_REQUEST_TIMEOUT", 30)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def search_by_text(
        self,
        term: str,
        latitude: float,
        longitude: float,
        radius_meters: int,
    ) -> List[Dict[str, Any]]:
        """
        Text search for establishments around a point.

        Args:
            term: Search phrase, e.g. "tennis club"
            latitude: Center latitude
            longitude: Center longitude
            radius_meters: Search radius in meters

        Returns:
            List of raw place dicts (at least place_id and name). ZERO_RESULTS
            yields an empty list.

        Raises:
            ProviderUnavailable: No API key configured
            ProviderError: Non-OK status from the API
            ProviderTransportError: Network failure
        """
        params = {
            "query": term,
            "location": f"{latitude},{longitude}",
            "radius": radius_meters,
            "type": "establishment",
        }
        data = self._make_request(f"{self.BASE_URL}/textsearch/json", params)
        return data.get("results") or []

    def get_details(self, place_id: str) -> Dict[str, Any]:
        """
        Fetch the detail record for a place.

        Raises:
            ProviderError: Any status other than OK, including NOT_FOUND
        """
        params = {
            "place_id": place_id,
            "fields": ",".join(DETAIL_FIELDS),
        }
        data = self._make_request(f"{self.BASE_URL}/details/json", params, allow_empty=False)
        return data.get("result") or {}

    def geocode_address(self, address: str) -> Dict[str, Any]:
        """
        Geocode a free-form address.

        Returns:
            Dict with latitude, longitude and formatted_address of the best match

        Raises:
            ProviderError: The address could not be geocoded
        """
        data = self._make_request(self.GEOCODE_URL, {"address": address}, allow_empty=False)
        results = data.get("results") or []
        if not results:
            raise ProviderError(data.get("status", "ZERO_RESULTS"), f"Geocoding failed for {address!r}")

        best = results[0]
        location = best["geometry"]["location"]
        return {
            "latitude": location["lat"],
            "longitude": location["lng"],
            "formatted_address": best.get("formatted_address", address),
        }

    def get_usage_stats(self) -> Dict[str, int]:
        return QuotaTracker(self.rate_limiter).get_usage_stats()

    def _make_request(
        self,
        url: str,
        params: Dict[str, Any],
        allow_empty: bool = True,
    ) -> Dict[str, Any]:
        """
        Make an HTTP request to the API and check its status field.

        Args:
            url: Endpoint URL
            params: Query parameters, without the key
            allow_empty: Treat ZERO_RESULTS as a successful empty answer

        Returns:
            JSON response as dictionary
        """
        if not self.api_key:
            raise ProviderUnavailable("GOOGLE_PLACES_API_KEY not configured")

        if not self.rate_limiter.can_make_request():
            logger.warning("Places quota exhausted: %s", QuotaTracker(self.rate_limiter).get_usage_stats())
            raise ProviderQuotaExceeded()

        try:
            response = requests.get(url, params={**params, "key": self.api_key}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Places request failed: %s", e)
            raise ProviderTransportError(str(e)) from e

        self.rate_limiter.record_request()

        if not response.ok:
            logger.error("Places request returned HTTP %s", response.status_code)
            raise ProviderError(f"HTTP_{response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Places response is not valid JSON: %s", e)
            raise ProviderError("INVALID_RESPONSE") from e

        status = data.get("status")
        if status == "OK" or (allow_empty and status == "ZERO_RESULTS"):
            return data

        logger.error("Places API error: %s %s", status, data.get("error_message", ""))
        raise ProviderError(status or "UNKNOWN_ERROR", data.get("error_message") or "")
