"""
Tests for the places client, search terms and quota limiter.
"""

import pytest
import requests
import responses
from django.core.cache import cache
from django.test import override_settings

from courts.places import (
    PlacesClient,
    ProviderError,
    ProviderQuotaExceeded,
    ProviderTransportError,
    ProviderUnavailable,
    QuotaTracker,
    RateLimiter,
    get_search_terms,
)

TEXTSEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


class TestPlacesClientInit:
    """Tests for PlacesClient initialization."""

    def test_init_with_api_key(self):
        client = PlacesClient(api_key="test-key-123")
        assert client.api_key == "test-key-123"
        assert client.is_configured

    @override_settings(GOOGLE_PLACES_API_KEY="settings-key-456")
    def test_init_from_settings(self):
        """Should use API key from settings if not provided."""
        client = PlacesClient()
        assert client.api_key == "settings-key-456"

    def test_unconfigured_client_fails_on_use(self):
        """Building a client without a key is fine; calling it is not."""
        client = PlacesClient()
        assert not client.is_configured
        with pytest.raises(ProviderUnavailable):
            client.search_by_text("tennis court", 40.7, -74.0, 5000)


class TestSearchByText:
    """Tests for search_by_text."""

    @responses.activate
    def test_returns_results(self):
        responses.add(
            responses.GET,
            TEXTSEARCH_URL,
            json={
                "status": "OK",
                "results": [
                    {"place_id": "p1", "name": "Central Park Tennis Center"},
                    {"place_id": "p2", "name": "Riverside Courts"},
                ],
            },
            status=200,
        )

        client = PlacesClient(api_key="test-key")
        results = client.search_by_text("tennis court", 40.7128, -74.006, 10000)

        assert [r["place_id"] for r in results] == ["p1", "p2"]
        url = responses.calls[0].request.url
        assert "query=tennis+court" in url
        assert "location=40.7128%2C-74.006" in url
        assert "radius=10000" in url
        assert "type=establishment" in url
        assert "key=test-key" in url

    @responses.activate
    def test_zero_results_is_empty_list(self):
        responses.add(responses.GET, TEXTSEARCH_URL, json={"status": "ZERO_RESULTS", "results": []})

        client = PlacesClient(api_key="test-key")

        assert client.search_by_text("padel court", 0.0, 0.0, 1000) == []

    @responses.activate
    def test_error_status_raises_provider_error(self):
        responses.add(
            responses.GET,
            TEXTSEARCH_URL,
            json={"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."},
        )

        client = PlacesClient(api_key="bad-key")

        with pytest.raises(ProviderError) as exc_info:
            client.search_by_text("tennis court", 40.7, -74.0, 5000)
        assert exc_info.value.status == "REQUEST_DENIED"

    @responses.activate
    def test_http_error_raises_provider_error(self):
        responses.add(responses.GET, TEXTSEARCH_URL, json={}, status=503)

        client = PlacesClient(api_key="test-key")

        with pytest.raises(ProviderError) as exc_info:
            client.search_by_text("tennis court", 40.7, -74.0, 5000)
        assert exc_info.value.status == "HTTP_503"

    @responses.activate
    def test_network_failure_raises_transport_error(self):
        responses.add(
            responses.GET,
            TEXTSEARCH_URL,
            body=requests.exceptions.ConnectionError("Connection refused"),
        )

        client = PlacesClient(api_key="test-key")

        with pytest.raises(ProviderTransportError):
            client.search_by_text("tennis court", 40.7, -74.0, 5000)


class TestGetDetails:
    """Tests for get_details."""

    @responses.activate
    def test_returns_result_and_requests_field_mask(self):
        responses.add(
            responses.GET,
            DETAILS_URL,
            json={"status": "OK", "result": {"place_id": "p1", "name": "Riverside Courts"}},
        )

        client = PlacesClient(api_key="test-key")
        details = client.get_details("p1")

        assert details["name"] == "Riverside Courts"
        url = responses.calls[0].request.url
        assert "place_id=p1" in url
        assert "business_status" in url
        assert "opening_hours" in url

    @responses.activate
    def test_not_found_raises(self):
        responses.add(responses.GET, DETAILS_URL, json={"status": "NOT_FOUND"})

        client = PlacesClient(api_key="test-key")

        with pytest.raises(ProviderError) as exc_info:
            client.get_details("gone")
        assert exc_info.value.status == "NOT_FOUND"


class TestGeocodeAddress:
    """Tests for geocode_address."""

    @responses.activate
    def test_returns_first_match(self):
        responses.add(
            responses.GET,
            GEOCODE_URL,
            json={
                "status": "OK",
                "results": [
                    {
                        "formatted_address": "Golden Gate Park, San Francisco, CA, USA",
                        "geometry": {"location": {"lat": 37.7694, "lng": -122.4862}},
                    }
                ],
            },
        )

        client = PlacesClient(api_key="test-key")
        location = client.geocode_address("Golden Gate Park")

        assert location == {
            "latitude": 37.7694,
            "longitude": -122.4862,
            "formatted_address": "Golden Gate Park, San Francisco, CA, USA",
        }

    @responses.activate
    def test_no_match_raises(self):
        responses.add(responses.GET, GEOCODE_URL, json={"status": "ZERO_RESULTS", "results": []})

        client = PlacesClient(api_key="test-key")

        with pytest.raises(ProviderError):
            client.geocode_address("nowhere at all")


class TestQuota:
    """Quota accounting around client calls."""

    @responses.activate
    def test_successful_call_is_counted(self):
        responses.add(responses.GET, TEXTSEARCH_URL, json={"status": "OK", "results": []})

        limiter = RateLimiter()
        client = PlacesClient(api_key="test-key", rate_limiter=limiter)
        client.search_by_text("tennis court", 40.7, -74.0, 5000)

        assert limiter.get_remaining_hourly() == limiter.hourly_limit - 1
        assert limiter.get_remaining_daily() == limiter.daily_quota - 1

    @responses.activate
    @override_settings(PLACES_HOURLY_LIMIT=1)
    def test_exhausted_quota_blocks_call(self):
        responses.add(responses.GET, TEXTSEARCH_URL, json={"status": "OK", "results": []})

        client = PlacesClient(api_key="test-key")
        client.search_by_text("tennis court", 40.7, -74.0, 5000)

        with pytest.raises(ProviderQuotaExceeded):
            client.search_by_text("tennis club", 40.7, -74.0, 5000)
        assert len(responses.calls) == 1

    def test_quota_exceeded_is_a_provider_error(self):
        error = ProviderQuotaExceeded()
        assert isinstance(error, ProviderError)
        assert error.status == "OVER_QUERY_LIMIT"


class TestRateLimiter:
    """Tests for RateLimiter and QuotaTracker."""

    def test_counts_are_shared_through_cache(self):
        RateLimiter().record_request()
        RateLimiter().record_request()

        assert RateLimiter().get_remaining_hourly() == RateLimiter().hourly_limit - 2

    @override_settings(PLACES_DAILY_QUOTA=10)
    def test_quota_low(self):
        limiter = RateLimiter()
        tracker = QuotaTracker(limiter)
        assert not tracker.is_quota_low()

        for _ in range(10):
            limiter.record_request()

        assert tracker.is_quota_low()
        assert not limiter.can_make_request()
        assert tracker.get_usage_stats()["daily_remaining"] == 0

    def test_separate_prefixes_do_not_share_counts(self):
        RateLimiter(cache_prefix="a").record_request()
        assert RateLimiter(cache_prefix="b").get_remaining_hourly() == RateLimiter().hourly_limit
        cache.clear()


class TestSearchTerms:
    """Tests for the sport search-term table."""

    def test_mapped_sport(self):
        assert get_search_terms("Tennis") == ["tennis court", "tennis club", "tennis center"]

    def test_basketball_includes_sports_complex(self):
        assert "sports complex" in get_search_terms("Basketball")

    def test_unmapped_sport_falls_back(self):
        assert get_search_terms("Squash") == ["squash court"]

    def test_returned_list_is_a_copy(self):
        terms = get_search_terms("Padel")
        terms.append("mutated")
        assert get_search_terms("Padel") == ["padel court", "padel club", "padel center"]
