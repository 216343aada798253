"""
Pytest configuration and fixtures for the Court Discovery test suite.
"""

from unittest.mock import MagicMock

import pytest


@pytest.fixture(scope="session")
def django_db_setup(django_db_blocker):
    """Configure the test database and run migrations."""
    from django.core.management import call_command

    with django_db_blocker.unblock():
        call_command("migrate", "--run-syncdb", verbosity=0)


@pytest.fixture(autouse=True)
def clear_cache():
    """Reset quota counters kept in the cache between tests."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_court(db):
    """Factory for Court rows."""
    from courts.models import Court

    def _make_court(**overrides):
        data = {
            "name": "Riverside Courts",
            "sport_types": ["Tennis"],
            "address": "1 River Rd, Springfield",
            "latitude": 40.7128,
            "longitude": -74.0060,
        }
        data.update(overrides)
        return Court.objects.create(**data)

    return _make_court


@pytest.fixture
def place_details():
    """Factory for place-details records as the places API returns them."""

    def _place_details(**overrides):
        details = {
            "place_id": "place-1",
            "name": "Riverside Tennis Courts",
            "formatted_address": "1 River Rd, Springfield",
            "geometry": {"location": {"lat": 40.7128, "lng": -74.0060}},
            "rating": 4.5,
            "user_ratings_total": 120,
            "formatted_phone_number": "(555) 010-0000",
            "website": "https://riverside.example/tennis",
            "opening_hours": {
                "open_now": True,
                "periods": [{"open": {"day": 1, "time": "0800"}}],
                "weekday_text": ["Monday: 8:00 AM - 9:00 PM"],
            },
            "price_level": 1,
            "photos": [
                {
                    "photo_reference": "photo-ref-1",
                    "width": 800,
                    "height": 600,
                    "html_attributions": ["<a>someone</a>"],
                }
            ],
            "types": ["park", "point_of_interest", "establishment"],
            "business_status": "OPERATIONAL",
        }
        details.update(overrides)
        return details

    return _place_details


@pytest.fixture
def fake_provider(place_details):
    """
    A places provider double.

    search_by_text returns two places for every term; get_details answers
    from ``provider.details_by_id``.
    """
    provider = MagicMock()
    provider.details_by_id = {
        "place-1": place_details(),
        "place-2": place_details(
            place_id="place-2",
            name="Oak Park Tennis Club",
            formatted_address="9 Oak Ave, Springfield",
            geometry={"location": {"lat": 40.75, "lng": -73.99}},
        ),
    }
    provider.search_by_text.return_value = [
        {"place_id": "place-1", "name": "Riverside Tennis Courts"},
        {"place_id": "place-2", "name": "Oak Park Tennis Club"},
    ]
    provider.get_details.side_effect = lambda place_id: provider.details_by_id[place_id]
    return provider
