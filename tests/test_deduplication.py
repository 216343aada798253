"""
Tests for the two-tier court deduplicator and coalesce-on-write merge.
"""

import uuid
from unittest.mock import patch

import pytest
from django.db import IntegrityError
from django.test import override_settings

from courts.models import Court, DiscoverySource, VerificationStatus
from courts.services.court_filter import NormalizedCourt, normalize_place
from courts.services.deduplication import INSERT, MERGE, Deduplicator

# 0.0005 degrees of latitude is about 56 m; 0.0015 about 167 m
NEAR = 0.0005
FAR = 0.0015


@pytest.fixture
def dedup():
    return Deduplicator()


def candidate(**overrides):
    data = {
        "name": "Riverside Courts",
        "sport_types": ["Tennis"],
        "address": "1 River Rd",
        "latitude": 40.7128,
        "longitude": -74.0060,
        "external_place_id": "X1",
    }
    data.update(overrides)
    return NormalizedCourt(**data)


@pytest.mark.django_db
class TestResolve:
    """Tier 1 then tier 2, otherwise insert."""

    def test_external_id_match_wins_regardless_of_name_and_location(self, dedup, make_court):
        existing = make_court(
            name="Riverside Courts (Old Name)",
            external_place_id="X1",
            latitude=10.0,
            longitude=10.0,
        )

        resolution = dedup.resolve(candidate(name="Riverside Courts"))

        assert resolution.action == MERGE
        assert resolution.existing == existing
        assert resolution.match_method == "external_id"

    def test_same_name_within_100m_merges(self, dedup, make_court):
        existing = make_court(name="RIVERSIDE COURTS", latitude=40.7128 + NEAR)

        resolution = dedup.resolve(candidate(external_place_id="NEW"))

        assert resolution.action == MERGE
        assert resolution.existing == existing
        assert resolution.match_method == "proximity"
        assert resolution.distance == pytest.approx(55.6, abs=1)

    def test_same_name_beyond_100m_inserts(self, dedup, make_court):
        make_court(name="Riverside Courts", latitude=40.7128 + FAR)

        resolution = dedup.resolve(candidate(external_place_id="NEW"))

        assert resolution.action == INSERT
        assert resolution.existing is None

    def test_nearest_same_named_court_is_chosen(self, dedup, make_court):
        make_court(name="Riverside Courts", latitude=40.7128 + 0.0008)  # ~89 m
        nearest = make_court(name="Riverside Courts", latitude=40.7128 - 0.0002)  # ~22 m

        resolution = dedup.resolve(candidate(external_place_id=None))

        assert resolution.existing == nearest

    def test_different_name_nearby_inserts(self, dedup, make_court):
        make_court(name="Riverside Park Courts", latitude=40.7128 + NEAR)

        assert dedup.resolve(candidate(external_place_id="NEW")).action == INSERT

    def test_candidate_without_coordinates_skips_proximity(self, dedup, make_court):
        make_court(name="Riverside Courts")

        resolution = dedup.resolve(candidate(external_place_id=None, latitude=None, longitude=None))

        assert resolution.action == INSERT

    @override_settings(DISCOVERY_DUPLICATE_RADIUS_METERS=200)
    def test_radius_is_configurable(self, make_court):
        make_court(name="Riverside Courts", latitude=40.7128 + FAR)

        assert Deduplicator().resolve(candidate(external_place_id="NEW")).action == MERGE


@pytest.mark.django_db
class TestPersist:
    """Insert and merge writes."""

    def test_insert_persists_all_fields(self, dedup, place_details):
        outcome = dedup.persist(normalize_place(place_details(), "Tennis"))

        assert outcome.action == INSERT
        court = Court.objects.get(id=outcome.court.id)
        assert court.external_place_id == "place-1"
        assert court.sport_types == ["Tennis"]
        assert court.discovery_source == DiscoverySource.GOOGLE_PLACES
        assert court.verification_status == VerificationStatus.PENDING
        assert court.surface_type == "unknown"
        assert court.lighting == "unknown"
        assert court.court_count is None
        assert court.created_by == uuid.UUID(int=0)
        assert court.photos == [{"photo_reference": "photo-ref-1", "width": 800, "height": 600}]

    def test_merge_keeps_identity_and_moderation_fields(self, dedup, make_court):
        existing = make_court(
            name="Riverside Courts (Old Name)",
            address="Old address",
            external_place_id="X1",
            latitude=40.0,
            longitude=-73.0,
            verification_status=VerificationStatus.VERIFIED,
            external_rating=3.0,
        )

        outcome = dedup.persist(candidate(
            name="Riverside Courts",
            address="New address",
            external_rating=4.8,
        ))

        assert outcome.action == MERGE
        existing.refresh_from_db()
        assert existing.name == "Riverside Courts (Old Name)"
        assert existing.address == "Old address"
        assert (existing.latitude, existing.longitude) == (40.0, -73.0)
        assert existing.verification_status == VerificationStatus.VERIFIED
        assert existing.external_rating == 4.8

    def test_merge_only_overwrites_with_non_null_values(self, dedup, make_court):
        existing = make_court(
            external_place_id="X1",
            phone_number="555-0100",
            website_url="https://old.example",
            external_rating=3.0,
        )

        dedup.persist(candidate(phone_number=None, website_url="https://new.example"))

        existing.refresh_from_db()
        assert existing.phone_number == "555-0100"
        assert existing.website_url == "https://new.example"
        assert existing.external_rating == 3.0

    def test_merge_does_not_change_sport_types(self, dedup, make_court):
        existing = make_court(external_place_id="X1", sport_types=["Tennis"])

        dedup.persist(candidate(sport_types=["Pickleball"]))

        existing.refresh_from_db()
        assert existing.sport_types == ["Tennis"]

    def test_persisting_twice_does_not_duplicate(self, dedup, place_details):
        dedup.persist(normalize_place(place_details(), "Tennis"))
        second = dedup.persist(normalize_place(place_details(rating=4.9), "Tennis"))

        assert second.action == MERGE
        assert Court.objects.count() == 1
        assert Court.objects.get().external_rating == 4.9

    def test_unique_conflict_on_insert_is_merged(self, dedup, make_court):
        """Another writer stored the place between resolve and insert."""
        existing = make_court(name="Riverside (Renamed)", external_place_id="X1", phone_number=None)

        with patch("courts.services.deduplication.match_by_external_id", side_effect=[None, existing]):
            outcome = dedup.persist(candidate(phone_number="555-0199"))

        assert outcome.action == MERGE
        existing.refresh_from_db()
        assert existing.phone_number == "555-0199"
        assert Court.objects.count() == 1

    def test_unexplained_integrity_error_propagates(self, dedup):
        with patch.object(Deduplicator, "insert", side_effect=IntegrityError("boom")):
            with pytest.raises(IntegrityError):
                dedup.persist(candidate(external_place_id="NEW"))
