"""
Court Deduplication Service.

Matching order:
1. External place id (exact, authoritative)
2. Same name (case-insensitive) within DISCOVERY_DUPLICATE_RADIUS_METERS
   of a stored court that has coordinates; the nearest one wins

A match is merged (coalesce-on-write over the enrichment fields only);
no match is inserted as a new pending court.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction

from courts.models import Court
from courts.services.court_filter import NormalizedCourt
from courts.utils.geo import haversine_distance

logger = logging.getLogger(__name__)

INSERT = "insert"
MERGE = "merge"

DEFAULT_DUPLICATE_RADIUS_METERS = 100


@dataclass
class Resolution:
    """What to do with a candidate: insert it, or merge into ``existing``."""

    action: str
    existing: Optional[Court] = None
    match_method: str = "none"  # external_id | proximity | none
    distance: Optional[float] = None


@dataclass
class PersistOutcome:
    action: str
    court: Court


def match_by_external_id(candidate: NormalizedCourt) -> Optional[Court]:
    """Find the court carrying the candidate's provider place id."""
    return Court.objects.find_by_external_id(candidate.external_place_id)


def match_by_proximity(candidate: NormalizedCourt, max_distance: float):
    """
    Find the nearest same-named court within ``max_distance`` meters.

    Returns:
        (court, distance) or (None, None)
    """
    if not candidate.has_coordinates or not candidate.name:
        return None, None

    nearest = None
    nearest_distance = None
    for court in Court.objects.same_name_with_coordinates(candidate.name):
        distance = haversine_distance(
            candidate.latitude, candidate.longitude, court.latitude, court.longitude
        )
        if distance <= max_distance and (nearest_distance is None or distance < nearest_distance):
            nearest = court
            nearest_distance = distance
    return nearest, nearest_distance


class Deduplicator:
    """
    Resolves discovered courts against the store and persists them.

    Usage:
        dedup = Deduplicator()
        outcome = dedup.persist(candidate)
        if outcome.action == MERGE:
            ...
    """

    def __init__(self, max_distance: Optional[float] = None, created_by: Optional[uuid.UUID] = None):
        self.max_distance = max_distance if max_distance is not None else getattr(
            settings, "DISCOVERY_DUPLICATE_RADIUS_METERS", DEFAULT_DUPLICATE_RADIUS_METERS
        )
        self.created_by = created_by or uuid.UUID(
            str(getattr(settings, "DISCOVERY_SYSTEM_USER_ID", uuid.UUID(int=0)))
        )

    def resolve(self, candidate: NormalizedCourt) -> Resolution:
        """Decide whether the candidate is new or a known court."""
        existing = match_by_external_id(candidate)
        if existing is not None:
            return Resolution(action=MERGE, existing=existing, match_method="external_id")

        existing, distance = match_by_proximity(candidate, self.max_distance)
        if existing is not None:
            return Resolution(
                action=MERGE, existing=existing, match_method="proximity", distance=distance
            )

        return Resolution(action=INSERT)

    def persist(self, candidate: NormalizedCourt) -> PersistOutcome:
        """
        Resolve and write a candidate.

        A unique-key conflict on insert means another writer stored the same
        place first; it is merged into that record instead of failing.
        """
        resolution = self.resolve(candidate)
        if resolution.action == MERGE:
            logger.debug(
                "Merging %r into court %s (%s)",
                candidate.name, resolution.existing.id, resolution.match_method,
            )
            return PersistOutcome(MERGE, self.merge(resolution.existing, candidate))

        try:
            with transaction.atomic():
                court = self.insert(candidate)
        except IntegrityError:
            existing = match_by_external_id(candidate)
            if existing is None:
                raise
            logger.info("Court %r already exists, merging instead", candidate.name)
            return PersistOutcome(MERGE, self.merge(existing, candidate))

        return PersistOutcome(INSERT, court)

    def insert(self, candidate: NormalizedCourt) -> Court:
        court = Court.objects.create(created_by=self.created_by, **candidate.to_model_fields())
        logger.info("Inserted court %s: %s", court.id, court.name)
        return court

    def merge(self, court: Court, candidate: NormalizedCourt) -> Court:
        """
        Coalesce the candidate's enrichment values into an existing court.

        Name, address, coordinates and verification status are left alone.
        """
        values = candidate.enrichment_values()
        for name, value in values.items():
            setattr(court, name, value)
        court.save(update_fields=list(values))
        return court
