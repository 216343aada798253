"""
Search Area Tracker.

Remembers which (latitude, longitude, radius, sport) boxes were searched
and when, so discovery can skip areas searched recently and the scheduler
can find the areas people search most.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, Max
from django.utils import timezone

from courts.models import SearchArea

logger = logging.getLogger(__name__)

COORDINATE_PRECISION = 6


def area_key(latitude: float, longitude: float, radius: int, sport_type: str) -> Dict[str, Any]:
    """Lookup kwargs for the exact search tuple."""
    return {
        "latitude": round(float(latitude), COORDINATE_PRECISION),
        "longitude": round(float(longitude), COORDINATE_PRECISION),
        "radius": int(radius),
        "sport_type": sport_type,
    }


class SearchAreaTracker:
    """Recency cache over the SearchArea table."""

    def is_fresh(
        self,
        latitude: float,
        longitude: float,
        radius: int,
        sport_type: str,
        within: Optional[timedelta] = None,
    ) -> Optional[SearchArea]:
        """
        Return the tuple's SearchArea if it was searched inside ``within``.

        Args:
            within: Freshness window (default DISCOVERY_FRESHNESS_DAYS, 7 days)

        Returns:
            The SearchArea row, or None when missing or stale
        """
        if within is None:
            within = timedelta(days=getattr(settings, "DISCOVERY_FRESHNESS_DAYS", 7))
        cutoff = timezone.now() - within
        return SearchArea.objects.filter(
            last_discovered_at__gt=cutoff,
            **area_key(latitude, longitude, radius, sport_type),
        ).first()

    def record_in_progress(self, latitude: float, longitude: float, radius: int, sport_type: str) -> SearchArea:
        """Insert the tuple or touch its timestamp; total_found is left alone."""
        key = area_key(latitude, longitude, radius, sport_type)
        now = timezone.now()
        try:
            with transaction.atomic():
                area, _ = SearchArea.objects.update_or_create(
                    defaults={"last_discovered_at": now}, **key
                )
        except IntegrityError:
            # Lost an insert race with another job on the same tuple
            SearchArea.objects.filter(**key).update(last_discovered_at=now)
            area = SearchArea.objects.get(**key)
        return area

    def record_completion(
        self,
        latitude: float,
        longitude: float,
        radius: int,
        sport_type: str,
        count: int,
    ) -> int:
        """Store the pass result count and touch the timestamp. Returns rows updated."""
        updated = SearchArea.objects.filter(
            **area_key(latitude, longitude, radius, sport_type)
        ).update(total_found=count, last_discovered_at=timezone.now())
        if not updated:
            logger.warning(
                "No search area to complete for %s @ %s, %s r=%s",
                sport_type, latitude, longitude, radius,
            )
        return updated

    def popular_areas(
        self,
        since_days: int = 30,
        min_searches: int = 1,
        limit: int = 20,
    ) -> List[Dict[str, Any]]:
        """
        Most searched (latitude, longitude) points in the last ``since_days``.

        Returns:
            Dicts with latitude, longitude, search_count, avg_radius and
            last_search, ordered by search_count then recency
        """
        cutoff = timezone.now() - timedelta(days=since_days)
        rows = (
            SearchArea.objects.filter(last_discovered_at__gt=cutoff)
            .values("latitude", "longitude")
            .annotate(
                search_count=Count("id"),
                avg_radius=Avg("radius"),
                last_search=Max("last_discovered_at"),
            )
            .filter(search_count__gte=min_searches)
            .order_by("-search_count", "-last_search")[:limit]
        )
        return list(rows)

    def purge_stale(self, older_than_days: Optional[int] = None) -> int:
        """Delete areas untouched for ``older_than_days`` (default 90). Returns count removed."""
        if older_than_days is None:
            older_than_days = getattr(settings, "DISCOVERY_STALE_AFTER_DAYS", 90)
        cutoff = timezone.now() - timedelta(days=older_than_days)
        deleted, _ = SearchArea.objects.filter(last_discovered_at__lt=cutoff).delete()
        logger.info("Purged %d stale search areas (older than %d days)", deleted, older_than_days)
        return deleted
