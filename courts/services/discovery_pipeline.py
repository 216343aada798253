"""
Discovery Pipeline - one discovery pass for a single (area, sport) tuple.

Flow:
1. Skip if the search area was searched within the freshness window
2. Record the area as in progress
3. Text search once per sport search phrase, dropping repeated place ids
4. Fetch details for each place and run it through the court filter
5. Deduplicate and persist each accepted court
6. Record the number of courts persisted against the search area

Progress is reported 10, 25, 40, 60, then 60-90 across the persisted
candidates, then 100. Provider failures abort the pass; a single court
that fails to persist is logged and skipped.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings
from django.db import transaction

from courts.monitoring import add_discovery_breadcrumb
from courts.places import PlacesClient, get_search_terms
from courts.places.exceptions import ProviderError, ProviderQuotaExceeded, ProviderTransportError
from courts.services.court_filter import CourtFilter, NormalizedCourt
from courts.services.deduplication import INSERT, Deduplicator
from courts.services.search_area_tracker import SearchAreaTracker

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

STATUS_SKIPPED = "skipped"
STATUS_COMPLETED = "completed"


@dataclass
class DiscoveryRequest:
    """Job payload: where to search and for which sport."""

    latitude: float
    longitude: float
    radius: int
    sport_type: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DiscoveryRequest":
        return cls(
            latitude=float(payload["latitude"]),
            longitude=float(payload["longitude"]),
            radius=int(payload["radius"]),
            sport_type=payload["sport_type"],
        )

    @property
    def area(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius": self.radius,
            "sport_type": self.sport_type,
        }


@dataclass
class DiscoveryResult:
    """Outcome of a discovery pass."""

    status: str
    request: DiscoveryRequest

    # Skipped
    reason: Optional[str] = None
    last_searched: Optional[str] = None
    courts_found: int = 0

    # Completed
    courts_processed: int = 0
    new_courts: int = 0
    duplicates: int = 0
    places_seen: int = 0
    rejected: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.status == STATUS_SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        if self.skipped:
            return {
                "status": self.status,
                "reason": self.reason,
                "last_searched": self.last_searched,
                "courts_found": self.courts_found,
            }
        return {
            "status": self.status,
            "courts_processed": self.courts_processed,
            "new_courts": self.new_courts,
            "duplicates": self.duplicates,
            "search_area": self.request.area,
        }


class DiscoveryPipeline:
    """
    Runs discovery passes against a places provider and the court store.

    Collaborators are injectable; defaults are built from settings.

    Usage:
        pipeline = DiscoveryPipeline()
        result = pipeline.run(DiscoveryRequest(40.71, -74.0, 10000, "Tennis"))
    """

    def __init__(
        self,
        provider: Optional[PlacesClient] = None,
        court_filter: Optional[CourtFilter] = None,
        deduplicator: Optional[Deduplicator] = None,
        tracker: Optional[SearchAreaTracker] = None,
        detail_delay: Optional[float] = None,
    ):
        self.provider = provider or PlacesClient()
        self.court_filter = court_filter or CourtFilter()
        self.deduplicator = deduplicator or Deduplicator()
        self.tracker = tracker or SearchAreaTracker()
        self.detail_delay = (
            detail_delay if detail_delay is not None
            else getattr(settings, "PLACES_DETAILS_DELAY", 0.1)
        )

    def run(
        self,
        request: DiscoveryRequest,
        progress: Optional[ProgressCallback] = None,
        bypass_freshness: bool = False,
    ) -> DiscoveryResult:
        """
        Execute one discovery pass.

        Args:
            request: Area and sport to discover
            progress: Called with 0-100 as the pass advances
            bypass_freshness: Search even if the area was searched recently.
                Retries of a failed job set this, since the failed attempt
                itself touched the area.

        Raises:
            PlacesProviderError: Provider failure; the area is recorded with
                0 courts found before the error propagates
        """
        report = progress or (lambda value: None)
        report(10)

        recent = None
        if not bypass_freshness:
            recent = self.tracker.is_fresh(
                request.latitude, request.longitude, request.radius, request.sport_type
            )
        if recent is not None:
            logger.info(
                "Skipping %s @ %s, %s: searched %s",
                request.sport_type, request.latitude, request.longitude,
                recent.last_discovered_at.isoformat(),
            )
            report(100)
            return DiscoveryResult(
                status=STATUS_SKIPPED,
                request=request,
                reason="recently_searched",
                last_searched=recent.last_discovered_at.isoformat(),
                courts_found=recent.total_found or 0,
            )

        report(25)

        try:
            self.tracker.record_in_progress(
                request.latitude, request.longitude, request.radius, request.sport_type
            )
            report(40)

            result = DiscoveryResult(status=STATUS_COMPLETED, request=request)
            places = self.search(request)
            result.places_seen = len(places)

            candidates = self.collect_candidates(places, request.sport_type, result)
            report(60)

            self.persist_candidates(candidates, result, report)

            self.tracker.record_completion(
                request.latitude, request.longitude, request.radius, request.sport_type,
                result.courts_processed,
            )
        except Exception:
            self._record_failure(request)
            raise

        logger.info(
            "Discovery for %s @ %s, %s complete: %d processed (%d new, %d duplicates)",
            request.sport_type, request.latitude, request.longitude,
            result.courts_processed, result.new_courts, result.duplicates,
        )
        report(100)
        return result

    def search(self, request: DiscoveryRequest) -> List[Dict[str, Any]]:
        """Text search every phrase for the sport; first occurrence of a place id wins."""
        seen = set()
        places = []
        for term in get_search_terms(request.sport_type):
            add_discovery_breadcrumb(f"Text search: {term}", data=request.area)
            results = self.provider.search_by_text(
                term, request.latitude, request.longitude, request.radius
            )
            logger.debug("Search %r returned %d places", term, len(results))
            for place in results:
                place_id = place.get("place_id")
                if not place_id or place_id in seen:
                    continue
                seen.add(place_id)
                places.append(place)
        return places

    def collect_candidates(
        self,
        places: List[Dict[str, Any]],
        sport_type: str,
        result: DiscoveryResult,
    ) -> List[NormalizedCourt]:
        """
        Fetch details and classify each place.

        A lookup that fails for that place alone (bad status, network error)
        skips it. An exhausted quota or missing credential aborts the pass.
        """
        candidates = []
        for place in places:
            place_id = place["place_id"]
            try:
                details = self.provider.get_details(place_id)
            except ProviderQuotaExceeded:
                raise
            except (ProviderError, ProviderTransportError) as e:
                logger.error("Details lookup failed for %s: %s", place_id, e)
                result.errors.append(f"{place_id}: {e}")
                continue

            outcome = self.court_filter.classify(details, sport_type)
            if not outcome.accepted:
                result.rejected += 1
                continue

            candidates.append(outcome.court)
            if self.detail_delay:
                time.sleep(self.detail_delay)
        return candidates

    def persist_candidates(
        self,
        candidates: List[NormalizedCourt],
        result: DiscoveryResult,
        report: ProgressCallback,
    ) -> None:
        total = len(candidates)
        for index, candidate in enumerate(candidates):
            try:
                with transaction.atomic():
                    outcome = self.deduplicator.persist(candidate)
            except Exception as e:
                logger.error("Error saving court %r: %s", candidate.name, e)
                result.errors.append(f"{candidate.name}: {e}")
                continue

            result.courts_processed += 1
            if outcome.action == INSERT:
                result.new_courts += 1
            else:
                result.duplicates += 1
            report(60 + round((index + 1) / total * 30))

    def _record_failure(self, request: DiscoveryRequest) -> None:
        try:
            self.tracker.record_completion(
                request.latitude, request.longitude, request.radius, request.sport_type, 0
            )
        except Exception as e:
            logger.error("Failed to update search area after failed discovery: %s", e)
