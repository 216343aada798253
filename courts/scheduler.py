"""
Discovery Scheduler.

Cron-driven fan-out of discovery jobs, run in-process with APScheduler:

- popular_areas: every 6 hours, each popular search point x each sport,
  normal priority
- major_cities: daily at 02:00, each major city x each sport, low priority
- cleanup: Sundays at 03:00, purge search areas older than 90 days

Each trigger is guarded against re-entry: a firing that finds the previous
firing of the same trigger still running is skipped.

Build one instance per process and pass it to whatever needs it:

    scheduler = DiscoveryScheduler()
    scheduler.start()
    ...
    scheduler.stop()
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from django.conf import settings

from courts.constants import MAJOR_CITIES, MAJOR_CITY_RADIUS_METERS
from courts.models import JobPriority
from courts.places.terms import SUPPORTED_SPORTS
from courts.queue import enqueue_discovery_job
from courts.services.search_area_tracker import SearchAreaTracker

logger = logging.getLogger(__name__)

POPULAR_AREAS = "popular_areas"
MAJOR_CITIES_TRIGGER = "major_cities"
CLEANUP = "cleanup"

TRIGGERS = {
    POPULAR_AREAS: {"hour": "*/6", "minute": 0},
    MAJOR_CITIES_TRIGGER: {"hour": 2, "minute": 0},
    CLEANUP: {"day_of_week": "sun", "hour": 3, "minute": 0},
}


class DiscoveryScheduler:
    """
    Owns the three discovery triggers and their re-entrancy guards.

    Args:
        enqueue: Callable(latitude, longitude, radius, sport_type, priority)
        tracker: SearchAreaTracker used for popular areas and cleanup
        sports: Sports to fan out over
        cities: (name, latitude, longitude) tuples for the daily sweep
        timezone: Timezone the cron expressions are evaluated in
    """

    def __init__(
        self,
        enqueue: Callable = enqueue_discovery_job,
        tracker: Optional[SearchAreaTracker] = None,
        sports: Sequence[str] = SUPPORTED_SPORTS,
        cities: Sequence[Tuple[str, float, float]] = MAJOR_CITIES,
        timezone: Optional[str] = None,
    ):
        self.enqueue = enqueue
        self.tracker = tracker or SearchAreaTracker()
        self.sports = list(sports)
        self.cities = list(cities)
        self.timezone = timezone or getattr(settings, "TIME_ZONE", "UTC")

        self._scheduler: Optional[BackgroundScheduler] = None
        self._locks = {name: threading.Lock() for name in TRIGGERS}
        self._handlers = {
            POPULAR_AREAS: self.discover_popular_areas,
            MAJOR_CITIES_TRIGGER: self.discover_major_cities,
            CLEANUP: self.cleanup_stale_areas,
        }

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> bool:
        """Start all triggers. Starting an already running scheduler is a no-op."""
        if self.is_running:
            logger.warning("Discovery scheduler is already running")
            return False

        scheduler = BackgroundScheduler(timezone=self.timezone)
        for name, cron in TRIGGERS.items():
            scheduler.add_job(
                self.run_now,
                CronTrigger(timezone=self.timezone, **cron),
                args=[name],
                id=name,
                name=name,
                max_instances=1,
                coalesce=True,
            )
        scheduler.start()
        self._scheduler = scheduler

        logger.info("Discovery scheduler started with triggers: %s", ", ".join(TRIGGERS))
        return True

    def stop(self) -> bool:
        """Cancel all triggers. Safe to call when not running."""
        if not self.is_running:
            return False

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Discovery scheduler stopped")
        return True

    def status(self) -> Dict[str, Any]:
        """Running flag, active trigger names and next fire times."""
        if not self.is_running:
            return {"running": False, "triggers": [], "next_runs": {}}

        jobs = self._scheduler.get_jobs()
        return {
            "running": True,
            "triggers": [job.id for job in jobs],
            "next_runs": {
                job.id: job.next_run_time.isoformat() if job.next_run_time else None
                for job in jobs
            },
        }

    def run_now(self, name: str):
        """
        Run a trigger's handler in the calling thread.

        Returns:
            The handler's result, or None if the trigger is already running

        Raises:
            KeyError: Unknown trigger name
        """
        handler = self._handlers[name]
        lock = self._locks[name]
        if not lock.acquire(blocking=False):
            logger.warning("Skipping %s: previous run still in progress", name)
            return None
        try:
            return handler()
        finally:
            lock.release()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def discover_popular_areas(self) -> int:
        """Queue normal-priority jobs for each popular area and sport."""
        default_radius = getattr(settings, "DISCOVERY_DEFAULT_RADIUS_METERS", 10000)
        areas = self.tracker.popular_areas()
        logger.info("Scheduling discovery for %d popular areas", len(areas))

        queued = 0
        for area in areas:
            radius = int(area.get("avg_radius") or default_radius)
            for sport in self.sports:
                queued += self._enqueue(
                    area["latitude"], area["longitude"], radius, sport, JobPriority.NORMAL
                )
        logger.info("Queued %d popular area discovery jobs", queued)
        return queued

    def discover_major_cities(self) -> int:
        """Queue low-priority jobs for each major city and sport."""
        queued = 0
        for name, latitude, longitude in self.cities:
            for sport in self.sports:
                queued += self._enqueue(
                    latitude, longitude, MAJOR_CITY_RADIUS_METERS, sport, JobPriority.LOW
                )
        logger.info("Queued %d major city discovery jobs", queued)
        return queued

    def cleanup_stale_areas(self) -> int:
        return self.tracker.purge_stale(getattr(settings, "DISCOVERY_STALE_AFTER_DAYS", 90))

    def _enqueue(self, latitude, longitude, radius, sport, priority) -> int:
        try:
            self.enqueue(latitude, longitude, radius, sport, priority)
        except Exception as e:
            logger.error("Could not queue %s discovery at %s, %s: %s", sport, latitude, longitude, e)
            return 0
        return 1

    @property
    def trigger_names(self) -> List[str]:
        return list(TRIGGERS)
