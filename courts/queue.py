"""
Discovery job queue.

DiscoveryJob rows are the inspectable side of the queue; Celery carries
the work. Enqueueing creates the row and dispatches courts.tasks.discover_area
with a broker priority (Redis: 0 is served first) and, for low priority
jobs, a start delay.
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db.models import Count
from django.utils import timezone

from courts.models import DiscoveryJob, DiscoveryJobStatus, JobPriority

logger = logging.getLogger(__name__)

PRIORITY_LEVELS = {
    JobPriority.HIGH: 0,
    JobPriority.NORMAL: 5,
    JobPriority.LOW: 9,
}


class DiscoveryQueueError(Exception):
    """Invalid job request or job state."""


def _dispatch(job: DiscoveryJob, countdown: int = 0) -> None:
    from courts.tasks import discover_area

    result = discover_area.apply_async(
        args=[str(job.id)],
        queue="discovery",
        priority=PRIORITY_LEVELS[job.priority],
        countdown=countdown or None,
    )
    if result is not None and getattr(result, "id", None):
        DiscoveryJob.objects.filter(id=job.id).update(task_id=result.id)
        job.task_id = result.id


def enqueue_discovery_job(
    latitude,
    longitude,
    radius,
    sport_type: str,
    priority: str = JobPriority.NORMAL,
) -> DiscoveryJob:
    """
    Create a DiscoveryJob and hand it to the worker queue.

    Args:
        latitude: Area center latitude (coerced to float)
        longitude: Area center longitude (coerced to float)
        radius: Search radius in meters (coerced to int)
        sport_type: Sport to discover
        priority: high, normal or low

    Returns:
        The DiscoveryJob; its id is the job handle

    Raises:
        DiscoveryQueueError: Invalid coordinates, radius or priority
    """
    try:
        latitude = float(latitude)
        longitude = float(longitude)
        radius = int(radius)
    except (TypeError, ValueError) as e:
        raise DiscoveryQueueError(f"Invalid job data: {e}") from e

    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise DiscoveryQueueError(f"Coordinates out of range: {latitude}, {longitude}")
    if radius <= 0:
        raise DiscoveryQueueError(f"Radius must be positive, got {radius}")
    if not sport_type:
        raise DiscoveryQueueError("Sport type is required")
    if priority not in PRIORITY_LEVELS:
        raise DiscoveryQueueError(f"Unknown priority {priority!r}")

    delay = 0
    status = DiscoveryJobStatus.WAITING
    run_after = None
    if priority == JobPriority.LOW:
        delay = getattr(settings, "DISCOVERY_LOW_PRIORITY_DELAY_SECONDS", 60)
        if delay:
            status = DiscoveryJobStatus.DELAYED
            run_after = timezone.now() + timedelta(seconds=delay)

    job = DiscoveryJob.objects.create(
        latitude=latitude,
        longitude=longitude,
        radius=radius,
        sport_type=sport_type,
        priority=priority,
        status=status,
        run_after=run_after,
        max_attempts=getattr(settings, "DISCOVERY_JOB_ATTEMPTS", 3),
    )
    _dispatch(job, countdown=delay)

    logger.info(
        "Queued discovery job %s for %s courts at %s, %s (r=%dm, %s)",
        job.id, sport_type, latitude, longitude, radius, priority,
    )
    return job


def get_job(job_id) -> Optional[DiscoveryJob]:
    try:
        return DiscoveryJob.objects.get(id=job_id)
    except (DiscoveryJob.DoesNotExist, ValidationError, ValueError):
        return None


def recent_jobs(limit: int = 20, status: Optional[str] = None) -> List[DiscoveryJob]:
    """Newest jobs first, optionally restricted to one status."""
    jobs = DiscoveryJob.objects.all()
    if status and status != "all":
        jobs = jobs.filter(status=status)
    return list(jobs.order_by("-created_at")[:limit])


def queue_counts() -> Dict[str, int]:
    """Number of jobs per status, every status present."""
    counts = {status: 0 for status in DiscoveryJobStatus.values}
    rows = DiscoveryJob.objects.values("status").annotate(total=Count("id")).order_by()
    for row in rows:
        counts[row["status"]] = row["total"]
    return counts


def retry_job(job_id) -> DiscoveryJob:
    """
    Re-dispatch a failed job with a fresh set of attempts.

    Raises:
        DiscoveryQueueError: Unknown job, or the job has not failed
    """
    job = get_job(job_id)
    if job is None:
        raise DiscoveryQueueError(f"Job {job_id} not found")
    if job.status != DiscoveryJobStatus.FAILED:
        raise DiscoveryQueueError(f"Job {job_id} is {job.status}, only failed jobs can be retried")

    job.status = DiscoveryJobStatus.WAITING
    job.attempts_made = 0
    job.progress = 0
    job.failed_reason = ""
    job.finished_at = None
    job.run_after = None
    job.save(update_fields=[
        "status", "attempts_made", "progress", "failed_reason", "finished_at", "run_after",
    ])
    _dispatch(job)

    logger.info("Discovery job %s queued for retry", job.id)
    return job


def clean_jobs(older_than_days: int = 30) -> int:
    """Delete completed and failed jobs that finished more than ``older_than_days`` ago."""
    cutoff = timezone.now() - timedelta(days=older_than_days)
    deleted, _ = DiscoveryJob.objects.filter(
        status__in=[DiscoveryJobStatus.COMPLETED, DiscoveryJobStatus.FAILED],
        finished_at__lt=cutoff,
    ).delete()
    logger.info("Cleaned %d finished discovery jobs older than %d days", deleted, older_than_days)
    return deleted


def trim_finished_jobs() -> int:
    """Keep only the newest completed and failed jobs (retention limits from settings)."""
    limits = {
        DiscoveryJobStatus.COMPLETED: getattr(settings, "DISCOVERY_KEEP_COMPLETED_JOBS", 50),
        DiscoveryJobStatus.FAILED: getattr(settings, "DISCOVERY_KEEP_FAILED_JOBS", 20),
    }
    removed = 0
    for status, keep in limits.items():
        stale_ids = list(
            DiscoveryJob.objects.filter(status=status)
            .order_by("-finished_at", "-created_at")
            .values_list("id", flat=True)[keep:]
        )
        if stale_ids:
            deleted, _ = DiscoveryJob.objects.filter(id__in=stale_ids).delete()
            removed += deleted
    return removed
