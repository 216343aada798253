"""
Celery tasks for court discovery.

- discover_area: Worker task that runs one discovery pass for a queued
  DiscoveryJob, retrying with exponential backoff on failure
"""

import logging
from datetime import timedelta
from typing import Any, Dict

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from courts.models import DiscoveryJob
from courts.monitoring import capture_discovery_error
from courts.places.exceptions import ProviderUnavailable
from courts.queue import trim_finished_jobs
from courts.services.discovery_pipeline import DiscoveryPipeline, DiscoveryRequest

logger = logging.getLogger(__name__)


@shared_task(name="courts.tasks.discover_area", bind=True, max_retries=None)
def discover_area(self, job_id: str) -> Dict[str, Any]:
    """
    Discovery worker task.

    A missing API key fails the job at once. Any other error is retried
    until the job's max_attempts is used up, waiting
    DISCOVERY_JOB_BACKOFF_SECONDS * 2**retries between attempts.

    Args:
        job_id: UUID of the DiscoveryJob to process

    Returns:
        Dict with the job id, final status and result summary
    """
    try:
        job = DiscoveryJob.objects.get(id=job_id)
    except DiscoveryJob.DoesNotExist:
        logger.error(f"Discovery job {job_id} not found")
        return {"job_id": job_id, "status": "failed", "error": "Job not found"}

    attempt = self.request.retries + 1
    job.start(attempt)
    logger.info(
        f"Starting discovery job {job.id} (attempt {attempt}/{job.max_attempts}): "
        f"{job.sport_type} @ {job.latitude}, {job.longitude} r={job.radius}m"
    )

    try:
        result = DiscoveryPipeline().run(
            DiscoveryRequest.from_payload(job.payload),
            progress=job.set_progress,
            bypass_freshness=self.request.retries > 0,
        )
    except ProviderUnavailable as e:
        logger.error(f"Discovery job {job.id} cannot run: {e}")
        capture_discovery_error(e, job=job)
        job.fail(str(e), will_retry=False)
        trim_finished_jobs()
        return {"job_id": str(job.id), "status": job.status, "error": str(e)}
    except Exception as e:
        logger.exception(f"Discovery job {job.id} failed on attempt {attempt}")
        capture_discovery_error(e, job=job)

        if attempt < job.max_attempts:
            backoff = getattr(settings, "DISCOVERY_JOB_BACKOFF_SECONDS", 2)
            countdown = backoff * 2 ** self.request.retries
            job.fail(str(e), will_retry=True, retry_at=timezone.now() + timedelta(seconds=countdown))
            raise self.retry(exc=e, countdown=countdown)

        job.fail(str(e), will_retry=False)
        trim_finished_jobs()
        return {"job_id": str(job.id), "status": job.status, "error": str(e)}

    job.complete(result.to_dict())
    trim_finished_jobs()

    return {
        "job_id": str(job.id),
        "status": job.status,
        "result": job.result,
    }
