"""
Discovery job lifecycle signals.

Sent by DiscoveryJob as a job moves through the queue. The receivers
here only log; callers that want to react (notifications, dashboards)
connect their own.
"""

import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# kwargs: job, progress
discovery_job_progress = Signal()

# kwargs: job, result
discovery_job_completed = Signal()

# kwargs: job, reason, will_retry
discovery_job_failed = Signal()


@receiver(discovery_job_progress)
def log_job_progress(sender, job, progress, **kwargs):
    logger.debug("Discovery job %s progress: %d%%", job.id, progress)


@receiver(discovery_job_completed)
def log_job_completed(sender, job, result, **kwargs):
    if result.get("status") == "skipped":
        logger.info(
            "Discovery job %s skipped: %s (last searched %s)",
            job.id,
            result.get("reason"),
            result.get("last_searched"),
        )
        return
    logger.info(
        "Discovery job %s completed: %s processed, %s new, %s duplicates",
        job.id,
        result.get("courts_processed"),
        result.get("new_courts"),
        result.get("duplicates"),
    )


@receiver(discovery_job_failed)
def log_job_failed(sender, job, reason, will_retry, **kwargs):
    if will_retry:
        logger.warning(
            "Discovery job %s attempt %d/%d failed, will retry: %s",
            job.id, job.attempts_made, job.max_attempts, reason,
        )
    else:
        logger.error(
            "Discovery job %s failed after %d attempt(s): %s",
            job.id, job.attempts_made, reason,
        )
