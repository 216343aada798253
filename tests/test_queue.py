"""
Tests for the discovery job queue helpers.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from django.utils import timezone

from courts.models import DiscoveryJob, DiscoveryJobStatus, JobPriority
from courts.queue import (
    DiscoveryQueueError,
    clean_jobs,
    enqueue_discovery_job,
    get_job,
    queue_counts,
    recent_jobs,
    retry_job,
    trim_finished_jobs,
)


@pytest.fixture
def apply_async():
    """Capture dispatches instead of running the task."""
    with patch("courts.tasks.discover_area.apply_async") as mock:
        mock.return_value = MagicMock(id="celery-task-1")
        yield mock


def make_job(status=DiscoveryJobStatus.WAITING, finished_days_ago=None, **overrides):
    data = {
        "latitude": 40.7128,
        "longitude": -74.0060,
        "radius": 10000,
        "sport_type": "Tennis",
        "status": status,
    }
    if finished_days_ago is not None:
        data["finished_at"] = timezone.now() - timedelta(days=finished_days_ago)
    data.update(overrides)
    return DiscoveryJob.objects.create(**data)


@pytest.mark.django_db
class TestEnqueue:
    """enqueue_discovery_job."""

    def test_creates_waiting_job_and_dispatches(self, apply_async):
        job = enqueue_discovery_job(40.7128, -74.0060, 10000, "Tennis")

        job.refresh_from_db()
        assert job.status == DiscoveryJobStatus.WAITING
        assert job.priority == JobPriority.NORMAL
        assert job.task_id == "celery-task-1"
        assert job.max_attempts == 3
        apply_async.assert_called_once_with(
            args=[str(job.id)], queue="discovery", priority=5, countdown=None
        )

    @pytest.mark.parametrize("priority,level", [
        (JobPriority.HIGH, 0),
        (JobPriority.NORMAL, 5),
        (JobPriority.LOW, 9),
    ])
    def test_priority_levels(self, apply_async, priority, level):
        enqueue_discovery_job(40.7128, -74.0060, 10000, "Tennis", priority=priority)

        assert apply_async.call_args.kwargs["priority"] == level

    def test_low_priority_is_delayed(self, apply_async):
        job = enqueue_discovery_job(40.7128, -74.0060, 10000, "Tennis", priority=JobPriority.LOW)

        assert job.status == DiscoveryJobStatus.DELAYED
        assert job.run_after > timezone.now() + timedelta(seconds=50)
        assert apply_async.call_args.kwargs["countdown"] == 60

    def test_values_are_coerced(self, apply_async):
        job = enqueue_discovery_job("40.7128", "-74.006", "5000", "Padel")

        assert job.latitude == 40.7128
        assert job.radius == 5000

    @pytest.mark.parametrize("args", [
        ("north", -74.0, 10000, "Tennis"),
        (91, -74.0, 10000, "Tennis"),
        (40.7, -181, 10000, "Tennis"),
        (40.7, -74.0, 0, "Tennis"),
        (40.7, -74.0, 10000, ""),
    ])
    def test_invalid_requests_are_refused(self, apply_async, args):
        with pytest.raises(DiscoveryQueueError):
            enqueue_discovery_job(*args)

        apply_async.assert_not_called()
        assert not DiscoveryJob.objects.exists()

    def test_unknown_priority(self, apply_async):
        with pytest.raises(DiscoveryQueueError):
            enqueue_discovery_job(40.7, -74.0, 10000, "Tennis", priority="urgent")

    def test_eager_dispatch_runs_the_job(self, fake_provider):
        """With eager Celery the job runs to completion inside enqueue."""
        from courts.services.discovery_pipeline import DiscoveryPipeline

        with patch(
            "courts.tasks.DiscoveryPipeline",
            side_effect=lambda: DiscoveryPipeline(provider=fake_provider, detail_delay=0),
        ):
            job = enqueue_discovery_job(40.7128, -74.0060, 10000, "Tennis", priority=JobPriority.HIGH)

        job.refresh_from_db()
        assert job.status == DiscoveryJobStatus.COMPLETED
        assert job.result["new_courts"] == 2


@pytest.mark.django_db
class TestInspection:
    """get_job, recent_jobs and queue_counts."""

    def test_get_job(self):
        job = make_job()
        assert get_job(job.id) == job
        assert get_job(str(job.id)) == job

    def test_get_job_unknown_or_malformed(self):
        assert get_job("00000000-0000-0000-0000-000000000001") is None
        assert get_job("not-a-uuid") is None

    def test_recent_jobs_newest_first(self):
        older = make_job(created_at=timezone.now() - timedelta(hours=1))
        newer = make_job()

        assert recent_jobs() == [newer, older]
        assert recent_jobs(limit=1) == [newer]

    def test_recent_jobs_by_status(self):
        failed = make_job(status=DiscoveryJobStatus.FAILED)
        make_job()

        assert recent_jobs(status="failed") == [failed]
        assert len(recent_jobs(status="all")) == 2

    def test_queue_counts_include_every_status(self):
        make_job()
        make_job()
        make_job(status=DiscoveryJobStatus.FAILED)

        assert queue_counts() == {
            "waiting": 2,
            "active": 0,
            "completed": 0,
            "failed": 1,
            "delayed": 0,
        }


@pytest.mark.django_db
class TestRetryJob:
    """Manual retry of failed jobs."""

    def test_retry_resets_and_dispatches(self, apply_async):
        job = make_job(
            status=DiscoveryJobStatus.FAILED,
            attempts_made=3,
            progress=40,
            failed_reason="boom",
            finished_days_ago=0,
        )

        retried = retry_job(job.id)

        retried.refresh_from_db()
        assert retried.status == DiscoveryJobStatus.WAITING
        assert retried.attempts_made == 0
        assert retried.progress == 0
        assert retried.failed_reason == ""
        assert retried.finished_at is None
        apply_async.assert_called_once()

    def test_only_failed_jobs_can_be_retried(self, apply_async):
        job = make_job(status=DiscoveryJobStatus.COMPLETED)

        with pytest.raises(DiscoveryQueueError):
            retry_job(job.id)
        apply_async.assert_not_called()

    def test_unknown_job(self):
        with pytest.raises(DiscoveryQueueError):
            retry_job("00000000-0000-0000-0000-000000000001")


@pytest.mark.django_db
class TestRetention:
    """clean_jobs and trim_finished_jobs."""

    def test_clean_jobs_removes_old_finished_jobs(self):
        make_job(status=DiscoveryJobStatus.COMPLETED, finished_days_ago=31)
        make_job(status=DiscoveryJobStatus.FAILED, finished_days_ago=45)
        recent = make_job(status=DiscoveryJobStatus.COMPLETED, finished_days_ago=1)
        waiting = make_job()

        assert clean_jobs(older_than_days=30) == 2
        assert set(DiscoveryJob.objects.all()) == {recent, waiting}

    def test_trim_keeps_newest_finished_jobs(self, settings):
        settings.DISCOVERY_KEEP_COMPLETED_JOBS = 2
        settings.DISCOVERY_KEEP_FAILED_JOBS = 1
        completed = [
            make_job(status=DiscoveryJobStatus.COMPLETED, finished_days_ago=days)
            for days in (1, 2, 3)
        ]
        failed = [
            make_job(status=DiscoveryJobStatus.FAILED, finished_days_ago=days)
            for days in (1, 2)
        ]
        active = make_job(status=DiscoveryJobStatus.ACTIVE)

        assert trim_finished_jobs() == 2
        assert set(DiscoveryJob.objects.all()) == {completed[0], completed[1], failed[0], active}
