"""
Management command to inspect and manage discovery jobs.

Usage:
    python manage.py discovery_jobs status
    python manage.py discovery_jobs recent --limit=10 --status=failed
    python manage.py discovery_jobs show <job-id>
    python manage.py discovery_jobs retry <job-id>
    python manage.py discovery_jobs cleanup --days=30
    python manage.py discovery_jobs popular-areas
    python manage.py discovery_jobs run-trigger major_cities
    python manage.py discovery_jobs court-stats --lat=40.7128 --lng=-74.0060 --radius=5000
"""

import json
import logging

from django.core.management.base import BaseCommand, CommandError

from courts.models import Court, DiscoveryJobStatus
from courts.places import PlacesClient
from courts.queue import (
    DiscoveryQueueError,
    clean_jobs,
    get_job,
    queue_counts,
    recent_jobs,
    retry_job,
)
from courts.scheduler import TRIGGERS, DiscoveryScheduler
from courts.services.search_area_tracker import SearchAreaTracker

logger = logging.getLogger(__name__)

ACTIONS = [
    'status', 'recent', 'show', 'retry', 'cleanup', 'popular-areas', 'run-trigger', 'court-stats',
]


class Command(BaseCommand):
    """Inspect the discovery queue."""

    help = 'Inspect and manage court discovery jobs'

    def add_arguments(self, parser):
        parser.add_argument('action', choices=ACTIONS, help='What to do')
        parser.add_argument(
            'target',
            nargs='?',
            help='Job id (show, retry) or trigger name (run-trigger)',
        )
        parser.add_argument('--limit', type=int, default=20, help='Rows to list (default: 20)')
        parser.add_argument(
            '--status',
            choices=['all'] + list(DiscoveryJobStatus.values),
            default='all',
            help='Filter recent jobs by status (default: all)',
        )
        parser.add_argument(
            '--days',
            type=int,
            default=30,
            help='cleanup: delete finished jobs older than this (default: 30)',
        )
        parser.add_argument('--lat', type=float, help='court-stats: center latitude')
        parser.add_argument('--lng', type=float, help='court-stats: center longitude')
        parser.add_argument(
            '--radius',
            type=int,
            default=10000,
            help='court-stats: radius in meters (default: 10000)',
        )

    def handle(self, *args, **options):
        handler = getattr(self, 'handle_' + options['action'].replace('-', '_'))
        handler(options)

    def handle_status(self, options):
        counts = queue_counts()
        self.stdout.write(self.style.SUCCESS('Discovery queue'))
        for status, total in counts.items():
            self.stdout.write(f'  {status}: {total}')

        usage = PlacesClient().get_usage_stats()
        self.stdout.write(
            f'Places quota: {usage["hourly_remaining"]}/{usage["hourly_limit"]} this hour, '
            f'{usage["daily_remaining"]}/{usage["daily_limit"]} today'
        )

    def handle_recent(self, options):
        jobs = recent_jobs(limit=options['limit'], status=options['status'])
        if not jobs:
            self.stdout.write('No jobs')
            return
        for job in jobs:
            line = (
                f'{job.id}  {job.status:<9}  {job.progress:>3}%  '
                f'{job.sport_type} @ {job.latitude}, {job.longitude} r={job.radius}m  '
                f'attempts={job.attempts_made}/{job.max_attempts}'
            )
            if job.failed_reason:
                line += f'  error={job.failed_reason}'
            self.stdout.write(line)

    def handle_show(self, options):
        job = self._require_job(options)
        self.stdout.write(json.dumps(job.to_dict(), indent=2, default=str))

    def handle_retry(self, options):
        if not options['target']:
            raise CommandError('A job id is required')
        try:
            job = retry_job(options['target'])
        except DiscoveryQueueError as e:
            raise CommandError(str(e))
        self.stdout.write(self.style.SUCCESS(f'Job {job.id} queued for retry'))

    def handle_cleanup(self, options):
        deleted = clean_jobs(older_than_days=options['days'])
        self.stdout.write(self.style.SUCCESS(
            f'Cleaned up {deleted} jobs older than {options["days"]} days'
        ))

    def handle_popular_areas(self, options):
        areas = SearchAreaTracker().popular_areas(limit=options['limit'])
        if not areas:
            self.stdout.write('No searches in the last 30 days')
            return
        for area in areas:
            self.stdout.write(
                f'{area["latitude"]}, {area["longitude"]}  searches={area["search_count"]}  '
                f'avg_radius={round(area["avg_radius"] or 0)}m  last={area["last_search"].isoformat()}'
            )

    def handle_run_trigger(self, options):
        name = options['target']
        if name not in TRIGGERS:
            raise CommandError(f'Unknown trigger {name!r}. Choose from: {", ".join(TRIGGERS)}')
        result = DiscoveryScheduler().run_now(name)
        self.stdout.write(self.style.SUCCESS(f'{name} finished: {result}'))

    def handle_court_stats(self, options):
        lat, lng, radius = options['lat'], options['lng'], options['radius']
        if lat is None or lng is None:
            raise CommandError('--lat and --lng are required')

        stats = Court.objects.discovery_stats(lat, lng, radius)
        if not stats:
            self.stdout.write(f'No courts within {radius}m of {lat}, {lng}')
            return
        for entry in stats:
            self.stdout.write(
                f'{entry["sport_type"]}: {entry["court_count"]} courts, '
                f'{entry["verified_count"]} verified, {entry["discovered_count"]} discovered'
            )

    def _require_job(self, options):
        if not options['target']:
            raise CommandError('A job id is required')
        job = get_job(options['target'])
        if job is None:
            raise CommandError(f'Job {options["target"]} not found')
        return job
