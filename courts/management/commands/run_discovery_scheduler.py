"""
Management command to run the discovery scheduler in the foreground.

Usage:
    python manage.py run_discovery_scheduler
    python manage.py run_discovery_scheduler --run-now=major_cities

Stops cleanly on SIGINT/SIGTERM.
"""

import logging
import signal
import threading

from django.core.management.base import BaseCommand

from courts.queue import queue_counts
from courts.scheduler import TRIGGERS, DiscoveryScheduler

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Run the cron-driven discovery scheduler until interrupted."""

    help = 'Run the discovery scheduler (popular areas, major cities, cleanup)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--run-now',
            action='append',
            choices=list(TRIGGERS),
            default=[],
            help='Fire this trigger once at startup (repeatable)',
        )

    def handle(self, *args, **options):
        scheduler = DiscoveryScheduler()
        stop_event = threading.Event()

        def request_stop(signum, frame):
            self.stdout.write(self.style.WARNING(f'Received signal {signum}, stopping scheduler'))
            stop_event.set()

        signal.signal(signal.SIGINT, request_stop)
        signal.signal(signal.SIGTERM, request_stop)

        scheduler.start()
        self.write_status(scheduler)

        for name in options['run_now']:
            self.stdout.write(f'Running {name} now...')
            result = scheduler.run_now(name)
            self.stdout.write(f'  {name}: {result}')

        try:
            stop_event.wait()
        finally:
            scheduler.stop()
            self.stdout.write(self.style.SUCCESS('Discovery scheduler stopped'))

    def write_status(self, scheduler):
        status = scheduler.status()
        self.stdout.write(self.style.SUCCESS('Discovery scheduler running'))
        for name, next_run in status['next_runs'].items():
            self.stdout.write(f'  {name}: next run {next_run}')

        counts = queue_counts()
        self.stdout.write('Queue: ' + ', '.join(f'{key}={value}' for key, value in counts.items()))
