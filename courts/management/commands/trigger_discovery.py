"""
Management command to queue a discovery job for one area.

Usage:
    python manage.py trigger_discovery --lat=40.7128 --lng=-74.0060
    python manage.py trigger_discovery --address="Golden Gate Park, San Francisco" --sport=Pickleball
    python manage.py trigger_discovery --lat=51.5074 --lng=-0.1278 --radius=5000 --priority=normal
"""

import logging

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from courts.models import JobPriority
from courts.places import PlacesClient, PlacesProviderError, SUPPORTED_SPORTS
from courts.queue import DiscoveryQueueError, enqueue_discovery_job

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Queue a discovery job for an area."""

    help = 'Queue a court discovery job for a point or an address'

    def add_arguments(self, parser):
        parser.add_argument('--lat', type=float, help='Center latitude')
        parser.add_argument('--lng', type=float, help='Center longitude')
        parser.add_argument(
            '--address',
            help='Geocode this address instead of passing --lat/--lng',
        )
        parser.add_argument(
            '--radius',
            type=int,
            default=getattr(settings, 'DISCOVERY_DEFAULT_RADIUS_METERS', 10000),
            help='Search radius in meters (default: 10000)',
        )
        parser.add_argument(
            '--sport',
            default='Tennis',
            help=f'Sport to discover, one of {", ".join(SUPPORTED_SPORTS)} (default: Tennis)',
        )
        parser.add_argument(
            '--priority',
            choices=JobPriority.values,
            default=JobPriority.HIGH,
            help='Queue priority (default: high)',
        )

    def handle(self, *args, **options):
        sport = options['sport']
        radius = options['radius']
        max_radius = getattr(settings, 'DISCOVERY_MAX_RADIUS_METERS', 50000)

        if sport not in SUPPORTED_SPORTS:
            raise CommandError(f'Unsupported sport {sport!r}. Choose from: {", ".join(SUPPORTED_SPORTS)}')
        if radius <= 0 or radius > max_radius:
            raise CommandError(f'Radius must be between 1 and {max_radius} meters')

        latitude, longitude = options['lat'], options['lng']
        if options['address']:
            try:
                location = PlacesClient().geocode_address(options['address'])
            except PlacesProviderError as e:
                raise CommandError(f'Could not geocode {options["address"]!r}: {e}')
            latitude, longitude = location['latitude'], location['longitude']
            self.stdout.write(f'Geocoded to {location["formatted_address"]} ({latitude}, {longitude})')
        elif latitude is None or longitude is None:
            raise CommandError('Latitude and longitude are required (or pass --address)')

        try:
            job = enqueue_discovery_job(latitude, longitude, radius, sport, options['priority'])
        except DiscoveryQueueError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(
            f'Discovery job {job.id} queued: {sport} courts within {radius}m of '
            f'{latitude}, {longitude} ({job.priority} priority)'
        ))
