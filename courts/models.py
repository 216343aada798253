"""
Django models for the Court Directory.

Models: Court, SearchArea, DiscoveryJob

Court is the directory entity. SearchArea is the recency cache that stops
the discovery pipeline from re-querying the places provider for an area it
has searched recently. DiscoveryJob records the lifecycle of a queued
discovery pass so operators can poll status, progress and failures.
"""

import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional

from django.db import models
from django.db.models import Q
from django.utils import timezone

from courts.signals import (
    discovery_job_completed,
    discovery_job_failed,
    discovery_job_progress,
)
from courts.utils.geo import bounding_box, haversine_distance


class SportType(models.TextChoices):
    """Sports supported by the directory and the discovery pipeline."""

    TENNIS = "Tennis", "Tennis"
    PICKLEBALL = "Pickleball", "Pickleball"
    BASKETBALL = "Basketball", "Basketball"
    VOLLEYBALL = "Volleyball", "Volleyball"
    BADMINTON = "Badminton", "Badminton"
    PADEL = "Padel", "Padel"


class VerificationStatus(models.TextChoices):
    """Moderation state of a court record."""

    PENDING = "pending", "Pending"
    VERIFIED = "verified", "Verified"
    REJECTED = "rejected", "Rejected"


class DiscoverySource(models.TextChoices):
    """How a court entered the directory."""

    USER_SUGGESTION = "user_suggestion", "User Suggestion"
    GOOGLE_PLACES = "google_places", "Google Places"
    MANUAL = "manual", "Manually Added"


class SurfaceType(models.TextChoices):
    """
    Playing surface.

    UNKNOWN marks a court whose surface has not been verified yet, which
    is different from a NULL surface (nothing recorded at all).
    """

    HARD = "hard", "Hard"
    CLAY = "clay", "Clay"
    GRASS = "grass", "Grass"
    ARTIFICIAL_GRASS = "artificial_grass", "Artificial Grass"
    CARPET = "carpet", "Carpet"
    WOOD = "wood", "Wood"
    SAND = "sand", "Sand"
    OTHER = "other", "Other"
    UNKNOWN = "unknown", "Unknown"


class Lighting(models.TextChoices):
    """Tri-state lighting flag."""

    YES = "yes", "Yes"
    NO = "no", "No"
    UNKNOWN = "unknown", "Unknown"


class JobPriority(models.TextChoices):
    """Queue priority of a discovery job."""

    HIGH = "high", "High"
    NORMAL = "normal", "Normal"
    LOW = "low", "Low"


class DiscoveryJobStatus(models.TextChoices):
    """Lifecycle of a queued discovery job."""

    WAITING = "waiting", "Waiting"
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    DELAYED = "delayed", "Delayed"


# ============================================================
# Court
# ============================================================


class CourtQuerySet(models.QuerySet):
    """Store queries used by the discovery pipeline and directory lookups."""

    def find_by_external_id(self, external_place_id: Optional[str]) -> Optional["Court"]:
        """Return the court carrying a provider place id, if any."""
        if not external_place_id:
            return None
        return self.filter(external_place_id=external_place_id).first()

    def same_name_with_coordinates(self, name: str):
        """Courts whose name matches case-insensitively and that have coordinates."""
        return self.filter(
            name__iexact=name,
            latitude__isnull=False,
            longitude__isnull=False,
        )

    def within_radius(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        sport_type: Optional[str] = None,
        include_rejected: bool = False,
    ) -> List["Court"]:
        """
        Courts within a great-circle radius of a point, nearest first.

        A bounding box narrows the rows in the database; exact distances are
        computed in Python. Each returned court gets a ``distance`` attribute
        in meters.

        Args:
            latitude: Center latitude
            longitude: Center longitude
            radius_meters: Search radius in meters
            sport_type: Only courts offering this sport
            include_rejected: Include courts rejected by moderation

        Returns:
            List of Court instances ordered by distance
        """
        min_lat, max_lat, min_lng, max_lng = bounding_box(latitude, longitude, radius_meters)

        queryset = self.filter(
            latitude__isnull=False,
            longitude__isnull=False,
            latitude__gte=min_lat,
            latitude__lte=max_lat,
        )
        # Skip the longitude prefilter when the box crosses the antimeridian
        if min_lng >= -180.0 and max_lng <= 180.0:
            queryset = queryset.filter(longitude__gte=min_lng, longitude__lte=max_lng)
        if not include_rejected:
            queryset = queryset.exclude(verification_status=VerificationStatus.REJECTED)

        courts = []
        for court in queryset:
            if sport_type and sport_type not in (court.sport_types or []):
                continue
            distance = haversine_distance(latitude, longitude, court.latitude, court.longitude)
            if distance <= radius_meters:
                court.distance = distance
                courts.append(court)

        courts.sort(key=lambda c: c.distance)
        return courts

    def discovery_stats(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
    ) -> List[Dict[str, Any]]:
        """
        Per-sport counts for the courts around a point.

        Returns:
            List of dicts with sport_type, court_count, verified_count and
            discovered_count (courts found through the places provider)
        """
        stats = defaultdict(lambda: {"court_count": 0, "verified_count": 0, "discovered_count": 0})

        courts = self.within_radius(latitude, longitude, radius_meters, include_rejected=True)
        for court in courts:
            for sport in court.sport_types or []:
                entry = stats[sport]
                entry["court_count"] += 1
                if court.verification_status == VerificationStatus.VERIFIED:
                    entry["verified_count"] += 1
                if court.discovery_source == DiscoverySource.GOOGLE_PLACES:
                    entry["discovered_count"] += 1

        return [
            {"sport_type": sport, **counts}
            for sport, counts in sorted(stats.items())
        ]


class Court(models.Model):
    """
    A physical sports-court venue in the directory.

    Created by discovery, by an approved user suggestion or by an admin.
    Discovery passes may later refresh the enrichment fields (rating, phone,
    website, hours, price level, photos) but never the identity, name,
    address, coordinates or verification status.

    surface_type, lighting and court_count start out "unknown" for
    discovered courts: SurfaceType.UNKNOWN, Lighting.UNKNOWN and a NULL
    court_count. A verified absence of courts is recorded as 0.
    """

    # Identity
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, db_index=True)
    sport_types = models.JSONField(
        default=list, help_text="List of sports: ['Tennis', 'Pickleball']"
    )
    address = models.CharField(max_length=500, blank=True, default="")

    # Location - both set or both NULL
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    # Venue details
    surface_type = models.CharField(
        max_length=20, choices=SurfaceType.choices, null=True, blank=True
    )
    lighting = models.CharField(
        max_length=10, choices=Lighting.choices, default=Lighting.UNKNOWN
    )
    court_count = models.PositiveIntegerField(
        null=True, blank=True, help_text="NULL until verified"
    )

    # Places provider data
    external_place_id = models.CharField(
        max_length=255, unique=True, null=True, blank=True,
        help_text="Provider place id, unique when present",
    )
    external_rating = models.FloatField(null=True, blank=True)
    external_rating_count = models.PositiveIntegerField(null=True, blank=True)
    phone_number = models.CharField(max_length=50, null=True, blank=True)
    website_url = models.URLField(max_length=500, null=True, blank=True)
    opening_hours = models.JSONField(
        null=True, blank=True, help_text="{open_now, periods, weekday_text}"
    )
    price_level = models.PositiveSmallIntegerField(null=True, blank=True)
    photos = models.JSONField(
        null=True, blank=True, help_text="[{photo_reference, width, height}]"
    )

    # Moderation / provenance
    verification_status = models.CharField(
        max_length=20, choices=VerificationStatus.choices, default=VerificationStatus.PENDING
    )
    discovery_source = models.CharField(
        max_length=20, choices=DiscoverySource.choices, default=DiscoverySource.MANUAL
    )
    created_by = models.UUIDField(null=True, blank=True)

    # Metadata
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    objects = CourtQuerySet.as_manager()

    def save(self, *args, **kwargs):
        self.updated_at = timezone.now()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)

    class Meta:
        db_table = "courts"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["latitude", "longitude"], name="courts_latitud_6f1c0e_idx"),
            models.Index(fields=["verification_status"], name="courts_verific_3b9d2a_idx"),
            models.Index(fields=["discovery_source"], name="courts_discove_8e4f7b_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(latitude__isnull=True, longitude__isnull=True)
                    | Q(latitude__isnull=False, longitude__isnull=False)
                ),
                name="courts_coordinates_both_or_neither",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({', '.join(self.sport_types or [])})"

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


# ============================================================
# SearchArea
# ============================================================


class SearchArea(models.Model):
    """
    Recency record for one (latitude, longitude, radius, sport) search box.

    Touched when a discovery pass starts, completed with the number of
    courts persisted when it ends (0 on failure), purged once stale.
    """

    latitude = models.FloatField()
    longitude = models.FloatField()
    radius = models.PositiveIntegerField(help_text="Search radius in meters")
    sport_type = models.CharField(max_length=50)

    last_discovered_at = models.DateTimeField(default=timezone.now)
    total_found = models.IntegerField(
        null=True, blank=True, help_text="Courts persisted by the most recent completed pass"
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "search_areas"
        ordering = ["-last_discovered_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["latitude", "longitude", "radius", "sport_type"],
                name="search_areas_unique_tuple",
            ),
        ]
        indexes = [
            models.Index(fields=["last_discovered_at"], name="search_area_last_di_5a7c21_idx"),
        ]

    def __str__(self):
        return (
            f"{self.sport_type} @ {self.latitude}, {self.longitude} "
            f"r={self.radius}m"
        )


# ============================================================
# DiscoveryJob
# ============================================================


class DiscoveryJob(models.Model):
    """
    Tracks one queued discovery pass through the job queue.

    The Celery task carries the job id; this record holds what operators
    poll: status, progress, attempts and the last failure reason.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Payload
    latitude = models.FloatField()
    longitude = models.FloatField()
    radius = models.PositiveIntegerField()
    sport_type = models.CharField(max_length=50)
    priority = models.CharField(
        max_length=10, choices=JobPriority.choices, default=JobPriority.NORMAL
    )

    # Status
    status = models.CharField(
        max_length=20, choices=DiscoveryJobStatus.choices, default=DiscoveryJobStatus.WAITING
    )
    progress = models.PositiveSmallIntegerField(default=0)
    attempts_made = models.PositiveSmallIntegerField(default=0)
    max_attempts = models.PositiveSmallIntegerField(default=3)
    task_id = models.CharField(max_length=255, blank=True)

    # Timing
    created_at = models.DateTimeField(default=timezone.now)
    run_after = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    # Outcome
    failed_reason = models.TextField(blank=True)
    result = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "discovery_jobs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="discovery_j_status_2c8e41_idx"),
            models.Index(fields=["status", "finished_at"], name="discovery_j_status_9d1f63_idx"),
        ]

    def __str__(self):
        return f"Job {self.id} - {self.sport_type} @ {self.latitude}, {self.longitude} ({self.status})"

    @property
    def payload(self) -> Dict[str, Any]:
        """The job data handed to the discovery pipeline."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius": self.radius,
            "sport_type": self.sport_type,
            "priority": self.priority,
        }

    @property
    def duration_seconds(self):
        """Calculate job duration."""
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    @property
    def is_finished(self) -> bool:
        return self.status in (DiscoveryJobStatus.COMPLETED, DiscoveryJobStatus.FAILED)

    def start(self, attempt: int):
        """Mark job as active for the given attempt number (1-based)."""
        self.status = DiscoveryJobStatus.ACTIVE
        self.attempts_made = attempt
        self.progress = 0
        self.started_at = timezone.now()
        self.finished_at = None
        self.save(update_fields=["status", "attempts_made", "progress", "started_at", "finished_at"])

    def set_progress(self, value: int):
        """Record progress (0-100). Progress never moves backwards within an attempt."""
        value = max(0, min(100, int(value)))
        if value <= self.progress:
            return
        self.progress = value
        self.save(update_fields=["progress"])
        discovery_job_progress.send(sender=self.__class__, job=self, progress=value)

    def complete(self, result: Dict[str, Any]):
        """Mark job as completed with its result summary. The last failure reason is kept."""
        self.status = DiscoveryJobStatus.COMPLETED
        self.progress = 100
        self.result = result
        self.finished_at = timezone.now()
        self.save(update_fields=["status", "progress", "result", "finished_at"])
        discovery_job_completed.send(sender=self.__class__, job=self, result=result)

    def fail(self, reason: str, will_retry: bool = False, retry_at=None):
        """
        Record a failed attempt.

        A job that will be retried goes back to DELAYED until the next
        attempt starts; otherwise it is FAILED for good.
        """
        self.failed_reason = reason
        if will_retry:
            self.status = DiscoveryJobStatus.DELAYED
            self.run_after = retry_at
        else:
            self.status = DiscoveryJobStatus.FAILED
            self.finished_at = timezone.now()
        self.save(update_fields=["status", "failed_reason", "run_after", "finished_at"])
        discovery_job_failed.send(
            sender=self.__class__, job=self, reason=reason, will_retry=will_retry
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert job to dictionary for status output."""
        return {
            "id": str(self.id),
            "status": self.status,
            "data": self.payload,
            "progress": self.progress,
            "attempts_made": self.attempts_made,
            "max_attempts": self.max_attempts,
            "failed_reason": self.failed_reason or None,
            "result": self.result or None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration_seconds,
        }
