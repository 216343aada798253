import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Court",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("sport_types", models.JSONField(default=list, help_text="List of sports: ['Tennis', 'Pickleball']")),
                ("address", models.CharField(blank=True, default="", max_length=500)),
                ("latitude", models.FloatField(blank=True, null=True)),
                ("longitude", models.FloatField(blank=True, null=True)),
                ("surface_type", models.CharField(
                    blank=True,
                    choices=[
                        ("hard", "Hard"),
                        ("clay", "Clay"),
                        ("grass", "Grass"),
                        ("artificial_grass", "Artificial Grass"),
                        ("carpet", "Carpet"),
                        ("wood", "Wood"),
                        ("sand", "Sand"),
                        ("other", "Other"),
                        ("unknown", "Unknown"),
                    ],
                    max_length=20,
                    null=True,
                )),
                ("lighting", models.CharField(
                    choices=[("yes", "Yes"), ("no", "No"), ("unknown", "Unknown")],
                    default="unknown",
                    max_length=10,
                )),
                ("court_count", models.PositiveIntegerField(blank=True, help_text="NULL until verified", null=True)),
                ("external_place_id", models.CharField(
                    blank=True,
                    help_text="Provider place id, unique when present",
                    max_length=255,
                    null=True,
                    unique=True,
                )),
                ("external_rating", models.FloatField(blank=True, null=True)),
                ("external_rating_count", models.PositiveIntegerField(blank=True, null=True)),
                ("phone_number", models.CharField(blank=True, max_length=50, null=True)),
                ("website_url", models.URLField(blank=True, max_length=500, null=True)),
                ("opening_hours", models.JSONField(blank=True, help_text="{open_now, periods, weekday_text}", null=True)),
                ("price_level", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("photos", models.JSONField(blank=True, help_text="[{photo_reference, width, height}]", null=True)),
                ("verification_status", models.CharField(
                    choices=[("pending", "Pending"), ("verified", "Verified"), ("rejected", "Rejected")],
                    default="pending",
                    max_length=20,
                )),
                ("discovery_source", models.CharField(
                    choices=[
                        ("user_suggestion", "User Suggestion"),
                        ("google_places", "Google Places"),
                        ("manual", "Manually Added"),
                    ],
                    default="manual",
                    max_length=20,
                )),
                ("created_by", models.UUIDField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "courts",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["latitude", "longitude"], name="courts_latitud_6f1c0e_idx"),
                    models.Index(fields=["verification_status"], name="courts_verific_3b9d2a_idx"),
                    models.Index(fields=["discovery_source"], name="courts_discove_8e4f7b_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(("latitude__isnull", True), ("longitude__isnull", True))
                            | models.Q(("latitude__isnull", False), ("longitude__isnull", False))
                        ),
                        name="courts_coordinates_both_or_neither",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SearchArea",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("latitude", models.FloatField()),
                ("longitude", models.FloatField()),
                ("radius", models.PositiveIntegerField(help_text="Search radius in meters")),
                ("sport_type", models.CharField(max_length=50)),
                ("last_discovered_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("total_found", models.IntegerField(
                    blank=True,
                    help_text="Courts persisted by the most recent completed pass",
                    null=True,
                )),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "search_areas",
                "ordering": ["-last_discovered_at"],
                "indexes": [
                    models.Index(fields=["last_discovered_at"], name="search_area_last_di_5a7c21_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("latitude", "longitude", "radius", "sport_type"),
                        name="search_areas_unique_tuple",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DiscoveryJob",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("latitude", models.FloatField()),
                ("longitude", models.FloatField()),
                ("radius", models.PositiveIntegerField()),
                ("sport_type", models.CharField(max_length=50)),
                ("priority", models.CharField(
                    choices=[("high", "High"), ("normal", "Normal"), ("low", "Low")],
                    default="normal",
                    max_length=10,
                )),
                ("status", models.CharField(
                    choices=[
                        ("waiting", "Waiting"),
                        ("active", "Active"),
                        ("completed", "Completed"),
                        ("failed", "Failed"),
                        ("delayed", "Delayed"),
                    ],
                    default="waiting",
                    max_length=20,
                )),
                ("progress", models.PositiveSmallIntegerField(default=0)),
                ("attempts_made", models.PositiveSmallIntegerField(default=0)),
                ("max_attempts", models.PositiveSmallIntegerField(default=3)),
                ("task_id", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("run_after", models.DateTimeField(blank=True, null=True)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                ("failed_reason", models.TextField(blank=True)),
                ("result", models.JSONField(blank=True, default=dict)),
            ],
            options={
                "db_table": "discovery_jobs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="discovery_j_status_2c8e41_idx"),
                    models.Index(fields=["status", "finished_at"], name="discovery_j_status_9d1f63_idx"),
                ],
            },
        ),
    ]
