"""
Test settings for the Court Discovery service.

Uses in-memory SQLite and eager Celery for fast test execution.
"""

import os
from .base import *

# Test mode
DEBUG = False

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# Test database - in-memory SQLite for speed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Test Cache - use local memory cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "unique-snowflake",
    }
}

# Test Celery - run tasks synchronously
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# Test logging - minimal output
LOGGING["loggers"]["django"]["level"] = "WARNING"
LOGGING["loggers"]["courts"]["level"] = "WARNING"

# Disable Sentry in tests
SENTRY_DSN = ""

# Test provider settings - no credential, no throttling
GOOGLE_PLACES_API_KEY = ""
PLACES_REQUEST_TIMEOUT = 5
PLACES_DETAILS_DELAY = 0

# Test discovery settings - retry immediately
DISCOVERY_JOB_BACKOFF_SECONDS = 0
