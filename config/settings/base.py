"""
Django base settings for the Court Discovery service.

This module contains settings common to all environments.
For more information on this file, see
https://docs.djangoproject.com/en/5.2/topics/settings/
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv(
    "SECRET_KEY",
    "django-insecure-court-discovery-dev-key-change-in-production"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv("DEBUG", "True") == "True"

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")


# Application definition

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # Local apps
    "courts",
]


# Database
# https://docs.djangoproject.com/en/5.2/ref/settings/#databases
# Configured in environment-specific settings (development.py, production.py, test.py)

DATABASES = {
    # Override in environment-specific settings
}


# Internationalization
# https://docs.djangoproject.com/en/5.2/topics/i18n/

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True


# Default primary key field type
# https://docs.djangoproject.com/en/5.2/ref/settings/#default-auto-field

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Cache Configuration
# Used for provider quota counters. Configured in environment-specific settings.

CACHES = {
    # Override in environment-specific settings
}


# Celery Configuration
# https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes max for a discovery pass
CELERY_RESULT_EXPIRES = 7 * 24 * 3600
CELERY_WORKER_CONCURRENCY = int(os.getenv("CELERY_WORKER_CONCURRENCY", "4"))
CELERY_WORKER_PREFETCH_MULTIPLIER = 1


# Logging Configuration
# https://docs.djangoproject.com/en/5.2/topics/logging/

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
        "courts": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
        "apscheduler": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    },
}


# External API Configuration

# Google Places for court discovery
GOOGLE_PLACES_API_KEY = os.getenv("GOOGLE_PLACES_API_KEY", "")
PLACES_REQUEST_TIMEOUT = int(os.getenv("PLACES_REQUEST_TIMEOUT", "30"))

# Delay after each accepted place details lookup (seconds)
PLACES_DETAILS_DELAY = float(os.getenv("PLACES_DETAILS_DELAY", "0.1"))

# Quota tracked in the cache across workers
PLACES_HOURLY_LIMIT = int(os.getenv("PLACES_HOURLY_LIMIT", "1000"))
PLACES_DAILY_QUOTA = int(os.getenv("PLACES_DAILY_QUOTA", "10000"))


# Sentry Configuration
# https://docs.sentry.io/platforms/python/integrations/django/

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))

# Initialize Sentry
import sentry_sdk

if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        send_default_pii=False,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        environment=SENTRY_ENVIRONMENT,
    )


# Discovery Configuration

# Searches of the same area/sport within this window are skipped
DISCOVERY_FRESHNESS_DAYS = int(os.getenv("DISCOVERY_FRESHNESS_DAYS", "7"))

# Search area records untouched for this long are purged weekly
DISCOVERY_STALE_AFTER_DAYS = int(os.getenv("DISCOVERY_STALE_AFTER_DAYS", "90"))

# Same-named courts closer than this are treated as the same venue
DISCOVERY_DUPLICATE_RADIUS_METERS = float(
    os.getenv("DISCOVERY_DUPLICATE_RADIUS_METERS", "100")
)

# Job retry policy: total attempts and base backoff (doubled per attempt)
DISCOVERY_JOB_ATTEMPTS = int(os.getenv("DISCOVERY_JOB_ATTEMPTS", "3"))
DISCOVERY_JOB_BACKOFF_SECONDS = float(os.getenv("DISCOVERY_JOB_BACKOFF_SECONDS", "2"))

# Low priority jobs are held back to avoid flooding the queue
DISCOVERY_LOW_PRIORITY_DELAY_SECONDS = int(
    os.getenv("DISCOVERY_LOW_PRIORITY_DELAY_SECONDS", "60")
)

# Finished job records kept for inspection
DISCOVERY_KEEP_COMPLETED_JOBS = int(os.getenv("DISCOVERY_KEEP_COMPLETED_JOBS", "50"))
DISCOVERY_KEEP_FAILED_JOBS = int(os.getenv("DISCOVERY_KEEP_FAILED_JOBS", "20"))

DISCOVERY_DEFAULT_RADIUS_METERS = int(os.getenv("DISCOVERY_DEFAULT_RADIUS_METERS", "10000"))
DISCOVERY_MAX_RADIUS_METERS = int(os.getenv("DISCOVERY_MAX_RADIUS_METERS", "50000"))

# Owner recorded on courts inserted by background jobs
DISCOVERY_SYSTEM_USER_ID = os.getenv(
    "DISCOVERY_SYSTEM_USER_ID", "00000000-0000-0000-0000-000000000000"
)
