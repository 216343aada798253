"""
Celery configuration for the Court Discovery service.

Celery is the job queue for discovery passes: a bounded worker pool,
per-job priority and countdown, and retry with exponential backoff
(the retry policy itself lives on the task in courts.tasks).

Periodic fan-out is driven by courts.scheduler.DiscoveryScheduler,
not by Celery Beat.
"""

import os
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("court_discovery")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.task_queues = {
    "discovery": {
        "exchange": "discovery",
        "routing_key": "discovery",
    },
    "default": {
        "exchange": "default",
        "routing_key": "default",
    },
}

# Default task routing
app.conf.task_default_queue = "default"
app.conf.task_default_exchange = "default"
app.conf.task_default_routing_key = "default"

app.conf.task_routes = {
    "courts.tasks.discover_area": {"queue": "discovery"},
}

# Redis transport: priority 0 is served first, 9 last
app.conf.broker_transport_options = {
    "priority_steps": list(range(10)),
    "sep": ":",
    "queue_order_strategy": "priority",
}
app.conf.task_default_priority = 5
app.conf.task_acks_late = True
