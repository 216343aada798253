"""
Sentry error tracking for the discovery pipeline.

- Adds breadcrumbs for discovery context (area, sport, job)
- Filters sensitive data (API keys, tokens) before it leaves the process
- Captures exceptions with tags operators can search on

Usage:
    from courts.monitoring import capture_discovery_error

    try:
        run_discovery(job)
    except Exception as e:
        capture_discovery_error(e, job=job)
        raise

The SDK is initialised in settings only when SENTRY_DSN is set; without a
DSN every call here is a no-op inside sentry_sdk.
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Sensitive fields to filter from Sentry events
SENSITIVE_FIELDS = {
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "password",
    "secret",
    "token",
}


def filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values whose key names look sensitive, recursing into dicts.
    """
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if key_lower == "key" or any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = filter_sensitive_data(value)
        else:
            filtered[key] = value
    return filtered


def add_discovery_breadcrumb(
    message: str,
    data: Optional[Dict[str, Any]] = None,
    level: str = "info",
) -> None:
    """Add a breadcrumb describing a discovery step."""
    try:
        sentry_sdk.add_breadcrumb(
            category="discovery",
            message=message,
            level=level,
            data=filter_sensitive_data(data or {}),
        )
    except Exception as e:
        logger.warning("Failed to add Sentry breadcrumb: %s", e)


def capture_discovery_error(
    error: Exception,
    job=None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture a discovery failure to Sentry with job context.

    Args:
        error: The exception that occurred
        job: DiscoveryJob instance (optional)
        extra_context: Additional context (filtered for sensitive data)
    """
    payload = job.payload if job is not None else {}

    add_discovery_breadcrumb(
        message=f"Error: {type(error).__name__}",
        data={**payload, **(extra_context or {})},
        level="error",
    )

    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("discovery.error_type", type(error).__name__)
            if payload:
                scope.set_tag("discovery.sport", payload.get("sport_type"))
                scope.set_tag("discovery.priority", payload.get("priority"))
                scope.set_extra("search_area", {
                    "latitude": payload.get("latitude"),
                    "longitude": payload.get("longitude"),
                    "radius": payload.get("radius"),
                })
            if job is not None:
                scope.set_extra("job_id", str(job.id))
                scope.set_extra("attempt", job.attempts_made)
            if extra_context:
                scope.set_extra("discovery_context", filter_sensitive_data(extra_context))

            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.warning("Failed to capture exception to Sentry: %s", e)
