"""
Rate Limiter and Quota Tracker - Manage places provider request limits.

Provides:
- Hourly request limiting
- Daily quota tracking
- Usage statistics
- Low quota alerts
"""

import logging
from datetime import datetime

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Rate limit places provider requests to stay within quota.

    Uses Django cache for distributed tracking across workers.

    Limits are configurable via settings:
    - PLACES_DAILY_QUOTA: Daily request quota (default 10000)
    - PLACES_HOURLY_LIMIT: Hourly rate limit (default 1000)

    Usage:
        limiter = RateLimiter()
        if limiter.can_make_request():
            # Make API call
            limiter.record_request()
    """

    def __init__(self, cache_prefix: str = "places"):
        self.cache_prefix = cache_prefix
        self.daily_quota = getattr(settings, "PLACES_DAILY_QUOTA", 10000)
        self.hourly_limit = getattr(settings, "PLACES_HOURLY_LIMIT", 1000)

    def can_make_request(self) -> bool:
        """True if under both the hourly limit and the daily quota."""
        hourly_count = cache.get(self._hourly_key(), 0)
        daily_count = cache.get(self._daily_key(), 0)
        return hourly_count < self.hourly_limit and daily_count < self.daily_quota

    def record_request(self) -> None:
        """Increment the hourly and daily counters."""
        hourly_key = self._hourly_key()
        hourly_count = cache.get(hourly_key, 0)
        cache.set(hourly_key, hourly_count + 1, 3600)

        daily_key = self._daily_key()
        daily_count = cache.get(daily_key, 0)
        cache.set(daily_key, daily_count + 1, 86400)

        logger.debug(
            "Places request recorded. Hourly: %d/%d, Daily: %d/%d",
            hourly_count + 1, self.hourly_limit,
            daily_count + 1, self.daily_quota,
        )

    def get_remaining_hourly(self) -> int:
        return max(0, self.hourly_limit - cache.get(self._hourly_key(), 0))

    def get_remaining_daily(self) -> int:
        return max(0, self.daily_quota - cache.get(self._daily_key(), 0))

    def _hourly_key(self) -> str:
        """Cache key like "places:hourly:2025-01-15-14"."""
        hour = datetime.now().strftime("%Y-%m-%d-%H")
        return f"{self.cache_prefix}:hourly:{hour}"

    def _daily_key(self) -> str:
        """Cache key like "places:daily:2025-01-15"."""
        day = datetime.now().strftime("%Y-%m-%d")
        return f"{self.cache_prefix}:daily:{day}"


class QuotaTracker:
    """
    Usage statistics and low-quota checks on top of a RateLimiter.

    Usage:
        tracker = QuotaTracker(RateLimiter())
        if tracker.is_quota_low():
            logger.warning("Places quota is running low")
    """

    def __init__(self, rate_limiter: RateLimiter):
        self.rate_limiter = rate_limiter

    def get_usage_stats(self) -> dict:
        """
        Get current usage statistics.

        Returns:
            Dict with hourly_remaining, hourly_limit, daily_remaining, daily_limit
        """
        return {
            "hourly_remaining": self.rate_limiter.get_remaining_hourly(),
            "hourly_limit": self.rate_limiter.hourly_limit,
            "daily_remaining": self.rate_limiter.get_remaining_daily(),
            "daily_limit": self.rate_limiter.daily_quota,
        }

    def is_quota_low(self, threshold: float = 0.1) -> bool:
        """True if less than ``threshold`` of the daily quota remains."""
        return self.rate_limiter.get_remaining_daily() < self.rate_limiter.daily_quota * threshold
