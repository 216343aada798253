"""
Places provider integration.

Components:
- PlacesClient: HTTP client for text search, place details and geocoding
- RateLimiter / QuotaTracker: request quota shared through the Django cache
- get_search_terms: sport to search-phrase table
"""

from .client import PlacesClient
from .exceptions import (
    PlacesProviderError,
    ProviderError,
    ProviderQuotaExceeded,
    ProviderTransportError,
    ProviderUnavailable,
)
from .rate_limiter import QuotaTracker, RateLimiter
from .terms import SPORT_SEARCH_TERMS, SUPPORTED_SPORTS, get_search_terms

__all__ = [
    "PlacesClient",
    "PlacesProviderError",
    "ProviderError",
    "ProviderQuotaExceeded",
    "ProviderTransportError",
    "ProviderUnavailable",
    "QuotaTracker",
    "RateLimiter",
    "SPORT_SEARCH_TERMS",
    "SUPPORTED_SPORTS",
    "get_search_terms",
]
