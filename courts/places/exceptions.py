"""
Places provider exceptions.

ProviderUnavailable is a configuration problem and is never retried; the
other errors come from the upstream API or the network and are retried by
the job queue.
"""


class PlacesProviderError(Exception):
    """Base class for places provider failures."""


class ProviderUnavailable(PlacesProviderError):
    """No provider credential is configured."""


class ProviderError(PlacesProviderError):
    """The provider answered with a non-OK status."""

    def __init__(self, status: str, message: str = ""):
        self.status = status
        super().__init__(message or f"Places API error: {status}")


class ProviderQuotaExceeded(ProviderError):
    """The local request quota is exhausted; no call was made."""

    def __init__(self, message: str = ""):
        super().__init__("OVER_QUERY_LIMIT", message or "Places API quota exhausted")


class ProviderTransportError(PlacesProviderError):
    """The request never produced a usable HTTP response."""
