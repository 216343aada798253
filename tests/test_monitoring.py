"""
Tests for Sentry reporting of discovery failures.
"""

from unittest.mock import MagicMock, patch

import pytest

from courts.models import DiscoveryJob
from courts.monitoring import (
    add_discovery_breadcrumb,
    capture_discovery_error,
    filter_sensitive_data,
)


@pytest.fixture
def mock_sentry():
    """Patch the sentry_sdk module used by courts.monitoring."""
    with patch("courts.monitoring.sentry_sdk") as sentry:
        scope = MagicMock()
        sentry.new_scope.return_value.__enter__.return_value = scope
        sentry.scope = scope
        yield sentry


class TestFilterSensitiveData:
    """Secrets never reach Sentry."""

    def test_masks_sensitive_keys(self):
        data = {
            "api_key": "abc",
            "Authorization": "Bearer xyz",
            "key": "places-key",
            "access_token": "t",
            "sport_type": "Tennis",
        }

        assert filter_sensitive_data(data) == {
            "api_key": "[Filtered]",
            "Authorization": "[Filtered]",
            "key": "[Filtered]",
            "access_token": "[Filtered]",
            "sport_type": "Tennis",
        }

    def test_recurses_into_nested_dicts(self):
        data = {"request": {"params": {"key": "places-key", "query": "tennis court"}}}

        assert filter_sensitive_data(data) == {
            "request": {"params": {"key": "[Filtered]", "query": "tennis court"}}
        }

    def test_keeps_non_secret_names_containing_key(self):
        assert filter_sensitive_data({"sort_key": 1}) == {"sort_key": 1}

    def test_non_dict_passes_through(self):
        assert filter_sensitive_data(["api_key"]) == ["api_key"]


class TestBreadcrumbs:
    """add_discovery_breadcrumb."""

    def test_breadcrumb_is_filtered(self, mock_sentry):
        add_discovery_breadcrumb("Searching", {"term": "tennis court", "api_key": "abc"})

        mock_sentry.add_breadcrumb.assert_called_once_with(
            category="discovery",
            message="Searching",
            level="info",
            data={"term": "tennis court", "api_key": "[Filtered]"},
        )

    def test_sdk_failure_is_not_raised(self, mock_sentry):
        mock_sentry.add_breadcrumb.side_effect = RuntimeError("sdk broken")

        add_discovery_breadcrumb("Searching")


@pytest.mark.django_db
class TestCaptureDiscoveryError:
    """capture_discovery_error."""

    def test_tags_job_context(self, mock_sentry):
        job = DiscoveryJob.objects.create(
            latitude=40.7128, longitude=-74.0060, radius=10000, sport_type="Tennis",
            priority="high", attempts_made=2,
        )
        error = RuntimeError("upstream timeout")

        capture_discovery_error(error, job=job)

        scope = mock_sentry.scope
        scope.set_tag.assert_any_call("discovery.error_type", "RuntimeError")
        scope.set_tag.assert_any_call("discovery.sport", "Tennis")
        scope.set_tag.assert_any_call("discovery.priority", "high")
        scope.set_extra.assert_any_call(
            "search_area", {"latitude": 40.7128, "longitude": -74.0060, "radius": 10000}
        )
        scope.set_extra.assert_any_call("job_id", str(job.id))
        scope.set_extra.assert_any_call("attempt", 2)
        mock_sentry.capture_exception.assert_called_once_with(error)

    def test_without_job(self, mock_sentry):
        error = ValueError("bad payload")

        capture_discovery_error(error, extra_context={"token": "secret", "place_id": "p1"})

        mock_sentry.scope.set_extra.assert_called_once_with(
            "discovery_context", {"token": "[Filtered]", "place_id": "p1"}
        )
        mock_sentry.capture_exception.assert_called_once_with(error)

    def test_sdk_failure_is_not_raised(self, mock_sentry):
        mock_sentry.capture_exception.side_effect = RuntimeError("sdk broken")

        capture_discovery_error(ValueError("bad payload"))

    def test_real_sdk_without_dsn_is_a_no_op(self):
        capture_discovery_error(RuntimeError("no dsn configured"))
