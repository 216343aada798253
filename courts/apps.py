"""
Courts application configuration.
"""

from django.apps import AppConfig


class CourtsConfig(AppConfig):
    """Configuration for the courts Django application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "courts"
    verbose_name = "Court Directory"

    def ready(self):
        """
        Register signal receivers.

        The discovery job events (progress, completed, failed) are logged by
        receivers in courts.signals.
        """
        from courts import signals  # noqa: F401
