"""
Resilience application configuration.
"""

from django.apps import AppConfig


class ResilienceConfig(AppConfig):
    """Configuration for the resilience Django application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "resilience"
    verbose_name = "Scrape Resilience"
