"""
Monitoring for the resilience pipeline.

Sentry error tracking with source and alert context.
"""

from .sentry_integration import add_pipeline_breadcrumb, capture_alert, capture_pipeline_error

__all__ = [
    "add_pipeline_breadcrumb",
    "capture_alert",
    "capture_pipeline_error",
]
