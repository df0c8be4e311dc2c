"""
Sentry error tracking for the resilience pipeline.

- Sentry SDK itself is initialized in settings/base.py
- Breadcrumbs carry pipeline context (source, alert, stage)
- Sensitive values (tokens, API keys, auth headers) are filtered out
- Failures talking to Sentry are logged, never raised

Usage:
    from resilience.monitoring import capture_pipeline_error, add_pipeline_breadcrumb

    try:
        orchestrator.file(alert)
    except Exception as e:
        capture_pipeline_error(e, source=alert.source, alert_id=alert.id, stage="remediation")
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Sensitive fields to filter from Sentry events
SENSITIVE_FIELDS = {
    "cookies",
    "cookie",
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "auth",
    "password",
    "secret",
    "token",
    "key",
}


def _filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values whose key names look sensitive, recursing into dicts.

    Args:
        data: Dictionary potentially containing sensitive data

    Returns:
        Copy with sensitive values replaced by "[Filtered]"
    """
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        key_lower = str(key).lower()

        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = _filter_sensitive_data(value)
        else:
            filtered[key] = value

    return filtered


def add_pipeline_breadcrumb(
    message: str,
    stage: str,
    source_id: Optional[str] = None,
    alert_id: Optional[str] = None,
    level: str = "info",
    extra_data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add a breadcrumb describing a pipeline step.

    Args:
        message: Description of the operation
        stage: Pipeline stage ("remediation", "ai_recovery", ...)
        source_id: Source being processed
        alert_id: Alert being processed
        level: Breadcrumb level (info, warning, error)
        extra_data: Additional context (filtered for sensitive data)
    """
    data: Dict[str, Any] = {"stage": stage}
    if source_id is not None:
        data["source_id"] = str(source_id)
    if alert_id is not None:
        data["alert_id"] = str(alert_id)
    if extra_data:
        data.update(_filter_sensitive_data(extra_data))

    try:
        sentry_sdk.add_breadcrumb(category="resilience", message=message, level=level, data=data)
    except Exception as e:
        logger.warning(f"Failed to add Sentry breadcrumb: {e}")


def capture_pipeline_error(
    error: Exception,
    source=None,
    alert_id: Optional[str] = None,
    stage: str = "remediation",
    extra_context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture a pipeline exception to Sentry with source and alert context.

    Args:
        error: The exception that occurred
        source: Source instance (optional)
        alert_id: Alert being processed
        stage: Pipeline stage the error happened in
        extra_context: Additional context (filtered for sensitive data)
    """
    source_name = source.name if source is not None else "Unknown"
    source_id = str(source.id) if source is not None else None

    add_pipeline_breadcrumb(
        message=f"Error: {type(error).__name__}",
        stage=stage,
        source_id=source_id,
        alert_id=alert_id,
        level="error",
        extra_data=extra_context,
    )

    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("resilience.stage", stage)
            scope.set_tag("resilience.source", source_name)

            if source_id:
                scope.set_extra("source_id", source_id)
            if alert_id:
                scope.set_extra("alert_id", str(alert_id))
            if extra_context:
                scope.set_extra("pipeline_context", _filter_sensitive_data(extra_context))

            sentry_sdk.capture_exception(error)

    except Exception as e:
        logger.warning(f"Failed to capture exception to Sentry: {e}")


def capture_alert(
    message: str,
    level: str = "warning",
    source_id: Optional[str] = None,
    source_name: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture a non-exception problem (e.g. a tracker rejecting an issue).

    Args:
        message: Alert message
        level: Severity level (warning, error)
        source_id: Source ID
        source_name: Source name
        extra_data: Additional data (filtered for sensitive data)
    """
    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("alert.type", "remediation_failure")

            if source_name:
                scope.set_tag("resilience.source", source_name)
            if source_id:
                scope.set_extra("source_id", str(source_id))
            if extra_data:
                scope.set_extra("alert_data", _filter_sensitive_data(extra_data))

            sentry_sdk.capture_message(message, level=level)

    except Exception as e:
        logger.warning(f"Failed to capture alert to Sentry: {e}")
