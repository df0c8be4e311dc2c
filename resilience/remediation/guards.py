"""
Guards for automatic issue filing.

Automatic filing must not spam the tracker when a source keeps failing
the same way. Before anything goes over the network an alert has to be
eligible, the source must be under its daily cap, and the same
(source, alert type) must not have been filed recently.
"""

import logging
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Optional

from django.conf import settings
from django.utils import timezone

from resilience.models import Alert, AlertSeverity, AlertType
from resilience.remediation.repair_log import (
    ACTION_AUTO_FILE_ISSUE,
    iter_entries,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

AUTO_FILE_ALERT_TYPES = frozenset(
    {
        AlertType.SCRAPE_FAILURE,
        AlertType.CONSECUTIVE_FAILURES,
        AlertType.STRUCTURE_CHANGE,
        AlertType.FIELD_FILL_DROP,
    }
)

AUTO_FILE_SEVERITIES = frozenset({AlertSeverity.CRITICAL, AlertSeverity.WARNING})

DEFAULT_MAX_ISSUES_PER_DAY = 3
DEFAULT_COOLDOWN_HOURS = 48


def is_eligible(alert: Alert) -> bool:
    """Only failure/degradation alerts at WARNING or above are auto-filed."""
    return alert.type in AUTO_FILE_ALERT_TYPES and alert.severity in AUTO_FILE_SEVERITIES


def utc_day_start(now: Optional[datetime] = None) -> datetime:
    now = now or timezone.now()
    return now.astimezone(dt_timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def count_auto_filed_since(source_id, since: datetime, alert_type: Optional[str] = None) -> int:
    """
    Count auto_file_issue entries stamped at or after since.

    Only alerts updated since then can hold such entries, so the query
    is narrowed on updated_at before the logs are scanned.
    """
    alerts = Alert.objects.filter(source_id=source_id, updated_at__gte=since)
    if alert_type is not None:
        alerts = alerts.filter(type=alert_type)

    count = 0
    for repair_log in alerts.values_list("repair_log", flat=True):
        for entry in iter_entries(repair_log):
            if entry.get("action") != ACTION_AUTO_FILE_ISSUE:
                continue
            stamped = parse_timestamp(entry.get("timestamp"))
            if stamped is not None and stamped >= since:
                count += 1
    return count


def is_rate_limited(source_id, now: Optional[datetime] = None) -> bool:
    """True once the source has hit its auto-filed issue cap for the UTC day."""
    limit = getattr(settings, "REMEDIATION_MAX_ISSUES_PER_SOURCE_PER_DAY", DEFAULT_MAX_ISSUES_PER_DAY)
    filed_today = count_auto_filed_since(source_id, utc_day_start(now))
    if filed_today >= limit:
        logger.info(f"Source {source_id} rate limited: {filed_today} issues auto-filed today")
        return True
    return False


def is_on_cooldown(source_id, alert_type: str, now: Optional[datetime] = None) -> bool:
    """True if the same (source, alert type) was auto-filed within the cooldown window."""
    hours = getattr(settings, "REMEDIATION_COOLDOWN_HOURS", DEFAULT_COOLDOWN_HOURS)
    cutoff = (now or timezone.now()) - timedelta(hours=hours)
    if count_auto_filed_since(source_id, cutoff, alert_type=alert_type) > 0:
        logger.info(f"Source {source_id} on cooldown for {alert_type}")
        return True
    return False
