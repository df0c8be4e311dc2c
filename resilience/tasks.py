"""
Celery tasks for the resilience pipeline.

auto_file_issues is queued by the scrape pipeline after new alerts have
been persisted for a source. It runs on the "remediation" queue.
"""

import logging
from typing import Any, Dict, List

from celery import shared_task

from resilience.remediation import auto_file_issues_for_alerts

logger = logging.getLogger(__name__)


@shared_task(name="resilience.tasks.auto_file_issues")
def auto_file_issues(source_id: str, alert_ids: List[str]) -> Dict[str, Any]:
    """
    Auto-file GitHub issues for a source's new alerts.

    Args:
        source_id: Source the alerts were raised against
        alert_ids: IDs of the newly persisted alerts

    Returns:
        Dict with filed/skipped counts and per-alert outcomes
    """
    logger.info(f"Auto-filing issues for source {source_id} ({len(alert_ids)} alerts)")

    summary = auto_file_issues_for_alerts(source_id, alert_ids)

    return {
        "source_id": source_id,
        "filed": summary.filed,
        "skipped": summary.skipped,
        "outcomes": {alert_id: outcome.value for alert_id, outcome in summary.outcomes.items()},
        "issue_urls": dict(summary.issue_urls),
    }
