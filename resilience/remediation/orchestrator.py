"""
Remediation orchestrator.

Turns persisted alerts into GitHub issues the fix agent can act on.

Flow for automatic filing, per alert, strictly in order:
    eligibility -> daily rate limit -> cooldown -> open-issue dedup
    -> build issue -> create issue -> append repair log entry

Nothing here raises to the caller. Every alert ends with exactly one
RemediationOutcome; anything other than FILED counts as skipped.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from django.core.exceptions import ValidationError

from resilience.models import Alert
from resilience.monitoring import add_pipeline_breadcrumb, capture_alert, capture_pipeline_error
from resilience.remediation.github_client import CreatedIssue, GitHubIssueClient, GitHubResult
from resilience.remediation.guards import is_eligible, is_on_cooldown, is_rate_limited
from resilience.remediation.issue_builder import build_issue_body
from resilience.remediation.repair_log import (
    ACTION_AUTO_FILE_ISSUE,
    ACTION_CREATE_ISSUE,
    RepairLogEntry,
    append_repair_log_entry,
)

logger = logging.getLogger(__name__)


class RemediationOutcome(Enum):
    """What happened to one alert in an auto-file batch."""

    FILED = "filed"
    INELIGIBLE = "ineligible"
    RATE_LIMITED = "rate_limited"
    COOLDOWN = "cooldown"
    DUPLICATE = "duplicate"
    NOT_CONFIGURED = "not_configured"
    NOT_FOUND = "not_found"
    TRACKER_ERROR = "tracker_error"


@dataclass
class AutoFileSummary:
    """Result of auto_file_issues_for_alerts."""

    outcomes: Dict[str, RemediationOutcome] = field(default_factory=dict)
    issue_urls: Dict[str, str] = field(default_factory=dict)

    @property
    def filed(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome is RemediationOutcome.FILED)

    @property
    def skipped(self) -> int:
        return len(self.outcomes) - self.filed

    def to_dict(self) -> Dict[str, int]:
        return {"filed": self.filed, "skipped": self.skipped}


@dataclass
class IssueFilingResult:
    """Result of filing one issue on an operator's request."""

    success: bool
    issue_url: Optional[str] = None
    issue_number: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        if self.success:
            return {"success": True, "issue_url": self.issue_url, "issue_number": self.issue_number}
        return {"success": False, "error": self.error}


def _canonical_id(value) -> Optional[str]:
    """Normalized UUID string, or None if value is not a UUID."""
    if value is None:
        return None
    try:
        return str(Alert._meta.pk.to_python(value))
    except ValidationError:
        return None


def _load_alert(alert_id) -> Optional[Alert]:
    key = _canonical_id(alert_id)
    if key is None:
        return None
    try:
        return Alert.objects.select_related("source").get(pk=key)
    except Alert.DoesNotExist:
        return None


class RemediationOrchestrator:
    """
    Files GitHub issues for source alerts.

    Usage:
        orchestrator = RemediationOrchestrator()
        summary = orchestrator.auto_file_issues_for_alerts(source_id, alert_ids)
        print(summary.filed, summary.skipped)
    """

    def __init__(self, github_client: Optional[GitHubIssueClient] = None):
        self.github = github_client or GitHubIssueClient()

    def auto_file_issues_for_alerts(self, source_id, alert_ids: Sequence) -> AutoFileSummary:
        """
        Auto-file issues for newly raised alerts of one source.

        Args:
            source_id: Source the alerts belong to
            alert_ids: Alert IDs from the latest health analysis

        Returns:
            AutoFileSummary with one outcome per requested alert ID
        """
        summary = AutoFileSummary()
        requested = [str(alert_id) for alert_id in dict.fromkeys(alert_ids)]

        if not requested:
            return summary

        if not self.github.is_configured:
            logger.info(f"GITHUB_TOKEN not configured, skipping {len(requested)} alerts")
            for alert_id in requested:
                summary.outcomes[alert_id] = RemediationOutcome.NOT_CONFIGURED
            return summary

        alerts = self._load_source_alerts(source_id, requested)

        for alert_id in requested:
            alert = alerts.get(_canonical_id(alert_id))
            if alert is None:
                logger.warning(f"Alert {alert_id} not found for source {source_id}")
                summary.outcomes[alert_id] = RemediationOutcome.NOT_FOUND
                continue

            try:
                outcome, issue = self._process_alert(alert)
            except Exception as e:
                logger.exception(f"Auto-filing failed for alert {alert_id}")
                capture_pipeline_error(e, source=alert.source, alert_id=alert_id)
                outcome, issue = RemediationOutcome.TRACKER_ERROR, None

            summary.outcomes[alert_id] = outcome
            if issue is not None:
                summary.issue_urls[alert_id] = issue.url

        logger.info(f"Auto-file for source {source_id}: {summary.filed} filed, {summary.skipped} skipped")
        return summary

    def _load_source_alerts(self, source_id, alert_ids: List[str]) -> Dict[str, Alert]:
        """Alerts of the source among alert_ids, keyed by canonical ID."""
        valid_ids = [key for key in map(_canonical_id, alert_ids) if key is not None]
        if not valid_ids or _canonical_id(source_id) is None:
            return {}

        alerts = Alert.objects.select_related("source").filter(id__in=valid_ids, source_id=source_id)
        return {str(alert.id): alert for alert in alerts}

    def _process_alert(self, alert: Alert):
        source_id = str(alert.source_id)

        if not is_eligible(alert):
            return RemediationOutcome.INELIGIBLE, None
        if is_rate_limited(source_id):
            return RemediationOutcome.RATE_LIMITED, None
        if is_on_cooldown(source_id, alert.type):
            return RemediationOutcome.COOLDOWN, None
        if self.github.has_open_issue_for_source(source_id, alert.type):
            logger.info(f"Open issue already exists for source {source_id} ({alert.type})")
            return RemediationOutcome.DUPLICATE, None

        result = self._file_issue(alert, ACTION_AUTO_FILE_ISSUE, auto_filed=True)
        if not result.success:
            return RemediationOutcome.TRACKER_ERROR, None
        return RemediationOutcome.FILED, result.data

    def _file_issue(
        self,
        alert: Alert,
        action: str,
        auto_filed: bool,
        admin_id: str = "system",
    ) -> GitHubResult:
        """
        Create the issue and record it in the repair log.

        Returns the tracker result; its data is the CreatedIssue on
        success. Nothing is written when the tracker call fails.

        Once the issue exists the filing counts as done: a failed
        repair-log write is logged and reported to Sentry with the issue
        URL, but the successful result is still returned.
        """
        add_pipeline_breadcrumb(
            message="Filing GitHub issue",
            stage="remediation",
            source_id=alert.source_id,
            alert_id=alert.id,
            extra_data={"alert_type": alert.type, "action": action},
        )

        result = self.github.create_issue(build_issue_body(alert, auto_filed=auto_filed))
        if not result.success:
            capture_alert(
                f"GitHub issue creation failed for alert {alert.id}",
                level="error",
                source_id=str(alert.source_id),
                source_name=alert.source.name,
                extra_data={"status_code": result.status_code, "error": result.error},
            )
            return result

        issue: CreatedIssue = result.data
        entry = RepairLogEntry.issue_filed(
            action=action,
            issue_url=issue.url,
            issue_number=issue.number,
            admin_id=admin_id,
        )
        try:
            append_repair_log_entry(alert.id, entry)
        except Exception as e:
            logger.exception(f"Issue {issue.url} filed but repair log write failed for alert {alert.id}")
            capture_pipeline_error(
                e,
                source=alert.source,
                alert_id=str(alert.id),
                extra_context={"issue_url": issue.url, "issue_number": issue.number, "action": action},
            )
        return result

    def file_issue_for_alert(self, alert_id, admin_id: str) -> IssueFilingResult:
        """
        File an issue for one alert on an operator's request.

        Eligibility and the rate/cooldown/dedup guards do not apply.

        Args:
            alert_id: Alert to file
            admin_id: ID of the operator, recorded in the repair log

        Returns:
            IssueFilingResult
        """
        if not self.github.is_configured:
            return IssueFilingResult(success=False, error="GITHUB_TOKEN not configured")

        alert = _load_alert(alert_id)
        if alert is None:
            return IssueFilingResult(success=False, error="Alert not found")

        try:
            result = self._file_issue(alert, ACTION_CREATE_ISSUE, auto_filed=False, admin_id=str(admin_id))
        except Exception as e:
            logger.exception(f"Manual issue filing failed for alert {alert_id}")
            capture_pipeline_error(e, source=alert.source, alert_id=str(alert_id))
            return IssueFilingResult(success=False, error=f"Failed to create issue: {e}")

        if not result.success:
            return IssueFilingResult(success=False, error=result.error)

        issue: CreatedIssue = result.data
        return IssueFilingResult(success=True, issue_url=issue.url, issue_number=issue.number)


def auto_file_issues_for_alerts(source_id, alert_ids: Sequence) -> AutoFileSummary:
    """Auto-file issues with a default orchestrator."""
    return RemediationOrchestrator().auto_file_issues_for_alerts(source_id, alert_ids)


def file_issue_for_alert(alert_id, admin_id: str) -> IssueFilingResult:
    """File one issue on an operator's request with a default orchestrator."""
    return RemediationOrchestrator().file_issue_for_alert(alert_id, admin_id)
