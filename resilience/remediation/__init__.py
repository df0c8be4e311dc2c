"""
Automated remediation of source alerts.

Files GitHub issues for alerts raised by the health analyzer, with the
context a fix agent needs, and records every filing in the alert's
repair log.
"""

from resilience.remediation.orchestrator import (
    AutoFileSummary,
    IssueFilingResult,
    RemediationOrchestrator,
    RemediationOutcome,
    auto_file_issues_for_alerts,
    file_issue_for_alert,
)

__all__ = [
    "AutoFileSummary",
    "IssueFilingResult",
    "RemediationOrchestrator",
    "RemediationOutcome",
    "auto_file_issues_for_alerts",
    "file_issue_for_alert",
]
