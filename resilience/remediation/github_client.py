"""
GitHub Issues client for alert remediation.

Wraps the two GitHub REST calls remediation needs: listing open issues
by label (duplicate detection) and creating an issue. Errors never
propagate; every call returns a GitHubResult.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

from resilience.remediation.issue_builder import ALERT_LABEL, IssueContent, type_label

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_REPOSITORY = "johnrclem/hashtracks-web"
DEFAULT_TIMEOUT = 10


@dataclass
class GitHubResult:
    """Outcome of one GitHub API call."""

    success: bool
    data: Any = None
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass
class CreatedIssue:
    number: int
    url: str


class GitHubIssueClient:
    """
    Minimal GitHub Issues client.

    Usage:
        client = GitHubIssueClient()
        if client.is_configured:
            result = client.create_issue(build_issue_body(alert))
    """

    def __init__(
        self,
        token: Optional[str] = None,
        repository: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            token: GitHub token (defaults to settings.GITHUB_TOKEN)
            repository: "owner/name" slug (defaults to settings.GITHUB_REPOSITORY)
            api_url: REST API root (defaults to settings.GITHUB_API_URL)
            timeout: Per-request timeout in seconds
        """
        self._token = token
        self._repository = repository
        self._api_url = api_url
        self._timeout = timeout

    @property
    def token(self) -> str:
        if self._token is not None:
            return self._token
        return getattr(settings, "GITHUB_TOKEN", "") or ""

    @property
    def repository(self) -> str:
        return self._repository or getattr(settings, "GITHUB_REPOSITORY", "") or DEFAULT_REPOSITORY

    @property
    def api_url(self) -> str:
        return (self._api_url or getattr(settings, "GITHUB_API_URL", DEFAULT_API_URL)).rstrip("/")

    @property
    def timeout(self) -> float:
        return self._timeout or getattr(settings, "REMEDIATION_REQUEST_TIMEOUT", DEFAULT_TIMEOUT)

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    @property
    def issues_url(self) -> str:
        return f"{self.api_url}/repos/{self.repository}/issues"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
        }

    def list_open_issues(self, labels: List[str]) -> GitHubResult:
        """
        List open issues carrying all of the given labels (first 100).

        Returns:
            GitHubResult with the decoded issue list as data
        """
        params = {"state": "open", "labels": ",".join(labels), "per_page": 100}

        try:
            response = requests.get(
                self.issues_url,
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"GitHub issue search failed: {e}")
            return GitHubResult(success=False, error=str(e))

        if not response.ok:
            logger.warning(f"GitHub issue search returned {response.status_code}")
            return GitHubResult(
                success=False,
                status_code=response.status_code,
                error=f"GitHub API {response.status_code}: {response.text[:200]}",
            )

        try:
            issues = response.json()
        except ValueError as e:
            return GitHubResult(success=False, status_code=response.status_code, error=str(e))

        if not isinstance(issues, list):
            issues = []
        return GitHubResult(success=True, data=issues, status_code=response.status_code)

    def has_open_issue_for_source(self, source_id: str, alert_type: str) -> bool:
        """
        True if an open alert issue of this type already mentions the source.

        A failed search counts as no duplicate.
        """
        result = self.list_open_issues([type_label(alert_type), ALERT_LABEL])
        if not result.success:
            return False
        return any(source_id in (issue.get("body") or "") for issue in result.data if isinstance(issue, dict))

    def create_issue(self, content: IssueContent) -> GitHubResult:
        """
        Create an issue.

        Returns:
            GitHubResult with a CreatedIssue as data on success
        """
        try:
            response = requests.post(
                self.issues_url,
                json=content.to_payload(),
                headers={**self._headers(), "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"GitHub issue creation failed: {e}")
            return GitHubResult(success=False, error=f"Failed to create issue: {e}")

        if not response.ok:
            logger.error(f"GitHub API {response.status_code} creating issue: {response.text[:200]}")
            return GitHubResult(
                success=False,
                status_code=response.status_code,
                error=f"GitHub API {response.status_code}: {response.text[:200]}",
            )

        try:
            issue = response.json()
            created = CreatedIssue(number=int(issue["number"]), url=str(issue["html_url"]))
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Unexpected GitHub issue response: {e}")
            return GitHubResult(
                success=False,
                status_code=response.status_code,
                error=f"Unexpected GitHub response: {e}",
            )

        logger.info(f"Created GitHub issue #{created.number}: {created.url}")
        return GitHubResult(success=True, data=created, status_code=response.status_code)
