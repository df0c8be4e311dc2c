"""
Pytest configuration and fixtures for the resilience test suite.
"""

import pytest


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Start every test with no shared Gemini client and an empty cache."""
    from django.core.cache import cache

    import resilience.ai.gemini_client as gemini_client

    gemini_client._default_client = None
    cache.clear()
    yield
    gemini_client._default_client = None


@pytest.fixture
def api_client():
    """Create a test API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def user(db):
    from django.contrib.auth.models import User

    return User.objects.create_user(username="operator", password="test-password")


@pytest.fixture
def admin_user(db):
    from django.contrib.auth.models import User

    return User.objects.create_user(
        username="admin", password="test-password", is_staff=True
    )


@pytest.fixture
def github_settings(settings):
    """Configure issue filing credentials."""
    settings.GITHUB_TOKEN = "ghp_test_token"
    settings.GITHUB_REPOSITORY = "test-owner/test-repo"
    settings.GITHUB_API_URL = "https://api.github.com"
    return settings


@pytest.fixture
def gemini_settings(settings):
    """Configure AI recovery credentials."""
    settings.GEMINI_API_KEY = "test-gemini-key"
    return settings


@pytest.fixture
def html_source(db):
    """Create an HTML scraper Source for hashnyc.com."""
    from resilience.models import Source, SourceType

    return Source.objects.create(
        name="HashNYC",
        url="https://hashnyc.com/",
        type=SourceType.HTML_SCRAPER,
    )


@pytest.fixture
def calendar_source(db):
    """Create a Google Calendar Source."""
    from resilience.models import Source, SourceType

    return Source.objects.create(
        name="Boston Calendar",
        url="https://calendar.google.com/calendar/ical/boston/basic.ics",
        type=SourceType.GOOGLE_CALENDAR,
    )


@pytest.fixture
def make_alert(html_source):
    """Factory for alerts on the HTML source."""
    from resilience.models import Alert, AlertSeverity, AlertType

    def _make_alert(
        type=AlertType.SCRAPE_FAILURE,
        severity=AlertSeverity.CRITICAL,
        title="Scrape failed",
        context=None,
        repair_log=None,
        source=None,
    ):
        return Alert.objects.create(
            source=source or html_source,
            type=type,
            severity=severity,
            title=title,
            context=context,
            repair_log=repair_log if repair_log is not None else [],
        )

    return _make_alert


@pytest.fixture
def sample_hareline_html():
    """Hareline page with both anchor tables."""
    return """
    <html><body>
      <table class="past_hashes">
        <tr><td class="date"><b>Jan 4</b></td><td class="info"><a href="/r/1">Run 1</a><br/></td></tr>
        <tr><td class="date"><b>Jan 11</b></td><td class="info"><a href="/r/2">Run 2</a><br/></td></tr>
        <tr><td class="date"><b>Jan 18</b></td><td class="info"><a href="/r/3">Run 3</a><br/></td></tr>
        <tr><td class="date"><b>Jan 25</b></td><td class="info"><a href="/r/4">Run 4</a><br/></td></tr>
      </table>
      <table class="future_hashes">
        <tr><td class="date"><b>Feb 1</b></td><td class="info"><a href="/r/5">Run 5</a></td></tr>
      </table>
    </body></html>
    """
