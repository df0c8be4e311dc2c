"""
Tests for the auto-filing guards and the repair log.
"""

import logging
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.utils import timezone

from resilience.models import Alert, AlertSeverity, AlertType
from resilience.remediation.guards import (
    count_auto_filed_since,
    is_eligible,
    is_on_cooldown,
    is_rate_limited,
    utc_day_start,
)
from resilience.remediation.repair_log import (
    ACTION_AUTO_FILE_ISSUE,
    ACTION_CREATE_ISSUE,
    RepairLogEntry,
    append_repair_log_entry,
    format_timestamp,
    parse_timestamp,
)


def entry(action=ACTION_AUTO_FILE_ISSUE, at=None):
    return RepairLogEntry.issue_filed(
        action=action,
        issue_url="https://github.com/test-owner/test-repo/issues/1",
        issue_number=1,
        now=at or timezone.now(),
    ).to_dict()


class TestTimestamps:
    def test_format_has_millis_and_z(self):
        value = datetime(2026, 3, 14, 15, 9, 26, 535897, tzinfo=dt_timezone.utc)

        assert format_timestamp(value) == "2026-03-14T15:09:26.535Z"

    def test_format_converts_to_utc(self):
        value = datetime(2026, 3, 14, 12, 0, tzinfo=dt_timezone(timedelta(hours=-4)))

        assert format_timestamp(value) == "2026-03-14T16:00:00.000Z"

    def test_parse_round_trip(self):
        value = datetime(2026, 3, 14, 15, 9, 26, 535000, tzinfo=dt_timezone.utc)

        assert parse_timestamp(format_timestamp(value)) == value

    def test_naive_is_utc(self):
        assert parse_timestamp("2026-03-14T00:00:00") == datetime(2026, 3, 14, tzinfo=dt_timezone.utc)

    @pytest.mark.parametrize("value", [None, 12, "", "yesterday", "2026-13-45T99:00:00Z"])
    def test_unparseable(self, value):
        assert parse_timestamp(value) is None


class TestIsEligible:
    @pytest.mark.parametrize(
        "alert_type,severity,expected",
        [
            (AlertType.SCRAPE_FAILURE, AlertSeverity.CRITICAL, True),
            (AlertType.CONSECUTIVE_FAILURES, AlertSeverity.WARNING, True),
            (AlertType.STRUCTURE_CHANGE, AlertSeverity.WARNING, True),
            (AlertType.FIELD_FILL_DROP, AlertSeverity.CRITICAL, True),
            (AlertType.FIELD_FILL_DROP, AlertSeverity.INFO, False),
            (AlertType.EVENT_COUNT_ANOMALY, AlertSeverity.CRITICAL, False),
            (AlertType.UNMATCHED_TAGS, AlertSeverity.WARNING, False),
            (AlertType.SOURCE_KENNEL_MISMATCH, AlertSeverity.CRITICAL, False),
        ],
    )
    def test_type_and_severity(self, alert_type, severity, expected):
        assert is_eligible(Alert(type=alert_type, severity=severity)) is expected


class TestUtcDayStart:
    def test_truncates_to_utc_midnight(self):
        now = datetime(2026, 3, 14, 2, 30, tzinfo=dt_timezone(timedelta(hours=5)))

        assert utc_day_start(now) == datetime(2026, 3, 13, tzinfo=dt_timezone.utc)


@pytest.mark.django_db
class TestRateLimit:
    def test_under_limit(self, make_alert, html_source):
        make_alert(repair_log=[entry(), entry()])

        assert is_rate_limited(html_source.id) is False

    def test_at_limit_across_alerts(self, make_alert, html_source):
        make_alert(repair_log=[entry(), entry()])
        make_alert(type=AlertType.STRUCTURE_CHANGE, repair_log=[entry()])

        assert is_rate_limited(html_source.id) is True

    def test_rate_limit_is_logged(self, make_alert, html_source, caplog):
        make_alert(repair_log=[entry(), entry(), entry()])

        with caplog.at_level(logging.INFO, logger="resilience.remediation.guards"):
            is_rate_limited(html_source.id)

        assert f"Source {html_source.id} rate limited: 3 issues auto-filed today" in caplog.text

    def test_entries_before_utc_midnight_do_not_count(self, make_alert, html_source):
        yesterday = utc_day_start() - timedelta(minutes=1)
        make_alert(repair_log=[entry(at=yesterday) for _ in range(5)])

        assert is_rate_limited(html_source.id) is False

    def test_manual_filings_do_not_count(self, make_alert, html_source):
        make_alert(repair_log=[entry(action=ACTION_CREATE_ISSUE) for _ in range(5)])

        assert is_rate_limited(html_source.id) is False

    def test_limit_is_configurable(self, make_alert, html_source, settings):
        settings.REMEDIATION_MAX_ISSUES_PER_SOURCE_PER_DAY = 1
        make_alert(repair_log=[entry()])

        assert is_rate_limited(html_source.id) is True

    def test_other_sources_do_not_count(self, make_alert, html_source, calendar_source):
        make_alert(source=calendar_source, repair_log=[entry(), entry(), entry()])

        assert is_rate_limited(html_source.id) is False

    def test_malformed_entries_ignored(self, make_alert, html_source):
        make_alert(
            repair_log=[
                "junk",
                {"action": ACTION_AUTO_FILE_ISSUE},
                {"action": ACTION_AUTO_FILE_ISSUE, "timestamp": "bad"},
            ]
        )

        assert count_auto_filed_since(html_source.id, utc_day_start()) == 0


@pytest.mark.django_db
class TestCooldown:
    def test_recent_filing_of_same_type(self, make_alert, html_source):
        make_alert(repair_log=[entry(at=timezone.now() - timedelta(hours=10))])

        assert is_on_cooldown(html_source.id, AlertType.SCRAPE_FAILURE) is True

    def test_other_type_not_on_cooldown(self, make_alert, html_source):
        make_alert(repair_log=[entry(at=timezone.now() - timedelta(hours=10))])

        assert is_on_cooldown(html_source.id, AlertType.STRUCTURE_CHANGE) is False

    def test_filing_older_than_window(self, make_alert, html_source):
        make_alert(repair_log=[entry(at=timezone.now() - timedelta(hours=49))])

        assert is_on_cooldown(html_source.id, AlertType.SCRAPE_FAILURE) is False

    def test_window_is_configurable(self, make_alert, html_source, settings):
        settings.REMEDIATION_COOLDOWN_HOURS = 6
        make_alert(repair_log=[entry(at=timezone.now() - timedelta(hours=10))])

        assert is_on_cooldown(html_source.id, AlertType.SCRAPE_FAILURE) is False


@pytest.mark.django_db
class TestAppendRepairLogEntry:
    def test_appends_and_preserves_existing(self, make_alert):
        existing = {"action": "acknowledge", "timestamp": "2026-01-01T00:00:00.000Z", "adminId": "u1"}
        alert = make_alert(repair_log=[existing])

        filed = RepairLogEntry.issue_filed(
            action=ACTION_CREATE_ISSUE,
            issue_url="https://github.com/test-owner/test-repo/issues/9",
            issue_number=9,
            admin_id="admin-1",
        )

        append_repair_log_entry(alert.id, filed)

        alert.refresh_from_db()
        assert alert.repair_log[0] == existing
        added = alert.repair_log[1]
        assert added["action"] == "create_issue"
        assert added["adminId"] == "admin-1"
        assert added["result"] == "success"
        assert added["details"] == {
            "issueUrl": "https://github.com/test-owner/test-repo/issues/9",
            "issueNumber": 9,
        }
        assert parse_timestamp(added["timestamp"]) is not None

    def test_rereads_log_before_writing(self, make_alert):
        alert = make_alert()
        Alert.objects.filter(pk=alert.pk).update(repair_log=[{"action": "snooze"}])

        append_repair_log_entry(alert.id, RepairLogEntry(action="note", timestamp="t"))

        alert.refresh_from_db()
        assert [e["action"] for e in alert.repair_log] == ["snooze", "note"]

    def test_missing_alert_raises(self, db):
        import uuid

        with pytest.raises(Alert.DoesNotExist):
            append_repair_log_entry(uuid.uuid4(), RepairLogEntry(action="note", timestamp="t"))

    def test_result_message_serialized_when_present(self):
        entry = RepairLogEntry(action="note", timestamp="t", result="error", result_message="GitHub API 500")

        assert entry.to_dict()["resultMessage"] == "GitHub API 500"
        assert "resultMessage" not in RepairLogEntry(action="note", timestamp="t").to_dict()
