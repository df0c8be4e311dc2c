"""
Tests for alert context decoding and GitHub issue content.
"""

import json
import re

import pytest

from resilience.models import AlertSeverity, AlertType
from resilience.remediation.alert_context import (
    AlertContext,
    FieldFillDropContext,
    ScrapeFailureContext,
    TagListContext,
    decode_alert_context,
)
from resilience.remediation.issue_builder import (
    AUTO_FILED_FOOTER,
    MANUAL_FOOTER,
    build_agent_context,
    build_context_section,
    build_issue_body,
    build_suggested_approach,
    severity_label,
    type_label,
)

AGENT_BLOCK_RE = re.compile(r"<!-- AGENT_CONTEXT\n(.*)\n-->$", re.DOTALL)


class TestDecodeAlertContext:
    def test_none_and_non_objects(self):
        assert decode_alert_context(AlertType.SCRAPE_FAILURE, None) is None
        assert decode_alert_context(AlertType.SCRAPE_FAILURE, ["x"]) is None

    def test_scrape_failure(self):
        ctx = decode_alert_context(
            AlertType.CONSECUTIVE_FAILURES,
            {"errorMessages": ["timeout", "503"], "consecutiveCount": 4},
        )

        assert isinstance(ctx, ScrapeFailureContext)
        assert ctx.error_messages == ["timeout", "503"]
        assert ctx.consecutive_count == 4

    def test_wrongly_typed_values_are_missing(self):
        ctx = decode_alert_context(
            AlertType.FIELD_FILL_DROP,
            {"field": 7, "baselineAvg": "90", "currentRate": True},
        )

        assert isinstance(ctx, FieldFillDropContext)
        assert ctx.field_name is None
        assert ctx.baseline_avg is None
        assert ctx.current_rate is None
        assert ctx.drop is None

    def test_ai_recovery_counts(self):
        ctx = decode_alert_context(
            AlertType.STRUCTURE_CHANGE,
            {"aiRecovery": {"attempted": 3, "succeeded": 2, "failed": 1}},
        )

        assert (ctx.ai_recovery.attempted, ctx.ai_recovery.succeeded, ctx.ai_recovery.failed) == (3, 2, 1)

    def test_unknown_type_decodes_to_base(self):
        ctx = decode_alert_context("BRAND_NEW", {"anything": 1})

        assert type(ctx) is AlertContext
        assert ctx.raw == {"anything": 1}


class TestContextSection:
    def test_unmatched_tags(self):
        ctx = TagListContext(tags=["NYCH3", "BFM"])

        section = build_context_section(AlertType.UNMATCHED_TAGS, ctx)

        assert section.startswith("### Unmatched Tags\n- `NYCH3`\n- `BFM`")
        assert "couldn't be resolved to any kennel" in section

    def test_source_kennel_mismatch(self):
        section = build_context_section(AlertType.SOURCE_KENNEL_MISMATCH, TagListContext(tags=["X"]))

        assert section.startswith("### Blocked Tags\n- `X`")
        assert "not linked to this source via SourceKennel" in section

    def test_event_count_anomaly(self):
        ctx = decode_alert_context(
            AlertType.EVENT_COUNT_ANOMALY,
            {"baselineAvg": 40.0, "baselineWindow": 10, "currentCount": 12, "dropPercent": 70},
        )

        assert build_context_section(AlertType.EVENT_COUNT_ANOMALY, ctx) == (
            "### Event Count\n"
            "- **Baseline avg:** 40 (last 10 scrapes)\n"
            "- **Current:** 12\n"
            "- **Drop:** 70%"
        )

    def test_field_fill_drop(self):
        ctx = decode_alert_context(
            AlertType.FIELD_FILL_DROP,
            {"field": "hares", "baselineAvg": 95, "currentRate": 20},
        )

        section = build_context_section(AlertType.FIELD_FILL_DROP, ctx)

        assert "- **Field:** hares" in section
        assert "- **Baseline:** 95%" in section
        assert "- **Current:** 20%" in section
        assert "- **Drop:** 75pp" in section

    def test_missing_numbers_render_as_na(self):
        ctx = decode_alert_context(AlertType.EVENT_COUNT_ANOMALY, {})

        assert "- **Current:** n/a" in build_context_section(AlertType.EVENT_COUNT_ANOMALY, ctx)

    def test_structure_change_truncates_hashes(self):
        ctx = decode_alert_context(
            AlertType.STRUCTURE_CHANGE,
            {"previousHash": "a" * 64, "currentHash": "b" * 64},
        )

        section = build_context_section(AlertType.STRUCTURE_CHANGE, ctx)

        assert f"- **Previous hash:** `{'a' * 16}...`" in section
        assert f"- **Current hash:** `{'b' * 16}...`" in section

    def test_scrape_failure_lists_first_five_errors(self):
        ctx = ScrapeFailureContext(error_messages=[f"error {i}" for i in range(8)], consecutive_count=3)

        section = build_context_section(AlertType.SCRAPE_FAILURE, ctx)

        assert "- error 4" in section
        assert "- error 5" not in section
        assert section.endswith("**Consecutive failures:** 3")

    def test_no_context(self):
        assert build_context_section(AlertType.SCRAPE_FAILURE, None) == ""


class TestSuggestedApproach:
    def test_partial_ai_recovery_note(self):
        ctx = decode_alert_context(
            AlertType.STRUCTURE_CHANGE, {"aiRecovery": {"attempted": 5, "succeeded": 3, "failed": 2}}
        )

        approach = build_suggested_approach(AlertType.STRUCTURE_CHANGE, ctx)

        assert approach.startswith("Fetch the current page")
        assert "Attempted on 5 parse errors — 3 recovered, 2 failed" in approach

    def test_full_ai_recovery_note(self):
        ctx = decode_alert_context(
            AlertType.FIELD_FILL_DROP, {"aiRecovery": {"attempted": 4, "succeeded": 4, "failed": 0}}
        )

        approach = build_suggested_approach(AlertType.FIELD_FILL_DROP, ctx)

        assert "All 4 parse errors were automatically recovered by AI" in approach

    def test_no_note_for_other_types(self):
        ctx = decode_alert_context(
            AlertType.SCRAPE_FAILURE, {"aiRecovery": {"attempted": 4, "succeeded": 4, "failed": 0}}
        )

        assert "AI Recovery" not in build_suggested_approach(AlertType.SCRAPE_FAILURE, ctx)

    def test_no_note_when_nothing_attempted(self):
        ctx = decode_alert_context(AlertType.STRUCTURE_CHANGE, {"aiRecovery": {"attempted": 0}})

        assert "AI Recovery" not in build_suggested_approach(AlertType.STRUCTURE_CHANGE, ctx)


class TestLabels:
    def test_type_label_is_kebab_case(self):
        assert type_label(AlertType.SOURCE_KENNEL_MISMATCH) == "alert:source-kennel-mismatch"

    def test_severity_label(self):
        assert severity_label(AlertSeverity.CRITICAL) == "severity:critical"


@pytest.mark.django_db
class TestBuildIssueBody:
    def test_auto_filed_issue(self, make_alert, html_source):
        alert = make_alert(
            title="Scrape failed: timeout",
            context={"errorMessages": ["Read timed out"], "consecutiveCount": 2},
        )

        issue = build_issue_body(alert)

        assert issue.title == "[Alert] Scrape failed: timeout — HashNYC"
        assert issue.labels == ["alert", "alert:scrape-failure", "severity:critical", "claude-fix"]
        assert "## Source Alert: scrape failure" in issue.body
        assert "**Source:** HashNYC (HTML_SCRAPER)" in issue.body
        assert f"**Alert ID:** {alert.id}" in issue.body
        assert "- Read timed out" in issue.body
        assert "- `src/adapters/html-scraper/hashnyc.ts`" in issue.body
        assert "- `src/pipeline/scrape.ts`" in issue.body
        assert AUTO_FILED_FOOTER in issue.body
        assert AGENT_BLOCK_RE.search(issue.body)

    def test_agent_context_fields(self, make_alert, html_source):
        alert = make_alert(type=AlertType.STRUCTURE_CHANGE, context={"previousHash": "p", "currentHash": "c"})

        payload = json.loads(build_agent_context(alert))

        assert payload == {
            "alertId": str(alert.id),
            "alertType": "STRUCTURE_CHANGE",
            "sourceId": str(html_source.id),
            "sourceName": "HashNYC",
            "sourceType": "HTML_SCRAPER",
            "sourceUrl": "https://hashnyc.com/",
            "severity": "CRITICAL",
            "adapterFile": "src/adapters/html-scraper/hashnyc.ts",
            "testFile": "src/adapters/html-scraper/hashnyc.test.ts",
            "relevantFiles": [
                "src/adapters/html-scraper/hashnyc.ts",
                "src/pipeline/structure-hash.ts",
            ],
            "context": {"previousHash": "p", "currentHash": "c"},
        }

    def test_comment_terminator_in_context_is_escaped(self, make_alert):
        alert = make_alert(context={"errorMessages": ["abc-->inject"]})

        issue = build_issue_body(alert)
        block = AGENT_BLOCK_RE.search(issue.body).group(1)

        assert "-->" not in block
        assert "abc--&gt;inject" in block
        restored = json.loads(block.replace("--&gt;", "-->"))
        assert restored["context"]["errorMessages"] == ["abc-->inject"]

    def test_manual_issue(self, make_alert):
        alert = make_alert(type=AlertType.UNMATCHED_TAGS, severity=AlertSeverity.INFO, context={"tags": ["XH3"]})

        issue = build_issue_body(alert, auto_filed=False)

        assert issue.labels == ["alert", "alert:unmatched-tags", "severity:info"]
        assert issue.body.endswith(MANUAL_FOOTER)
        assert "AGENT_CONTEXT" not in issue.body
        assert "### Unmatched Tags\n- `XH3`" in issue.body

    def test_payload(self, make_alert):
        issue = build_issue_body(make_alert())

        assert set(issue.to_payload()) == {"title", "body", "labels"}
