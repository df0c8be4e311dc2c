"""
GitHub issue content for source alerts.

An issue has two audiences: a human reading the Markdown, and the
automated fix agent reading the AGENT_CONTEXT JSON block at the end.
Scraped text can reach both through Alert.context, so every "-->" in
the JSON is escaped to keep the HTML comment closed where we close it.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from resilience.models import Alert, AlertType
from resilience.remediation.alert_context import (
    AiRecoveryCounts,
    AlertContext,
    EventCountAnomalyContext,
    FieldFillDropContext,
    ScrapeFailureContext,
    StructureChangeContext,
    TagListContext,
    decode_alert_context,
)
from resilience.remediation.file_resolver import (
    build_relevant_files,
    resolve_adapter_file,
    resolve_test_file,
)

AUTOMATION_LABEL = "claude-fix"
ALERT_LABEL = "alert"

AUTO_FILED_FOOTER = "*Auto-filed by HashTracks self-healing pipeline*"
MANUAL_FOOTER = "*Created from HashTracks admin alert panel*"

MAX_ERROR_MESSAGES = 5
HASH_PREVIEW_LENGTH = 16

SUGGESTED_APPROACHES = {
    AlertType.UNMATCHED_TAGS: (
        "Add aliases in the database mapping these tags to existing kennels, "
        "or create new kennels if these are genuinely new organizations."
    ),
    AlertType.STRUCTURE_CHANGE: (
        "Fetch the current page and compare HTML structure to the expected format. "
        "Update CSS selectors and extraction patterns in the adapter."
    ),
    AlertType.FIELD_FILL_DROP: (
        "Examine sample raw events to identify which extraction patterns stopped matching. "
        "Update extraction regex patterns in the adapter."
    ),
    AlertType.EVENT_COUNT_ANOMALY: (
        "Check if the source website is accessible. Verify the scrape window is "
        "appropriate. Check for structural changes."
    ),
    AlertType.SCRAPE_FAILURE: (
        "Check source URL accessibility. Review error messages for network, auth, "
        "or parsing failures."
    ),
    AlertType.CONSECUTIVE_FAILURES: (
        "Check source URL accessibility. Review error messages for network, auth, "
        "or parsing failures."
    ),
    AlertType.SOURCE_KENNEL_MISMATCH: (
        "Add the SourceKennel link if the source legitimately provides events for "
        "that kennel, or update the adapter to produce the correct tag."
    ),
}
DEFAULT_SUGGESTED_APPROACH = "Investigate the alert context and relevant files."

# Alert types whose suggested approach carries the AI recovery note
AI_NOTE_TYPES = {
    AlertType.STRUCTURE_CHANGE,
    AlertType.FIELD_FILL_DROP,
    AlertType.EVENT_COUNT_ANOMALY,
}


@dataclass
class IssueContent:
    """Title, Markdown body and labels for one issue."""

    title: str
    body: str
    labels: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {"title": self.title, "body": self.body, "labels": list(self.labels)}


def type_label(alert_type: str) -> str:
    """alert:<type in lower kebab case>, e.g. alert:scrape-failure."""
    return f"alert:{alert_type.lower().replace('_', '-')}"


def severity_label(severity: str) -> str:
    return f"severity:{severity.lower()}"


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _tag_list(tags: List[str]) -> str:
    return "\n".join(f"- `{tag}`" for tag in tags)


def build_context_section(alert_type: str, ctx: Optional[AlertContext]) -> str:
    """Human-readable rendering of the alert's context, or "" if none."""
    if ctx is None:
        return ""

    if alert_type == AlertType.UNMATCHED_TAGS and isinstance(ctx, TagListContext):
        return (
            f"### Unmatched Tags\n{_tag_list(ctx.tags)}\n\n"
            "These tags appeared in scraped events but couldn't be resolved to any kennel.\n"
            "The kennel resolver checked: shortName → alias → pattern match → no match."
        )

    if alert_type == AlertType.SOURCE_KENNEL_MISMATCH and isinstance(ctx, TagListContext):
        return (
            f"### Blocked Tags\n{_tag_list(ctx.tags)}\n\n"
            "These tags resolved to valid kennels but those kennels are not linked "
            "to this source via SourceKennel."
        )

    if isinstance(ctx, EventCountAnomalyContext):
        return (
            "### Event Count\n"
            f"- **Baseline avg:** {_fmt(ctx.baseline_avg)} (last {_fmt(ctx.baseline_window)} scrapes)\n"
            f"- **Current:** {_fmt(ctx.current_count)}\n"
            f"- **Drop:** {_fmt(ctx.drop_percent)}%"
        )

    if isinstance(ctx, FieldFillDropContext):
        return (
            "### Field Quality\n"
            f"- **Field:** {ctx.field_name or 'n/a'}\n"
            f"- **Baseline:** {_fmt(ctx.baseline_avg)}%\n"
            f"- **Current:** {_fmt(ctx.current_rate)}%\n"
            f"- **Drop:** {_fmt(ctx.drop)}pp"
        )

    if isinstance(ctx, StructureChangeContext):
        previous = (ctx.previous_hash or "")[:HASH_PREVIEW_LENGTH]
        current = (ctx.current_hash or "")[:HASH_PREVIEW_LENGTH]
        return (
            "### Structure Change\n"
            f"- **Previous hash:** `{previous}...`\n"
            f"- **Current hash:** `{current}...`\n\n"
            "The HTML tag hierarchy changed between scrapes, which may break field extraction."
        )

    if isinstance(ctx, ScrapeFailureContext):
        errors = "\n".join(f"- {message}" for message in ctx.error_messages[:MAX_ERROR_MESSAGES])
        section = f"### Errors\n{errors}"
        if ctx.consecutive_count is not None:
            section += f"\n\n**Consecutive failures:** {_fmt(ctx.consecutive_count)}"
        return section

    return ""


def format_ai_note(ai: Optional[AiRecoveryCounts]) -> str:
    """Note on AI recovery for the suggested approach, or "" if none ran."""
    if ai is None or not ai.attempted:
        return ""
    if ai.failed > 0:
        return (
            f"\n\n**AI Recovery:** Attempted on {ai.attempted} parse errors — "
            f"{ai.succeeded} recovered, {ai.failed} failed. The failures likely represent "
            "format changes that need code-level fixes."
        )
    return (
        f"\n\n**AI Recovery:** All {ai.succeeded} parse errors were automatically recovered "
        "by AI. Consider adding the new format pattern to the deterministic parser."
    )


def build_suggested_approach(alert_type: str, ctx: Optional[AlertContext]) -> str:
    approach = SUGGESTED_APPROACHES.get(alert_type, DEFAULT_SUGGESTED_APPROACH)
    if alert_type in AI_NOTE_TYPES and ctx is not None:
        approach += format_ai_note(ctx.ai_recovery)
    return approach


def build_agent_context(alert: Alert) -> str:
    """
    Machine-readable JSON for the fix agent, with "-->" escaped.

    Reversing the escape yields valid JSON.
    """
    source = alert.source
    adapter_file = resolve_adapter_file(source.type, source.url)
    payload = {
        "alertId": str(alert.id),
        "alertType": alert.type,
        "sourceId": str(source.id),
        "sourceName": source.name,
        "sourceType": source.type,
        "sourceUrl": source.url,
        "severity": alert.severity,
        "adapterFile": adapter_file,
        "testFile": resolve_test_file(adapter_file),
        "relevantFiles": build_relevant_files(alert.type, source.type, source.url),
        "context": alert.context,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False).replace("-->", "--&gt;")


def build_issue_body(alert: Alert, auto_filed: bool = True) -> IssueContent:
    """
    Build the issue for an alert.

    Args:
        alert: Alert with its source loaded
        auto_filed: True for pipeline filings (automation label and
            AGENT_CONTEXT block); False for operator filings

    Returns:
        IssueContent ready to POST
    """
    source = alert.source
    ctx = decode_alert_context(alert.type, alert.context)
    type_name = alert.type.replace("_", " ").lower()
    relevant_files = build_relevant_files(alert.type, source.type, source.url)

    title = f"[Alert] {alert.title} — {source.name}"

    files_list = "\n".join(f"- `{path}`" for path in relevant_files)
    body = (
        f"## Source Alert: {type_name}\n\n"
        f"**Source:** {source.name} ({source.type})\n"
        f"**URL:** {source.url}\n"
        f"**Severity:** {alert.severity}\n"
        f"**Alert ID:** {alert.id}\n\n"
        f"{build_context_section(alert.type, ctx)}\n\n"
        f"### Relevant Files\n{files_list}\n\n"
        f"### Suggested Approach\n{build_suggested_approach(alert.type, ctx)}\n\n"
        "---\n"
    )

    labels = [ALERT_LABEL, type_label(alert.type), severity_label(alert.severity)]

    if auto_filed:
        body += f"{AUTO_FILED_FOOTER}\n\n<!-- AGENT_CONTEXT\n{build_agent_context(alert)}\n-->"
        labels.append(AUTOMATION_LABEL)
    else:
        body += MANUAL_FOOTER

    return IssueContent(title=title, body=body, labels=labels)
