"""
Django models for the resilience pipeline.

Models: Source, Alert

Sources and alerts are written by the scrape pipeline and the external
health analyzer. This app reads them and appends to Alert.repair_log;
it never rewrites existing repair log entries.
"""

import uuid

from django.db import models
from django.utils import timezone


class SourceType(models.TextChoices):
    """Adapter kinds a source can be scraped with."""

    HTML_SCRAPER = "HTML_SCRAPER", "HTML Scraper"
    GOOGLE_CALENDAR = "GOOGLE_CALENDAR", "Google Calendar"
    GOOGLE_SHEETS = "GOOGLE_SHEETS", "Google Sheets"
    ICAL_FEED = "ICAL_FEED", "iCal Feed"
    HASHREGO = "HASHREGO", "HashRego"
    MEETUP = "MEETUP", "Meetup"
    RSS_FEED = "RSS_FEED", "RSS Feed"
    STATIC_SCHEDULE = "STATIC_SCHEDULE", "Static Schedule"


class AlertType(models.TextChoices):
    """Categories of source health alerts."""

    SCRAPE_FAILURE = "SCRAPE_FAILURE", "Scrape Failure"
    CONSECUTIVE_FAILURES = "CONSECUTIVE_FAILURES", "Consecutive Failures"
    STRUCTURE_CHANGE = "STRUCTURE_CHANGE", "Structure Change"
    FIELD_FILL_DROP = "FIELD_FILL_DROP", "Field Fill Drop"
    EVENT_COUNT_ANOMALY = "EVENT_COUNT_ANOMALY", "Event Count Anomaly"
    UNMATCHED_TAGS = "UNMATCHED_TAGS", "Unmatched Tags"
    SOURCE_KENNEL_MISMATCH = "SOURCE_KENNEL_MISMATCH", "Source/Kennel Mismatch"


class AlertSeverity(models.TextChoices):
    """Severity levels for alerts."""

    CRITICAL = "CRITICAL", "Critical"
    WARNING = "WARNING", "Warning"
    INFO = "INFO", "Info"


class AlertStatus(models.TextChoices):
    """Lifecycle state of an alert."""

    OPEN = "OPEN", "Open"
    ACKNOWLEDGED = "ACKNOWLEDGED", "Acknowledged"
    SNOOZED = "SNOOZED", "Snoozed"
    RESOLVED = "RESOLVED", "Resolved"


class Source(models.Model):
    """
    An external event listing source.

    The type selects which adapter scrapes it; the URL is used to pick the
    adapter file for HTML scrapers when filing issues.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, help_text="Human-readable name")
    url = models.URLField(max_length=2000, help_text="URL the adapter fetches")
    type = models.CharField(
        max_length=32,
        choices=SourceType.choices,
        help_text="Adapter kind used to scrape this source",
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sources"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.type})"


class Alert(models.Model):
    """
    A health alert raised against a source.

    context holds the type-specific payload produced by the health analyzer
    (see resilience.remediation.alert_context). repair_log is an append-only
    list of remediation actions, each serialized from RepairLogEntry.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    source = models.ForeignKey(
        Source,
        on_delete=models.CASCADE,
        related_name="alerts",
    )
    type = models.CharField(max_length=32, choices=AlertType.choices)
    severity = models.CharField(
        max_length=16,
        choices=AlertSeverity.choices,
        default=AlertSeverity.WARNING,
    )
    status = models.CharField(
        max_length=16,
        choices=AlertStatus.choices,
        default=AlertStatus.OPEN,
    )
    title = models.CharField(max_length=500)
    details = models.TextField(blank=True, default="")
    context = models.JSONField(null=True, blank=True)
    repair_log = models.JSONField(
        default=list,
        blank=True,
        help_text="Append-only audit trail of remediation actions",
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "alerts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["source", "type", "updated_at"], name="alerts_source__6c1f0e_idx"),
            models.Index(fields=["source", "updated_at"], name="alerts_source__2b9a4d_idx"),
            models.Index(fields=["status"], name="alerts_status_8e3c71_idx"),
        ]

    def __str__(self):
        return f"{self.type} [{self.severity}]: {self.title[:50]}"
