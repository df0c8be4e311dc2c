import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Source",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(help_text="Human-readable name", max_length=200)),
                ("url", models.URLField(help_text="URL the adapter fetches", max_length=2000)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("HTML_SCRAPER", "HTML Scraper"),
                            ("GOOGLE_CALENDAR", "Google Calendar"),
                            ("GOOGLE_SHEETS", "Google Sheets"),
                            ("ICAL_FEED", "iCal Feed"),
                            ("HASHREGO", "HashRego"),
                            ("MEETUP", "Meetup"),
                            ("RSS_FEED", "RSS Feed"),
                            ("STATIC_SCHEDULE", "Static Schedule"),
                        ],
                        help_text="Adapter kind used to scrape this source",
                        max_length=32,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "sources",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Alert",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("SCRAPE_FAILURE", "Scrape Failure"),
                            ("CONSECUTIVE_FAILURES", "Consecutive Failures"),
                            ("STRUCTURE_CHANGE", "Structure Change"),
                            ("FIELD_FILL_DROP", "Field Fill Drop"),
                            ("EVENT_COUNT_ANOMALY", "Event Count Anomaly"),
                            ("UNMATCHED_TAGS", "Unmatched Tags"),
                            ("SOURCE_KENNEL_MISMATCH", "Source/Kennel Mismatch"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "severity",
                    models.CharField(
                        choices=[("CRITICAL", "Critical"), ("WARNING", "Warning"), ("INFO", "Info")],
                        default="WARNING",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("OPEN", "Open"),
                            ("ACKNOWLEDGED", "Acknowledged"),
                            ("SNOOZED", "Snoozed"),
                            ("RESOLVED", "Resolved"),
                        ],
                        default="OPEN",
                        max_length=16,
                    ),
                ),
                ("title", models.CharField(max_length=500)),
                ("details", models.TextField(blank=True, default="")),
                ("context", models.JSONField(blank=True, null=True)),
                (
                    "repair_log",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Append-only audit trail of remediation actions",
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "source",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="alerts",
                        to="resilience.source",
                    ),
                ),
            ],
            options={
                "db_table": "alerts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["source", "type", "updated_at"], name="alerts_source__6c1f0e_idx"),
                    models.Index(fields=["source", "updated_at"], name="alerts_source__2b9a4d_idx"),
                    models.Index(fields=["status"], name="alerts_status_8e3c71_idx"),
                ],
            },
        ),
    ]
