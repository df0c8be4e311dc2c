"""
Management command to auto-file GitHub issues for a source's alerts.

Usage:
    python manage.py file_alert_issues --source=<uuid> --alert=<uuid> --alert=<uuid>
    python manage.py file_alert_issues --source=<uuid> --all-open
    python manage.py file_alert_issues --source=<uuid> --all-open --dry-run
    python manage.py file_alert_issues --source=<uuid> --alert=<uuid> --queue
"""

import logging

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from resilience.models import Alert, AlertStatus, Source
from resilience.remediation import RemediationOutcome, auto_file_issues_for_alerts
from resilience.remediation.guards import is_eligible
from resilience.remediation.issue_builder import build_issue_body

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Auto-file GitHub issues for alerts raised against a source."""

    help = 'Run automatic GitHub issue filing for alerts of one source'

    def add_arguments(self, parser):
        parser.add_argument(
            '--source',
            required=True,
            help='Source ID the alerts belong to',
        )
        parser.add_argument(
            '--alert',
            action='append',
            default=[],
            dest='alerts',
            help='Alert ID to process (repeatable)',
        )
        parser.add_argument(
            '--all-open',
            action='store_true',
            help="Process all of the source's open alerts",
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Print the issues that would be filed without calling GitHub',
        )
        parser.add_argument(
            '--queue',
            action='store_true',
            help='Dispatch to the Celery remediation queue instead of running inline',
        )

    def handle(self, *args, **options):
        source_id = options['source']
        alert_ids = list(options['alerts'])

        try:
            source = Source.objects.get(pk=source_id)
        except (Source.DoesNotExist, ValidationError):
            raise CommandError(f'Source not found: {source_id}')

        if options['all_open']:
            open_ids = source.alerts.filter(status=AlertStatus.OPEN).values_list('id', flat=True)
            alert_ids.extend(str(alert_id) for alert_id in open_ids)

        if not alert_ids:
            self.stdout.write(self.style.WARNING('No alerts to process'))
            return

        if options['dry_run']:
            self._dry_run(source, alert_ids)
            return

        if options['queue']:
            from resilience.tasks import auto_file_issues

            result = auto_file_issues.delay(str(source.id), alert_ids)
            self.stdout.write(self.style.SUCCESS(f'Queued auto-filing task {result.id}'))
            return

        summary = auto_file_issues_for_alerts(str(source.id), alert_ids)

        for alert_id, outcome in summary.outcomes.items():
            if outcome is RemediationOutcome.FILED:
                self.stdout.write(self.style.SUCCESS(f'  {alert_id}: filed {summary.issue_urls.get(alert_id, "")}'))
            else:
                self.stdout.write(f'  {alert_id}: skipped ({outcome.value})')

        self.stdout.write(
            self.style.SUCCESS(f'Filed {summary.filed} issues, skipped {summary.skipped}')
        )

    def _dry_run(self, source, alert_ids):
        self.stdout.write(self.style.WARNING('Running in dry-run mode - no issues will be filed'))

        try:
            alerts = list(
                Alert.objects.select_related('source').filter(source=source, id__in=alert_ids)
            )
        except ValidationError as e:
            raise CommandError(f'Invalid alert ID: {e}')

        for alert in alerts:
            if not is_eligible(alert):
                self.stdout.write(f'  {alert.id}: ineligible ({alert.type}, {alert.severity})')
                continue

            content = build_issue_body(alert)
            self.stdout.write(f'  {alert.id}: would file "{content.title}"')
            self.stdout.write(f'    labels: {", ".join(content.labels)}')
