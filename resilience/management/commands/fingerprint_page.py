"""
Management command to print the structural fingerprint of a page.

Usage:
    python manage.py fingerprint_page https://hashnyc.com/
    python manage.py fingerprint_page saved_page.html
    python manage.py fingerprint_page page.html --anchor=past_hashes --anchor=future_hashes
    python manage.py fingerprint_page page.html --compare=<previous fingerprint>
"""

import logging
from pathlib import Path

import requests
from django.core.management.base import BaseCommand, CommandError

from resilience.health import DEFAULT_ANCHOR_TABLES, StructuralFingerprint

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 30


class Command(BaseCommand):
    """Print the structural fingerprint of an HTML page."""

    help = 'Compute the structural fingerprint of a page (URL or local file)'

    def add_arguments(self, parser):
        parser.add_argument(
            'target',
            help='URL or path to a saved HTML file',
        )
        parser.add_argument(
            '--anchor',
            action='append',
            default=[],
            dest='anchors',
            help='Class of a table to fingerprint (repeatable; default: past_hashes, future_hashes)',
        )
        parser.add_argument(
            '--compare',
            help='Previous fingerprint to compare against',
        )

    def handle(self, *args, **options):
        target = options['target']
        anchors = tuple(options['anchors']) or DEFAULT_ANCHOR_TABLES

        html = self._load(target)
        fingerprint = StructuralFingerprint.compute(html, anchors=anchors)
        self.stdout.write(fingerprint)

        previous = options.get('compare')
        if previous:
            if StructuralFingerprint.compare(fingerprint, previous):
                self.stdout.write(self.style.SUCCESS('Structure unchanged'))
            else:
                self.stdout.write(self.style.WARNING('Structure changed'))

    def _load(self, target: str) -> str:
        if target.startswith(('http://', 'https://')):
            try:
                response = requests.get(target, timeout=FETCH_TIMEOUT)
                response.raise_for_status()
            except requests.RequestException as e:
                raise CommandError(f'Failed to fetch {target}: {e}')
            return response.text

        path = Path(target)
        if not path.is_file():
            raise CommandError(f'File not found: {target}')
        return path.read_text(encoding='utf-8', errors='replace')
