"""
Structure monitoring for HTML scrapers.

StructuralFingerprint hashes the layout of the tables a scraper depends
on. The external health analyzer stores one fingerprint per scrape and
raises a STRUCTURE_CHANGE alert when consecutive fingerprints differ.

Usage:
    from resilience.health import StructuralFingerprint

    fingerprint = StructuralFingerprint.compute(html)
"""

from .fingerprint import (
    DEFAULT_ANCHOR_TABLES,
    StructuralFingerprint,
    generate_structure_hash,
)

__all__ = [
    "DEFAULT_ANCHOR_TABLES",
    "StructuralFingerprint",
    "generate_structure_hash",
]
