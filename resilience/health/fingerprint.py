"""
Structural Fingerprinting for scraped event pages.

Creates hash fingerprints of the tables an HTML scraper depends on, so
the health analyzer can detect when a site template is redesigned.
Fingerprints capture structure (row/cell shape, cell classes, child tag
nesting) rather than content (text, hrefs, ids), so they stay stable
while trails are added and removed but change when the layout changes.

Usage:
    fingerprint = StructuralFingerprint.compute(html)

    # The health analyzer compares against the previous successful scrape
    if previous and not StructuralFingerprint.compare(fingerprint, previous):
        ...  # raise a STRUCTURE_CHANGE alert
"""

import hashlib
import logging
from typing import List, Sequence

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# Tables the hareline scrapers read, in the order they are fingerprinted
DEFAULT_ANCHOR_TABLES = ("past_hashes", "future_hashes")

# Rows sampled per table; content varies, structure shouldn't
SAMPLE_ROWS = 3


class StructuralFingerprint:
    """
    Compute and compare structural fingerprints of HTML pages.

    Only the anchor tables are fingerprinted. For each table the first
    few rows are reduced to a skeleton of cell classes and direct child
    tag names, and the skeleton is hashed with SHA-256.
    """

    @classmethod
    def compute(cls, html: str, anchors: Sequence[str] = DEFAULT_ANCHOR_TABLES) -> str:
        """
        Compute a structural fingerprint for HTML content.

        Never raises: malformed or empty HTML still yields a digest (one
        with every anchor table reported missing).

        Args:
            html: HTML content to fingerprint
            anchors: Class names of the tables to fingerprint, in order

        Returns:
            64-character lowercase hex SHA-256 digest
        """
        try:
            soup = BeautifulSoup(html or "", "html.parser")
            skeleton = cls._extract_skeleton(soup, anchors)
        except Exception as e:
            logger.warning(f"Could not parse HTML for fingerprinting: {e}")
            skeleton = [f"MISSING:{name}" for name in anchors]

        fingerprint = hashlib.sha256("\n".join(skeleton).encode("utf-8")).hexdigest()
        logger.debug(f"Computed structure fingerprint {fingerprint}")
        return fingerprint

    @classmethod
    def _extract_skeleton(cls, soup: BeautifulSoup, anchors: Sequence[str]) -> List[str]:
        """
        Build the ordered skeleton tokens for the anchor tables.

        Args:
            soup: Parsed page
            anchors: Class names of the tables to fingerprint

        Returns:
            List of skeleton tokens (TABLE:, TR:, MISSING:)
        """
        skeleton = []

        for name in anchors:
            table = soup.find("table", class_=name)
            if table is None:
                skeleton.append(f"MISSING:{name}")
                continue

            skeleton.append(f"TABLE:{name}")

            for row in table.find_all("tr", limit=SAMPLE_ROWS):
                cells = [cls._cell_signature(cell) for cell in row.find_all("td")]
                skeleton.append("TR:" + "|".join(cells))

        return skeleton

    @staticmethod
    def _cell_signature(cell: Tag) -> str:
        """
        Signature for a single cell: its class string and child tag names.

        Text and every attribute other than class are ignored.
        """
        classes = cell.get("class") or []
        if isinstance(classes, str):
            classes = [classes]
        child_tags = ",".join(child.name for child in cell.find_all(True, recursive=False))
        return f"TD[{' '.join(classes)}]{{{child_tags}}}"

    @classmethod
    def compare(cls, fingerprint1: str, fingerprint2: str) -> bool:
        """
        Compare two fingerprints for equality.

        Returns:
            True if fingerprints match, False otherwise
        """
        return fingerprint1 == fingerprint2


def generate_structure_hash(html: str) -> str:
    """Fingerprint a hareline page using the default anchor tables."""
    return StructuralFingerprint.compute(html)
