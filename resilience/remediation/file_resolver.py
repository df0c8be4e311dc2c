"""
Adapter file resolution for filed issues.

Maps a source (type + URL) to the adapter file that scrapes it, so the
issue can point a fixer straight at the code. Resolution is an ordered
list of (predicate, path) rules; the first match wins and a final
default catches everything else.
"""

import re
from typing import Callable, List, Optional, Sequence, Tuple

from resilience.models import AlertType, SourceType

Predicate = Callable[[str, str], bool]
Rule = Tuple[Predicate, str]

REGISTRY_FILE = "src/adapters/registry.ts"
HTML_SCRAPER_DIR = "src/adapters/html-scraper"
DEFAULT_HTML_SCRAPER_FILE = f"{HTML_SCRAPER_DIR}/hashnyc.ts"

# URL patterns for HTML scrapers, most specific first
HTML_SCRAPER_PATTERNS = [
    (r"hashnyc\.com", "hashnyc.ts"),
    (r"benfranklinmob", "bfm.ts"),
    (r"hashphilly", "hashphilly.ts"),
    (r"cityhash\.org", "city-hash.ts"),
    (r"westlondonhash", "west-london-hash.ts"),
    (r"barnesh3\.com", "barnes-hash.ts"),
    (r"och3\.org", "och3.ts"),
    (r"londonhash\.org/slah3", "slash-hash.ts"),
    (r"londonhash\.org", "london-hash.ts"),
    (r"enfieldhash\.org", "enfield-hash.ts"),
    (r"chicagohash\.org", "chicago-hash.ts"),
    (r"chicagoth3\.com", "chicago-th3.ts"),
    (r"sfh3\.com", "sfh3.ts"),
    (r"ewh3\.com", "ewh3.ts"),
    (r"dch4\.org", "dch4.ts"),
    (r"ofh3\.com", "ofh3.ts"),
    (r"hangoverhash\.digitalpress", "hangover.ts"),
]

ADAPTER_FILES = {
    SourceType.GOOGLE_CALENDAR: "src/adapters/google-calendar/adapter.ts",
    SourceType.GOOGLE_SHEETS: "src/adapters/google-sheets/adapter.ts",
    SourceType.ICAL_FEED: "src/adapters/ical/adapter.ts",
    SourceType.HASHREGO: "src/adapters/hashrego/adapter.ts",
    SourceType.MEETUP: "src/adapters/meetup/adapter.ts",
    SourceType.RSS_FEED: "src/adapters/rss/adapter.ts",
    SourceType.STATIC_SCHEDULE: "src/adapters/static-schedule/adapter.ts",
}

# Pipeline files worth reading for each alert type, after the adapter
COLLABORATOR_FILES = {
    AlertType.UNMATCHED_TAGS: ["src/pipeline/kennel-resolver.ts", "prisma/seed.ts"],
    AlertType.STRUCTURE_CHANGE: ["src/pipeline/structure-hash.ts"],
    AlertType.FIELD_FILL_DROP: ["src/pipeline/fill-rates.ts"],
    AlertType.SCRAPE_FAILURE: ["src/pipeline/scrape.ts"],
    AlertType.CONSECUTIVE_FAILURES: ["src/pipeline/scrape.ts"],
    AlertType.EVENT_COUNT_ANOMALY: ["src/pipeline/scrape.ts", "src/pipeline/merge.ts"],
    AlertType.SOURCE_KENNEL_MISMATCH: [
        "src/pipeline/merge.ts",
        "src/pipeline/kennel-resolver.ts",
        "prisma/seed.ts",
    ],
}


def _html_url_rule(pattern: str) -> Predicate:
    regex = re.compile(pattern, re.IGNORECASE)

    def matches(source_type: str, source_url: str) -> bool:
        return source_type == SourceType.HTML_SCRAPER and bool(regex.search(source_url or ""))

    return matches


def _type_rule(expected: str) -> Predicate:
    return lambda source_type, source_url: source_type == expected


def build_default_rules() -> List[Rule]:
    """
    The resolution chain, in evaluation order.

    HTML scraper URL patterns come first, then the HTML scraper default,
    then one rule per fixed adapter type.
    """
    rules: List[Rule] = [
        (_html_url_rule(pattern), f"{HTML_SCRAPER_DIR}/{filename}")
        for pattern, filename in HTML_SCRAPER_PATTERNS
    ]
    rules.append((_type_rule(SourceType.HTML_SCRAPER), DEFAULT_HTML_SCRAPER_FILE))
    rules.extend((_type_rule(source_type), path) for source_type, path in ADAPTER_FILES.items())
    return rules


class AdapterFileResolver:
    """Resolve adapter, test and collaborator file paths for a source."""

    def __init__(self, rules: Optional[Sequence[Rule]] = None, default: str = REGISTRY_FILE):
        self.rules = list(rules) if rules is not None else build_default_rules()
        self.default = default

    def resolve_adapter_file(self, source_type: str, source_url: str) -> str:
        for predicate, path in self.rules:
            if predicate(source_type, source_url):
                return path
        return self.default

    @staticmethod
    def resolve_test_file(adapter_file: str) -> str:
        """Paired test file: foo.ts -> foo.test.ts."""
        return re.sub(r"\.ts$", ".test.ts", adapter_file)

    def build_relevant_files(self, alert_type: str, source_type: str, source_url: str) -> List[str]:
        """
        Adapter file followed by the alert type's collaborators.

        Duplicates are dropped, first occurrence wins.
        """
        files = [self.resolve_adapter_file(source_type, source_url)]
        files.extend(COLLABORATOR_FILES.get(alert_type, []))
        return list(dict.fromkeys(files))


_default_resolver = AdapterFileResolver()


def resolve_adapter_file(source_type: str, source_url: str) -> str:
    return _default_resolver.resolve_adapter_file(source_type, source_url)


def resolve_test_file(adapter_file: str) -> str:
    return AdapterFileResolver.resolve_test_file(adapter_file)


def build_relevant_files(alert_type: str, source_type: str, source_url: str) -> List[str]:
    return _default_resolver.build_relevant_files(alert_type, source_type, source_url)
