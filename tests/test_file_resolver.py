"""
Tests for adapter file resolution.
"""

import pytest

from resilience.models import AlertType, SourceType
from resilience.remediation.file_resolver import (
    AdapterFileResolver,
    build_relevant_files,
    resolve_adapter_file,
    resolve_test_file,
)


class TestResolveAdapterFile:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://hashnyc.com/", "src/adapters/html-scraper/hashnyc.ts"),
            ("https://www.benfranklinmob.com/events", "src/adapters/html-scraper/bfm.ts"),
            ("https://HASHPHILLY.com/", "src/adapters/html-scraper/hashphilly.ts"),
            ("https://www.londonhash.org/slah3/runs", "src/adapters/html-scraper/slash-hash.ts"),
            ("https://www.londonhash.org/runs", "src/adapters/html-scraper/london-hash.ts"),
            ("https://chicagoth3.com/", "src/adapters/html-scraper/chicago-th3.ts"),
            ("https://hangoverhash.digitalpress.blog/", "src/adapters/html-scraper/hangover.ts"),
            ("https://unknown-kennel.example.com/", "src/adapters/html-scraper/hashnyc.ts"),
        ],
    )
    def test_html_scraper_url_patterns(self, url, expected):
        assert resolve_adapter_file(SourceType.HTML_SCRAPER, url) == expected

    @pytest.mark.parametrize(
        "source_type,expected",
        [
            (SourceType.GOOGLE_CALENDAR, "src/adapters/google-calendar/adapter.ts"),
            (SourceType.GOOGLE_SHEETS, "src/adapters/google-sheets/adapter.ts"),
            (SourceType.ICAL_FEED, "src/adapters/ical/adapter.ts"),
            (SourceType.HASHREGO, "src/adapters/hashrego/adapter.ts"),
            (SourceType.MEETUP, "src/adapters/meetup/adapter.ts"),
            (SourceType.RSS_FEED, "src/adapters/rss/adapter.ts"),
            (SourceType.STATIC_SCHEDULE, "src/adapters/static-schedule/adapter.ts"),
        ],
    )
    def test_fixed_adapter_types(self, source_type, expected):
        assert resolve_adapter_file(source_type, "https://hashnyc.com/") == expected

    def test_unknown_type_falls_back_to_registry(self):
        assert resolve_adapter_file("CARRIER_PIGEON", "https://hashnyc.com/") == "src/adapters/registry.ts"

    def test_plain_strings_match_choices(self):
        assert resolve_adapter_file("ICAL_FEED", "") == "src/adapters/ical/adapter.ts"

    def test_custom_rule_chain(self):
        resolver = AdapterFileResolver(
            rules=[(lambda source_type, url: "special" in url, "src/special.ts")],
            default="src/fallback.ts",
        )

        assert resolver.resolve_adapter_file("ANY", "https://special.example.com") == "src/special.ts"
        assert resolver.resolve_adapter_file("ANY", "https://other.example.com") == "src/fallback.ts"


class TestResolveTestFile:
    def test_suffix_substitution(self):
        assert resolve_test_file("src/adapters/ical/adapter.ts") == "src/adapters/ical/adapter.test.ts"

    def test_only_trailing_extension_replaced(self):
        assert resolve_test_file("src/a.tsx/b.ts") == "src/a.tsx/b.test.ts"


class TestBuildRelevantFiles:
    def test_adapter_file_first(self):
        files = build_relevant_files(
            AlertType.STRUCTURE_CHANGE, SourceType.HTML_SCRAPER, "https://hashnyc.com/"
        )

        assert files == [
            "src/adapters/html-scraper/hashnyc.ts",
            "src/pipeline/structure-hash.ts",
        ]

    def test_source_kennel_mismatch_collaborators(self):
        files = build_relevant_files(
            AlertType.SOURCE_KENNEL_MISMATCH, SourceType.MEETUP, "https://meetup.com/x"
        )

        assert files == [
            "src/adapters/meetup/adapter.ts",
            "src/pipeline/merge.ts",
            "src/pipeline/kennel-resolver.ts",
            "prisma/seed.ts",
        ]

    def test_duplicates_removed_preserving_order(self):
        resolver = AdapterFileResolver(rules=[], default="src/pipeline/scrape.ts")

        files = resolver.build_relevant_files(AlertType.EVENT_COUNT_ANOMALY, "ANY", "")

        assert files == ["src/pipeline/scrape.ts", "src/pipeline/merge.ts"]

    def test_unknown_alert_type_has_only_adapter(self):
        assert build_relevant_files("SOMETHING_NEW", SourceType.RSS_FEED, "") == [
            "src/adapters/rss/adapter.ts"
        ]
