"""Tests for the crawl ingestion schema and shared helpers."""

import json

import pytest

from site_insights.errors import InternalError, MalformedInputError, NotFoundError
from site_insights.schemas import CrawlData, Issue, Page, load_crawl, parse_crawl
from site_insights.utils.helpers import (
    extract_domain,
    format_bytes,
    format_load_time,
    get_image_filename,
    normalize_url,
    percent,
    round_half_up,
    truncate_text,
    truncate_url,
)


# ===========================================================================
# 1. Ingestion
# ===========================================================================
class TestParseCrawl:
    """Malformed payloads are rejected once, loose shapes are normalised."""

    def test_sample_payload(self, crawl_payload):
        crawl = parse_crawl(crawl_payload)
        assert isinstance(crawl, CrawlData)
        assert len(crawl.pages) == 5
        assert crawl.page_index()["home"].title == "Example Store"

    def test_null_collections_default_to_empty(self):
        crawl = parse_crawl({
            "pages": [{"id": "1", "url": "https://example.com/", "images": None,
                       "keywords": None, "h1s": None, "depth": None,
                       "has_robots_noindex": None}],
            "links": None,
            "issues": None,
        })
        page = crawl.pages[0]
        assert page.images == ()
        assert page.keywords == ()
        assert page.h1s == ()
        assert page.depth == 0
        assert page.has_robots_noindex is False
        assert crawl.links == ()

    def test_numeric_ids_coerced_to_strings(self):
        crawl = parse_crawl({
            "pages": [{"id": 1, "url": "https://example.com/"}],
            "links": [{"source_page_id": 1, "destination_page_id": 2}],
        })
        assert crawl.pages[0].id == "1"
        assert crawl.links[0].destination_page_id == "2"

    def test_bare_keyword_strings(self):
        page = Page.model_validate({"id": "a", "url": "/a", "keywords": ["seo", {"word": "audit", "count": 3}]})
        assert [(k.word, k.count) for k in page.keywords] == [("seo", 1), ("audit", 3)]

    def test_severity_is_case_insensitive(self):
        assert Issue.model_validate({"severity": "HIGH"}).severity == "high"
        assert Issue.model_validate({"severity": None}).severity == "low"

    def test_issue_created_at_parsed(self, sample_crawl):
        assert Issue.model_validate({}).created_at is None
        stamped = sample_crawl.issues[0].created_at
        assert (stamped.year, stamped.month, stamped.day, stamped.hour) == (2024, 3, 5, 22)
        assert stamped.utcoffset().total_seconds() == 0

    def test_unknown_severity_rejected(self):
        with pytest.raises(MalformedInputError):
            parse_crawl({"issues": [{"severity": "catastrophic"}]})

    def test_negative_depth_rejected(self):
        with pytest.raises(MalformedInputError):
            parse_crawl({"pages": [{"id": "a", "url": "/a", "depth": -1}]})

    def test_duplicate_page_ids_rejected(self):
        with pytest.raises(MalformedInputError):
            parse_crawl({"pages": [{"id": "a", "url": "/a"}, {"id": "a", "url": "/b"}]})

    def test_non_object_payload_rejected(self):
        with pytest.raises(MalformedInputError) as excinfo:
            parse_crawl([1, 2, 3])
        assert isinstance(excinfo.value, InternalError)
        assert str(excinfo.value) == "Malformed crawl data"

    def test_records_are_immutable(self, sample_crawl):
        with pytest.raises(Exception):
            sample_crawl.pages[0].title = "changed"


class TestLoadCrawl:

    def test_load_from_file(self, crawl_file):
        assert len(load_crawl(crawl_file).links) == 4

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(MalformedInputError):
            load_crawl(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(NotFoundError):
            load_crawl(tmp_path / "nope.json")

    def test_validation_details_attached(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"pages": [{"url": "/no-id"}]}), encoding="utf-8")
        with pytest.raises(MalformedInputError) as excinfo:
            load_crawl(path)
        assert excinfo.value.details["errors"]


# ===========================================================================
# 2. Helpers
# ===========================================================================
class TestHelpers:

    @pytest.mark.parametrize("url,expected", [
        ("HTTPS://Example.COM/Path/", "https://example.com/Path"),
        ("http://example.com:80/a", "http://example.com/a"),
        ("https://example.com:8443/a", "https://example.com:8443/a"),
        ("https://example.com/#frag", "https://example.com/"),
        ("https://example.com/a?b=1", "https://example.com/a?b=1"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize_url(self, url, expected):
        assert normalize_url(url) == expected

    def test_normalize_relative_against_base(self):
        assert normalize_url("../b/", base="https://example.com/a/c") == "https://example.com/b"

    def test_truncate_url(self):
        assert truncate_url("https://example.com/short") == "/short"
        long_path = "https://example.com/" + "x" * 80
        assert truncate_url(long_path, max_length=20) == "/" + "x" * 16 + "..."

    def test_percent(self):
        assert percent(0, 0) == 0
        assert percent(0, 0, default=100) == 100
        assert percent(1, 2) == 50
        assert percent(2, 3) == 67
        assert percent(1, 8) == 13

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3.0
        assert round_half_up(1.25, 1) == 1.3
        assert round_half_up(1.8, 1) == 1.8

    def test_formatters(self):
        assert format_bytes(2 * 1024 * 1024) == "2.0 MB"
        assert format_bytes(None) == "0 B"
        assert format_load_time(3400) == "3.4s"
        assert format_load_time(250) == "250ms"

    def test_display_helpers(self):
        assert truncate_text("The quick brown fox jumps", 15) == "The quick..."
        assert truncate_text("short", 15) == "short"
        assert get_image_filename("/img/logo.png") == "logo.png"
        assert get_image_filename("https://cdn.example.com/a/b/photo.jpg?w=1") == "photo.jpg"
        assert extract_domain("https://Shop.Example.com/path") == "shop.example.com"
        assert extract_domain("example.com/about") == "example.com"
