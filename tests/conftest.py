"""Shared pytest fixtures for SEO Site Insights tests."""

import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so 'site_insights' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


@pytest.fixture(autouse=True)
def _reset_db_engine():
    """Autouse fixture: reset the global DB engine before and after every test.

    This prevents cross-test pollution when tests create their own in-memory
    databases.
    """
    from site_insights.database import reset_engine
    reset_engine()
    yield
    reset_engine()


@pytest.fixture()
def test_db():
    """Provide an in-memory SQLite database with all tables created.

    Yields a database URL string. The engine is automatically torn down
    after the test by the autouse ``_reset_db_engine`` fixture.
    """
    from site_insights.database import reset_engine, init_db
    reset_engine()
    db_url = "sqlite:///:memory:"
    init_db(database_url=db_url, echo=False)
    yield db_url


@pytest.fixture()
def db_session(test_db):
    """A session bound to the in-memory database, closed after the test."""
    from site_insights.database import get_session_factory
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def make_page():
    """Factory building a validated Page from keyword overrides."""
    from site_insights.schemas.crawl import Page

    def _make(page_id: str, **fields):
        fields.setdefault("url", "https://example.com/" + page_id)
        return Page.model_validate({"id": page_id, **fields})

    return _make


@pytest.fixture()
def make_link():
    """Factory building a validated Link between two page ids."""
    from site_insights.schemas.crawl import Link

    def _make(source: str, destination=None, **fields):
        return Link.model_validate(
            {"source_page_id": source, "destination_page_id": destination, **fields}
        )

    return _make


@pytest.fixture()
def crawl_payload() -> dict:
    """A small but complete crawl export as the crawler would emit it."""
    return {
        "pages": [
            {
                "id": "home",
                "url": "https://example.com/",
                "title": "Example Store",
                "meta_description": "Everything for your garden.",
                "http_status": 200,
                "word_count": 850,
                "depth": 0,
                "is_indexable": True,
                "load_time_ms": 900,
                "size_bytes": 120000,
                "h1s": ["Example Store"],
                "images": [
                    {"src": "/img/logo.png", "alt": "Example logo"},
                    {"src": "/img/hero.jpg", "alt": "Garden tools"},
                ],
                "keywords": [
                    {"word": "garden", "count": 9},
                    {"word": "tools", "count": 4},
                    {"word": "store", "count": 3},
                ],
            },
            {
                "id": "shovels",
                "url": "https://example.com/shovels",
                "title": "Shovels",
                "meta_description": "Steel shovels.",
                "http_status": 200,
                "word_count": 80,
                "depth": 1,
                "is_indexable": True,
                "load_time_ms": 4200,
                "h1s": ["Shovels"],
                "images": [{"src": "/img/shovel.jpg", "alt": None}],
                "keywords": [
                    {"word": "shovel", "count": 5},
                    {"word": "steel", "count": 2},
                    {"word": "digging", "count": 2},
                ],
            },
            {
                "id": "spades",
                "url": "https://example.com/spades",
                "title": "shovels ",
                "meta_description": None,
                "http_status": 200,
                "word_count": 250,
                "depth": 1,
                "is_indexable": True,
                "h1s": [],
                "images": [],
                "keywords": [
                    {"word": "shovel", "count": 3},
                    {"word": "steel", "count": 1},
                    {"word": "digging", "count": 4},
                ],
            },
            {
                "id": "old",
                "url": "https://example.com/old",
                "title": "Old page",
                "meta_description": "Moved.",
                "http_status": 301,
                "redirect_url": "https://example.com/shovels",
                "depth": 2,
                "is_indexable": False,
            },
            {
                "id": "gone",
                "url": "https://example.com/gone",
                "title": "",
                "http_status": 404,
                "word_count": 0,
                "depth": 5,
            },
        ],
        "links": [
            {"source_page_id": "home", "destination_page_id": "shovels", "anchor_text": "Shovels"},
            {"source_page_id": "home", "destination_page_id": "spades", "anchor_text": "Spades"},
            {"source_page_id": "shovels", "destination_page_id": "gone", "anchor_text": "Old offer"},
            {
                "source_page_id": "spades",
                "destination_page_id": None,
                "destination_url": "https://partner.example.org/missing",
                "http_status": 500,
                "anchor_text": "Partner",
            },
        ],
        "issues": [
            {
                "page_id": "gone", "severity": "CRITICAL", "issue_type": "http_404",
                "description": "Page not found", "created_at": "2024-03-05T22:15:00Z",
            },
            {"page_id": "shovels", "severity": "high", "issue_type": "slow_page", "description": "Loads in 4.2s"},
            {"page_id": "spades", "severity": "medium", "issue_type": "missing_meta", "description": "No description"},
            {"page_id": "spades", "severity": None, "issue_type": "missing_h1", "description": "No H1"},
        ],
    }


@pytest.fixture()
def sample_crawl(crawl_payload):
    """The sample crawl, validated."""
    from site_insights.schemas.crawl import parse_crawl
    return parse_crawl(crawl_payload)


@pytest.fixture()
def crawl_file(tmp_path, crawl_payload):
    """The sample crawl written to a JSON file."""
    import json
    path = tmp_path / "crawl.json"
    path.write_text(json.dumps(crawl_payload), encoding="utf-8")
    return path
