"""Ingestion schema for crawler output.

Every page, link, image and issue is validated once here.  Null optional
collections are defaulted, loosely shaped entries (a bare image URL, a bare
keyword string) are normalised, and anything else that does not fit is
rejected with :class:`~site_insights.errors.MalformedInputError` before any
analyzer sees it.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Optional, Union

from pydantic import Field, ValidationError, field_validator, model_validator

from site_insights.errors import MalformedInputError, NotFoundError
from site_insights.schemas.base import Record

logger = logging.getLogger(__name__)

Severity = Literal["critical", "high", "medium", "low"]
SEVERITIES: tuple[str, ...] = ("critical", "high", "medium", "low")


class Image(Record):
    """An ``<img>`` found on a page."""

    src: str = ""
    alt: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _bare_src(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"src": data}
        return data

    @property
    def has_alt(self) -> bool:
        return bool(self.alt and self.alt.strip())


class Keyword(Record):
    """A keyword extracted from page copy with its occurrence count."""

    word: str
    count: int = Field(default=1, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _bare_word(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"word": data}
        return data


class Page(Record):
    """A crawled page.  ``id`` is unique within one scan."""

    id: str
    url: str
    title: Optional[str] = None
    http_status: Optional[int] = None
    word_count: Optional[int] = Field(default=None, ge=0)
    depth: int = Field(default=0, ge=0)
    is_indexable: Optional[bool] = None
    has_robots_noindex: bool = False
    has_robots_nofollow: bool = False
    canonical_url: Optional[str] = None
    redirect_url: Optional[str] = None
    load_time_ms: Optional[float] = Field(default=None, ge=0)
    first_byte_time_ms: Optional[float] = Field(default=None, ge=0)
    size_bytes: Optional[int] = Field(default=None, ge=0)
    meta_description: Optional[str] = None
    images: tuple[Image, ...] = ()
    keywords: tuple[Keyword, ...] = ()
    h1s: tuple[str, ...] = ()

    @field_validator("depth", mode="before")
    @classmethod
    def _null_depth_is_root(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("has_robots_noindex", "has_robots_nofollow", mode="before")
    @classmethod
    def _null_flag_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("images", "keywords", "h1s", mode="before")
    @classmethod
    def _null_list_is_empty(cls, value: Any) -> Any:
        return () if value is None else value


class Link(Record):
    """A hyperlink.  A null ``destination_page_id`` marks an external link."""

    source_page_id: str
    destination_page_id: Optional[str] = None
    destination_url: Optional[str] = None
    anchor_text: Optional[str] = None
    http_status: Optional[int] = None

    @field_validator("destination_page_id", mode="before")
    @classmethod
    def _blank_destination_is_external(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_internal(self) -> bool:
        return self.destination_page_id is not None


class Issue(Record):
    """An issue raised by the crawler against a page."""

    page_id: Optional[str] = None
    severity: Severity = "low"
    issue_type: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("severity", mode="before")
    @classmethod
    def _normalise_severity(cls, value: Any) -> Any:
        if value is None:
            return "low"
        if isinstance(value, str):
            return value.strip().lower()
        return value


class CrawlData(Record):
    """Everything the crawler produced for one scan."""

    pages: tuple[Page, ...] = ()
    links: tuple[Link, ...] = ()
    issues: tuple[Issue, ...] = ()

    @field_validator("pages", "links", "issues", mode="before")
    @classmethod
    def _null_list_is_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @model_validator(mode="after")
    def _unique_page_ids(self) -> "CrawlData":
        seen: set[str] = set()
        dupes: set[str] = set()
        for page in self.pages:
            if page.id in seen:
                dupes.add(page.id)
            seen.add(page.id)
        if dupes:
            raise ValueError("duplicate page ids: " + ", ".join(sorted(dupes)[:5]))
        return self

    def page_index(self) -> dict[str, Page]:
        """Map page id to page."""
        return {page.id: page for page in self.pages}


def parse_crawl(payload: Any) -> CrawlData:
    """Validate a decoded crawl payload.

    Raises:
        MalformedInputError: when the payload does not match the schema.
    """
    if not isinstance(payload, dict):
        raise MalformedInputError(reason="crawl payload must be a JSON object")
    try:
        crawl = CrawlData.model_validate(payload)
    except ValidationError as exc:
        logger.error("Rejected crawl payload with %d validation error(s)", exc.error_count())
        logger.debug("Validation details: %s", exc.errors(include_url=False))
        raise MalformedInputError(errors=exc.errors(include_url=False)) from exc
    logger.debug(
        "Parsed crawl: %d pages, %d links, %d issues",
        len(crawl.pages), len(crawl.links), len(crawl.issues),
    )
    return crawl


def load_crawl(path: Union[str, Path]) -> CrawlData:
    """Read and validate a crawl JSON export from disk."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise NotFoundError(f"Crawl file not found: {path}", path=str(path)) from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Crawl file %s is not valid JSON: %s", path, exc)
        raise MalformedInputError(reason="invalid JSON", path=str(path)) from exc
    return parse_crawl(payload)
