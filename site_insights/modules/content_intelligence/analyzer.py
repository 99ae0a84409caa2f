"""Content intelligence: thin pages, missing metadata, duplicates and
near-duplicate content.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from site_insights.modules.content_intelligence.similarity import group_similar_pages
from site_insights.schemas.base import ReportModel, SeveritySummary
from site_insights.schemas.crawl import Page

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentIntelligenceThresholds:
    thin_content_words: int = 300
    critical_thin_content_words: int = 100
    similarity_threshold: int = 70  # percent

    def __post_init__(self) -> None:
        if self.critical_thin_content_words > self.thin_content_words:
            raise ValueError("critical_thin_content_words must not exceed thin_content_words")
        if not 1 <= self.similarity_threshold <= 100:
            raise ValueError("similarity_threshold must be between 1 and 100")


# ---------------------------------------------------------------------------
# Report payloads
# ---------------------------------------------------------------------------

class PageBasic(ReportModel):
    id: str
    url: str
    title: Optional[str] = None


class ThinContentPage(PageBasic):
    word_count: int


class DuplicateGroup(ReportModel):
    value: str
    pages: list[PageBasic]


class SimilarContentGroup(ReportModel):
    similarity: int
    pages: list[PageBasic]


class ContentSummary(SeveritySummary):
    total: int = 0


class ContentIntelligenceData(ReportModel):
    thin_content: list[ThinContentPage]
    critical_thin_content: list[ThinContentPage]
    missing_titles: list[PageBasic]
    missing_meta_descriptions: list[PageBasic]
    duplicate_titles: list[DuplicateGroup]
    duplicate_descriptions: list[DuplicateGroup]
    similar_content: list[SimilarContentGroup]
    summary: ContentSummary


def _basic(page: Page) -> PageBasic:
    return PageBasic(id=page.id, url=page.url, title=page.title)


def _is_blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def find_thin_content(pages: Iterable[Page], max_words: int = 300) -> list[ThinContentPage]:
    """Pages with fewer than *max_words* words, thinnest first.

    Pages without a measured word count are skipped.
    """
    thin = [p for p in pages if p.word_count is not None and p.word_count < max_words]
    thin.sort(key=lambda p: p.word_count)
    return [
        ThinContentPage(id=p.id, url=p.url, title=p.title, word_count=p.word_count)
        for p in thin
    ]


def find_missing_titles(pages: Iterable[Page]) -> list[PageBasic]:
    return [_basic(p) for p in pages if _is_blank(p.title)]


def find_missing_meta_descriptions(pages: Iterable[Page]) -> list[PageBasic]:
    return [_basic(p) for p in pages if _is_blank(p.meta_description)]


def find_duplicates(
    pages: Iterable[Page], get_value: Callable[[Page], Optional[str]]
) -> list[DuplicateGroup]:
    """Group pages sharing the same trimmed, lower-cased value.

    Only values shared by two or more pages are reported; blank values are
    ignored.  Largest groups come first.
    """
    groups: dict[str, list[Page]] = defaultdict(list)
    for page in pages:
        value = (get_value(page) or "").strip().lower()
        if value:
            groups[value].append(page)

    duplicates = [
        DuplicateGroup(
            value=value,
            pages=[_basic(p) for p in sorted(members, key=lambda p: (p.url, p.id))],
        )
        for value, members in groups.items()
        if len(members) >= 2
    ]
    duplicates.sort(key=lambda g: (-len(g.pages), g.value))
    return duplicates


def find_similar_content(pages: Sequence[Page], threshold: int = 70) -> list[SimilarContentGroup]:
    return [
        SimilarContentGroup(similarity=similarity, pages=[_basic(p) for p in members])
        for similarity, members in group_similar_pages(pages, threshold)
    ]


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def _extra_members(groups: Sequence) -> int:
    return sum(len(group.pages) - 1 for group in groups)


def summarize_content(
    total_pages: int,
    thin_content: Sequence[ThinContentPage],
    missing_titles: Sequence[PageBasic],
    missing_meta_descriptions: Sequence[PageBasic],
    duplicate_titles: Sequence[DuplicateGroup],
    duplicate_descriptions: Sequence[DuplicateGroup],
    similar_content: Sequence[SimilarContentGroup],
) -> ContentSummary:
    """Weigh content findings.

    Each duplicate or similarity group contributes one per page beyond the
    first (the page that would be kept).

    critical = missing titles + duplicate title/description extras
    warnings = thin pages + missing descriptions + similarity extras
    """
    critical = (
        len(missing_titles)
        + _extra_members(duplicate_titles)
        + _extra_members(duplicate_descriptions)
    )
    warnings = (
        len(thin_content)
        + len(missing_meta_descriptions)
        + _extra_members(similar_content)
    )

    flagged: set[str] = set()
    for items in (thin_content, missing_titles, missing_meta_descriptions):
        flagged.update(item.id for item in items)
    for groups in (duplicate_titles, duplicate_descriptions, similar_content):
        for group in groups:
            flagged.update(p.id for p in group.pages)

    return ContentSummary(
        critical=critical,
        warnings=warnings,
        passed=max(0, total_pages - len(flagged)),
        total=critical + warnings,
    )


def analyze_content(
    pages: Sequence[Page],
    thresholds: Optional[ContentIntelligenceThresholds] = None,
) -> ContentIntelligenceData:
    """Build the full content intelligence report for one scan."""
    thresholds = thresholds or ContentIntelligenceThresholds()

    thin = find_thin_content(pages, thresholds.thin_content_words)
    critical_thin = [p for p in thin if p.word_count < thresholds.critical_thin_content_words]
    missing_titles = find_missing_titles(pages)
    missing_descriptions = find_missing_meta_descriptions(pages)
    duplicate_titles = find_duplicates(pages, lambda p: p.title)
    duplicate_descriptions = find_duplicates(pages, lambda p: p.meta_description)
    similar = find_similar_content(pages, thresholds.similarity_threshold)

    summary = summarize_content(
        len(pages),
        thin,
        missing_titles,
        missing_descriptions,
        duplicate_titles,
        duplicate_descriptions,
        similar,
    )
    logger.debug(
        "Content intelligence: %d thin, %d duplicate title groups, %d similar groups",
        len(thin), len(duplicate_titles), len(similar),
    )
    return ContentIntelligenceData(
        thin_content=thin,
        critical_thin_content=critical_thin,
        missing_titles=missing_titles,
        missing_meta_descriptions=missing_descriptions,
        duplicate_titles=duplicate_titles,
        duplicate_descriptions=duplicate_descriptions,
        similar_content=similar,
        summary=summary,
    )
