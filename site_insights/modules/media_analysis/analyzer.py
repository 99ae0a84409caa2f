"""Media accessibility: alt-text coverage and image-heavy pages."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from site_insights.schemas.base import ReportModel, SeveritySummary
from site_insights.schemas.crawl import Image, Page
from site_insights.utils.helpers import percent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaThresholds:
    critical_missing_alt: int = 5   # more than this per page is critical
    critical_coverage: int = 50     # percent
    warning_coverage: int = 80      # percent
    ranking_limit: int = 10

    def __post_init__(self) -> None:
        if not 0 <= self.critical_coverage <= self.warning_coverage <= 100:
            raise ValueError("coverage thresholds must satisfy 0 <= critical <= warning <= 100")


# ---------------------------------------------------------------------------
# Report payloads
# ---------------------------------------------------------------------------

class ImageData(ReportModel):
    src: str
    alt: Optional[str] = None


class PageWithImages(ReportModel):
    id: str
    url: str
    title: Optional[str] = None
    images: list[ImageData]
    image_count: int
    missing_alt_count: int


class ImageMissingAlt(ReportModel):
    page_id: str
    page_url: str
    page_title: Optional[str] = None
    image_src: str


class AltCoverage(ReportModel):
    total: int = 0
    with_alt: int = 0
    missing: int = 0
    percent: int = 100


class MediaAnalysisData(ReportModel):
    total_images: int
    images_with_alt: int
    images_missing_alt: int
    alt_coverage_percent: int
    pages_with_most_images: list[PageWithImages]
    images_missing_alt_list: list[ImageMissingAlt]
    pages_with_missing_alt: list[PageWithImages]
    summary: SeveritySummary


def _missing_alt(image: Image) -> bool:
    return not image.has_alt


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def parse_page_images(pages: Iterable[Page]) -> list[PageWithImages]:
    return [
        PageWithImages(
            id=page.id,
            url=page.url,
            title=page.title,
            images=[ImageData(src=img.src, alt=img.alt) for img in page.images],
            image_count=len(page.images),
            missing_alt_count=sum(1 for img in page.images if _missing_alt(img)),
        )
        for page in pages
    ]


def calculate_alt_coverage(pages: Iterable[PageWithImages]) -> AltCoverage:
    """Share of images carrying alt text; 100% when there are no images."""
    total = missing = 0
    for page in pages:
        total += page.image_count
        missing += page.missing_alt_count
    with_alt = total - missing
    return AltCoverage(
        total=total,
        with_alt=with_alt,
        missing=missing,
        percent=percent(with_alt, total, default=100),
    )


def find_images_missing_alt(pages: Iterable[PageWithImages]) -> list[ImageMissingAlt]:
    """Every (page, image) pair without alt text, flattened."""
    return [
        ImageMissingAlt(page_id=page.id, page_url=page.url, page_title=page.title, image_src=img.src)
        for page in pages
        for img in page.images
        if not (img.alt and img.alt.strip())
    ]


def rank_pages_by_image_count(pages: Iterable[PageWithImages], limit: int = 10) -> list[PageWithImages]:
    ranked = sorted((p for p in pages if p.image_count > 0), key=lambda p: p.image_count, reverse=True)
    return ranked[: max(limit, 0)]


def find_pages_with_missing_alt(pages: Iterable[PageWithImages]) -> list[PageWithImages]:
    flagged = [p for p in pages if p.missing_alt_count > 0]
    return sorted(flagged, key=lambda p: p.missing_alt_count, reverse=True)


def summarize_media(
    parsed: Sequence[PageWithImages],
    coverage_percent: int,
    thresholds: Optional[MediaThresholds] = None,
) -> SeveritySummary:
    """Per-page alt findings plus a penalty for low site-wide coverage.

    Coverage below the critical line adds one critical per full 10 points
    under it; coverage between the two lines adds warnings the same way.
    """
    thresholds = thresholds or MediaThresholds()
    critical = warnings = 0
    for page in parsed:
        if page.missing_alt_count > thresholds.critical_missing_alt:
            critical += 1
        elif page.missing_alt_count > 0:
            warnings += 1

    if coverage_percent < thresholds.critical_coverage:
        critical += (thresholds.critical_coverage - coverage_percent) // 10
    elif coverage_percent < thresholds.warning_coverage:
        warnings += (thresholds.warning_coverage - coverage_percent) // 10

    passed = sum(1 for p in parsed if p.image_count > 0 and p.missing_alt_count == 0)
    return SeveritySummary(critical=critical, warnings=warnings, passed=passed)


def analyze_media(
    pages: Sequence[Page],
    thresholds: Optional[MediaThresholds] = None,
) -> MediaAnalysisData:
    """Build the full media accessibility report for one scan."""
    thresholds = thresholds or MediaThresholds()

    parsed = parse_page_images(pages)
    coverage = calculate_alt_coverage(parsed)
    summary = summarize_media(parsed, coverage.percent, thresholds)

    logger.debug(
        "Media analysis: %d images, %d%% alt coverage", coverage.total, coverage.percent,
    )
    return MediaAnalysisData(
        total_images=coverage.total,
        images_with_alt=coverage.with_alt,
        images_missing_alt=coverage.missing,
        alt_coverage_percent=coverage.percent,
        pages_with_most_images=rank_pages_by_image_count(parsed, thresholds.ranking_limit),
        images_missing_alt_list=find_images_missing_alt(parsed),
        pages_with_missing_alt=find_pages_with_missing_alt(parsed),
        summary=summary,
    )
