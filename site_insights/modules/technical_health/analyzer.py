"""Technical health analysis: HTTP status, redirects, broken links,
performance outliers and indexability.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Sequence

from site_insights.schemas.base import ReportModel, SeveritySummary
from site_insights.schemas.crawl import Link, Page
from site_insights.utils.helpers import normalize_url

logger = logging.getLogger(__name__)

StatusCategory = Literal["2xx", "3xx", "4xx", "5xx"]
IndexabilityReason = Literal["not_indexable", "noindex", "canonical_mismatch"]

_STATUS_ORDER: tuple[StatusCategory, ...] = ("2xx", "3xx", "4xx", "5xx")

# Lower index wins when a page qualifies for several reasons.
REASON_PRECEDENCE: tuple[IndexabilityReason, ...] = (
    "not_indexable",
    "noindex",
    "canonical_mismatch",
)


@dataclass(frozen=True)
class TechnicalHealthThresholds:
    slow_page_ms: int = 3000
    large_page_bytes: int = 2 * 1024 * 1024

    def __post_init__(self) -> None:
        if self.slow_page_ms <= 0:
            raise ValueError("slow_page_ms must be positive")
        if self.large_page_bytes <= 0:
            raise ValueError("large_page_bytes must be positive")


# ---------------------------------------------------------------------------
# Report payloads
# ---------------------------------------------------------------------------

class PageStatus(ReportModel):
    id: str
    url: str
    title: Optional[str] = None
    http_status: Optional[int] = None


class StatusBucket(ReportModel):
    category: StatusCategory
    count: int
    pages: list[PageStatus]


class RedirectPage(ReportModel):
    id: str
    url: str
    title: Optional[str] = None
    redirect_url: str
    http_status: Optional[int] = None


class BrokenLink(ReportModel):
    source_page_id: str
    source_url: str = ""
    source_title: Optional[str] = None
    destination_page_id: Optional[str] = None
    destination_url: str = ""
    http_status: Optional[int] = None
    anchor_text: Optional[str] = None


class SlowPage(ReportModel):
    id: str
    url: str
    title: Optional[str] = None
    load_time_ms: float
    first_byte_time_ms: Optional[float] = None


class LargePage(ReportModel):
    id: str
    url: str
    title: Optional[str] = None
    size_bytes: int


class NonIndexablePage(ReportModel):
    id: str
    url: str
    title: Optional[str] = None
    reason: IndexabilityReason
    canonical_url: Optional[str] = None


class TechnicalHealthData(ReportModel):
    status_distribution: list[StatusBucket]
    redirect_pages: list[RedirectPage]
    broken_links: list[BrokenLink]
    slow_pages: list[SlowPage]
    large_pages: list[LargePage]
    non_indexable_pages: list[NonIndexablePage]
    summary: SeveritySummary


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def categorize_http_status(status: Optional[int]) -> StatusCategory:
    """Bucket an HTTP status code.

    A missing or out-of-range status means the fetch itself failed, so it is
    reported with the server errors.
    """
    if status is not None:
        if 200 <= status < 300:
            return "2xx"
        if 300 <= status < 400:
            return "3xx"
        if 400 <= status < 500:
            return "4xx"
    return "5xx"


def is_error_status(status: Optional[int]) -> bool:
    """True for every status bucketed as 4xx or 5xx, unknown statuses included."""
    return categorize_http_status(status) in ("4xx", "5xx")


def build_status_distribution(pages: Iterable[Page]) -> list[StatusBucket]:
    buckets: dict[StatusCategory, list[Page]] = {cat: [] for cat in _STATUS_ORDER}
    for page in pages:
        buckets[categorize_http_status(page.http_status)].append(page)

    return [
        StatusBucket(
            category=cat,
            count=len(buckets[cat]),
            pages=[
                PageStatus(id=p.id, url=p.url, title=p.title, http_status=p.http_status)
                for p in sorted(buckets[cat], key=lambda p: p.http_status or 0)
            ],
        )
        for cat in _STATUS_ORDER
        if buckets[cat]
    ]


def find_redirect_pages(pages: Iterable[Page]) -> list[RedirectPage]:
    """Pages answering 3xx with a redirect target."""
    return [
        RedirectPage(
            id=p.id,
            url=p.url,
            title=p.title,
            redirect_url=p.redirect_url,
            http_status=p.http_status,
        )
        for p in pages
        if categorize_http_status(p.http_status) == "3xx"
        and p.redirect_url
        and p.redirect_url.strip()
    ]


def find_broken_links(pages: Sequence[Page], links: Iterable[Link]) -> list[BrokenLink]:
    """Links whose target answers 4xx/5xx.

    The destination page's status wins when the link resolves to a crawled
    page, and a crawled page with no usable status counts as broken just as
    it counts as 5xx in the status distribution.  Otherwise the status
    recorded on the link is used; a link with no recorded status was never
    checked and is skipped.
    """
    index = {page.id: page for page in pages}
    broken: list[BrokenLink] = []
    for link in links:
        destination = index.get(link.destination_page_id) if link.is_internal else None
        if destination is not None:
            status = destination.http_status
        elif link.http_status is None:
            continue
        else:
            status = link.http_status
        if not is_error_status(status):
            continue
        source = index.get(link.source_page_id)
        broken.append(BrokenLink(
            source_page_id=link.source_page_id,
            source_url=source.url if source else "",
            source_title=source.title if source else None,
            destination_page_id=link.destination_page_id,
            destination_url=link.destination_url or (destination.url if destination else ""),
            http_status=status,
            anchor_text=link.anchor_text,
        ))
    return broken


def find_slow_pages(pages: Iterable[Page], threshold_ms: int = 3000) -> list[SlowPage]:
    """Pages whose load time exceeds *threshold_ms*, slowest first."""
    slow = [p for p in pages if p.load_time_ms is not None and p.load_time_ms > threshold_ms]
    slow.sort(key=lambda p: p.load_time_ms, reverse=True)
    return [
        SlowPage(
            id=p.id,
            url=p.url,
            title=p.title,
            load_time_ms=p.load_time_ms,
            first_byte_time_ms=p.first_byte_time_ms,
        )
        for p in slow
    ]


def find_large_pages(pages: Iterable[Page], threshold_bytes: int = 2 * 1024 * 1024) -> list[LargePage]:
    """Pages heavier than *threshold_bytes*, largest first."""
    large = [p for p in pages if p.size_bytes is not None and p.size_bytes > threshold_bytes]
    large.sort(key=lambda p: p.size_bytes, reverse=True)
    return [LargePage(id=p.id, url=p.url, title=p.title, size_bytes=p.size_bytes) for p in large]


def has_canonical_mismatch(page: Page) -> bool:
    """True when the page declares a canonical URL other than its own."""
    if not page.canonical_url or not page.canonical_url.strip():
        return False
    canonical = normalize_url(page.canonical_url, base=page.url)
    return canonical != normalize_url(page.url)


def indexability_reason(page: Page) -> Optional[IndexabilityReason]:
    """Single reason a page is kept out of the index, following REASON_PRECEDENCE."""
    if page.is_indexable is False:
        return "not_indexable"
    if page.has_robots_noindex:
        return "noindex"
    if has_canonical_mismatch(page):
        return "canonical_mismatch"
    return None


def find_non_indexable_pages(pages: Iterable[Page]) -> list[NonIndexablePage]:
    results: list[NonIndexablePage] = []
    for page in pages:
        reason = indexability_reason(page)
        if reason is None:
            continue
        results.append(NonIndexablePage(
            id=page.id,
            url=page.url,
            title=page.title,
            reason=reason,
            canonical_url=page.canonical_url,
        ))
    return results


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def summarize_technical_health(
    total_pages: int,
    status_distribution: Sequence[StatusBucket],
    redirect_pages: Sequence[RedirectPage],
    slow_pages: Sequence[SlowPage],
    large_pages: Sequence[LargePage],
    non_indexable_pages: Sequence[NonIndexablePage],
) -> SeveritySummary:
    """Roll findings up into critical / warning / passed counts.

    critical = 5xx pages + not_indexable pages
    warnings = 4xx pages + redirects + slow + large + canonical mismatches
    passed   = pages with no per-page finding at all

    ``noindex`` is an explicit directive and is reported without weight.
    """
    counts = {bucket.category: bucket.count for bucket in status_distribution}
    reasons = [page.reason for page in non_indexable_pages]

    critical = counts.get("5xx", 0) + reasons.count("not_indexable")
    warnings = (
        counts.get("4xx", 0)
        + len(redirect_pages)
        + len(slow_pages)
        + len(large_pages)
        + reasons.count("canonical_mismatch")
    )

    flagged: set[str] = set()
    for bucket in status_distribution:
        if bucket.category in ("4xx", "5xx"):
            flagged.update(p.id for p in bucket.pages)
    for group in (redirect_pages, slow_pages, large_pages, non_indexable_pages):
        flagged.update(item.id for item in group)

    return SeveritySummary(
        critical=critical,
        warnings=warnings,
        passed=max(0, total_pages - len(flagged)),
    )


def analyze_technical_health(
    pages: Sequence[Page],
    links: Sequence[Link],
    thresholds: Optional[TechnicalHealthThresholds] = None,
) -> TechnicalHealthData:
    """Build the full technical health report for one scan."""
    thresholds = thresholds or TechnicalHealthThresholds()

    distribution = build_status_distribution(pages)
    redirects = find_redirect_pages(pages)
    broken = find_broken_links(pages, links)
    slow = find_slow_pages(pages, thresholds.slow_page_ms)
    large = find_large_pages(pages, thresholds.large_page_bytes)
    non_indexable = find_non_indexable_pages(pages)

    summary = summarize_technical_health(
        len(pages), distribution, redirects, slow, large, non_indexable,
    )
    logger.debug(
        "Technical health: critical=%d warnings=%d broken_links=%d",
        summary.critical, summary.warnings, len(broken),
    )
    return TechnicalHealthData(
        status_distribution=distribution,
        redirect_pages=redirects,
        broken_links=broken,
        slow_pages=slow,
        large_pages=large,
        non_indexable_pages=non_indexable,
        summary=summary,
    )
