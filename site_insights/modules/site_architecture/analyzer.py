"""Site architecture analysis: depth, orphans and internal link degree.

Every function here is a pure function of the crawl's pages and links:
no I/O, no shared state, safe to run on any thread.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Sequence

from site_insights.schemas.base import ReportModel, SeveritySummary
from site_insights.schemas.crawl import Link, Page
from site_insights.utils.helpers import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteArchitectureThresholds:
    deep_page_threshold: int = 4
    min_internal_links: int = 3
    ranking_limit: int = 10

    def __post_init__(self) -> None:
        if self.deep_page_threshold < 1:
            raise ValueError("deep_page_threshold must be >= 1")
        if self.min_internal_links < 0:
            raise ValueError("min_internal_links must be >= 0")
        if self.ranking_limit < 0:
            raise ValueError("ranking_limit must be >= 0")


# ---------------------------------------------------------------------------
# Report payloads
# ---------------------------------------------------------------------------

class PageWithDepth(ReportModel):
    id: str
    url: str
    title: Optional[str] = None
    depth: int


class DepthBucket(ReportModel):
    depth: int
    count: int
    pages: list[PageWithDepth]


class OrphanPage(ReportModel):
    id: str
    url: str
    title: Optional[str] = None


class PageLinkStats(ReportModel):
    id: str
    url: str
    title: Optional[str] = None
    depth: int = 0
    inbound_count: int = 0
    outbound_count: int = 0

    @property
    def total_links(self) -> int:
        return self.inbound_count + self.outbound_count


class SiteArchitectureSummary(ReportModel):
    total_pages: int = 0
    avg_depth: float = 0.0
    max_depth: int = 0
    orphan_count: int = 0
    deep_page_count: int = 0


class SiteArchitectureData(ReportModel):
    depth_distribution: list[DepthBucket]
    orphan_pages: list[OrphanPage]
    deep_pages: list[PageWithDepth]
    pages_with_most_links: list[PageLinkStats]
    pages_with_fewest_links: list[PageLinkStats]
    underlinked_pages: list[PageLinkStats]
    summary: SiteArchitectureSummary
    severity: SeveritySummary


def _with_depth(page: Page) -> PageWithDepth:
    return PageWithDepth(id=page.id, url=page.url, title=page.title, depth=page.depth)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def depth_distribution(pages: Iterable[Page]) -> list[DepthBucket]:
    """Group pages by click depth, shallowest bucket first.

    Every page lands in exactly one bucket; pages inside a bucket are
    ordered by URL.
    """
    by_depth: dict[int, list[Page]] = defaultdict(list)
    for page in pages:
        by_depth[page.depth].append(page)

    return [
        DepthBucket(
            depth=depth,
            count=len(members),
            pages=[_with_depth(p) for p in sorted(members, key=lambda p: p.url)],
        )
        for depth, members in sorted(by_depth.items())
    ]


def find_orphan_pages(pages: Iterable[Page], links: Iterable[Link]) -> list[OrphanPage]:
    """Return non-root pages that no internal link points to.

    External links (no destination page) never count as inbound links, and
    root pages (depth 0) are never orphans.
    """
    linked = {link.destination_page_id for link in links if link.is_internal}
    return [
        OrphanPage(id=page.id, url=page.url, title=page.title)
        for page in pages
        if page.depth > 0 and page.id not in linked
    ]


def find_deep_pages(pages: Iterable[Page], threshold: int = 4) -> list[PageWithDepth]:
    """Pages at depth >= *threshold*, deepest first (ties keep crawl order)."""
    deep = [page for page in pages if page.depth >= threshold]
    return [_with_depth(p) for p in sorted(deep, key=lambda p: p.depth, reverse=True)]


def calculate_link_stats(pages: Sequence[Page], links: Iterable[Link]) -> list[PageLinkStats]:
    """Inbound/outbound link counters for every page, zero-link pages included."""
    inbound: dict[str, int] = {page.id: 0 for page in pages}
    outbound: dict[str, int] = {page.id: 0 for page in pages}

    for link in links:
        outbound[link.source_page_id] = outbound.get(link.source_page_id, 0) + 1
        if link.destination_page_id is not None:
            inbound[link.destination_page_id] = inbound.get(link.destination_page_id, 0) + 1

    return [
        PageLinkStats(
            id=page.id,
            url=page.url,
            title=page.title,
            depth=page.depth,
            inbound_count=inbound[page.id],
            outbound_count=outbound[page.id],
        )
        for page in pages
    ]


def rank_by_link_count(
    stats: Iterable[PageLinkStats],
    mode: Literal["most", "fewest"] = "most",
    limit: int = 10,
) -> list[PageLinkStats]:
    """Order pages by total (inbound + outbound) links and keep the top *limit*."""
    if mode not in ("most", "fewest"):
        raise ValueError(f"mode must be 'most' or 'fewest', got {mode!r}")
    ranked = sorted(stats, key=lambda s: s.total_links, reverse=(mode == "most"))
    return ranked[: max(limit, 0)]


def find_underlinked_pages(
    stats: Iterable[PageLinkStats], min_internal_links: int = 3
) -> list[PageLinkStats]:
    """Non-root pages receiving fewer than *min_internal_links* inbound links."""
    weak = [s for s in stats if s.depth > 0 and s.inbound_count < min_internal_links]
    return sorted(weak, key=lambda s: s.inbound_count)


def summarize_site_architecture(
    buckets: Sequence[DepthBucket],
    orphans: Sequence[OrphanPage],
    deep_pages: Sequence[PageWithDepth],
) -> SiteArchitectureSummary:
    total = sum(bucket.count for bucket in buckets)
    depth_sum = sum(bucket.depth * bucket.count for bucket in buckets)
    avg_depth = round_half_up(depth_sum / total, 1) if total else 0.0
    return SiteArchitectureSummary(
        total_pages=total,
        avg_depth=avg_depth,
        max_depth=max((bucket.depth for bucket in buckets), default=0),
        orphan_count=len(orphans),
        deep_page_count=len(deep_pages),
    )


def architecture_severity(
    total_pages: int,
    orphans: Sequence[OrphanPage],
    deep_pages: Sequence[PageWithDepth],
) -> SeveritySummary:
    """Orphan and deep pages are warnings; everything else passes."""
    flagged = {p.id for p in orphans} | {p.id for p in deep_pages}
    return SeveritySummary(
        critical=0,
        warnings=len(orphans) + len(deep_pages),
        passed=max(0, total_pages - len(flagged)),
    )


def analyze_site_architecture(
    pages: Sequence[Page],
    links: Sequence[Link],
    thresholds: Optional[SiteArchitectureThresholds] = None,
) -> SiteArchitectureData:
    """Build the full site architecture report for one scan."""
    thresholds = thresholds or SiteArchitectureThresholds()

    buckets = depth_distribution(pages)
    orphans = find_orphan_pages(pages, links)
    deep = find_deep_pages(pages, thresholds.deep_page_threshold)
    stats = calculate_link_stats(pages, links)

    data = SiteArchitectureData(
        depth_distribution=buckets,
        orphan_pages=orphans,
        deep_pages=deep,
        pages_with_most_links=rank_by_link_count(stats, "most", thresholds.ranking_limit),
        pages_with_fewest_links=rank_by_link_count(stats, "fewest", thresholds.ranking_limit),
        underlinked_pages=find_underlinked_pages(stats, thresholds.min_internal_links),
        summary=summarize_site_architecture(buckets, orphans, deep),
        severity=architecture_severity(len(pages), orphans, deep),
    )
    logger.debug(
        "Site architecture: %d pages, %d orphans, %d deep",
        data.summary.total_pages, data.summary.orphan_count, data.summary.deep_page_count,
    )
    return data
