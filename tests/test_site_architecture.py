"""Tests for site architecture metrics: depth, orphans and link degree."""

import random

import pytest

from site_insights.modules.site_architecture import (
    SiteArchitectureThresholds,
    analyze_site_architecture,
    calculate_link_stats,
    depth_distribution,
    find_deep_pages,
    find_orphan_pages,
    find_underlinked_pages,
    rank_by_link_count,
)
from site_insights.modules.site_architecture.analyzer import (
    architecture_severity,
    summarize_site_architecture,
)


# ===========================================================================
# 1. Depth distribution
# ===========================================================================
class TestDepthDistribution:
    """Every page lands in exactly one bucket, buckets ascend by depth."""

    def test_counts_sum_to_page_count(self, make_page):
        rng = random.Random(7)
        pages = [make_page(str(i), depth=rng.randint(0, 6)) for i in range(40)]
        buckets = depth_distribution(pages)
        assert sum(b.count for b in buckets) == len(pages)

    def test_buckets_sorted_by_depth_and_pages_by_url(self, make_page):
        pages = [
            make_page("c", url="https://example.com/c", depth=2),
            make_page("a", url="https://example.com/a", depth=0),
            make_page("z", url="https://example.com/z", depth=1),
            make_page("b", url="https://example.com/b", depth=1),
        ]
        buckets = depth_distribution(pages)
        assert [b.depth for b in buckets] == [0, 1, 2]
        assert [p.id for p in buckets[1].pages] == ["b", "z"]
        assert buckets[1].count == 2

    def test_empty_input(self):
        assert depth_distribution([]) == []

    def test_null_depth_is_root(self, make_page):
        page = make_page("root", depth=None)
        assert depth_distribution([page])[0].depth == 0


# ===========================================================================
# 2. Orphans
# ===========================================================================
class TestOrphanPages:
    """Non-root pages without inbound internal links are orphans."""

    def test_scenario_single_orphan(self, make_page, make_link):
        pages = [make_page("A", depth=0), make_page("B", depth=1), make_page("C", depth=1)]
        links = [make_link("A", "B")]
        assert [o.id for o in find_orphan_pages(pages, links)] == ["C"]

    def test_root_never_orphan(self, make_page):
        pages = [make_page("home", depth=0), make_page("other", depth=0)]
        assert find_orphan_pages(pages, []) == []

    def test_external_link_does_not_count_as_inbound(self, make_page, make_link):
        pages = [make_page("A", depth=0), make_page("B", depth=1)]
        links = [make_link("A", None, destination_url="https://example.com/B")]
        assert [o.id for o in find_orphan_pages(pages, links)] == ["B"]

    def test_blank_destination_is_external(self, make_page, make_link):
        pages = [make_page("A", depth=0), make_page("B", depth=1)]
        links = [make_link("A", "  ")]
        assert links[0].destination_page_id is None
        assert [o.id for o in find_orphan_pages(pages, links)] == ["B"]

    def test_idempotent(self, make_page, make_link):
        pages = [make_page(str(i), depth=i % 3) for i in range(12)]
        links = [make_link(str(i), str((i * 5) % 12)) for i in range(0, 12, 2)]
        first = find_orphan_pages(pages, links)
        second = find_orphan_pages(pages, links)
        assert first == second


# ===========================================================================
# 3. Deep pages
# ===========================================================================
class TestDeepPages:

    def test_threshold_inclusive_and_sorted_desc(self, make_page):
        pages = [
            make_page("a", depth=4),
            make_page("b", depth=6),
            make_page("c", depth=3),
            make_page("d", depth=4),
        ]
        deep = find_deep_pages(pages, threshold=4)
        assert [p.id for p in deep] == ["b", "a", "d"]

    def test_custom_threshold(self, make_page):
        pages = [make_page("a", depth=1), make_page("b", depth=2)]
        assert [p.id for p in find_deep_pages(pages, threshold=2)] == ["b"]


# ===========================================================================
# 4. Link stats and rankings
# ===========================================================================
class TestLinkStats:
    """Link stats are total over pages and rankings are stable."""

    def test_every_page_present_once(self, make_page, make_link):
        pages = [make_page("a"), make_page("b"), make_page("lonely")]
        links = [make_link("a", "b"), make_link("a", None), make_link("b", "a")]
        stats = calculate_link_stats(pages, links)
        assert [s.id for s in stats] == ["a", "b", "lonely"]
        by_id = {s.id: s for s in stats}
        assert (by_id["a"].inbound_count, by_id["a"].outbound_count) == (1, 2)
        assert (by_id["b"].inbound_count, by_id["b"].outbound_count) == (1, 1)
        assert (by_id["lonely"].inbound_count, by_id["lonely"].outbound_count) == (0, 0)

    def test_rank_most_and_fewest(self, make_page, make_link):
        pages = [make_page("a"), make_page("b"), make_page("c")]
        links = [make_link("a", "b"), make_link("a", "c"), make_link("b", "c")]
        stats = calculate_link_stats(pages, links)
        # totals: a=2, b=2, c=2 -> ties keep input order
        assert [s.id for s in rank_by_link_count(stats, "most")] == ["a", "b", "c"]
        links.append(make_link("c", "a"))
        stats = calculate_link_stats(pages, links)
        # totals: a=3, b=2, c=3
        assert [s.id for s in rank_by_link_count(stats, "most")] == ["a", "c", "b"]
        assert [s.id for s in rank_by_link_count(stats, "fewest")] == ["b", "a", "c"]

    def test_rank_limit(self, make_page):
        stats = calculate_link_stats([make_page(str(i)) for i in range(15)], [])
        assert len(rank_by_link_count(stats, "most", limit=10)) == 10
        assert rank_by_link_count(stats, "most", limit=0) == []

    def test_rank_unknown_mode(self, make_page):
        stats = calculate_link_stats([make_page("a")], [])
        with pytest.raises(ValueError):
            rank_by_link_count(stats, "middle")

    def test_underlinked_pages_skip_roots(self, make_page, make_link):
        pages = [make_page("root", depth=0), make_page("a", depth=1), make_page("b", depth=1)]
        links = [make_link("root", "a"), make_link("b", "a"), make_link("root", "a")]
        weak = find_underlinked_pages(calculate_link_stats(pages, links), min_internal_links=3)
        assert [s.id for s in weak] == ["b"]


# ===========================================================================
# 5. Summary and full report
# ===========================================================================
class TestSiteArchitectureReport:

    def test_summary_average_rounds_half_up(self, make_page):
        pages = [make_page(str(i), depth=0) for i in range(19)] + [make_page("d", depth=1)]
        # mean depth 1/20 = 0.05 -> 0.1
        summary = summarize_site_architecture(depth_distribution(pages), [], [])
        assert summary.avg_depth == 0.1
        assert summary.max_depth == 1
        assert summary.total_pages == 20

    def test_summary_empty_defaults(self):
        summary = summarize_site_architecture([], [], [])
        assert summary.total_pages == 0
        assert summary.avg_depth == 0.0
        assert summary.max_depth == 0

    def test_severity_counts_flagged_pages_once(self, make_page, make_link):
        pages = [make_page("root", depth=0), make_page("deep", depth=5)]
        orphans = find_orphan_pages(pages, [])
        deep = find_deep_pages(pages)
        severity = architecture_severity(len(pages), orphans, deep)
        assert (severity.critical, severity.warnings, severity.passed) == (0, 2, 1)

    def test_sample_crawl_report(self, sample_crawl):
        data = analyze_site_architecture(sample_crawl.pages, sample_crawl.links)
        assert [b.depth for b in data.depth_distribution] == [0, 1, 2, 5]
        assert [o.id for o in data.orphan_pages] == ["old"]
        assert [p.id for p in data.deep_pages] == ["gone"]
        assert data.summary.avg_depth == 1.8
        assert data.summary.max_depth == 5
        assert [s.id for s in data.pages_with_most_links][:3] == ["home", "shovels", "spades"]
        assert data.pages_with_fewest_links[0].id == "old"
        assert [s.id for s in data.underlinked_pages] == ["old", "shovels", "spades", "gone"]
        assert (data.severity.warnings, data.severity.passed) == (2, 3)

    def test_camel_case_serialisation(self, sample_crawl):
        payload = analyze_site_architecture(sample_crawl.pages, sample_crawl.links).to_dict()
        assert "depthDistribution" in payload
        assert "orphanCount" in payload["summary"]
        assert "inboundCount" in payload["pagesWithMostLinks"][0]

    def test_threshold_validation(self):
        with pytest.raises(ValueError):
            SiteArchitectureThresholds(deep_page_threshold=0)
        with pytest.raises(ValueError):
            SiteArchitectureThresholds(min_internal_links=-1)

    def test_custom_thresholds(self, sample_crawl):
        thresholds = SiteArchitectureThresholds(deep_page_threshold=2, ranking_limit=2)
        data = analyze_site_architecture(sample_crawl.pages, sample_crawl.links, thresholds)
        assert [p.id for p in data.deep_pages] == ["gone", "old"]
        assert len(data.pages_with_most_links) == 2
