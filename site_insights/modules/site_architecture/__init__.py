"""Site architecture (graph metrics) module."""

from site_insights.modules.site_architecture.analyzer import (
    SiteArchitectureData,
    SiteArchitectureThresholds,
    analyze_site_architecture,
    calculate_link_stats,
    depth_distribution,
    find_deep_pages,
    find_orphan_pages,
    find_underlinked_pages,
    rank_by_link_count,
)

__all__ = [
    "SiteArchitectureData",
    "SiteArchitectureThresholds",
    "analyze_site_architecture",
    "calculate_link_stats",
    "depth_distribution",
    "find_deep_pages",
    "find_orphan_pages",
    "find_underlinked_pages",
    "rank_by_link_count",
]
