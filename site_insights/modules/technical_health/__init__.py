"""Technical health module."""

from site_insights.modules.technical_health.analyzer import (
    REASON_PRECEDENCE,
    TechnicalHealthData,
    TechnicalHealthThresholds,
    analyze_technical_health,
    build_status_distribution,
    categorize_http_status,
    find_broken_links,
    find_large_pages,
    find_non_indexable_pages,
    find_redirect_pages,
    find_slow_pages,
    indexability_reason,
)

__all__ = [
    "REASON_PRECEDENCE",
    "TechnicalHealthData",
    "TechnicalHealthThresholds",
    "analyze_technical_health",
    "build_status_distribution",
    "categorize_http_status",
    "find_broken_links",
    "find_large_pages",
    "find_non_indexable_pages",
    "find_redirect_pages",
    "find_slow_pages",
    "indexability_reason",
]
