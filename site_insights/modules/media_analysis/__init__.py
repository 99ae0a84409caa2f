"""Media accessibility module."""

from site_insights.modules.media_analysis.analyzer import (
    MediaAnalysisData,
    MediaThresholds,
    analyze_media,
    calculate_alt_coverage,
    find_images_missing_alt,
    find_pages_with_missing_alt,
    parse_page_images,
    rank_pages_by_image_count,
)

__all__ = [
    "MediaAnalysisData",
    "MediaThresholds",
    "analyze_media",
    "calculate_alt_coverage",
    "find_images_missing_alt",
    "find_pages_with_missing_alt",
    "parse_page_images",
    "rank_pages_by_image_count",
]
