"""Content intelligence module."""

from site_insights.modules.content_intelligence.analyzer import (
    ContentIntelligenceData,
    ContentIntelligenceThresholds,
    analyze_content,
    find_duplicates,
    find_missing_meta_descriptions,
    find_missing_titles,
    find_similar_content,
    find_thin_content,
)
from site_insights.modules.content_intelligence.similarity import (
    UnionFind,
    group_similar_pages,
    keyword_set,
    similarity_score,
)

__all__ = [
    "ContentIntelligenceData",
    "ContentIntelligenceThresholds",
    "analyze_content",
    "find_duplicates",
    "find_missing_meta_descriptions",
    "find_missing_titles",
    "find_similar_content",
    "find_thin_content",
    "UnionFind",
    "group_similar_pages",
    "keyword_set",
    "similarity_score",
]
