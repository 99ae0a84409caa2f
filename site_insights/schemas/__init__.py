"""Pydantic schemas for crawler input and report output."""

from site_insights.schemas.base import Record, ReportModel, SeveritySummary
from site_insights.schemas.crawl import (
    SEVERITIES,
    CrawlData,
    Image,
    Issue,
    Keyword,
    Link,
    Page,
    load_crawl,
    parse_crawl,
)
from site_insights.schemas.snapshot import (
    SnapshotData,
    SnapshotIssueCounts,
    SnapshotMetrics,
    SnapshotScanInfo,
)

__all__ = [
    "Record",
    "ReportModel",
    "SeveritySummary",
    "SEVERITIES",
    "CrawlData",
    "Image",
    "Issue",
    "Keyword",
    "Link",
    "Page",
    "load_crawl",
    "parse_crawl",
    "SnapshotData",
    "SnapshotIssueCounts",
    "SnapshotMetrics",
    "SnapshotScanInfo",
]
