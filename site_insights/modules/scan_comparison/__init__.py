"""Scan comparison and snapshot history."""

from site_insights.modules.scan_comparison.comparator import (
    Comparison,
    ScanChanges,
    ScanMetrics,
    ScanSide,
    compare_scans,
    compute_changes,
    latest_snapshot,
    live_issue_counts,
    metrics_for_scan,
)
from site_insights.modules.scan_comparison.snapshots import (
    StoredSnapshot,
    TrendSummary,
    build_snapshot_data,
    ensure_project,
    list_snapshots,
    page_seo_score,
    record_scan,
    save_snapshot,
    trend_summary,
)

__all__ = [
    "Comparison",
    "ScanChanges",
    "ScanMetrics",
    "ScanSide",
    "compare_scans",
    "compute_changes",
    "latest_snapshot",
    "live_issue_counts",
    "metrics_for_scan",
    "StoredSnapshot",
    "TrendSummary",
    "build_snapshot_data",
    "ensure_project",
    "list_snapshots",
    "page_seo_score",
    "record_scan",
    "save_snapshot",
    "trend_summary",
]
