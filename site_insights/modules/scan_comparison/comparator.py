"""
comparator.py - Point-in-time comparison of two scans of one project

Metrics for each scan come from its latest snapshot when one exists.
Without a snapshot, or when the snapshot store fails, the live issue
counts and the scan's own counters are used instead.
"""

import logging
from datetime import datetime
from typing import Optional

import pydantic
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from site_insights.errors import NotFoundError, UpstreamDependencyError, ValidationError
from site_insights.models import Scan, ScanIssue, ScanSnapshot
from site_insights.schemas.base import ReportModel
from site_insights.schemas.crawl import SEVERITIES
from site_insights.schemas.snapshot import SnapshotData, SnapshotIssueCounts

logger = logging.getLogger(__name__)


class ScanMetrics(ReportModel):
    total_pages: int = 0
    total_issues: int = 0
    critical_issues: int = 0
    warning_issues: int = 0
    broken_links: int = 0
    avg_score: int = 0


class ScanSide(ReportModel):
    id: str
    date: Optional[datetime] = None
    metrics: ScanMetrics


class ScanChanges(ReportModel):
    new_issues: int = 0
    fixed_issues: int = 0
    new_pages: int = 0
    removed_pages: int = 0


class Comparison(ReportModel):
    scan1: ScanSide
    scan2: ScanSide
    changes: ScanChanges


def compute_changes(m1: ScanMetrics, m2: ScanMetrics) -> ScanChanges:
    """Issue and page deltas from *m1* (before) to *m2* (after), never negative."""
    return ScanChanges(
        new_issues=max(0, m2.total_issues - m1.total_issues),
        fixed_issues=max(0, m1.total_issues - m2.total_issues),
        new_pages=max(0, m2.total_pages - m1.total_pages),
        removed_pages=max(0, m1.total_pages - m2.total_pages),
    )


def live_issue_counts(session: Session, scan_id: str) -> SnapshotIssueCounts:
    """Issue counts by severity as currently stored for *scan_id*."""
    rows = session.query(ScanIssue.severity).filter(ScanIssue.scan_id == scan_id).all()
    counts = {s: 0 for s in SEVERITIES}
    for (severity,) in rows:
        key = (severity or "low").lower()
        if key in counts:
            counts[key] += 1
    return SnapshotIssueCounts(total=len(rows), **counts)


def latest_snapshot(session: Session, scan_id: str) -> Optional[SnapshotData]:
    """Newest snapshot of a scan, or None.

    Raises:
        UpstreamDependencyError: the snapshot store failed or holds a
            payload that no longer parses.
    """
    try:
        # A failed read rolls back to the savepoint, leaving the caller's
        # transaction usable for the live-count fallback.
        with session.begin_nested():
            row = (
                session.query(ScanSnapshot)
                .filter(ScanSnapshot.scan_id == scan_id)
                .order_by(desc(ScanSnapshot.created_at), desc(ScanSnapshot.id))
                .first()
            )
        if row is None or not row.snapshot_data:
            return None
        return SnapshotData.model_validate(row.snapshot_data)
    except (SQLAlchemyError, pydantic.ValidationError) as exc:
        raise UpstreamDependencyError(str(exc), scan_id=scan_id) from exc


def metrics_for_scan(session: Session, scan: Scan) -> ScanMetrics:
    """Comparable metrics for one scan, preferring its snapshot."""
    live = live_issue_counts(session, scan.id)
    try:
        snapshot = latest_snapshot(session, scan.id)
    except UpstreamDependencyError as exc:
        logger.warning("Snapshot lookup failed for scan %s, using live counts: %s", scan.id, exc)
        snapshot = None

    if snapshot is not None:
        issues = snapshot.issues
        return ScanMetrics(
            total_pages=snapshot.metrics.total_pages,
            total_issues=issues.total or live.total,
            critical_issues=issues.critical or live.critical,
            warning_issues=(issues.high + issues.medium) or (live.high + live.medium),
            broken_links=snapshot.metrics.broken_links,
            avg_score=snapshot.metrics.avg_seo_score,
        )

    return ScanMetrics(
        total_pages=scan.pages_scanned or 0,
        total_issues=scan.issues_found or live.total,
        critical_issues=live.critical,
        warning_issues=live.high + live.medium,
    )


def compare_scans(
    session: Session,
    project_id: str,
    scan1_id: Optional[str],
    scan2_id: Optional[str],
) -> Comparison:
    """Compare two scans of *project_id*.

    Raises:
        ValidationError: when either scan id is missing.
        NotFoundError: when either id does not name a scan of the project.
    """
    if not scan1_id or not scan2_id:
        raise ValidationError("Both scan1 and scan2 parameters are required")

    scans = {
        scan.id: scan
        for scan in session.query(Scan)
        .filter(Scan.project_id == project_id, Scan.id.in_([scan1_id, scan2_id]))
        .all()
    }
    if scan1_id not in scans or scan2_id not in scans:
        raise NotFoundError("Scans not found", project_id=project_id)

    scan1, scan2 = scans[scan1_id], scans[scan2_id]
    m1 = metrics_for_scan(session, scan1)
    m2 = metrics_for_scan(session, scan2)
    comparison = Comparison(
        scan1=ScanSide(id=scan1.id, date=scan1.started_at, metrics=m1),
        scan2=ScanSide(id=scan2.id, date=scan2.started_at, metrics=m2),
        changes=compute_changes(m1, m2),
    )
    logger.info(
        "Compared scans %s -> %s: +%d/-%d issues, +%d/-%d pages",
        scan1_id, scan2_id,
        comparison.changes.new_issues, comparison.changes.fixed_issues,
        comparison.changes.new_pages, comparison.changes.removed_pages,
    )
    return comparison
