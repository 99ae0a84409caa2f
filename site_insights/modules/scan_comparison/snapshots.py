"""
snapshots.py - Scan recording, point-in-time snapshots and trend history

A snapshot freezes the headline metrics of a completed scan (page counts,
broken links, an on-page SEO score and issue counts by severity) so that
history and comparisons never need the raw crawl again.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy import desc
from sqlalchemy.orm import Session

from site_insights.errors import NotFoundError, ValidationError
from site_insights.models import Project, Scan, ScanIssue, ScanSnapshot
from site_insights.modules.technical_health.analyzer import find_broken_links
from site_insights.schemas.base import ReportModel
from site_insights.schemas.crawl import SEVERITIES, CrawlData, Issue, Page
from site_insights.schemas.snapshot import (
    SnapshotData,
    SnapshotIssueCounts,
    SnapshotMetrics,
    SnapshotScanInfo,
)
from site_insights.utils.helpers import extract_domain, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 12


class StoredSnapshot(ReportModel):
    id: int
    scan_id: str
    created_at: Optional[datetime] = None
    snapshot_data: SnapshotData


class TrendSummary(ReportModel):
    snapshot_count: int = 0
    pages_change: int = 0
    issues_change: int = 0
    critical_change: int = 0
    score_change: int = 0


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

def ensure_project(
    session: Session,
    project_id: str,
    name: Optional[str] = None,
    domain: Optional[str] = None,
) -> Project:
    """Fetch a project by id, creating it on first use."""
    if not project_id:
        raise ValidationError("project_id is required")
    project = session.get(Project, project_id)
    if project is None:
        project = Project(id=project_id, name=name or project_id, domain=domain)
        session.add(project)
        session.flush()
        logger.info("Created project %s", project_id)
    return project


def record_scan(
    session: Session,
    project_id: str,
    crawl: CrawlData,
    status: str = "completed",
    started_at: Optional[datetime] = None,
    completed_at: Optional[datetime] = None,
    scan_id: Optional[str] = None,
) -> Scan:
    """Store a scan row with its counters and every crawl issue."""
    domain = extract_domain(crawl.pages[0].url) if crawl.pages else None
    ensure_project(session, project_id, domain=domain or None)
    now = datetime.now(timezone.utc)
    scan = Scan(
        project_id=project_id,
        status=status,
        pages_scanned=len(crawl.pages),
        issues_found=len(crawl.issues),
        started_at=started_at or now,
        completed_at=completed_at or now,
    )
    if scan_id:
        scan.id = scan_id

    urls = {page.id: page.url for page in crawl.pages}
    scan.issues = []
    for issue in crawl.issues:
        row = ScanIssue(
            page_id=issue.page_id,
            page_url=urls.get(issue.page_id) if issue.page_id else None,
            issue_type=issue.issue_type,
            severity=issue.severity,
            description=issue.description,
        )
        # left unset, the column default stamps the insert time
        if issue.created_at is not None:
            row.created_at = issue.created_at
        scan.issues.append(row)
    session.add(scan)
    session.flush()
    logger.info(
        "Recorded scan %s for project %s: %d pages, %d issues",
        scan.id, project_id, scan.pages_scanned, scan.issues_found,
    )
    return scan


# ---------------------------------------------------------------------------
# Snapshot metrics
# ---------------------------------------------------------------------------

def page_seo_score(page: Page) -> int:
    """Simple on-page score: title, meta description and a single H1."""
    score = 100
    if not page.title:
        score -= 20
    if not page.meta_description:
        score -= 15
    if not page.h1s:
        score -= 15
    elif len(page.h1s) > 1:
        score -= 5
    return max(0, score)


def average_seo_score(pages: Sequence[Page]) -> int:
    if not pages:
        return 0
    return int(round_half_up(sum(page_seo_score(p) for p in pages) / len(pages)))


def count_issues(issues: Iterable[Issue]) -> SnapshotIssueCounts:
    counts = Counter(issue.severity for issue in issues)
    return SnapshotIssueCounts(
        total=sum(counts[s] for s in SEVERITIES),
        **{s: counts[s] for s in SEVERITIES},
    )


def build_snapshot_data(scan: Scan, crawl: CrawlData) -> SnapshotData:
    """Freeze the headline metrics of *scan* from its crawl data."""
    pages = crawl.pages
    return SnapshotData(
        timestamp=datetime.now(timezone.utc),
        metrics=SnapshotMetrics(
            total_pages=len(pages),
            indexable_pages=sum(1 for p in pages if p.is_indexable is True),
            broken_links=len(find_broken_links(pages, crawl.links)),
            avg_seo_score=average_seo_score(pages),
        ),
        issues=count_issues(crawl.issues),
        scan=SnapshotScanInfo(
            id=scan.id,
            status=scan.status,
            pages_scanned=scan.pages_scanned,
            issues_found=scan.issues_found,
            started_at=scan.started_at,
            completed_at=scan.completed_at,
        ),
    )


def save_snapshot(session: Session, project_id: str, scan_id: str, crawl: CrawlData) -> SnapshotData:
    """Build and persist a snapshot for a scan of *project_id*.

    Raises:
        ValidationError: when *scan_id* is empty.
        NotFoundError: when the scan does not belong to the project.
    """
    if not scan_id:
        raise ValidationError("scanId is required")
    scan = (
        session.query(Scan)
        .filter(Scan.id == scan_id, Scan.project_id == project_id)
        .one_or_none()
    )
    if scan is None:
        raise NotFoundError("Scan not found", scan_id=scan_id, project_id=project_id)

    data = build_snapshot_data(scan, crawl)
    session.add(ScanSnapshot(scan_id=scan.id, snapshot_data=data.to_dict()))
    session.flush()
    logger.info(
        "Saved snapshot for scan %s: %d pages, %d issues, score %d",
        scan.id, data.metrics.total_pages, data.issues.total, data.metrics.avg_seo_score,
    )
    return data


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

def list_snapshots(
    session: Session, project_id: str, limit: int = DEFAULT_HISTORY_LIMIT
) -> list[StoredSnapshot]:
    """Most recent snapshots of a project's scans, newest first."""
    rows = (
        session.query(ScanSnapshot)
        .join(Scan, ScanSnapshot.scan_id == Scan.id)
        .filter(Scan.project_id == project_id)
        .order_by(desc(ScanSnapshot.created_at), desc(ScanSnapshot.id))
        .limit(max(limit, 0))
        .all()
    )
    return [
        StoredSnapshot(
            id=row.id,
            scan_id=row.scan_id,
            created_at=row.created_at,
            snapshot_data=SnapshotData.model_validate(row.snapshot_data),
        )
        for row in rows
    ]


def trend_summary(snapshots: Sequence[StoredSnapshot]) -> TrendSummary:
    """Change from the oldest to the newest snapshot of a newest-first window."""
    if not snapshots:
        return TrendSummary()
    newest = snapshots[0].snapshot_data
    oldest = snapshots[-1].snapshot_data
    return TrendSummary(
        snapshot_count=len(snapshots),
        pages_change=newest.metrics.total_pages - oldest.metrics.total_pages,
        issues_change=newest.issues.total - oldest.issues.total,
        critical_change=newest.issues.critical - oldest.issues.critical,
        score_change=newest.metrics.avg_seo_score - oldest.metrics.avg_seo_score,
    )
