"""Schema of the point-in-time scan snapshot stored with each completed scan."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from site_insights.schemas.base import ReportModel


class _Counters(ReportModel):
    @field_validator("*", mode="before")
    @classmethod
    def _null_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class SnapshotMetrics(_Counters):
    total_pages: int = 0
    indexable_pages: int = 0
    broken_links: int = 0
    avg_seo_score: int = 0


class SnapshotIssueCounts(_Counters):
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class SnapshotScanInfo(ReportModel):
    id: str
    status: Optional[str] = None
    pages_scanned: Optional[int] = None
    issues_found: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class SnapshotData(ReportModel):
    """Aggregate metrics of one scan, cached so history never recomputes."""

    timestamp: datetime
    metrics: SnapshotMetrics = Field(default_factory=SnapshotMetrics)
    issues: SnapshotIssueCounts = Field(default_factory=SnapshotIssueCounts)
    scan: Optional[SnapshotScanInfo] = None
