"""SQLAlchemy ORM models: import every model so Base.metadata is populated."""

from site_insights.models.scan import (
    Project,
    Scan,
    ScanIssue,
    ScanSnapshot,
)

__all__ = [
    "Project",
    "Scan",
    "ScanIssue",
    "ScanSnapshot",
]
