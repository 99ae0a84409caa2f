"""Report aggregation and CSV export."""

from site_insights.modules.reporting.export import (
    ISSUES_EXPORT_COLUMNS,
    PAGES_EXPORT_COLUMNS,
    ExportColumn,
    escape_csv_value,
    export_csv,
    format_boolean_for_export,
    format_date_for_export,
    generate_csv,
    write_csv,
)
from site_insights.modules.reporting.summary import (
    OverallSummary,
    SiteAuditReport,
    build_overall_summary,
    build_site_audit_report,
    health_score,
)

__all__ = [
    "ISSUES_EXPORT_COLUMNS",
    "PAGES_EXPORT_COLUMNS",
    "ExportColumn",
    "escape_csv_value",
    "export_csv",
    "format_boolean_for_export",
    "format_date_for_export",
    "generate_csv",
    "write_csv",
    "OverallSummary",
    "SiteAuditReport",
    "build_overall_summary",
    "build_site_audit_report",
    "health_score",
]
