"""
export.py - CSV export of crawl pages and issues

Produces spreadsheet-friendly CSV: one header row, one row per record,
fields quoted only when they contain a comma, a quote or a line break.
The byte form starts with a UTF-8 BOM so Excel picks the right encoding.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Sequence, Union

logger = logging.getLogger(__name__)

BOM = "\ufeff"


@dataclass(frozen=True)
class ExportColumn:
    key: str
    header: str
    formatter: Optional[Callable[[Any], Any]] = None


def format_date_for_export(value: Union[str, date, datetime, None]) -> str:
    """Render a date or timestamp as ``YYYY-MM-DD`` (UTC for aware values)."""
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Unparseable date for export: %r", value)
            return ""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        value = value.date()
    return value.isoformat()


def format_boolean_for_export(value: Optional[bool]) -> str:
    if value is None:
        return ""
    return "Yes" if value else "No"


PAGES_EXPORT_COLUMNS: tuple[ExportColumn, ...] = (
    ExportColumn("url", "URL"),
    ExportColumn("title", "Title"),
    ExportColumn("meta_description", "Meta Description"),
    ExportColumn("word_count", "Word Count"),
    ExportColumn("http_status", "HTTP Status"),
    ExportColumn("load_time_ms", "Load Time (ms)"),
    ExportColumn("depth", "Depth"),
    ExportColumn("is_indexable", "Indexable", format_boolean_for_export),
)

ISSUES_EXPORT_COLUMNS: tuple[ExportColumn, ...] = (
    ExportColumn("page_url", "Page URL"),
    ExportColumn("issue_type", "Issue Type"),
    ExportColumn("severity", "Severity"),
    ExportColumn("description", "Description"),
    ExportColumn("created_at", "Created At", format_date_for_export),
)


_QUOTE_TRIGGERS = (",", "\"", "\n", "\r")


def escape_csv_value(value: Any) -> str:
    """Render one CSV field, quoting it only when it contains a delimiter."""
    if value is None:
        return ""
    text = str(value)
    if any(ch in text for ch in _QUOTE_TRIGGERS):
        return '"' + text.replace('"', '""') + '"'
    return text


def _field(row: Any, key: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def generate_csv(rows: Iterable[Any], columns: Sequence[ExportColumn]) -> str:
    """Build CSV text for *rows* (dicts or objects) using *columns*.

    Rows are joined with ``\\n`` and the text has no trailing newline.

    Example:
        >>> generate_csv([{"url": "a,b"}], [ExportColumn("url", "URL")])
        'URL\\n"a,b"'
    """
    lines = [",".join(escape_csv_value(col.header) for col in columns)]
    for row in rows:
        values = []
        for col in columns:
            value = _field(row, col.key)
            if col.formatter is not None:
                value = col.formatter(value)
            values.append(escape_csv_value(value))
        lines.append(",".join(values))

    logger.debug("Generated CSV with %d row(s) and %d column(s)", len(lines) - 1, len(columns))
    return "\n".join(lines)


def export_csv(rows: Iterable[Any], columns: Sequence[ExportColumn]) -> bytes:
    """CSV as UTF-8 bytes prefixed with a byte-order mark."""
    return (BOM + generate_csv(rows, columns)).encode("utf-8")


def write_csv(
    path: Union[str, Path],
    rows: Iterable[Any],
    columns: Sequence[ExportColumn],
) -> Path:
    """Write the BOM-prefixed CSV to *path* and return it."""
    path = Path(path)
    if not path.name.endswith(".csv"):
        path = path.with_name(path.name + ".csv")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(export_csv(rows, columns))
    logger.info("CSV exported: %s", path)
    return path
