"""Typer CLI application for SEO Site Insights.

Provides commands to analyze crawl exports, export pages and issues to
CSV, record scans, snapshot them and compare scans over time.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from site_insights.errors import SiteInsightsError

console = Console()
app = typer.Typer(
    name="site-insights",
    help="SEO Site Insights -- site architecture, technical health, content and media audits.",
    add_completion=False,
    no_args_is_help=True,
)

CONFIG_OPTION = typer.Option("config/settings.yaml", "--config", "-c", help="Path to settings.yaml.")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context."""
    return asyncio.run(coro)


def _get_app(config: str, init_database: bool = True):
    """Lazy-import and return an initialised SiteInsights instance."""
    from site_insights.app import SiteInsights
    insights = SiteInsights(config_path=config)
    insights.initialize(init_database=init_database)
    return insights


def _fail(exc: SiteInsightsError) -> None:
    console.print("[red]\u2718 " + type(exc).__name__ + ":[/red] " + str(exc))
    raise typer.Exit(code=1)


def _severity_cell(value: int, style: str) -> str:
    return "[" + style + "]" + str(value) + "[/" + style + "]" if value else str(value)


def _print_summary(report) -> None:
    """Pretty-print the per-component severity rollup using Rich."""
    table = Table(title="Site Audit Summary", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", min_width=22)
    table.add_column("Critical", justify="right")
    table.add_column("Warnings", justify="right")
    table.add_column("Passed", justify="right")

    for name, summary in report.summary.components.items():
        table.add_row(
            name,
            _severity_cell(summary.critical, "red"),
            _severity_cell(summary.warnings, "yellow"),
            _severity_cell(summary.passed, "green"),
        )
    table.add_row(
        "[bold]Total[/bold]",
        _severity_cell(report.summary.critical, "red"),
        _severity_cell(report.summary.warnings, "yellow"),
        _severity_cell(report.summary.passed, "green"),
    )
    console.print(table)
    console.print(
        "\nHealth score: [bold]" + str(report.summary.health_score)
        + "[/bold] (grade " + report.summary.grade + ")"
    )


def _print_findings(report, limit: int = 5) -> None:
    """Show the worst offenders of each report in one table."""
    from site_insights.utils.helpers import (
        format_bytes,
        format_load_time,
        get_image_filename,
        truncate_text,
        truncate_url,
    )

    rows = []
    for page in report.technical_health.slow_pages[:limit]:
        rows.append(("Slow page", truncate_url(page.url), format_load_time(page.load_time_ms)))
    for page in report.technical_health.large_pages[:limit]:
        rows.append(("Large page", truncate_url(page.url), format_bytes(page.size_bytes)))
    for link in report.technical_health.broken_links[:limit]:
        rows.append(("Broken link", truncate_url(link.destination_url), str(link.http_status or "no response")))
    for page in report.content_intelligence.critical_thin_content[:limit]:
        rows.append((
            "Thin content",
            truncate_url(page.url),
            str(page.word_count) + " words " + truncate_text(page.title or "", 30),
        ))
    for image in report.media_analysis.images_missing_alt_list[:limit]:
        rows.append(("Missing alt", truncate_url(image.page_url), get_image_filename(image.image_src)))

    if not rows:
        return
    table = Table(title="Top Findings", show_header=True, header_style="bold magenta")
    table.add_column("Finding", style="cyan")
    table.add_column("Where")
    table.add_column("Detail", justify="right")
    for row in rows:
        table.add_row(*row)
    console.print(table)


# ------------------------------------------------------------------
# analyze
# ------------------------------------------------------------------
@app.command()
def analyze(
    crawl_path: Path = typer.Argument(..., help="Crawl export (JSON with pages, links, issues)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON report here."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Run all four analyzers on a crawl export."""
    _setup_logging(verbose)
    from site_insights.schemas.crawl import load_crawl

    console.print(Panel("[bold cyan]Site Analysis: " + str(crawl_path) + "[/bold cyan]"))
    try:
        insights = _get_app(config, init_database=False)
        crawl = load_crawl(crawl_path)
        engine = insights.create_engine()
        try:
            with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
                progress.add_task(description="Analyzing " + str(len(crawl.pages)) + " pages...", total=None)
                report = _run_async(engine.analyze(crawl))
        finally:
            engine.shutdown()
    except SiteInsightsError as exc:
        _fail(exc)

    _print_summary(report)
    _print_findings(report)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        console.print("Report saved to: [bold]" + str(output) + "[/bold]")
    console.print("[green]\u2714[/green] Analysis complete.")


# ------------------------------------------------------------------
# export
# ------------------------------------------------------------------
@app.command()
def export(
    crawl_path: Path = typer.Argument(..., help="Crawl export (JSON)."),
    kind: str = typer.Option("pages", "--kind", "-k", help="What to export: pages or issues."),
    output: Path = typer.Option(..., "--output", "-o", help="Destination CSV file."),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Export crawl pages or issues as a spreadsheet-friendly CSV."""
    _setup_logging(verbose)
    from site_insights.modules.reporting import (
        ISSUES_EXPORT_COLUMNS,
        PAGES_EXPORT_COLUMNS,
        write_csv,
    )
    from site_insights.schemas.crawl import load_crawl

    if kind not in ("pages", "issues"):
        console.print("[yellow]--kind must be 'pages' or 'issues'[/yellow]")
        raise typer.Exit(code=1)

    try:
        crawl = load_crawl(crawl_path)
    except SiteInsightsError as exc:
        _fail(exc)

    if kind == "pages":
        path = write_csv(output, crawl.pages, PAGES_EXPORT_COLUMNS)
        count = len(crawl.pages)
    else:
        urls = {page.id: page.url for page in crawl.pages}
        rows = [
            {
                "page_url": urls.get(issue.page_id, ""),
                "issue_type": issue.issue_type,
                "severity": issue.severity,
                "description": issue.description,
                "created_at": issue.created_at,
            }
            for issue in crawl.issues
        ]
        path = write_csv(output, rows, ISSUES_EXPORT_COLUMNS)
        count = len(rows)
    console.print("[green]\u2714[/green] Exported " + str(count) + " " + kind + " to [bold]" + str(path) + "[/bold]")


# ------------------------------------------------------------------
# record
# ------------------------------------------------------------------
@app.command()
def record(
    project: str = typer.Argument(..., help="Project id."),
    crawl_path: Path = typer.Argument(..., help="Crawl export (JSON)."),
    snapshot: bool = typer.Option(True, "--snapshot/--no-snapshot", help="Also store a snapshot."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Record a completed scan (and optionally its snapshot) for a project."""
    _setup_logging(verbose)
    from site_insights.database import get_session
    from site_insights.modules.scan_comparison import record_scan, save_snapshot
    from site_insights.schemas.crawl import load_crawl

    try:
        _get_app(config)
        crawl = load_crawl(crawl_path)
        with get_session() as session:
            scan = record_scan(session, project, crawl)
            scan_id = scan.id
            if snapshot:
                save_snapshot(session, project, scan_id, crawl)
    except SiteInsightsError as exc:
        _fail(exc)

    console.print("[green]\u2714[/green] Recorded scan [bold]" + scan_id + "[/bold] for project " + project)


# ------------------------------------------------------------------
# snapshot
# ------------------------------------------------------------------
@app.command("snapshot")
def snapshot_cmd(
    project: str = typer.Argument(..., help="Project id."),
    scan_id: str = typer.Argument(..., help="Scan id."),
    crawl_path: Path = typer.Argument(..., help="Crawl export the scan was recorded from."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Store a point-in-time snapshot for an existing scan."""
    _setup_logging(verbose)
    from site_insights.database import get_session
    from site_insights.modules.scan_comparison import save_snapshot
    from site_insights.schemas.crawl import load_crawl

    try:
        _get_app(config)
        crawl = load_crawl(crawl_path)
        with get_session() as session:
            data = save_snapshot(session, project, scan_id, crawl)
    except SiteInsightsError as exc:
        _fail(exc)

    console.print_json(json.dumps(data.to_dict()))
    console.print("[green]\u2714[/green] Snapshot saved.")


# ------------------------------------------------------------------
# compare
# ------------------------------------------------------------------
@app.command()
def compare(
    project: str = typer.Argument(..., help="Project id."),
    scan1: Optional[str] = typer.Option(None, "--scan1", help="Earlier scan id."),
    scan2: Optional[str] = typer.Option(None, "--scan2", help="Later scan id."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw comparison JSON."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Compare two scans of a project."""
    _setup_logging(verbose)
    from site_insights.database import get_session
    from site_insights.modules.scan_comparison import compare_scans

    try:
        _get_app(config)
        with get_session() as session:
            comparison = compare_scans(session, project, scan1, scan2)
    except SiteInsightsError as exc:
        _fail(exc)

    if as_json:
        console.print_json(json.dumps(comparison.to_dict()))
        return

    m1, m2 = comparison.scan1.metrics, comparison.scan2.metrics
    table = Table(title="Scan Comparison", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan", min_width=18)
    table.add_column("Scan 1", justify="right")
    table.add_column("Scan 2", justify="right")
    for label, field in (
        ("Pages", "total_pages"),
        ("Issues", "total_issues"),
        ("Critical", "critical_issues"),
        ("Warnings", "warning_issues"),
        ("Broken links", "broken_links"),
        ("Avg SEO score", "avg_score"),
    ):
        table.add_row(label, str(getattr(m1, field)), str(getattr(m2, field)))
    console.print(table)

    changes = comparison.changes
    console.print(
        "New issues: [red]" + str(changes.new_issues) + "[/red]  "
        "Fixed: [green]" + str(changes.fixed_issues) + "[/green]  "
        "New pages: " + str(changes.new_pages) + "  "
        "Removed pages: " + str(changes.removed_pages)
    )


# ------------------------------------------------------------------
# history
# ------------------------------------------------------------------
@app.command()
def history(
    project: str = typer.Argument(..., help="Project id."),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Max snapshots to show."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show recent snapshots of a project and the trend across them."""
    _setup_logging(verbose)
    from site_insights.database import get_session
    from site_insights.modules.scan_comparison import list_snapshots, trend_summary

    try:
        insights = _get_app(config)
        with get_session() as session:
            snapshots = list_snapshots(session, project, limit or insights.history_limit)
    except SiteInsightsError as exc:
        _fail(exc)

    if not snapshots:
        console.print("[yellow]No snapshots recorded for " + project + "[/yellow]")
        return

    table = Table(title="Snapshot History: " + project, show_header=True, header_style="bold magenta")
    table.add_column("Taken", style="cyan")
    table.add_column("Scan")
    table.add_column("Pages", justify="right")
    table.add_column("Issues", justify="right")
    table.add_column("Critical", justify="right")
    table.add_column("Score", justify="right")
    for snap in snapshots:
        data = snap.snapshot_data
        table.add_row(
            data.timestamp.strftime("%Y-%m-%d %H:%M"),
            snap.scan_id[:8],
            str(data.metrics.total_pages),
            str(data.issues.total),
            str(data.issues.critical),
            str(data.metrics.avg_seo_score),
        )
    console.print(table)

    trend = trend_summary(snapshots)
    console.print(
        "Trend over " + str(trend.snapshot_count) + " snapshots: pages "
        + f"{trend.pages_change:+d}, issues {trend.issues_change:+d}, "
        + f"critical {trend.critical_change:+d}, score {trend.score_change:+d}"
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
