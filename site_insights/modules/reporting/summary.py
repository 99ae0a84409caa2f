"""Aggregate the four analysis reports into one site audit report."""

import logging
from datetime import datetime, timezone

from site_insights.modules.content_intelligence.analyzer import ContentIntelligenceData
from site_insights.modules.media_analysis.analyzer import MediaAnalysisData
from site_insights.modules.site_architecture.analyzer import SiteArchitectureData
from site_insights.modules.technical_health.analyzer import TechnicalHealthData
from site_insights.schemas.base import ReportModel, SeveritySummary

logger = logging.getLogger(__name__)

_GRADE_MAP = [
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
    (0, "F"),
]


def _grade_for(score: int) -> str:
    for threshold, letter in _GRADE_MAP:
        if score >= threshold:
            return letter
    return "F"


class OverallSummary(SeveritySummary):
    components: dict[str, SeveritySummary]
    health_score: int = 100
    grade: str = "A"


class SiteAuditReport(ReportModel):
    generated_at: datetime
    site_architecture: SiteArchitectureData
    technical_health: TechnicalHealthData
    content_intelligence: ContentIntelligenceData
    media_analysis: MediaAnalysisData
    summary: OverallSummary


def health_score(critical: int, warnings: int, passed: int) -> int:
    """0-100 score: passed checks over all weighted findings, criticals count double."""
    weighted = passed + warnings + 2 * critical
    if weighted == 0:
        return 100
    return (200 * passed + weighted) // (2 * weighted)


def build_overall_summary(
    site_architecture: SiteArchitectureData,
    technical_health: TechnicalHealthData,
    content_intelligence: ContentIntelligenceData,
    media_analysis: MediaAnalysisData,
) -> OverallSummary:
    """Sum the per-component severity rollups."""
    components = {
        "siteArchitecture": site_architecture.severity,
        "technicalHealth": technical_health.summary,
        "contentIntelligence": SeveritySummary(
            critical=content_intelligence.summary.critical,
            warnings=content_intelligence.summary.warnings,
            passed=content_intelligence.summary.passed,
        ),
        "mediaAnalysis": media_analysis.summary,
    }
    critical = sum(c.critical for c in components.values())
    warnings = sum(c.warnings for c in components.values())
    passed = sum(c.passed for c in components.values())
    score = health_score(critical, warnings, passed)
    return OverallSummary(
        critical=critical,
        warnings=warnings,
        passed=passed,
        components=components,
        health_score=score,
        grade=_grade_for(score),
    )


def build_site_audit_report(
    site_architecture: SiteArchitectureData,
    technical_health: TechnicalHealthData,
    content_intelligence: ContentIntelligenceData,
    media_analysis: MediaAnalysisData,
) -> SiteAuditReport:
    summary = build_overall_summary(
        site_architecture, technical_health, content_intelligence, media_analysis,
    )
    logger.info(
        "Site audit: critical=%d warnings=%d passed=%d score=%d grade=%s",
        summary.critical, summary.warnings, summary.passed, summary.health_score, summary.grade,
    )
    return SiteAuditReport(
        generated_at=datetime.now(timezone.utc),
        site_architecture=site_architecture,
        technical_health=technical_health,
        content_intelligence=content_intelligence,
        media_analysis=media_analysis,
        summary=summary,
    )
