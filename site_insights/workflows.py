"""Analysis engine fanning a crawl out to the four site analyzers."""

import asyncio
import logging
import os
import threading
import time
from concurrent.futures import Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from site_insights.errors import AnalysisTimeoutError, EngineBusyError, ValidationError
from site_insights.modules.content_intelligence import (
    ContentIntelligenceThresholds,
    analyze_content,
)
from site_insights.modules.media_analysis import MediaThresholds, analyze_media
from site_insights.modules.reporting import SiteAuditReport, build_site_audit_report
from site_insights.modules.site_architecture import (
    SiteArchitectureThresholds,
    analyze_site_architecture,
)
from site_insights.modules.technical_health import (
    TechnicalHealthThresholds,
    analyze_technical_health,
)
from site_insights.schemas.crawl import CrawlData, parse_crawl

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisThresholds:
    """Tunable limits for every analyzer, grouped by report."""

    site_architecture: SiteArchitectureThresholds = field(default_factory=SiteArchitectureThresholds)
    technical_health: TechnicalHealthThresholds = field(default_factory=TechnicalHealthThresholds)
    content_intelligence: ContentIntelligenceThresholds = field(
        default_factory=ContentIntelligenceThresholds
    )
    media_analysis: MediaThresholds = field(default_factory=MediaThresholds)

    @classmethod
    def from_config(cls, config: Optional[dict[str, Any]]) -> "AnalysisThresholds":
        """Build from the ``thresholds`` section of settings.yaml.

        Missing sections and keys keep their defaults.

        Raises:
            ValidationError: on unknown keys or out-of-range values.
        """
        section = (config or {}).get("thresholds") or {}
        sections = {
            "site_architecture": SiteArchitectureThresholds,
            "technical_health": TechnicalHealthThresholds,
            "content_intelligence": ContentIntelligenceThresholds,
            "media_analysis": MediaThresholds,
        }
        built = {}
        for name, klass in sections.items():
            values = section.get(name) or {}
            try:
                built[name] = klass(**values)
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"Invalid thresholds.{name}: {exc}", section=name) from exc
        return cls(**built)


def _as_crawl(crawl: Union[CrawlData, dict]) -> CrawlData:
    return crawl if isinstance(crawl, CrawlData) else parse_crawl(crawl)


def analyze_site(
    crawl: Union[CrawlData, dict],
    thresholds: Optional[AnalysisThresholds] = None,
) -> SiteAuditReport:
    """Run every analyzer in the calling thread and aggregate the result."""
    crawl = _as_crawl(crawl)
    thresholds = thresholds or AnalysisThresholds()
    started = time.time()

    report = build_site_audit_report(
        analyze_site_architecture(crawl.pages, crawl.links, thresholds.site_architecture),
        analyze_technical_health(crawl.pages, crawl.links, thresholds.technical_health),
        analyze_content(crawl.pages, thresholds.content_intelligence),
        analyze_media(crawl.pages, thresholds.media_analysis),
    )
    logger.info("Analyzed %d pages in %.2fs", len(crawl.pages), time.time() - started)
    return report


class AnalysisEngine:
    """Concurrent site analysis with a deadline and bounded admission.

    The four analyzers run in parallel on a worker pool sized to the CPU
    count.  Requests beyond ``max_pending`` in-flight analyses are rejected
    with :class:`EngineBusyError`; an analysis that misses its deadline
    raises :class:`AnalysisTimeoutError` and returns nothing.

    Worker calls cannot be interrupted, so a timed-out analysis keeps its
    admission slot until every analyzer it started has returned.

    The analyzers are pure Python, so threads mostly overlap rather than run
    in parallel.  Pass ``process_workers`` to run content intelligence (the
    similarity clustering dominates CPU time) on a separate process pool.

    Usage::

        engine = AnalysisEngine(max_pending=4, timeout_seconds=30)
        report = await engine.analyze(crawl)
        engine.shutdown()
    """

    def __init__(
        self,
        thresholds: Optional[AnalysisThresholds] = None,
        max_workers: Optional[int] = None,
        max_pending: int = 8,
        timeout_seconds: Optional[float] = 60.0,
        process_workers: Optional[int] = None,
    ) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be >= 1")
        self.thresholds = thresholds or AnalysisThresholds()
        self.max_pending = max_pending
        self.timeout_seconds = timeout_seconds
        self._max_workers = max_workers or os.cpu_count() or 4
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="site-insights"
        )
        self._process_executor: Optional[ProcessPoolExecutor] = None
        if process_workers:
            self._process_executor = ProcessPoolExecutor(max_workers=process_workers)
        self._in_flight = 0
        self._lock = threading.Lock()
        logger.info(
            "AnalysisEngine initialized (workers=%d, processes=%s, max_pending=%d, timeout=%s)",
            self._max_workers, process_workers or 0, max_pending, timeout_seconds,
        )

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def _admit(self) -> None:
        with self._lock:
            if self._in_flight >= self.max_pending:
                logger.warning("Rejecting analysis: %d already in flight", self._in_flight)
                raise EngineBusyError(in_flight=self._in_flight, max_pending=self.max_pending)
            self._in_flight += 1

    def _release(self) -> None:
        with self._lock:
            self._in_flight -= 1

    def _release_when_done(self, futures: list[Future]) -> None:
        """Free the admission slot once every submitted analyzer has finished."""
        pending = [f for f in futures if not f.done()]
        if not pending:
            self._release()
            return

        logger.warning("Holding admission slot for %d abandoned analyzer call(s)", len(pending))
        remaining = [len(pending)]

        def _on_done(_future: Future) -> None:
            with self._lock:
                remaining[0] -= 1
                last = remaining[0] == 0
            if last:
                self._release()
                logger.debug("Abandoned analyzer calls finished, slot released")

        for future in pending:
            future.add_done_callback(_on_done)

    def _submit(self, crawl: CrawlData) -> list[Future]:
        t = self.thresholds
        content_pool = self._process_executor or self._executor
        return [
            self._executor.submit(
                analyze_site_architecture, crawl.pages, crawl.links, t.site_architecture
            ),
            self._executor.submit(
                analyze_technical_health, crawl.pages, crawl.links, t.technical_health
            ),
            content_pool.submit(analyze_content, crawl.pages, t.content_intelligence),
            self._executor.submit(analyze_media, crawl.pages, t.media_analysis),
        ]

    async def analyze(
        self,
        crawl: Union[CrawlData, dict],
        timeout: Optional[float] = None,
    ) -> SiteAuditReport:
        """Analyze one crawl; *timeout* overrides the engine default."""
        self._admit()
        futures: list[Future] = []
        try:
            crawl = _as_crawl(crawl)
            deadline = timeout if timeout is not None else self.timeout_seconds
            started = time.time()
            futures = self._submit(crawl)
            try:
                architecture, technical, content, media = await asyncio.wait_for(
                    asyncio.gather(*(asyncio.wrap_future(f) for f in futures)), deadline
                )
            except asyncio.TimeoutError as exc:
                logger.error(
                    "Analysis of %d pages exceeded %.2fs deadline", len(crawl.pages), deadline,
                )
                raise AnalysisTimeoutError(timeout=deadline) from exc
            logger.debug("Analyzers finished in %.2fs", time.time() - started)
        finally:
            self._release_when_done(futures)
        return build_site_audit_report(architecture, technical, content, media)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pools."""
        self._executor.shutdown(wait=wait, cancel_futures=True)
        if self._process_executor is not None:
            self._process_executor.shutdown(wait=wait, cancel_futures=True)
        logger.info("AnalysisEngine shut down.")
