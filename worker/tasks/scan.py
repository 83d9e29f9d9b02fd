"""Scan orchestration background task."""

import asyncio
import time
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import urlparse

import structlog

from api.config import Settings, get_settings
from api.exceptions import InvalidScanTargetError, ScanFailedError
from api.logging import bind_scan_context, clear_scan_context
from api.metrics import record_scan_finished, record_scan_started, record_validation_checks
from api.sentry import set_scan_context
from worker.analysis.outcome import Failed
from worker.analysis.result import AnalysisResult, AuthorityReport, Recommendation
from worker.analysis.signals import CollectedFacts, RawMarkup
from worker.collectors.base import (
    CollectorSuite,
    CrawlOutput,
    ScanTarget,
    collect,
    load_collector_suite,
)
from worker.recommendations.treatment_plan import build_treatment_plan
from worker.scoring.calculator import calculate_scores, resolve_category_weights
from worker.validation.probe import UrlProbe
from worker.validation.reconciler import run_full_validation

logger = structlog.get_logger(__name__)


def normalize_url(url: str) -> str:
    """
    Normalize user input into an absolute http(s) URL.

    Raises:
        InvalidScanTargetError: If no hostname can be parsed
    """
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidScanTargetError(url)
    if not candidate.startswith(("http://", "https://")):
        candidate = f"https://{candidate}"

    try:
        parsed = urlparse(candidate)
        _ = parsed.port
    except ValueError as e:
        raise InvalidScanTargetError(url) from e

    hostname = parsed.hostname or ""
    if not hostname or " " in hostname or "." not in hostname.strip("."):
        raise InvalidScanTargetError(url)
    return candidate


def domain_for(url: str) -> str:
    """Hostname of ``url`` without a leading ``www.``."""
    hostname = (urlparse(url).hostname or "").lower()
    return hostname.removeprefix("www.")


async def _collect_phase_one(
    target: ScanTarget, collectors: CollectorSuite, settings: Settings
) -> tuple[CrawlOutput, CollectedFacts]:
    """Primary crawl plus every independent collector, concurrently."""
    names = CollectorSuite.PHASE_ONE
    crawl_outcome, *outcomes = await asyncio.gather(
        collect("crawl", collectors.crawl, target, timeout=settings.crawl_timeout_seconds),
        *(
            collect(
                name,
                getattr(collectors, name),
                target,
                timeout=settings.collector_timeout_seconds,
            )
            for name in names
        ),
    )

    if isinstance(crawl_outcome, Failed):
        raise ScanFailedError(target.url, crawl_outcome.reason)
    output: CrawlOutput = crawl_outcome.value
    if output.markup.is_empty:
        raise ScanFailedError(target.url, "empty markup")

    facts = CollectedFacts(crawl=output.crawl, **dict(zip(names, outcomes, strict=True)))
    logger.info(
        "scan_phase_completed",
        phase="collect",
        markup_bytes=output.markup.byte_size,
        failed=sorted(facts.failures()),
    )
    return output, facts


async def _collect_phase_two(
    target: ScanTarget,
    collectors: CollectorSuite,
    facts: CollectedFacts,
    markup: RawMarkup,
    settings: Settings,
) -> CollectedFacts:
    """Content analysis first, then identity synthesis and online presence together."""
    timeout = settings.collector_timeout_seconds

    page_analysis = await collect(
        "content_analyzer", collectors.content_analyzer, target, facts, markup, timeout=timeout
    )
    facts = replace(facts, page_analysis=page_analysis)

    dna, presence = await asyncio.gather(
        collect("dna_synthesizer", collectors.dna_synthesizer, target, facts, markup, timeout=timeout),
        collect("online_presence", collectors.online_presence, target, facts, markup, timeout=timeout),
    )
    facts = replace(facts, dna=dna, online_presence=presence)

    logger.info("scan_phase_completed", phase="analyze", failed=sorted(facts.failures()))
    return facts


def _authority_reports(
    collectors: CollectorSuite, result: AnalysisResult
) -> tuple[dict[str, AuthorityReport], bool]:
    """Reports from every generator, and whether any generator failed."""
    reports: dict[str, AuthorityReport] = {}
    failed = not collectors.authority_reports
    for generate in collectors.authority_reports:
        try:
            report = generate(result)
        except Exception as e:
            logger.warning(
                "authority_report_failed",
                generator=getattr(generate, "__name__", repr(generate)),
                error=str(e),
            )
            failed = True
            continue
        reports[report.key] = report
    return reports, failed


def _recommendations(
    collectors: CollectorSuite, result: AnalysisResult
) -> tuple[tuple[Recommendation, ...], bool]:
    if collectors.recommend is None:
        return (), True
    try:
        return tuple(collectors.recommend(result)), False
    except Exception as e:
        logger.warning("recommendations_failed", error=str(e))
        return (), True


def _derive(collectors: CollectorSuite, result: AnalysisResult) -> AnalysisResult:
    """Attach authority reports and recommendations computed from ``result``."""
    reports, reports_failed = _authority_reports(collectors, result)
    recommendations, recommendations_failed = _recommendations(collectors, result)
    return replace(
        result,
        authority_reports=reports,
        authority_reports_failed=reports_failed,
        recommendations=recommendations,
        recommendations_failed=recommendations_failed,
    )


async def run_scan(
    url: str,
    collectors: CollectorSuite,
    *,
    settings: Settings | None = None,
    probe: UrlProbe | None = None,
) -> AnalysisResult:
    """
    Run the full analysis pipeline for one URL.

    Args:
        url: Site URL as entered by the user (scheme optional)
        collectors: Signal sources for this scan
        settings: Application settings
        probe: Reachability probe for validation (built from settings when omitted)

    Returns:
        The validated AnalysisResult

    Raises:
        InvalidScanTargetError: If the URL cannot be parsed
        ScanFailedError: If the primary crawl fails; every other failure is
            isolated into the result
    """
    settings = settings or get_settings()
    normalized = normalize_url(url)
    target = ScanTarget(url=normalized, domain=domain_for(normalized))
    weights = resolve_category_weights(settings.category_weights)

    bind_scan_context(target.domain)
    set_scan_context(target.domain, normalized)
    record_scan_started()
    start_time = time.perf_counter()
    success = False

    try:
        logger.info("scan_started", url=normalized)
        output, facts = await _collect_phase_one(target, collectors, settings)
        markup = output.markup
        crawl_reliable = len(markup.html) > settings.crawl_min_html_bytes
        if not crawl_reliable:
            logger.warning(
                "crawl_unreliable",
                markup_chars=len(markup.html),
                threshold=settings.crawl_min_html_bytes,
            )

        facts = await _collect_phase_two(target, collectors, facts, markup, settings)

        result = AnalysisResult(
            url=normalized,
            domain=target.domain,
            facts=facts,
            markup_bytes=markup.byte_size,
            crawl_reliable=crawl_reliable,
            scoring=calculate_scores(facts, crawl_reliable, weights),
        )
        result = _derive(collectors, result)
        logger.info(
            "scan_phase_completed",
            phase="score",
            overall=result.scoring.overall,
            no_data=sorted(result.scoring.no_data_keys),
            recommendations=len(result.recommendations),
        )

        try:
            run = await run_full_validation(result, markup, probe=probe, settings=settings)
        except Exception as e:
            logger.error("validation_failed", error=str(e), exc_info=True)
        else:
            result = run.result
            if run.summary is not None:
                record_validation_checks(
                    run.summary.verified,
                    run.summary.unverified,
                    run.summary.filtered,
                )
            if run.changed_facts:
                result = _derive(collectors, result)

        result = replace(result, treatment_plan=build_treatment_plan(result.recommendations))

        summary = await collect(
            "ai_summarizer",
            collectors.ai_summarizer,
            result,
            timeout=settings.collector_timeout_seconds,
        )
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        result = replace(result, ai_summary=summary.value_or_none(), duration_ms=duration_ms)

        success = True
        logger.info(
            "scan_completed",
            overall=result.scoring.overall,
            crawl_reliable=crawl_reliable,
            verification_score=(
                result.validation.verification_score if result.validation else None
            ),
            duration_ms=duration_ms,
        )
        return result

    except ScanFailedError as e:
        logger.error("scan_failed", reason=e.details.get("reason"))
        raise

    finally:
        record_scan_finished(success, time.perf_counter() - start_time)
        clear_scan_context()


@dataclass
class ScanJobResult:
    """What a background scan job reports back through RQ."""

    domain: str
    overall: int
    scan_id: str | None
    persistence: dict[str, Any]
    task_sync: dict[str, Any] | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "overall": self.overall,
            "scan_id": self.scan_id,
            "persistence": self.persistence,
            "task_sync": self.task_sync,
        }


async def run_scan_and_persist(
    url: str,
    collectors: CollectorSuite | None = None,
    *,
    settings: Settings | None = None,
) -> ScanJobResult:
    """Scan, save the scan row, then reconcile the domain's tasks."""
    from api.services.scan_service import ScanService
    from api.services.task_service import SqlTaskStore
    from worker.tasks.locks import get_domain_locks
    from worker.tasks.task_sync import sync_tasks_from_scan

    settings = settings or get_settings()
    collectors = collectors or load_collector_suite(settings)

    result = await run_scan(url, collectors, settings=settings)
    persistence = await ScanService().save_scan(result)

    task_report = None
    if persistence.saved:
        task_report = await sync_tasks_from_scan(
            SqlTaskStore(),
            result.domain,
            result.recommendations,
            scan_id=persistence.scan_id,
            crawl_reliable=result.crawl_reliable,
            no_data_categories=result.scoring.no_data_keys,
            authority_reports=result.authority_reports,
            recommendations_failed=result.recommendations_failed,
            authority_reports_failed=result.authority_reports_failed,
            locks=get_domain_locks(),
            settings=settings,
        )
    else:
        logger.warning("task_sync_skipped", domain=result.domain, reason="scan not saved")

    return ScanJobResult(
        domain=result.domain,
        overall=result.scoring.overall,
        scan_id=str(persistence.scan_id) if persistence.scan_id else None,
        persistence=persistence.to_dict(),
        task_sync=task_report.to_dict() if task_report else None,
    )


def run_scan_job(url: str) -> dict:
    """
    Synchronous wrapper for the scan task.

    This is the entry point for RQ which requires sync functions.
    """
    from api.database import reset_engine

    # Fresh connections for the new event loop
    reset_engine()

    return asyncio.run(run_scan_and_persist(url)).to_dict()
