"""Validation and reconciliation of a scan result.

Runs after initial scoring. Every checkable fact is compared against an
independent derivation (raw markup, reachability probes, DNS and domain
data). Facts that disagree are corrected or removed on a private copy, the
scoring engine is run again on the corrected facts, and a new
``AnalysisResult`` is returned together with the validation summary.

The reconciler never adds facts; when in doubt it removes.
"""

import copy
import time
from dataclasses import dataclass, replace

import structlog

from api.config import Settings, get_settings
from worker.analysis.result import AnalysisResult
from worker.analysis.signals import CollectedFacts, RawMarkup
from worker.scoring.calculator import calculate_scores, resolve_category_weights
from worker.validation.checks import ValidationCheck, ValidationSummary
from worker.validation.dna import validate_dna
from worker.validation.markup import derive_markup_facts
from worker.validation.presence import validate_online_presence
from worker.validation.probe import UrlProbe
from worker.validation.scores import validate_scores
from worker.validation.scraper import (
    check_cookie_consent,
    check_markup_facts,
    check_reachability,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ValidationRun:
    """Corrected result plus the summary (None when nothing was checked)."""

    result: AnalysisResult
    summary: ValidationSummary | None

    @property
    def changed_facts(self) -> bool:
        return self.summary is not None and self.summary.filtered > 0


def should_validate(result: AnalysisResult, markup: RawMarkup | None) -> bool:
    return markup is not None and not markup.is_empty and result.crawl_reliable


async def run_full_validation(
    result: AnalysisResult,
    markup: RawMarkup | None,
    *,
    probe: UrlProbe | None = None,
    settings: Settings | None = None,
) -> ValidationRun:
    """
    Validate a scan result and reconcile disagreeing facts.

    Args:
        result: Initially scored analysis result
        markup: Raw markup of the primary page
        probe: Reachability probe (built from settings when omitted)
        settings: Application settings

    Returns:
        ValidationRun with the corrected, re-scored result. When the crawl is
        unreliable or the markup is empty, the result is returned unchanged
        and no summary is produced.
    """
    if not should_validate(result, markup):
        logger.info(
            "validation_skipped",
            domain=result.domain,
            crawl_reliable=result.crawl_reliable,
        )
        return ValidationRun(result=result, summary=None)

    settings = settings or get_settings()
    probe = probe or UrlProbe.from_settings(settings)
    start_time = time.perf_counter()

    facts: CollectedFacts = copy.deepcopy(result.facts)
    crawl = facts.crawl
    page_analysis = facts.page_analysis.value_or_none()
    markup_facts = derive_markup_facts(markup.html)

    checks: list[ValidationCheck] = []
    checks.extend(check_markup_facts(crawl, markup_facts))
    if page_analysis is not None:
        checks.append(check_cookie_consent(page_analysis))
    checks.extend(await check_reachability(crawl, page_analysis, probe))

    dna = facts.dna.value_or_none()
    if dna is not None:
        checks.extend(
            validate_dna(
                dna,
                crawl,
                markup_facts,
                dns=facts.dns.value_or_none(),
                domain_info=facts.domain_info.value_or_none(),
            )
        )

    presence = facts.online_presence.value_or_none()
    if presence is not None:
        checks.extend(
            validate_online_presence(
                presence, crawl, markup_facts, facts.domain_info.value_or_none()
            )
        )

    weights = resolve_category_weights(settings.category_weights)
    rescored = calculate_scores(facts, result.crawl_reliable, weights)
    scoring, score_checks = validate_scores(rescored, weights)
    checks.extend(score_checks)

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    summary = ValidationSummary.from_checks(checks, duration_ms)

    if summary is None:
        return ValidationRun(result=result, summary=None)

    logger.info(
        "validation_completed",
        domain=result.domain,
        verified=summary.verified,
        total_checks=summary.total_checks,
        filtered=summary.filtered,
        verification_score=summary.verification_score,
        overall_before=result.scoring.overall,
        overall_after=scoring.overall,
        duration_ms=duration_ms,
    )

    return ValidationRun(
        result=replace(result, facts=facts, scoring=scoring, validation=summary),
        summary=summary,
    )
