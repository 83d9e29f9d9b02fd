"""Collector contract for the scan pipeline.

The pipeline does not know how signals are gathered. A deployment wires its
crawler, third-party API clients and AI synthesizers into a ``CollectorSuite``;
``run_scan`` only schedules them and isolates their failures.
"""

import asyncio
import importlib
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from api.config import Settings, get_settings
from api.exceptions import CollectorsNotConfiguredError
from api.metrics import record_collector_outcome
from worker.analysis.outcome import (
    TIMEOUT_REASON,
    CollectorOutcome,
    Failed,
    Success,
    failed_from_exception,
)
from worker.analysis.result import AnalysisResult, AuthorityReport, Recommendation
from worker.analysis.signals import (
    CollectedFacts,
    CrawlResult,
    DNSResult,
    DomainInfo,
    HTMLValidationResult,
    OnlinePresenceResult,
    PageAnalysis,
    PageSpeedResult,
    RawMarkup,
    SafeBrowsingResult,
    SecurityHeadersResult,
    SSLInfo,
    WebsiteDNA,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

NOT_CONFIGURED_REASON = "not configured"


@dataclass(frozen=True)
class ScanTarget:
    """Normalized scan input handed to every collector."""

    url: str
    domain: str


@dataclass(frozen=True)
class CrawlOutput:
    """What the primary crawl returns: parsed facts plus the raw page."""

    crawl: CrawlResult
    markup: RawMarkup


TargetCollector = Callable[[ScanTarget], Awaitable[T]]
FactsCollector = Callable[[ScanTarget, CollectedFacts, RawMarkup], Awaitable[T]]


@dataclass
class CollectorSuite:
    """
    The external signal sources used by one scan.

    Only ``crawl`` is mandatory. Any collector left as None is recorded as
    ``Failed("not configured")`` and the dependent categories fall back to
    their no-data handling.
    """

    crawl: TargetCollector[CrawlOutput | None]

    # Phase 1, run concurrently with the crawl
    page_speed: TargetCollector[PageSpeedResult] | None = None
    ssl: TargetCollector[SSLInfo] | None = None
    domain_info: TargetCollector[DomainInfo] | None = None
    security_headers: TargetCollector[SecurityHeadersResult] | None = None
    safe_browsing: TargetCollector[SafeBrowsingResult] | None = None
    dns: TargetCollector[DNSResult] | None = None
    html_validation: TargetCollector[HTMLValidationResult] | None = None

    # Phase 2, fed with the phase 1 facts
    content_analyzer: FactsCollector[PageAnalysis] | None = None
    dna_synthesizer: FactsCollector[WebsiteDNA] | None = None
    online_presence: FactsCollector[OnlinePresenceResult] | None = None

    # Pure, synchronous derivations over the scored result
    recommend: Callable[[AnalysisResult], Sequence[Recommendation]] | None = None
    authority_reports: Sequence[Callable[[AnalysisResult], AuthorityReport]] = ()
    ai_summarizer: Callable[[AnalysisResult], Awaitable[str | None]] | None = None

    PHASE_ONE = (
        "page_speed",
        "ssl",
        "domain_info",
        "security_headers",
        "safe_browsing",
        "dns",
        "html_validation",
    )


async def collect(
    name: str,
    call: Callable[..., Awaitable[T]] | None,
    *args: Any,
    timeout: float,
) -> CollectorOutcome[T]:
    """
    Run one collector under its own timeout and capture the outcome.

    Exceptions and timeouts never escape; they become ``Failed`` with a
    reason. A collector returning None is treated as a failure as well.
    """
    if call is None:
        record_collector_outcome(name, "not_configured")
        return Failed(NOT_CONFIGURED_REASON)

    try:
        async with asyncio.timeout(timeout):
            value = await call(*args)
    except TimeoutError:
        logger.warning("collector_timed_out", collector=name, timeout=timeout)
        record_collector_outcome(name, "timeout")
        return Failed(TIMEOUT_REASON)
    except Exception as e:
        logger.warning("collector_failed", collector=name, error=str(e))
        record_collector_outcome(name, "failed")
        return failed_from_exception(e)

    if value is None:
        logger.warning("collector_returned_nothing", collector=name)
        record_collector_outcome(name, "failed")
        return Failed("empty result")

    record_collector_outcome(name, "success")
    return Success(value)


def _import_factory(path: str) -> Callable[[Settings], CollectorSuite]:
    module_name, _, attr = path.replace(":", ".").rpartition(".")
    if not module_name:
        raise CollectorsNotConfiguredError(f"Invalid collector factory path: {path!r}")
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise CollectorsNotConfiguredError(
            f"Cannot load collector factory {path!r}: {e}"
        ) from e
    return factory  # type: ignore[no-any-return]


def load_collector_suite(settings: Settings | None = None) -> CollectorSuite:
    """Build the collector suite named by ``settings.collector_suite_factory``."""
    settings = settings or get_settings()
    if not settings.collector_suite_factory:
        raise CollectorsNotConfiguredError()

    factory = _import_factory(settings.collector_suite_factory)
    suite = factory(settings)
    logger.info("collector_suite_loaded", factory=settings.collector_suite_factory)
    return suite
