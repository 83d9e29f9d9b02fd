"""Tests for scan orchestration."""

import asyncio
import uuid
from contextlib import contextmanager
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from api.exceptions import InvalidScanTargetError, ScanFailedError
from api.models.task import TaskStatus
from api.services.scan_service import PersistenceFailure, PersistenceReport
from worker.analysis.outcome import Failed
from worker.analysis.result import (
    AnalysisResult,
    AuthorityReport,
    AuthorityVerdict,
    Priority,
    Recommendation,
)
from worker.analysis.signals import PageAnalysis, PageSpeedResult, PageSpeedScores, SSLInfo
from worker.collectors.base import CollectorSuite, CrawlOutput
from worker.tasks.scan import domain_for, normalize_url, run_scan, run_scan_and_persist
from worker.validation.probe import UrlProbe
from tests.fixtures.facts import (
    SITE_URL,
    blocked_html,
    make_crawl,
    make_markup,
    make_suite,
    raising,
    returning,
    sleeping,
)
from tests.fixtures.stores import InMemoryTaskStore, SlowListingTaskStore


@pytest.fixture
def probe() -> UrlProbe:
    transport = httpx.MockTransport(lambda request: httpx.Response(200))
    return UrlProbe(client=httpx.AsyncClient(transport=transport))


def thin_content(result: AnalysisResult) -> list[Recommendation]:
    """Recommends more content while the page looks thin."""
    if result.facts.crawl.content.word_count < 300:
        return [Recommendation(category="İçerik", title="İçerik çok az", priority=Priority.HIGH)]
    return []


def seo_report(result: AnalysisResult) -> AuthorityReport:
    return AuthorityReport(
        key="seo-authority",
        label="SEO Otorite",
        overall=result.scoring.categories["seo"].score,
        verdict=AuthorityVerdict.STRENGTHEN,
        action_plan=("Canonical etiketi ekle",),
    )


class TestNormalizeUrl:
    """Tests for URL normalization."""

    def test_adds_https(self):
        assert normalize_url("example.com") == "https://example.com"

    def test_keeps_explicit_scheme(self):
        assert normalize_url("http://example.com/about") == "http://example.com/about"

    def test_strips_whitespace(self):
        assert normalize_url("  example.com ") == "https://example.com"

    @pytest.mark.parametrize(
        "url",
        ["", "   ", "not a url", "localhost", "https://example.com:99999", "https://"],
    )
    def test_rejects_unparsable(self, url):
        with pytest.raises(InvalidScanTargetError):
            normalize_url(url)

    def test_domain_for_strips_www(self):
        assert domain_for("https://www.Example.com/path") == "example.com"
        assert domain_for("https://shop.example.com") == "shop.example.com"


class TestRunScan:
    """Tests for the scan pipeline."""

    async def test_collector_failures_are_isolated(self, settings, probe):
        settings.collector_timeout_seconds = 0.05
        suite = make_suite(
            page_speed=returning(PageSpeedResult(scores=PageSpeedScores(performance=72))),
            ssl=raising(ConnectionError("handshake failed")),
            dns=sleeping(1.0),
        )

        result = await run_scan("example.com", suite, settings=settings, probe=probe)

        assert result.url == SITE_URL
        assert result.domain == "example.com"
        assert result.facts.page_speed.is_success
        assert result.facts.ssl == Failed("ConnectionError: handshake failed")
        assert result.facts.dns == Failed("timeout")
        assert result.facts.domain_info == Failed("not configured")
        assert result.collector_failures["dns"] == "timeout"
        assert result.scoring.categories["performance"].score == 72
        assert result.crawl_reliable
        assert result.validation is not None

    async def test_failed_crawl_aborts(self, settings, probe):
        suite = CollectorSuite(crawl=raising(RuntimeError("connection reset")))

        with pytest.raises(ScanFailedError) as exc_info:
            await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        assert exc_info.value.details["reason"] == "RuntimeError: connection reset"

    async def test_crawl_without_result_aborts(self, settings, probe):
        suite = CollectorSuite(crawl=returning(None))

        with pytest.raises(ScanFailedError):
            await run_scan(SITE_URL, suite, settings=settings, probe=probe)

    async def test_empty_markup_aborts(self, settings, probe):
        output = CrawlOutput(crawl=make_crawl(), markup=make_markup("   "))
        suite = CollectorSuite(crawl=returning(output))

        with pytest.raises(ScanFailedError) as exc_info:
            await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        assert exc_info.value.details["reason"] == "empty markup"

    async def test_invalid_url(self, settings, probe):
        with pytest.raises(InvalidScanTargetError):
            await run_scan("not a url", make_suite(), settings=settings, probe=probe)

    async def test_unreliable_crawl(self, settings, probe):
        suite = make_suite(
            html=blocked_html(),
            page_speed=returning(PageSpeedResult(scores=PageSpeedScores(performance=60))),
            ssl=returning(SSLInfo(valid=True, days_until_expiry=90)),
        )

        result = await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        assert not result.crawl_reliable
        for key in ("seo", "accessibility", "best_practices", "content", "technology"):
            assert result.scoring.categories[key].no_data
        assert not result.scoring.categories["performance"].no_data
        assert not result.scoring.categories["security"].no_data
        assert result.validation is None

    async def test_reliability_threshold_is_configurable(self, settings, probe):
        settings.crawl_min_html_bytes = 50

        result = await run_scan(
            SITE_URL, make_suite(html=blocked_html()), settings=settings, probe=probe
        )

        assert result.crawl_reliable

    async def test_phase_two_sees_phase_one_facts(self, settings, probe):
        seen = {}

        async def content_analyzer(target, facts, markup):
            seen["ssl"] = facts.ssl.is_success
            seen["markup"] = markup.final_url
            return PageAnalysis()

        async def dna_synthesizer(target, facts, markup):
            seen["page_analysis"] = facts.page_analysis.is_success
            return None

        suite = make_suite(
            ssl=returning(SSLInfo(valid=True)),
            content_analyzer=content_analyzer,
            dna_synthesizer=dna_synthesizer,
        )

        result = await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        assert seen == {"ssl": True, "markup": SITE_URL, "page_analysis": True}
        assert result.facts.page_analysis.is_success
        assert result.facts.dna == Failed("empty result")

    async def test_recommendations_follow_validated_facts(self, settings, probe):
        suite = make_suite(crawl=make_crawl(word_count=50), recommend=thin_content)

        result = await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        assert result.facts.crawl.content.word_count == 403
        assert result.recommendations == ()
        assert result.treatment_plan.total_steps == 0

    async def test_treatment_plan_built_from_recommendations(self, settings, probe):
        canonical = Recommendation(category="SEO", title="Canonical ekle", priority=Priority.LOW)
        suite = make_suite(recommend=lambda result: [canonical])

        result = await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        assert [phase.id for phase in result.treatment_plan.phases] == ["ileri"]
        assert result.recommendation_keys == ["seo::canonical-ekle"]

    async def test_failing_generators_are_isolated(self, settings, probe):
        def broken(result):
            raise ValueError("template missing")

        suite = make_suite(recommend=broken, authority_reports=[broken, seo_report])

        result = await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        assert result.recommendations == ()
        assert list(result.authority_reports) == ["seo-authority"]
        assert result.recommendations_failed
        assert result.authority_reports_failed

    async def test_working_generators_are_not_flagged(self, settings, probe):
        suite = make_suite(recommend=lambda result: [], authority_reports=[seo_report])

        result = await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        assert not result.recommendations_failed
        assert not result.authority_reports_failed
        assert result.to_dict()["recommendations_failed"] is False

    async def test_missing_engine_counts_as_failed(self, settings, probe):
        result = await run_scan(SITE_URL, make_suite(), settings=settings, probe=probe)

        assert result.recommendations_failed
        assert result.authority_reports_failed

    async def test_ai_summary(self, settings, probe):
        result = await run_scan(
            SITE_URL,
            make_suite(ai_summarizer=returning("Site genel olarak sağlıklı.")),
            settings=settings,
            probe=probe,
        )

        assert result.ai_summary == "Site genel olarak sağlıklı."

    async def test_ai_summary_failure_is_isolated(self, settings, probe):
        result = await run_scan(
            SITE_URL,
            make_suite(ai_summarizer=raising(RuntimeError("quota"))),
            settings=settings,
            probe=probe,
        )

        assert result.ai_summary is None

    async def test_result_serializes(self, settings, probe):
        suite = make_suite(ssl=raising(OSError("refused")), authority_reports=[seo_report])

        result = await run_scan(SITE_URL, suite, settings=settings, probe=probe)

        data = result.to_dict()
        assert data["facts"]["ssl"] == {"status": "failed", "reason": "OSError: refused"}
        assert data["authority_reports"]["seo-authority"]["verdict"] == "guclendir"
        assert data["validation"]["total_checks"] > 0


class TestRunScanAndPersist:
    """Tests for the persisted scan job."""

    async def test_saves_scan_then_syncs_tasks(self, settings, probe):
        store = InMemoryTaskStore()
        scan_id = uuid.uuid4()
        suite = make_suite(
            recommend=lambda result: [Recommendation(category="SEO", title="Canonical ekle")]
        )

        with (
            patch("api.services.scan_service.ScanService.save_scan", new_callable=AsyncMock) as save,
            patch("api.services.task_service.SqlTaskStore", return_value=store),
            patch.object(UrlProbe, "from_settings", return_value=probe),
        ):
            save.return_value = PersistenceReport(scan_id=scan_id)
            job = await run_scan_and_persist(SITE_URL, suite, settings=settings)

        assert job.scan_id == str(scan_id)
        assert job.task_sync["created"] == 1
        assert store.get("example.com", "seo::canonical-ekle")["last_seen_scan_id"] == scan_id
        assert job.to_dict()["domain"] == "example.com"

    async def test_task_sync_skipped_when_scan_not_saved(self, settings, probe):
        store = InMemoryTaskStore()
        suite = make_suite(
            recommend=lambda result: [Recommendation(category="SEO", title="Canonical ekle")]
        )
        failure = PersistenceFailure(entity="scan", key="example.com", reason="db down")

        with (
            patch("api.services.scan_service.ScanService.save_scan", new_callable=AsyncMock) as save,
            patch("api.services.task_service.SqlTaskStore", return_value=store),
            patch.object(UrlProbe, "from_settings", return_value=probe),
        ):
            save.return_value = PersistenceReport(failures=[failure])
            job = await run_scan_and_persist(SITE_URL, suite, settings=settings)

        assert job.scan_id is None
        assert job.task_sync is None
        assert job.persistence["failures"][0]["reason"] == "db down"
        assert store.rows == {}

    @contextmanager
    def persisting_to(self, store, probe):
        """Scan rows always save; tasks go to ``store``."""
        with (
            patch("api.services.scan_service.ScanService.save_scan", new_callable=AsyncMock) as save,
            patch("api.services.task_service.SqlTaskStore", return_value=store),
            patch.object(UrlProbe, "from_settings", return_value=probe),
        ):
            save.side_effect = lambda result: PersistenceReport(scan_id=uuid.uuid4())
            yield

    async def persist(self, settings, probe, store, suite):
        with self.persisting_to(store, probe):
            return await run_scan_and_persist(SITE_URL, suite, settings=settings)

    async def test_fixed_task_is_verified(self, settings, probe):
        store = InMemoryTaskStore()
        store.add("example.com", "seo::canonical-ekle", status=TaskStatus.COMPLETED)

        job = await self.persist(settings, probe, store, make_suite(recommend=lambda result: []))

        assert job.task_sync["verified"] == 1
        assert store.get("example.com", "seo::canonical-ekle")["status"] == "verified"

    async def test_failed_engine_does_not_verify_completed_tasks(self, settings, probe):
        def broken(result):
            raise RuntimeError("engine down")

        store = InMemoryTaskStore()
        store.add("example.com", "seo::canonical-ekle", status=TaskStatus.COMPLETED)
        store.add(
            "example.com", "authority-seo::canonical-ekle", status=TaskStatus.COMPLETED
        )
        suite = make_suite(recommend=broken, authority_reports=[broken])

        job = await self.persist(settings, probe, store, suite)

        assert job.task_sync["verified"] == 0
        assert store.get("example.com", "seo::canonical-ekle")["status"] == "completed"
        assert store.get("example.com", "authority-seo::canonical-ekle")["status"] == "completed"

    async def test_concurrent_scans_of_one_domain_serialize_task_sync(self, settings, probe):
        store = SlowListingTaskStore()
        suite = make_suite(
            recommend=lambda result: [Recommendation(category="SEO", title="Canonical ekle")]
        )

        with self.persisting_to(store, probe):
            jobs = await asyncio.gather(
                run_scan_and_persist(SITE_URL, suite, settings=settings),
                run_scan_and_persist(SITE_URL, suite, settings=settings),
            )

        assert store.events == ["list", "insert", "list"]
        assert sorted(job.task_sync["created"] for job in jobs) == [0, 1]
        assert len(store.rows) == 1
