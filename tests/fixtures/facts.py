"""Builders for crawl facts, raw markup and collector suites."""

import asyncio
from typing import Any

from worker.analysis.outcome import Success
from worker.analysis.result import AnalysisResult
from worker.analysis.signals import (
    BasicInfo,
    CollectedFacts,
    ContentStats,
    CrawlResult,
    HeadingStructure,
    MetaSEO,
    RawMarkup,
    TechDetection,
)
from worker.collectors.base import CollectorSuite, CrawlOutput
from worker.scoring.calculator import calculate_scores

SITE_URL = "https://example.com"

# Stylesheet filler; keeps a page above the reliability threshold without adding words
_CSS_FILLER = ".block{margin:0;padding:0;color:#333;}\n"


def page_html(
    *,
    title: str = "Örnek Ajans | Dijital Çözümler",
    words: int = 400,
    h1: int = 1,
    h2: int = 2,
    head: str = "",
    body: str = "",
    padding: int = 6000,
) -> str:
    """
    A plausible landing page.

    Visible words are ``words`` plus one per heading.
    """
    css = _CSS_FILLER * (padding // len(_CSS_FILLER) + 1) if padding else ""
    headings = "".join("<h1>Hoşgeldiniz</h1>" for _ in range(h1))
    headings += "".join("<h2>Hizmetler</h2>" for _ in range(h2))
    text = " ".join(["kelime"] * words)
    return (
        "<!DOCTYPE html><html lang='tr'><head>"
        f"<title>{title}</title>"
        "<meta name='description' content='Kurumsal web tasarım ve dijital pazarlama hizmetleri.'>"
        f"{head}<style>{css}</style></head>"
        f"<body>{headings}<p>{text}</p>{body}</body></html>"
    )


def blocked_html() -> str:
    """A bot wall: far below the reliability threshold."""
    return "<html><head><title>Just a moment</title></head><body>Checking your browser</body></html>"


def make_crawl(
    *,
    url: str = SITE_URL,
    title: str = "Örnek Ajans | Dijital Çözümler",
    meta_description: str = "Kurumsal web tasarım ve dijital pazarlama hizmetleri.",
    word_count: int = 403,
    total_h1: int = 1,
    total_h2: int = 2,
    platform: str | None = None,
    favicon: str | None = None,
    og_tags: dict[str, str] | None = None,
) -> CrawlResult:
    return CrawlResult(
        basic_info=BasicInfo(
            url=url,
            final_url=url,
            title=title,
            meta_description=meta_description,
            favicon=favicon,
            language="tr",
            charset="utf-8",
        ),
        headings=HeadingStructure(
            h1=["Hoşgeldiniz"] * total_h1,
            h2=["Hizmetler"] * total_h2,
            total_h1=total_h1,
            total_h2=total_h2,
        ),
        meta_seo=MetaSEO(og_tags=og_tags or {}),
        content=ContentStats(word_count=word_count, paragraph_count=1),
        tech_detection=TechDetection(
            platform=platform,
            confidence=80 if platform else 0,
            signals=["meta generator"] if platform else [],
        ),
    )


def make_facts(crawl: CrawlResult | None = None, **outcomes: Any) -> CollectedFacts:
    """CollectedFacts with plain values wrapped in Success."""
    wrapped = {
        name: value if hasattr(value, "is_success") else Success(value)
        for name, value in outcomes.items()
    }
    return CollectedFacts(crawl=crawl or make_crawl(), **wrapped)


def make_markup(html: str | None = None, final_url: str = SITE_URL) -> RawMarkup:
    return RawMarkup(html=page_html() if html is None else html, final_url=final_url)


def returning(value: Any):
    """An async collector that returns ``value`` whatever it is given."""

    async def _collector(*_args: Any) -> Any:
        return value

    return _collector


def raising(exc: Exception):
    async def _collector(*_args: Any) -> Any:
        raise exc

    return _collector


def sleeping(seconds: float, value: Any = None):
    async def _collector(*_args: Any) -> Any:
        await asyncio.sleep(seconds)
        return value

    return _collector


def make_suite(
    crawl: CrawlResult | None = None,
    html: str | None = None,
    **collectors: Any,
) -> CollectorSuite:
    """A collector suite whose crawl returns fixed facts and markup."""
    output = CrawlOutput(crawl=crawl or make_crawl(), markup=make_markup(html))
    return CollectorSuite(crawl=returning(output), **collectors)


def make_result(
    facts: CollectedFacts | None = None,
    *,
    crawl_reliable: bool = True,
) -> AnalysisResult:
    """An initially scored AnalysisResult for ``facts``."""
    facts = facts or make_facts()
    return AnalysisResult(
        url=SITE_URL,
        domain="example.com",
        facts=facts,
        markup_bytes=len(page_html()),
        crawl_reliable=crawl_reliable,
        scoring=calculate_scores(facts, crawl_reliable),
    )


def build_suite(settings: Any) -> CollectorSuite:
    """Collector suite factory loadable by dotted path."""
    return make_suite()
