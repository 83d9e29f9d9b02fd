"""Checks of crawler and content-analyzer facts against the raw markup.

Functions here work on the reconciler's private copies of the facts and
correct or remove them in place.
"""

from urllib.parse import urlparse

from worker.analysis.signals import CrawlResult, PageAnalysis
from worker.scoring.categories import has_full_disallow
from worker.validation.checks import ValidationCheck, corrected, removed, unverified, verified
from worker.validation.markup import MarkupFacts
from worker.validation.probe import UrlProbe

FAVICON_SERVICE = "https://www.google.com/s2/favicons?domain={domain}&sz=32"

MAX_EXTERNAL_LINKS = 20
MAX_IMAGES = 10

# Word count disagreement tolerated before the markup count wins
WORD_COUNT_MIN_TOLERANCE = 25
WORD_COUNT_RELATIVE_TOLERANCE = 0.2

PLATFORM_FINGERPRINTS: dict[str, tuple[str, ...]] = {
    "wordpress": ("wp-content", "wp-includes", "wp-json", "wordpress"),
    "shopify": ("cdn.shopify.com", "shopify.theme", "shopify"),
    "wix": ("wixstatic.com", "wix-code-sdk", "x-wix-"),
    "squarespace": ("squarespace.com", "static1.squarespace.com"),
    "webflow": ("webflow.com", "w-nav", "w-container"),
    "joomla": ("/media/jui/", "/components/com_", "joomla"),
    "drupal": ("drupal.settings", "/sites/default/files/"),
    "next.js": ("__next_data__", "/_next/"),
    "gatsby": ("___gatsby", "gatsby"),
}


def _short(url: str) -> str:
    return url[:60]


def check_markup_facts(crawl: CrawlResult, markup: MarkupFacts) -> list[ValidationCheck]:
    """Compare crawler facts with facts re-derived from the markup."""
    checks: list[ValidationCheck] = []
    info = crawl.basic_info

    if not info.title:
        checks.append(unverified("crawl.basic_info.title", "Başlık bulunamadı"))
    elif markup.title:
        checks.append(verified("crawl.basic_info.title", "HTML'de <title> doğrulandı"))
    else:
        checks.append(unverified("crawl.basic_info.title", "HTML'de <title> bulunamadı"))

    if not info.meta_description:
        checks.append(unverified("crawl.basic_info.meta_description", "Meta açıklama yok"))
    elif markup.has_meta_description:
        checks.append(verified("crawl.basic_info.meta_description", "Meta açıklama doğrulandı"))
    else:
        checks.append(
            unverified("crawl.basic_info.meta_description", "Meta açıklama HTML'de bulunamadı")
        )

    if crawl.meta_seo.canonical:
        if markup.has_canonical:
            checks.append(verified("crawl.meta_seo.canonical", "Canonical URL doğrulandı"))
        else:
            checks.append(unverified("crawl.meta_seo.canonical", "Canonical HTML'de bulunamadı"))

    is_https = info.final_url.startswith("https://")
    checks.append(
        verified("crawl.security.is_https", "HTTPS bağlantısı aktif")
        if is_https
        else unverified("crawl.security.is_https", "Güvensiz bağlantı — HTTPS yok")
    )

    checks.append(_check_word_count(crawl, markup))
    checks.append(_check_headings(crawl, markup))

    if markup.json_ld_total:
        if markup.json_ld_invalid == 0:
            checks.append(
                verified("crawl.technical.schema_types", f"{markup.json_ld_valid} JSON-LD bloğu geçerli")
            )
        else:
            checks.append(
                unverified(
                    "crawl.technical.schema_types",
                    f"{markup.json_ld_invalid}/{markup.json_ld_total} JSON-LD bloğu geçersiz",
                )
            )

    platform_check = _check_platform(crawl, markup)
    if platform_check is not None:
        checks.append(platform_check)

    checks.append(_check_indexability(crawl, markup))
    checks.append(_check_content_emptiness(crawl))
    return checks


def _check_word_count(crawl: CrawlResult, markup: MarkupFacts) -> ValidationCheck:
    reported = crawl.content.word_count
    derived = markup.word_count
    tolerance = max(WORD_COUNT_MIN_TOLERANCE, derived * WORD_COUNT_RELATIVE_TOLERANCE)
    if abs(reported - derived) <= tolerance:
        return verified("crawl.content.word_count", f"Kelime sayısı tutarlı ({reported})")

    crawl.content.word_count = derived
    return corrected(
        "crawl.content.word_count",
        f"Kelime sayısı uyumsuz: {reported} vs HTML {derived}, {derived} olarak",
    )


def _check_headings(crawl: CrawlResult, markup: MarkupFacts) -> ValidationCheck:
    headings = crawl.headings
    consistent = (
        abs(markup.h1_count - headings.total_h1) <= 1
        and abs(markup.h2_count - headings.total_h2) <= 1
    )
    if consistent:
        return verified("crawl.headings", "Heading sayıları HTML ile tutarlı")
    return unverified(
        "crawl.headings",
        f"Heading uyumsuzluğu: H1 {headings.total_h1} vs {markup.h1_count}, "
        f"H2 {headings.total_h2} vs {markup.h2_count}",
    )


def _check_platform(crawl: CrawlResult, markup: MarkupFacts) -> ValidationCheck | None:
    detection = crawl.tech_detection
    if not detection.platform:
        return None

    platform = detection.platform
    patterns = PLATFORM_FINGERPRINTS.get(platform.lower(), ())
    if any(markup.contains(pattern) for pattern in patterns):
        return verified("crawl.tech_detection.platform", f"{platform} HTML'de doğrulandı")

    detection.platform = None
    detection.confidence = 0
    detection.signals = []
    return removed("crawl.tech_detection.platform", f"{platform} HTML'de doğrulanamadı")


def _check_indexability(crawl: CrawlResult, markup: MarkupFacts) -> ValidationCheck:
    crawler_noindex = "noindex" in (crawl.meta_seo.robots or "").lower()
    if crawler_noindex and markup.has_noindex:
        return unverified(
            "crawl.meta_seo.robots",
            "Meta robots noindex tespit edildi — arama motorları bu sayfayı indexlemez",
        )
    if crawler_noindex or markup.has_noindex:
        source = "crawler" if crawler_noindex else "HTML"
        return unverified(
            "crawl.meta_seo.robots",
            f"Meta robots noindex yalnızca {source} tarafında görüldü; indexlenebilirlik belirsiz",
        )
    if has_full_disallow(crawl.technical.robots_txt_content):
        return unverified(
            "crawl.meta_seo.robots", "robots.txt tüm tarayıcıları engelliyor (Disallow: /)"
        )
    return verified("crawl.meta_seo.robots", "Sayfa indexlenebilir durumda")


def _check_content_emptiness(crawl: CrawlResult) -> ValidationCheck:
    word_count = crawl.content.word_count
    if word_count < 50:
        return unverified(
            "crawl.content",
            f"Sadece {word_count} kelime — site henüz beslenmemiş veya içerik çok yetersiz",
        )
    if word_count < 150:
        return unverified(
            "crawl.content", f"{word_count} kelime — içerik zayıf, minimum 300 kelime önerilir"
        )
    return verified("crawl.content", f"{word_count} kelime — yeterli içerik mevcut")


def check_cookie_consent(page_analysis: PageAnalysis) -> ValidationCheck:
    consent = page_analysis.cookie_consent
    if consent.detected:
        return verified(
            "page_analysis.cookie_consent",
            f"Cookie consent tespit edildi: {', '.join(consent.patterns)}",
        )
    return unverified(
        "page_analysis.cookie_consent",
        "Cookie consent/banner bulunamadı — KVKK/GDPR uyumluluğu risk altında",
    )


async def check_reachability(
    crawl: CrawlResult,
    page_analysis: PageAnalysis | None,
    probe: UrlProbe,
) -> list[ValidationCheck]:
    """Probe the URLs the facts point at; unreachable ones are removed or replaced."""
    checks: list[ValidationCheck] = []
    info = crawl.basic_info

    domain_ok = await probe.is_accessible(info.final_url)
    checks.append(
        verified("crawl.basic_info.final_url", "Domain erişilebilir")
        if domain_ok
        else unverified("crawl.basic_info.final_url", "Domain erişilemiyor")
    )

    if page_analysis is not None and page_analysis.social_links:
        reachable = await probe.check_many(link.url for link in page_analysis.social_links)
        kept = []
        for link in page_analysis.social_links:
            field_path = f"page_analysis.social_links.{link.platform}"
            if reachable.get(link.url, False):
                kept.append(link)
                checks.append(verified(field_path, f"{link.platform} linki erişilebilir"))
            else:
                checks.append(removed(field_path, f"{link.platform} linki erişilemiyor"))
        page_analysis.social_links = kept

    og_image = crawl.meta_seo.og_tags.get("og:image")
    if og_image:
        if await probe.is_accessible(og_image):
            checks.append(verified("crawl.meta_seo.og_tags.og:image", "OG Image erişilebilir"))
        else:
            del crawl.meta_seo.og_tags["og:image"]
            checks.append(removed("crawl.meta_seo.og_tags.og:image", "OG Image erişilemiyor"))

    if info.favicon:
        if await probe.is_accessible(info.favicon):
            checks.append(verified("crawl.basic_info.favicon", "Favicon erişilebilir"))
        else:
            domain = urlparse(info.final_url).hostname or ""
            info.favicon = FAVICON_SERVICE.format(domain=domain)
            checks.append(
                removed(
                    "crawl.basic_info.favicon",
                    "Orijinal favicon erişilemiyor, Google fallback kullanılıyor",
                )
            )

    external_urls = [link.href for link in crawl.links.external[:MAX_EXTERNAL_LINKS]]
    if external_urls:
        reachable = await probe.check_many(external_urls)
        broken = 0
        for url, ok in reachable.items():
            if ok:
                checks.append(verified("crawl.links.external", f"Dış link erişilebilir: {_short(url)}"))
            else:
                broken += 1
                checks.append(unverified("crawl.links.external", f"Kırık dış link: {_short(url)}"))
        if broken:
            checks.append(
                unverified(
                    "crawl.links.external.summary",
                    f"{broken}/{len(reachable)} dış link erişilemiyor",
                )
            )

    image_urls = [
        image.src for image in crawl.images.images[:MAX_IMAGES] if image.src.startswith("http")
    ]
    if image_urls:
        reachable = await probe.check_many(image_urls)
        unreachable = sum(1 for ok in reachable.values() if not ok)
        if unreachable == 0:
            checks.append(verified("crawl.images", f"İlk {len(reachable)} görsel erişilebilir"))
        else:
            checks.append(
                unverified("crawl.images", f"{unreachable}/{len(reachable)} görsel erişilemiyor")
            )

    return checks
