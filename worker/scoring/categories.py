"""Per-category rubrics.

Each rubric starts from a base value and adds or subtracts fixed points for
observed conditions. Rubrics return ``RubricScore`` (raw total plus the
rationale lines); the calculator owns clamping, ``no_data`` decisions and
the final ``CategoryScore``.

Collector slots arrive as ``CollectorOutcome`` values. A failed optional
input simply contributes no points.
"""

import re
from dataclasses import dataclass, field

from worker.analysis.outcome import all_failed
from worker.analysis.signals import (
    CollectedFacts,
    DomainInfo,
    OnlinePresenceResult,
    PageAnalysis,
    PageSpeedResult,
)

_FULL_DISALLOW = re.compile(r"^\s*disallow:\s*/\s*$", re.IGNORECASE)

SECURITY_HEADER_GRADE_POINTS = {"A+": 30, "A": 25, "B": 20, "C": 15, "D": 10, "F": 0}
UNKNOWN_GRADE_POINTS = 10


@dataclass
class RubricScore:
    points: float = 0.0
    details: list[str] = field(default_factory=list)

    def add(self, points: float, detail: str | None = None) -> None:
        self.points += points
        if detail:
            self.details.append(detail)

    def penalize(self, points: float, detail: str | None = None) -> None:
        self.points = max(0.0, self.points - points)
        if detail:
            self.details.append(detail)

    def note(self, detail: str) -> None:
        self.details.append(detail)


def score_performance(page_speed: PageSpeedResult, performance: int) -> RubricScore:
    rubric = RubricScore(points=performance)
    rubric.note(f"PageSpeed Performance: {performance}")

    vitals = page_speed.web_vitals
    if vitals.lcp is not None:
        if vitals.lcp <= 2500:
            rubric.note("LCP iyi (≤2.5s)")
        elif vitals.lcp > 4000:
            rubric.penalize(5, "LCP kötü (>4s)")
    if vitals.cls is not None:
        if vitals.cls <= 0.1:
            rubric.note("CLS iyi (≤0.1)")
        elif vitals.cls > 0.25:
            rubric.penalize(5, "CLS kötü (>0.25)")
    return rubric


def score_seo(facts: CollectedFacts) -> RubricScore:
    crawl = facts.crawl
    rubric = RubricScore()

    page_speed = facts.page_speed.value_or_none()
    if page_speed is not None and page_speed.scores.seo is not None:
        rubric.add(page_speed.scores.seo / 100 * 40, f"PageSpeed SEO: {page_speed.scores.seo}")

    title = crawl.basic_info.title
    if title:
        length = len(title)
        if 30 <= length <= 60:
            rubric.add(10, f"Başlık uzunluğu iyi ({length} karakter)")
        else:
            rubric.add(10, f"Başlık uzunluğu: {length} karakter (ideal: 30-60)")
    else:
        rubric.note("Başlık (title) eksik!")

    description = crawl.basic_info.meta_description
    if description:
        length = len(description)
        if 120 <= length <= 160:
            rubric.add(10, f"Meta açıklama uzunluğu iyi ({length})")
        else:
            rubric.add(10, f"Meta açıklama: {length} karakter (ideal: 120-160)")
    else:
        rubric.note("Meta açıklama eksik!")

    total_h1 = crawl.headings.total_h1
    if total_h1 == 1:
        rubric.add(10, "Tek H1 — doğru")
    elif total_h1 > 1:
        rubric.add(5, f"{total_h1} adet H1 — tek olmalı")
    else:
        rubric.note("H1 yok!")

    if crawl.meta_seo.canonical:
        rubric.add(5, "Canonical var")
    else:
        rubric.note("Canonical eksik")

    if len(crawl.meta_seo.og_tags) >= 3:
        rubric.add(5, "Open Graph tag'leri var")
    else:
        rubric.note("Open Graph eksik/yetersiz")

    if crawl.technical.has_sitemap:
        rubric.add(5, "Sitemap var")
    else:
        rubric.note("Sitemap yok")

    if crawl.technical.has_robots_txt:
        rubric.add(5, "Robots.txt var")
    else:
        rubric.note("Robots.txt yok")

    if crawl.technical.has_schema_org:
        rubric.add(5, "Schema.org / JSON-LD var")
    else:
        rubric.note("Yapılandırılmış veri (Schema) yok")

    if crawl.meta_seo.viewport:
        rubric.add(5)

    if "noindex" in (crawl.meta_seo.robots or "").lower():
        rubric.penalize(30, "noindex aktif — arama motorları sayfayı indexlemez!")

    if has_full_disallow(crawl.technical.robots_txt_content):
        rubric.penalize(15, "robots.txt tüm tarayıcıları engelliyor")

    return rubric


def has_full_disallow(robots_txt: str | None) -> bool:
    """True when robots.txt carries a bare ``Disallow: /`` line."""
    if not robots_txt:
        return False
    return any(_FULL_DISALLOW.match(line) for line in robots_txt.splitlines())


def score_security(facts: CollectedFacts) -> RubricScore:
    crawl = facts.crawl
    rubric = RubricScore()

    if crawl.security.is_https:
        rubric.add(25, "HTTPS aktif")
    else:
        rubric.note("HTTPS yok — kritik!")

    ssl = facts.ssl.value_or_none()
    if ssl is None:
        rubric.note("SSL verisi alınamadı")
    elif ssl.valid:
        rubric.add(20)
        if ssl.days_until_expiry is not None and ssl.days_until_expiry > 30:
            rubric.note(f"SSL geçerli ({ssl.days_until_expiry} gün)")
        elif ssl.days_until_expiry is not None:
            rubric.add(-5, f"SSL yakında bitiyor ({ssl.days_until_expiry} gün)")
    else:
        rubric.note("SSL sertifikası geçersiz")

    if not crawl.security.has_mixed_content:
        rubric.add(10)
    else:
        rubric.note(f"Mixed content: {len(crawl.security.mixed_content_urls)} sorun")

    headers = facts.security_headers.value_or_none()
    if headers is not None and headers.grade:
        points = SECURITY_HEADER_GRADE_POINTS.get(headers.grade, UNKNOWN_GRADE_POINTS)
        rubric.add(points, f"Güvenlik header'ları: {headers.grade}")
        if headers.missing_headers:
            rubric.note(f"Eksik: {', '.join(headers.missing_headers)}")

    safe_browsing = facts.safe_browsing.value_or_none()
    if safe_browsing is not None:
        if safe_browsing.safe:
            rubric.add(15, "Google Safe Browsing: temiz")
        else:
            rubric.note(f"Tehdit bulundu: {', '.join(safe_browsing.threats)}")

    return rubric


def score_accessibility(facts: CollectedFacts) -> RubricScore:
    crawl = facts.crawl
    rubric = RubricScore(points=50)

    page_speed = facts.page_speed.value_or_none()
    if page_speed is not None and page_speed.scores.accessibility is not None:
        rubric.points = page_speed.scores.accessibility
        rubric.note(f"PageSpeed Erişilebilirlik: {page_speed.scores.accessibility}")

    images = crawl.images
    if images.total > 0:
        alt_ratio = 1 - images.total_missing_alt / images.total
        if alt_ratio >= 0.9:
            rubric.note("Alt tag'ler iyi")
        else:
            rubric.penalize(
                10, f"{images.total_missing_alt}/{images.total} görselde alt tag eksik"
            )

    if crawl.basic_info.language:
        rubric.note("HTML lang attribute var")
    else:
        rubric.penalize(5, "HTML lang attribute eksik")

    return rubric


def score_best_practices(facts: CollectedFacts) -> RubricScore:
    crawl = facts.crawl
    rubric = RubricScore()

    page_speed = facts.page_speed.value_or_none()
    if page_speed is not None and page_speed.scores.best_practices is not None:
        rubric.add(
            page_speed.scores.best_practices / 100 * 40,
            f"PageSpeed Best Practices: {page_speed.scores.best_practices}",
        )

    validation = facts.html_validation.value_or_none()
    if validation is not None:
        if validation.errors == 0:
            rubric.add(20, "HTML hatasız")
        elif validation.errors < 10:
            rubric.add(10, f"{validation.errors} HTML hatası")
        else:
            rubric.note(f"{validation.errors} HTML hatası — çok fazla")

    if crawl.technical.has_sitemap:
        rubric.add(10)
    if crawl.technical.has_robots_txt:
        rubric.add(10)
    if crawl.basic_info.charset:
        rubric.add(5)

    if crawl.basic_info.favicon:
        rubric.add(5, "Favicon var")
    else:
        rubric.note("Favicon eksik")

    if crawl.meta_seo.viewport:
        rubric.add(5)

    if crawl.links.total_broken > 0:
        rubric.penalize(crawl.links.total_broken * 2, f"{crawl.links.total_broken} kırık link")

    return rubric


def score_domain_trust(facts: CollectedFacts) -> RubricScore:
    crawl = facts.crawl
    rubric = RubricScore()

    domain_info = facts.domain_info.value_or_none()
    age = domain_info.domain_age_days if domain_info else None
    if age is not None:
        if age > 1825:
            rubric.add(25, f"Domain {age // 365} yaşında")
        elif age > 365:
            rubric.add(15, f"Domain {age // 365} yaşında")
        else:
            rubric.add(5, f"Domain {age} günlük — yeni")

    ssl = facts.ssl.value_or_none()
    if crawl.security.is_https and ssl is not None and ssl.valid:
        rubric.add(15)

    page_analysis = facts.page_analysis.value_or_none()
    if page_analysis is not None:
        trust = page_analysis.trust_signals
        if trust.has_privacy_policy:
            rubric.add(8, "Gizlilik politikası var")
        if trust.has_terms:
            rubric.add(7, "Kullanım koşulları var")
        if trust.has_contact_info:
            rubric.add(8, "İletişim bilgisi var")
        if trust.has_email:
            rubric.add(4)
        if trust.has_phone_number:
            rubric.add(3)

    dns = facts.dns.value_or_none()
    if dns is not None:
        if dns.has_spf:
            rubric.add(5, "SPF kaydı var")
        if dns.has_dmarc:
            rubric.add(5, "DMARC kaydı var")
        if dns.mx_records:
            rubric.add(5, "MX kaydı var")

    if page_analysis is not None:
        social_count = len(page_analysis.social_links)
        if social_count >= 3:
            rubric.add(10, f"{social_count} sosyal medya linki")
        elif social_count > 0:
            rubric.add(5)

    return rubric


def score_content(facts: CollectedFacts) -> RubricScore:
    crawl = facts.crawl
    rubric = RubricScore()

    word_count = crawl.content.word_count
    if word_count >= 300:
        rubric.add(30, f"{word_count} kelime — iyi")
    elif word_count >= 100:
        rubric.add(15, f"{word_count} kelime — az")
    else:
        rubric.note(f"{word_count} kelime — çok az")

    headings = crawl.headings
    if headings.total_h1 >= 1 and headings.total_h2 >= 1:
        rubric.add(20, "Başlık hiyerarşisi var")
    elif headings.total_h1 >= 1:
        rubric.add(10)

    if crawl.links.total_internal >= 5:
        rubric.add(15, f"{crawl.links.total_internal} iç link")
    elif crawl.links.total_internal >= 1:
        rubric.add(7)

    if crawl.links.total_external >= 1:
        rubric.add(10)

    ratio = crawl.content.content_to_code_ratio
    if ratio >= 20:
        rubric.add(15)
    elif ratio >= 10:
        rubric.add(8)
    else:
        rubric.note(f"İçerik/kod oranı düşük (%{ratio:g})")

    if crawl.images.total >= 1:
        rubric.add(10, f"{crawl.images.total} görsel")
    else:
        rubric.note("Görsel yok")

    return rubric


def score_technology(facts: CollectedFacts) -> RubricScore:
    crawl = facts.crawl
    rubric = RubricScore()
    page_analysis: PageAnalysis | None = facts.page_analysis.value_or_none()

    if page_analysis is not None:
        analytics = page_analysis.analytics
        if analytics.has_google_analytics or analytics.has_gtm:
            rubric.add(30, "Google Analytics/GTM var")
        if analytics.has_meta_pixel:
            rubric.add(5, "Meta Pixel var")
        if analytics.other_tools:
            rubric.add(5, f"Diğer: {', '.join(analytics.other_tools)}")

    if crawl.tech_detection.platform:
        rubric.add(20, f"Platform: {crawl.tech_detection.platform}")

    if page_analysis is not None:
        if page_analysis.css_frameworks:
            rubric.add(10, f"CSS: {', '.join(page_analysis.css_frameworks)}")
        if page_analysis.fonts:
            rubric.add(10, f"Fontlar: {', '.join(page_analysis.fonts)}")

    if crawl.technical.has_schema_org:
        rubric.add(15)

    if page_analysis is not None and (page_analysis.cta.forms > 0 or page_analysis.cta.buttons > 0):
        rubric.add(10)

    return rubric


def score_online_presence(
    presence: OnlinePresenceResult, domain_info: DomainInfo | None
) -> RubricScore:
    rubric = RubricScore()

    index = presence.search_index
    if index.is_indexed:
        rubric.add(15, "Google'da indexli")
    else:
        rubric.note("Google'da indexli değil!")

    if index.indexed_page_count >= 10:
        rubric.add(10, f"{index.indexed_page_count} sayfa indexli")
    elif index.indexed_page_count > 0:
        rubric.note(f"Sadece {index.indexed_page_count} sayfa indexli")

    if index.has_rich_snippet:
        rubric.add(5, "Rich snippet mevcut")

    mentions = index.brand_mentions
    if mentions >= 50:
        rubric.add(10, f"{mentions} marka bahsetmesi")
    elif mentions >= 10:
        rubric.add(7, f"{mentions} marka bahsetmesi")
    elif mentions >= 1:
        rubric.add(5, f"{mentions} marka bahsetmesi")
    else:
        rubric.note("Dış sitelerde marka bahsetmesi yok")

    social = presence.social_presence
    if social.total_verified >= 3:
        rubric.add(15, f"{social.total_verified} sosyal profil doğrulandı")
    elif social.total_verified > 0:
        rubric.add(7, f"Sadece {social.total_verified} sosyal profil doğrulandı")
    else:
        rubric.note("Doğrulanmış sosyal profil yok")
    if social.total_invalid > 0:
        rubric.note(f"{social.total_invalid} sosyal profil erişilemiyor")

    webmaster = presence.webmaster_tags
    if webmaster.google:
        rubric.add(7, "Google Search Console doğrulandı")
    else:
        rubric.note("Google Search Console verification yok")
    if webmaster.bing:
        rubric.add(2, "Bing Webmaster doğrulandı")
    if webmaster.yandex:
        rubric.add(1, "Yandex Webmaster doğrulandı")

    snapshots = presence.archive_history.snapshot_count
    if snapshots >= 50:
        rubric.add(15, f"Wayback'te {snapshots} snapshot")
    elif snapshots >= 10:
        rubric.add(10, f"Wayback'te {snapshots} snapshot")
    elif snapshots >= 1:
        rubric.add(5, f"Wayback'te {snapshots} snapshot")
    else:
        rubric.note("Wayback Machine'de kayıt yok")

    structured = presence.structured_data
    if structured.schema_complete:
        rubric.add(5, f"Schema.org: {', '.join(structured.schema_types)}")
    else:
        rubric.note("Schema.org eksik/yetersiz")
    if structured.og_complete:
        rubric.add(5, "Open Graph tag'leri tam")
    else:
        rubric.note("Open Graph tag'leri eksik")

    _add_domain_age_bonus(rubric, domain_info)
    return rubric


def _add_domain_age_bonus(rubric: RubricScore, domain_info: DomainInfo | None) -> None:
    if domain_info is None or domain_info.domain_age_days is None:
        return
    years = domain_info.domain_age_days / 365
    if years >= 5:
        rubric.add(10, f"Domain {int(years)} yaşında (5+ yıl)")
    elif years >= 1:
        rubric.add(5, f"Domain {int(years)} yaşında")
    else:
        rubric.note(f"Domain {round(years * 12)} aylık — yeni")


def security_unavailable(facts: CollectedFacts) -> bool:
    return all_failed(facts.ssl, facts.security_headers, facts.safe_browsing)


def domain_trust_unavailable(facts: CollectedFacts) -> bool:
    return all_failed(facts.domain_info, facts.ssl, facts.dns, facts.page_analysis)
