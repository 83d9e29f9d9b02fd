"""Cross-checks of the identity synthesis ("DNA") against collected facts."""

import re

from worker.analysis.signals import CrawlResult, DNSResult, DomainInfo, WebsiteDNA
from worker.validation.checks import ValidationCheck, corrected, removed, unverified, verified
from worker.validation.markup import MarkupFacts

MIN_SITE_TYPE_CONFIDENCE = 50

_ECOMMERCE_PLATFORM = re.compile(r"shopify|woocommerce|magento|prestashop|opencart", re.I)
_CART_PATTERN = re.compile(r"cart|sepet|checkout|ödeme", re.I)
_PRICING_PATTERN = re.compile(r"pricing|fiyat|subscribe|abone", re.I)
_SIGNUP_PATTERN = re.compile(r"sign.?up|free.?trial|ücretsiz.?dene", re.I)
_B2B_PATTERN = re.compile(r"enterprise|api|integration|b2b|kurumsal|demo|case.?study", re.I)
_B2C_PATTERN = re.compile(r"add.?to.?cart|sepete.?ekle|kargo|wishlist|b2c", re.I)

# Site types that cannot carry a store without a real commerce platform
_NON_STORE_SITE_TYPES = frozenset({"corporate", "blog", "portfolio", "landing-page"})


def _is_ecommerce_platform(crawl: CrawlResult) -> bool:
    return bool(_ECOMMERCE_PLATFORM.search(crawl.tech_detection.platform or ""))


def validate_dna(
    dna: WebsiteDNA,
    crawl: CrawlResult,
    markup: MarkupFacts,
    dns: DNSResult | None = None,
    domain_info: DomainInfo | None = None,
) -> list[ValidationCheck]:
    """
    Check the identity synthesis against crawler, DNS and markup facts.

    Corrections are applied to ``dna`` in place; the crawler's platform
    detection wins over the synthesizer's guess.
    """
    checks: list[ValidationCheck] = []
    html = markup.html_lower

    identity = dna.identity
    if identity.site_type_confidence >= MIN_SITE_TYPE_CONFIDENCE:
        checks.append(
            verified(
                "dna.identity.site_type",
                f"Site türü: {identity.site_type} (güven: %{identity.site_type_confidence})",
            )
        )
    elif identity.site_type != "unknown":
        checks.append(
            corrected(
                "dna.identity.site_type",
                f"Site türü güveni düşük: {identity.site_type} "
                f'(%{identity.site_type_confidence}), "unknown" olarak',
            )
        )
        identity.site_type = "unknown"
        identity.site_type_confidence = 0
    else:
        checks.append(unverified("dna.identity.site_type", "Site türü tespit edilemedi"))

    if identity.industry:
        checks.append(verified("dna.identity.industry", f"Sektör: {identity.industry}"))
    else:
        checks.append(
            unverified(
                "dna.identity.industry",
                "Sektör tespit edilemedi (AI sentezi başarısız olmuş olabilir)",
            )
        )

    if domain_info is not None and domain_info.domain_age_days is not None:
        checks.append(_check_maturity(dna, domain_info.domain_age_days))

    checks.append(_check_scale(dna, crawl))

    revenue_check = _check_revenue_model(dna, crawl, html)
    if revenue_check is not None:
        checks.append(revenue_check)

    stack = dna.tech_stack
    if stack.hosting:
        nameservers = " ".join(dns.nameservers).lower() if dns is not None else ""
        hosting = stack.hosting.lower()
        if hosting in nameservers or hosting in html:
            checks.append(verified("dna.tech_stack.hosting", f"Hosting doğrulandı: {stack.hosting}"))
        else:
            checks.append(
                removed(
                    "dna.tech_stack.hosting",
                    f'Hosting "{stack.hosting}" nameserver/HTML\'de doğrulanamadı',
                )
            )
            stack.hosting = None

    crawler_platform = crawl.tech_detection.platform
    if stack.platform and crawler_platform:
        ours, theirs = stack.platform.lower(), crawler_platform.lower()
        if ours == theirs or ours in theirs or theirs in ours:
            checks.append(
                verified("dna.tech_stack.platform", f"Platform tutarlı: {stack.platform}")
            )
        else:
            checks.append(
                corrected(
                    "dna.tech_stack.platform",
                    f'Platform uyumsuzluğu: DNA="{stack.platform}" vs '
                    f'Crawler="{crawler_platform}", crawler değeri ile',
                )
            )
            stack.platform = crawler_platform

    if dna.ai_synthesis.summary:
        checks.append(verified("dna.ai_synthesis", "AI DNA sentezi başarılı"))
    else:
        checks.append(unverified("dna.ai_synthesis", "AI DNA sentezi alınamadı — özet eksik"))

    audience_check = _check_audience(dna, html)
    if audience_check is not None:
        checks.append(audience_check)

    if dna.content_structure.has_ecommerce:
        checks.append(_check_ecommerce_flag(dna, crawl))

    return checks


def _check_maturity(dna: WebsiteDNA, domain_age_days: int) -> ValidationCheck:
    maturity = dna.maturity
    age_years = domain_age_days / 365

    if maturity.level == "veteran" and age_years < 2:
        months = round(age_years * 12)
        maturity.level = "growing"
        maturity.signals.append("Validator: domain yaşı çelişkisi düzeltildi")
        return corrected(
            "dna.maturity.level",
            f'Olgunluk çelişkisi: "veteran" ama domain sadece {months} aylık, "growing" olarak',
        )
    if maturity.level == "newborn" and age_years > 5:
        maturity.level = "young"
        maturity.signals.append("Validator: domain yaşı çelişkisi düzeltildi")
        return corrected(
            "dna.maturity.level",
            f'Olgunluk çelişkisi: "newborn" ama domain {round(age_years)} yaşında, '
            f'"young" olarak',
        )
    return verified(
        "dna.maturity.level",
        f"Olgunluk tutarlı: {maturity.level} "
        f"(domain: {round(age_years)} yıl, skor: {maturity.score})",
    )


def _check_scale(dna: WebsiteDNA, crawl: CrawlResult) -> ValidationCheck:
    scale = dna.scale
    sitemap_pages = crawl.technical.sitemap_page_count or 0
    internal_links = max(len(crawl.links.internal), crawl.links.total_internal)

    if scale.level == "enterprise" and sitemap_pages < 100 and internal_links < 50:
        scale.level = "large"
        scale.signals.append("Validator: ölçek düzeltildi")
        return corrected(
            "dna.scale.level",
            f'Ölçek çelişkisi: "enterprise" ama sitemap {sitemap_pages} sayfa, '
            f'{internal_links} iç link, "large" olarak',
        )
    if scale.level == "single-page" and internal_links > 10:
        scale.level = "small"
        scale.signals.append("Validator: ölçek düzeltildi")
        return corrected(
            "dna.scale.level",
            f'Ölçek çelişkisi: "single-page" ama {internal_links} iç link, "small" olarak',
        )
    return verified(
        "dna.scale.level",
        f"Ölçek tutarlı: {scale.level} (~{scale.estimated_pages or 0} sayfa)",
    )


def _check_revenue_model(dna: WebsiteDNA, crawl: CrawlResult, html: str) -> ValidationCheck | None:
    revenue = dna.revenue_model
    if revenue.primary == "e-commerce":
        platform_ok = _is_ecommerce_platform(crawl)
        cart_ok = bool(_CART_PATTERN.search(html))
        if not platform_ok and not cart_ok:
            revenue.primary = "unknown"
            revenue.signals.append("Validator: e-commerce doğrulanamadı")
            return corrected(
                "dna.revenue_model.primary",
                'Gelir modeli çelişkisi: "e-commerce" ama ne platform ne sepet/ödeme '
                'pattern\'i var, "unknown" olarak',
            )
        evidence = "platform var" if platform_ok else "sepet/ödeme var"
        return verified(
            "dna.revenue_model.primary", f"Gelir modeli doğrulandı: e-commerce ({evidence})"
        )

    if revenue.primary == "saas":
        pricing_ok = bool(_PRICING_PATTERN.search(html))
        signup_ok = bool(_SIGNUP_PATTERN.search(html))
        if not pricing_ok and not signup_ok:
            revenue.primary = "unknown"
            revenue.signals.append("Validator: saas doğrulanamadı")
            return corrected(
                "dna.revenue_model.primary",
                'Gelir modeli çelişkisi: "saas" ama pricing/signup pattern\'i yok, '
                '"unknown" olarak',
            )
        evidence = "pricing var" if pricing_ok else "signup var"
        return verified("dna.revenue_model.primary", f"Gelir modeli doğrulandı: SaaS ({evidence})")

    if revenue.primary != "unknown":
        return verified("dna.revenue_model.primary", f"Gelir modeli: {revenue.primary}")
    return None


def _check_audience(dna: WebsiteDNA, html: str) -> ValidationCheck | None:
    market = dna.target_market
    platforms = [p.lower() for p in dna.contact.social_platforms]

    if market.audience == "B2B":
        keyword_ok = bool(_B2B_PATTERN.search(html))
        linkedin_ok = any("linkedin" in p for p in platforms)
        if not keyword_ok and not linkedin_ok:
            market.audience = "unknown"
            return corrected(
                "dna.target_market.audience",
                "B2B tespiti doğrulanamadı (ne enterprise/API sinyali ne LinkedIn var), "
                '"unknown" olarak',
            )
        evidence = "keyword sinyali" if keyword_ok else "LinkedIn"
        return verified("dna.target_market.audience", f"Hedef kitle doğrulandı: B2B ({evidence} var)")

    if market.audience == "B2C":
        keyword_ok = bool(_B2C_PATTERN.search(html))
        consumer_social_ok = any("instagram" in p or "tiktok" in p for p in platforms)
        if not keyword_ok and not consumer_social_ok:
            market.audience = "unknown"
            return corrected(
                "dna.target_market.audience",
                "B2C tespiti doğrulanamadı (ne sepet/kargo sinyali ne Instagram/TikTok var), "
                '"unknown" olarak',
            )
        evidence = "alışveriş sinyali" if keyword_ok else "tüketici sosyal medya"
        return verified("dna.target_market.audience", f"Hedef kitle doğrulandı: B2C ({evidence} var)")

    return None


def _check_ecommerce_flag(dna: WebsiteDNA, crawl: CrawlResult) -> ValidationCheck:
    site_type = dna.identity.site_type
    platform_ok = _is_ecommerce_platform(crawl)

    if not platform_ok and site_type in _NON_STORE_SITE_TYPES:
        dna.content_structure.has_ecommerce = False
        return corrected(
            "dna.content_structure.has_ecommerce",
            f'E-Ticaret çelişkisi: site türü "{site_type}" ama gerçek e-ticaret platformu yok, '
            "has_ecommerce=false olarak",
        )
    evidence = "platform mevcut" if platform_ok else "site türü uyumlu"
    return verified("dna.content_structure.has_ecommerce", f"E-Ticaret tutarlı: {evidence}")
