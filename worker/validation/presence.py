"""Cross-checks of online presence data against crawl, markup and domain facts."""

from worker.analysis.signals import CrawlResult, DomainInfo, OnlinePresenceResult
from worker.validation.checks import ValidationCheck, removed, unverified, verified
from worker.validation.markup import MarkupFacts

# Archive age may lag registration; beyond this the domain likely changed hands
MAX_ARCHIVE_AGE_GAP_YEARS = 5

WEBMASTER_ENGINES = {
    "google": "Google Search Console",
    "bing": "Bing Webmaster",
    "yandex": "Yandex Webmaster",
}


def validate_online_presence(
    presence: OnlinePresenceResult,
    crawl: CrawlResult,
    markup: MarkupFacts,
    domain_info: DomainInfo | None = None,
) -> list[ValidationCheck]:
    """
    Check online presence facts.

    Webmaster verification tags the markup does not confirm are removed from
    ``presence`` in place.
    """
    checks: list[ValidationCheck] = []
    has_noindex = "noindex" in (crawl.meta_seo.robots or "").lower() or markup.has_noindex

    index = presence.search_index
    if not index.no_data:
        field_path = "online_presence.search_index"
        if index.is_indexed and has_noindex:
            checks.append(
                unverified(
                    field_path,
                    "Çelişki: Google'da indexli görünüyor ama noindex tag'i aktif; "
                    "Google henüz noindex'i işlememiş olabilir",
                )
            )
        elif not index.is_indexed and not has_noindex:
            checks.append(
                unverified(
                    field_path,
                    "Google'da indexli değil — site yeni olabilir veya crawl sorunu olabilir",
                )
            )
        elif index.is_indexed:
            checks.append(
                verified(field_path, f"Google'da indexli ({index.indexed_page_count} sayfa)")
            )
        else:
            checks.append(verified(field_path, "noindex aktif ve Google'da indexli değil — tutarlı"))

    history = presence.archive_history
    domain_age_days = domain_info.domain_age_days if domain_info is not None else None
    if history.website_age_years is not None and domain_age_days is not None:
        domain_years = domain_age_days / 365
        archive_years = history.website_age_years
        if abs(archive_years - domain_years) > MAX_ARCHIVE_AGE_GAP_YEARS:
            checks.append(
                unverified(
                    "online_presence.archive_history",
                    f"Wayback yaşı ({archive_years:.1f} yıl) ile domain yaşı "
                    f"({domain_years:.1f} yıl) arasında büyük fark — domain el değiştirmiş olabilir",
                )
            )
        else:
            checks.append(
                verified(
                    "online_presence.archive_history",
                    f"Wayback yaşı ({archive_years:.1f} yıl) domain yaşı "
                    f"({domain_years:.1f} yıl) ile tutarlı",
                )
            )
    elif history.snapshot_count > 0:
        checks.append(
            verified(
                "online_presence.archive_history",
                f"Wayback'te {history.snapshot_count} snapshot mevcut",
            )
        )

    webmaster = presence.webmaster_tags
    for engine, label in WEBMASTER_ENGINES.items():
        if not getattr(webmaster, engine):
            continue
        field_path = f"online_presence.webmaster_tags.{engine}"
        if markup.webmaster_tags.get(engine):
            checks.append(verified(field_path, f"{label} verification tag'i HTML'de doğrulandı"))
        else:
            setattr(webmaster, engine, False)
            checks.append(removed(field_path, f"{label} verification tag'i HTML'de bulunamadı"))
    if not (webmaster.google or webmaster.bing or webmaster.yandex):
        checks.append(
            unverified(
                "online_presence.webmaster_tags",
                "Hiçbir arama motoru doğrulama tag'i bulunamadı — Search Console kaydı önerilir",
            )
        )

    return checks
