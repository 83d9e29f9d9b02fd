"""Task categories.

Recommendations carry a human category ("Güvenlik", "Best Practices").
Tasks are filed under a category slug, and each slug is backed by one or
more scoring categories. The task synchronizer uses that backing to decide
whether a scan had enough data to confirm a fix.
"""

from dataclasses import dataclass

from worker.recommendations.keys import fold_text
from worker.scoring.calculator import CategoryKey

FALLBACK_CATEGORY = "diger"


@dataclass(frozen=True)
class TaskCategory:
    slug: str
    label: str
    scoring_keys: tuple[str, ...]
    recommendation_categories: tuple[str, ...]


TASK_CATEGORIES: tuple[TaskCategory, ...] = (
    TaskCategory(
        slug="performans",
        label="Performans",
        scoring_keys=(CategoryKey.PERFORMANCE,),
        recommendation_categories=("Performans",),
    ),
    TaskCategory(
        slug="guvenlik",
        label="Güvenlik",
        scoring_keys=(CategoryKey.SECURITY, CategoryKey.DOMAIN_TRUST),
        recommendation_categories=("Güvenlik", "Domain Güven"),
    ),
    TaskCategory(
        slug="teknoloji",
        label="Teknoloji",
        scoring_keys=(
            CategoryKey.TECHNOLOGY,
            CategoryKey.BEST_PRACTICES,
            CategoryKey.ACCESSIBILITY,
        ),
        recommendation_categories=("Teknoloji", "Best Practices", "Erişilebilirlik"),
    ),
    TaskCategory(
        slug="seo",
        label="SEO",
        scoring_keys=(CategoryKey.SEO,),
        recommendation_categories=("SEO",),
    ),
    TaskCategory(
        slug="icerik",
        label="İçerik",
        scoring_keys=(CategoryKey.CONTENT,),
        recommendation_categories=("İçerik",),
    ),
    TaskCategory(
        slug="dijital-varlik",
        label="Dijital Varlık",
        scoring_keys=(CategoryKey.ONLINE_PRESENCE,),
        recommendation_categories=("Dijital Varlık",),
    ),
)

_BY_SLUG = {category.slug: category for category in TASK_CATEGORIES}
_BY_RECOMMENDATION_CATEGORY = {
    fold_text(name): category
    for category in TASK_CATEGORIES
    for name in category.recommendation_categories
}

# Authority report key -> task category slug
AUTHORITY_CATEGORIES = {
    "seo-authority": "seo",
    "geo-authority": "seo",
    "aeo-authority": "seo",
    "blog-authority": "icerik",
    "backlink-authority": "dijital-varlik",
}


def category_slug_for(recommendation_category: str) -> str:
    """Task category slug for a recommendation's category, or ``diger``."""
    category = _BY_RECOMMENDATION_CATEGORY.get(fold_text(recommendation_category.strip()))
    return category.slug if category else FALLBACK_CATEGORY


def authority_category_slug(report_key: str) -> str:
    return AUTHORITY_CATEGORIES.get(report_key, "seo")


def scoring_keys_for(slug: str) -> tuple[str, ...]:
    """Scoring categories backing a task category (empty for unknown slugs)."""
    category = _BY_SLUG.get(slug)
    return category.scoring_keys if category else ()
