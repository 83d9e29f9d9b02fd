"""Site score calculator.

Turns the collected facts of one scan into nine weighted category scores
and an overall score:

- Performance (18%)
- SEO (18%)
- Security (14%)
- Accessibility (9%)
- Best Practices (9%)
- Domain Trust (9%)
- Content (9%)
- Technology (4%)
- Online Presence (10%)

A category whose inputs are unavailable is marked ``no_data``. It keeps a
placeholder score of 0, carries no rationale, and is left out of the
overall score; the weights of the remaining categories are rescaled to sum
to 1 so missing data never drags the overall score down.

The calculator is a pure function of its inputs, so the reconciler can run
it again after correcting facts.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from worker.analysis.signals import CollectedFacts
from worker.scoring import categories as rubrics
from worker.scoring.bands import ScoreColor, clamp_score, round_half_up, score_color

logger = structlog.get_logger(__name__)


class CategoryKey(StrEnum):
    PERFORMANCE = "performance"
    SEO = "seo"
    SECURITY = "security"
    ACCESSIBILITY = "accessibility"
    BEST_PRACTICES = "best_practices"
    DOMAIN_TRUST = "domain_trust"
    CONTENT = "content"
    TECHNOLOGY = "technology"
    ONLINE_PRESENCE = "online_presence"


CATEGORY_LABELS: dict[str, str] = {
    CategoryKey.PERFORMANCE: "Performans",
    CategoryKey.SEO: "SEO",
    CategoryKey.SECURITY: "Güvenlik",
    CategoryKey.ACCESSIBILITY: "Erişilebilirlik",
    CategoryKey.BEST_PRACTICES: "Best Practices",
    CategoryKey.DOMAIN_TRUST: "Domain Güven",
    CategoryKey.CONTENT: "İçerik",
    CategoryKey.TECHNOLOGY: "Teknoloji",
    CategoryKey.ONLINE_PRESENCE: "Dijital Varlık",
}

# Default category weights (must sum to 1)
DEFAULT_CATEGORY_WEIGHTS: dict[str, float] = {
    CategoryKey.PERFORMANCE: 0.18,
    CategoryKey.SEO: 0.18,
    CategoryKey.SECURITY: 0.14,
    CategoryKey.ACCESSIBILITY: 0.09,
    CategoryKey.BEST_PRACTICES: 0.09,
    CategoryKey.DOMAIN_TRUST: 0.09,
    CategoryKey.CONTENT: 0.09,
    CategoryKey.TECHNOLOGY: 0.04,
    CategoryKey.ONLINE_PRESENCE: 0.10,
}

# Categories scored from the page markup; unusable when the crawl is unreliable
MARKUP_DEPENDENT_CATEGORIES = frozenset(
    {
        CategoryKey.SEO,
        CategoryKey.ACCESSIBILITY,
        CategoryKey.BEST_PRACTICES,
        CategoryKey.CONTENT,
        CategoryKey.TECHNOLOGY,
    }
)


@dataclass(frozen=True)
class CategoryScore:
    """Score for a single category."""

    key: str
    label: str
    score: int  # 0-100
    details: tuple[str, ...] = ()
    no_data: bool = False

    @property
    def color(self) -> ScoreColor:
        return score_color(self.score)

    @property
    def overall(self) -> int:
        return self.score

    @classmethod
    def unavailable(cls, key: str) -> "CategoryScore":
        return cls(key=key, label=CATEGORY_LABELS.get(key, key), score=0, no_data=True)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "score": self.score,
            "color": self.color.value,
            "details": list(self.details),
            "no_data": self.no_data,
        }


@dataclass(frozen=True)
class WeightedOverall:
    score: int
    weights_used: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoringResult:
    """Complete scoring output for one scan."""

    overall: int
    categories: dict[str, CategoryScore]
    weights_used: dict[str, float] = field(default_factory=dict)

    @property
    def overall_color(self) -> ScoreColor:
        return score_color(self.overall)

    @property
    def color(self) -> ScoreColor:
        return self.overall_color

    @property
    def details(self) -> tuple[str, ...]:
        return tuple(
            f"{c.label}: {c.score}" for c in self.categories.values() if not c.no_data
        )

    @property
    def evaluated_keys(self) -> tuple[str, ...]:
        return tuple(self.weights_used)

    @property
    def no_data_keys(self) -> tuple[str, ...]:
        return tuple(key for key, cat in self.categories.items() if cat.no_data)

    def category_scores(self) -> dict[str, int]:
        """Flat key -> score map of evaluated categories."""
        return {key: cat.score for key, cat in self.categories.items() if not cat.no_data}

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "overall_color": self.overall_color.value,
            "categories": {key: cat.to_dict() for key, cat in self.categories.items()},
            "weights_used": {key: round(w, 4) for key, w in self.weights_used.items()},
            "evaluated_keys": list(self.evaluated_keys),
            "no_data_keys": list(self.no_data_keys),
        }


def overall_score(
    categories: Mapping[str, CategoryScore],
    weights: Mapping[str, float] | None = None,
) -> WeightedOverall:
    """
    Weighted average over the categories that actually have data.

    Weights of contributing categories are rescaled to sum to 1. When no
    category contributes, the overall score is 0 and nothing is evaluated.
    """
    weights = weights if weights is not None else DEFAULT_CATEGORY_WEIGHTS

    active = {
        key: weights[key]
        for key, cat in categories.items()
        if not cat.no_data and weights.get(key, 0) > 0
    }
    total_weight = sum(active.values())
    if total_weight <= 0:
        return WeightedOverall(score=0)

    weights_used = {key: weight / total_weight for key, weight in active.items()}
    weighted = sum(categories[key].score * weight for key, weight in weights_used.items())
    return WeightedOverall(score=round_half_up(weighted), weights_used=weights_used)


def resolve_category_weights(overrides: Mapping[str, float] | None = None) -> dict[str, float]:
    """Return the configured weights, or the defaults when none are set."""
    if not overrides:
        return dict(DEFAULT_CATEGORY_WEIGHTS)

    unknown = set(overrides) - set(CATEGORY_LABELS)
    if unknown:
        logger.warning("unknown_category_weights_ignored", keys=sorted(unknown))
    return {key: float(overrides.get(key, 0.0)) for key in CATEGORY_LABELS}


def _from_rubric(key: str, rubric: rubrics.RubricScore) -> CategoryScore:
    return CategoryScore(
        key=key,
        label=CATEGORY_LABELS[key],
        score=clamp_score(rubric.points),
        details=tuple(rubric.details),
    )


def _score_category(key: str, facts: CollectedFacts, crawl_reliable: bool) -> CategoryScore:
    if key in MARKUP_DEPENDENT_CATEGORIES and not crawl_reliable:
        return CategoryScore.unavailable(key)

    if key == CategoryKey.PERFORMANCE:
        page_speed = facts.page_speed.value_or_none()
        if page_speed is None or page_speed.scores.performance is None:
            return CategoryScore.unavailable(key)
        return _from_rubric(
            key, rubrics.score_performance(page_speed, page_speed.scores.performance)
        )

    if key == CategoryKey.ONLINE_PRESENCE:
        presence = facts.online_presence.value_or_none()
        if presence is None or presence.search_index.no_data:
            return CategoryScore.unavailable(key)
        return _from_rubric(
            key, rubrics.score_online_presence(presence, facts.domain_info.value_or_none())
        )

    if key == CategoryKey.SECURITY and rubrics.security_unavailable(facts):
        return CategoryScore.unavailable(key)
    if key == CategoryKey.DOMAIN_TRUST and rubrics.domain_trust_unavailable(facts):
        return CategoryScore.unavailable(key)

    return _from_rubric(key, _FACT_RUBRICS[key](facts))


_FACT_RUBRICS: dict[str, Callable[[CollectedFacts], rubrics.RubricScore]] = {
    CategoryKey.SEO: rubrics.score_seo,
    CategoryKey.SECURITY: rubrics.score_security,
    CategoryKey.ACCESSIBILITY: rubrics.score_accessibility,
    CategoryKey.BEST_PRACTICES: rubrics.score_best_practices,
    CategoryKey.DOMAIN_TRUST: rubrics.score_domain_trust,
    CategoryKey.CONTENT: rubrics.score_content,
    CategoryKey.TECHNOLOGY: rubrics.score_technology,
}


def calculate_scores(
    facts: CollectedFacts,
    crawl_reliable: bool = True,
    weights: Mapping[str, float] | None = None,
) -> ScoringResult:
    """
    Score every category and combine them into the overall score.

    Args:
        facts: Collected facts of the scan
        crawl_reliable: False when the primary markup looked like a bot wall
            or error page; markup-dependent categories become no_data
        weights: Category weights (defaults to DEFAULT_CATEGORY_WEIGHTS)

    Returns:
        ScoringResult with per-category scores and the overall score
    """
    weights = weights if weights is not None else DEFAULT_CATEGORY_WEIGHTS
    categories = {key.value: _score_category(key, facts, crawl_reliable) for key in CategoryKey}
    combined = overall_score(categories, weights)

    result = ScoringResult(
        overall=combined.score,
        categories=categories,
        weights_used=combined.weights_used,
    )
    logger.debug(
        "scores_calculated",
        overall=result.overall,
        crawl_reliable=crawl_reliable,
        no_data=list(result.no_data_keys),
    )
    return result
