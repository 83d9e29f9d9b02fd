"""Tests for the site score calculator."""

import pytest

from worker.analysis.signals import (
    CoreWebVitals,
    OnlinePresenceResult,
    PageSpeedResult,
    PageSpeedScores,
    SearchIndexResult,
    SSLInfo,
)
from worker.scoring.bands import ScoreColor, clamp_score, round_half_up, score_color
from worker.scoring.calculator import (
    DEFAULT_CATEGORY_WEIGHTS,
    MARKUP_DEPENDENT_CATEGORIES,
    CategoryKey,
    CategoryScore,
    calculate_scores,
    overall_score,
    resolve_category_weights,
)
from worker.scoring.categories import score_content
from tests.fixtures.facts import make_crawl, make_facts


def category(key: str, score: int, no_data: bool = False) -> CategoryScore:
    return CategoryScore(key=key, label=key, score=score, no_data=no_data)


class TestScoreBands:
    """Tests for color bands and rounding."""

    @pytest.mark.parametrize(
        ("score", "color"),
        [
            (100, ScoreColor.GREEN),
            (90, ScoreColor.GREEN),
            (89, ScoreColor.LIME),
            (70, ScoreColor.LIME),
            (69, ScoreColor.YELLOW),
            (50, ScoreColor.YELLOW),
            (49, ScoreColor.ORANGE),
            (30, ScoreColor.ORANGE),
            (29, ScoreColor.RED),
            (0, ScoreColor.RED),
        ],
    )
    def test_score_color(self, score, color):
        assert score_color(score) == color

    def test_round_half_up(self):
        assert round_half_up(74.5) == 75
        assert round_half_up(2.5) == 3
        assert round_half_up(74.49) == 74

    def test_clamp_score(self):
        assert clamp_score(-3) == 0
        assert clamp_score(104.2) == 100
        assert clamp_score(55.5) == 56


class TestOverallScore:
    """Tests for the weighted overall score."""

    def test_no_data_category_is_excluded_and_weights_renormalized(self):
        weights = {
            "performance": 0.2,
            "seo": 0.2,
            "security": 0.15,
            "content": 0.15,
            "domain_trust": 0.3,
        }
        categories = {
            "performance": category("performance", 90),
            "seo": category("seo", 70),
            "security": category("security", 0, no_data=True),
            "content": category("content", 50),
            "domain_trust": category("domain_trust", 80),
        }

        combined = overall_score(categories, weights)

        # (90*.2 + 70*.2 + 50*.15 + 80*.3) / .85 = 74.7
        assert combined.score == 75
        assert "security" not in combined.weights_used
        assert sum(combined.weights_used.values()) == pytest.approx(1.0)
        assert combined.weights_used["domain_trust"] == pytest.approx(0.3 / 0.85)

    def test_placeholder_score_of_no_data_category_is_ignored(self):
        weights = {"seo": 0.5, "security": 0.5}
        with_zero = {"seo": category("seo", 80), "security": category("security", 0, True)}
        with_other = {"seo": category("seo", 80), "security": category("security", 40, True)}

        assert overall_score(with_zero, weights).score == 80
        assert overall_score(with_other, weights).score == 80

    def test_all_no_data(self):
        categories = {key.value: category(key.value, 0, no_data=True) for key in CategoryKey}

        combined = overall_score(categories)

        assert combined.score == 0
        assert combined.weights_used == {}

    def test_zero_weight_category_does_not_contribute(self):
        weights = {"seo": 1.0, "content": 0.0}
        categories = {"seo": category("seo", 60), "content": category("content", 100)}

        assert overall_score(categories, weights).score == 60

    def test_default_weights_sum_to_one(self):
        assert sum(DEFAULT_CATEGORY_WEIGHTS.values()) == pytest.approx(1.0)


class TestResolveCategoryWeights:
    """Tests for configured weights."""

    def test_defaults_when_not_configured(self):
        assert resolve_category_weights(None) == DEFAULT_CATEGORY_WEIGHTS

    def test_overrides_fill_missing_with_zero(self):
        weights = resolve_category_weights({"seo": 0.5, "content": 0.5})

        assert weights["seo"] == 0.5
        assert weights["performance"] == 0.0
        assert set(weights) == {key.value for key in CategoryKey}


class TestCalculateScores:
    """Tests for scoring collected facts."""

    def test_crawl_only_scan(self):
        result = calculate_scores(make_facts())

        assert result.categories["performance"].no_data
        assert result.categories["security"].no_data
        assert result.categories["online_presence"].no_data
        assert result.categories["domain_trust"].no_data
        assert not result.categories["content"].no_data
        assert not result.categories["seo"].no_data
        assert "performance" not in result.weights_used
        assert sum(result.weights_used.values()) == pytest.approx(1.0)

    def test_unreliable_crawl_marks_markup_categories_no_data(self):
        facts = make_facts(page_speed=PageSpeedResult(scores=PageSpeedScores(performance=85)))

        result = calculate_scores(facts, crawl_reliable=False)

        for key in MARKUP_DEPENDENT_CATEGORIES:
            assert result.categories[key].no_data
            assert result.categories[key].score == 0
            assert result.categories[key].details == ()
        assert result.categories["performance"].score == 85
        assert result.overall == 85
        assert result.evaluated_keys == ("performance",)

    def test_performance_needs_a_performance_score(self):
        facts = make_facts(page_speed=PageSpeedResult(scores=PageSpeedScores(seo=90)))

        result = calculate_scores(facts)

        assert result.categories["performance"].no_data

    def test_performance_penalized_for_slow_lcp(self):
        facts = make_facts(
            page_speed=PageSpeedResult(
                scores=PageSpeedScores(performance=85),
                web_vitals=CoreWebVitals(lcp=5200),
            )
        )

        result = calculate_scores(facts)

        assert result.categories["performance"].score == 80

    def test_security_scored_when_any_source_available(self):
        facts = make_facts(ssl=SSLInfo(valid=True, days_until_expiry=200))

        result = calculate_scores(facts)

        security = result.categories["security"]
        assert not security.no_data
        # valid SSL (20) + no mixed content (10)
        assert security.score == 30

    def test_online_presence_without_provider_is_no_data(self):
        facts = make_facts(
            online_presence=OnlinePresenceResult(search_index=SearchIndexResult(no_data=True))
        )

        result = calculate_scores(facts)

        assert result.categories["online_presence"].no_data

    def test_no_data_category_shape(self):
        result = calculate_scores(make_facts())

        data = result.to_dict()
        assert data["categories"]["performance"] == {
            "key": "performance",
            "label": "Performans",
            "score": 0,
            "color": "red",
            "details": [],
            "no_data": True,
        }
        assert "performance" in data["no_data_keys"]
        assert "performance" not in result.category_scores()

    def test_scoring_is_deterministic(self):
        facts = make_facts(ssl=SSLInfo(valid=True, days_until_expiry=10))

        assert calculate_scores(facts) == calculate_scores(facts)


class TestContentRubric:
    """Tests for the content rubric."""

    def test_rich_page(self):
        rubric = score_content(make_facts(make_crawl(word_count=403)))

        # 300+ words (30) + H1 and H2 (20)
        assert rubric.points == 50

    def test_thin_page(self):
        rubric = score_content(make_facts(make_crawl(word_count=150, total_h2=0)))

        # 100+ words (15) + H1 only (10)
        assert rubric.points == 25

    def test_empty_page(self):
        rubric = score_content(make_facts(make_crawl(word_count=20, total_h1=0, total_h2=0)))

        assert rubric.points == 0
        assert any("çok az" in detail for detail in rubric.details)
