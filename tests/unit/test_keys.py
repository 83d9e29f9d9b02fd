"""Tests for stable recommendation keys and task categories."""

from worker.recommendations.categories import (
    FALLBACK_CATEGORY,
    authority_category_slug,
    category_slug_for,
    scoring_keys_for,
)
from worker.recommendations.keys import (
    authority_task_key,
    fold_text,
    normalize_key_part,
    normalize_recommendation_key,
)


class TestNormalizeRecommendationKey:
    """Tests for recommendation key normalization."""

    def test_turkish_title(self):
        key = normalize_recommendation_key("Güvenlik", "3 Güvenlik header'ı eksik")
        assert key == "guvenlik::guvenlik-headeri-eksik"

    def test_counts_do_not_change_the_key(self):
        first = normalize_recommendation_key("SEO", "12 görselde alt etiketi eksik")
        second = normalize_recommendation_key("SEO", "3 görselde alt etiketi eksik")
        assert first == second

    def test_case_and_punctuation_do_not_change_the_key(self):
        first = normalize_recommendation_key("İçerik", "İçerik çok az!")
        second = normalize_recommendation_key("içerik", "içerik   ÇOK az")
        assert first == second == "icerik::icerik-cok-az"

    def test_category_with_space(self):
        key = normalize_recommendation_key("Best Practices", "Favicon ekle")
        assert key == "bestpractices::favicon-ekle"

    def test_fold_text_handles_dotted_and_dotless_i(self):
        assert fold_text("İSTANBUL") == "istanbul"
        assert fold_text("IŞIK") == "isik"

    def test_normalize_key_part_collapses_whitespace(self):
        assert normalize_key_part("  Sitemap   ekle  ") == "sitemap-ekle"


class TestAuthorityTaskKey:
    """Tests for keys of authority report actions."""

    def test_authority_suffix_dropped(self):
        key = authority_task_key("seo-authority", "Title etiketlerini 60 karaktere indir")
        assert key == "authority-seo::title-etiketlerini-karaktere-indir"

    def test_same_action_same_key(self):
        first = authority_task_key("geo-authority", "5 SSS bölümü ekle")
        second = authority_task_key("geo-authority", "8 SSS bölümü ekle")
        assert first == second

    def test_different_reports_do_not_collide(self):
        action = "İç linkleri güçlendir"
        assert authority_task_key("seo-authority", action) != authority_task_key(
            "blog-authority", action
        )


class TestTaskCategories:
    """Tests for mapping recommendation categories to task categories."""

    def test_known_categories(self):
        assert category_slug_for("Güvenlik") == "guvenlik"
        assert category_slug_for("Domain Güven") == "guvenlik"
        assert category_slug_for("Best Practices") == "teknoloji"
        assert category_slug_for("İçerik") == "icerik"

    def test_unknown_category_falls_back(self):
        assert category_slug_for("Pazarlama") == FALLBACK_CATEGORY
        assert scoring_keys_for(FALLBACK_CATEGORY) == ()

    def test_scoring_keys(self):
        assert scoring_keys_for("guvenlik") == ("security", "domain_trust")
        assert scoring_keys_for("icerik") == ("content",)

    def test_authority_categories(self):
        assert authority_category_slug("blog-authority") == "icerik"
        assert authority_category_slug("backlink-authority") == "dijital-varlik"
        assert authority_category_slug("unknown-authority") == "seo"
