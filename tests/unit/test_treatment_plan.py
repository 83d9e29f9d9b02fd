"""Tests for the treatment plan builder."""

from worker.analysis.result import Priority, Recommendation
from worker.recommendations.treatment_plan import build_treatment_plan


def make_recommendation(title: str, priority: Priority) -> Recommendation:
    return Recommendation(category="SEO", title=title, priority=priority)


class TestBuildTreatmentPlan:
    """Tests for grouping recommendations into phases."""

    def test_groups_by_priority(self):
        recs = [
            make_recommendation("Meta açıklama ekle", Priority.MEDIUM),
            make_recommendation("HTTPS'e geç", Priority.CRITICAL),
            make_recommendation("Favicon ekle", Priority.LOW),
            make_recommendation("Sitemap oluştur", Priority.HIGH),
        ]

        plan = build_treatment_plan(recs)

        assert [phase.id for phase in plan.phases] == ["acil", "temel", "ileri"]
        assert [step.title for step in plan.phases[0].steps] == ["HTTPS'e geç", "Sitemap oluştur"]
        assert [step.title for step in plan.phases[1].steps] == ["Meta açıklama ekle"]
        assert [step.title for step in plan.phases[2].steps] == ["Favicon ekle"]
        assert plan.total_steps == 4

    def test_empty_phases_are_omitted(self):
        plan = build_treatment_plan([make_recommendation("Favicon ekle", Priority.LOW)])

        assert [phase.id for phase in plan.phases] == ["ileri"]
        assert plan.total_steps == 1

    def test_no_recommendations(self):
        plan = build_treatment_plan([])

        assert plan.phases == ()
        assert plan.total_steps == 0

    def test_to_dict(self):
        plan = build_treatment_plan([make_recommendation("Sitemap oluştur", Priority.HIGH)])

        data = plan.to_dict()

        assert data["total_steps"] == 1
        step = data["phases"][0]["steps"][0]
        assert step["key"] == "seo::sitemap-olustur"
        assert step["priority"] == "high"
