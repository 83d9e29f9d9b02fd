"""Orders recommendations into a three-phase treatment plan."""

from collections.abc import Sequence

from worker.analysis.result import Priority, Recommendation, TreatmentPhase, TreatmentPlan

# (id, name, description, priorities)
PHASES: tuple[tuple[str, str, str, frozenset[Priority]], ...] = (
    (
        "acil",
        "Acil Müdahale",
        "Hemen yapılması gereken kritik düzeltmeler. "
        "Bu adımlar sitenin sağlığını doğrudan etkiliyor.",
        frozenset({Priority.CRITICAL, Priority.HIGH}),
    ),
    (
        "temel",
        "Temel İyileştirmeler",
        "Sitenin temelini güçlendiren orta öncelikli iyileştirmeler.",
        frozenset({Priority.MEDIUM}),
    ),
    (
        "ileri",
        "İleri Optimizasyon",
        "Siteyi bir üst seviyeye taşıyacak ince ayarlar ve ek iyileştirmeler.",
        frozenset({Priority.LOW}),
    ),
)


def build_treatment_plan(recommendations: Sequence[Recommendation]) -> TreatmentPlan:
    """Group recommendations by urgency. Empty phases are left out."""
    phases = []
    for phase_id, name, description, priorities in PHASES:
        steps = tuple(rec for rec in recommendations if rec.priority in priorities)
        if steps:
            phases.append(
                TreatmentPhase(id=phase_id, name=name, description=description, steps=steps)
            )
    return TreatmentPlan(phases=tuple(phases), total_steps=len(recommendations))
