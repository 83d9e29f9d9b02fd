"""Consistency checks on the (re-computed) scoring result."""

from collections.abc import Mapping
from dataclasses import replace

from worker.scoring.calculator import ScoringResult, overall_score
from worker.validation.checks import ValidationCheck, corrected, verified

OVERALL_TOLERANCE = 2


def validate_scores(
    scoring: ScoringResult, weights: Mapping[str, float]
) -> tuple[ScoringResult, list[ValidationCheck]]:
    """
    Range-check every category and recompute the overall score.

    Returns:
        The (possibly corrected) scoring result and the checks
    """
    checks: list[ValidationCheck] = []
    categories = dict(scoring.categories)

    for key, category in scoring.categories.items():
        field_path = f"score.{key}"
        if 0 <= category.score <= 100:
            checks.append(verified(field_path, f"{key} skoru geçerli aralıkta ({category.score})"))
        else:
            categories[key] = replace(category, score=max(0, min(100, category.score)))
            checks.append(corrected(field_path, f"{key} skoru 0-100 dışındaydı,"))

    recomputed = overall_score(categories, weights)
    if abs(scoring.overall - recomputed.score) > OVERALL_TOLERANCE:
        checks.append(
            corrected(
                "score.overall",
                f"Overall skor tutarsız ({scoring.overall} vs hesaplanan {recomputed.score}),",
            )
        )
        return (
            replace(
                scoring,
                overall=recomputed.score,
                categories=categories,
                weights_used=recomputed.weights_used,
            ),
            checks,
        )

    checks.append(verified("score.overall", f"Overall skor tutarlı ({scoring.overall})"))
    return replace(scoring, categories=categories), checks
