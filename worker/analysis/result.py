"""The aggregate produced by one scan.

``AnalysisResult`` is frozen. Stages that revise it (the reconciler, the
treatment plan builder) return a new instance via ``dataclasses.replace``.
"""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from worker.analysis.outcome import CollectorOutcome, Success
from worker.analysis.signals import CollectedFacts
from worker.recommendations.keys import normalize_recommendation_key
from worker.scoring.bands import ScoreColor, score_color
from worker.scoring.calculator import ScoringResult
from worker.validation.checks import ValidationSummary


class ScoreReport(Protocol):
    """Shape shared by category scores, the overall scoring and authority reports."""

    @property
    def overall(self) -> int: ...

    @property
    def color(self) -> ScoreColor: ...

    @property
    def details(self) -> tuple[str, ...]: ...


class Priority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Effort(StrEnum):
    EASY = "Kolay"
    MEDIUM = "Orta"
    HARD = "Zor"


class AuthorityVerdict(StrEnum):
    APPROVED = "onay"
    STRENGTHEN = "guclendir"
    RESTRUCTURE = "yeniden-yapilandir"


@dataclass(frozen=True)
class Recommendation:
    """A human-readable improvement item."""

    category: str
    title: str
    description: str = ""
    how_to: str = ""
    priority: Priority = Priority.MEDIUM
    effort: Effort = Effort.MEDIUM

    @property
    def key(self) -> str:
        return normalize_recommendation_key(self.category, self.title)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "how_to": self.how_to,
            "priority": self.priority.value,
            "effort": self.effort.value,
        }


@dataclass(frozen=True)
class AuthorityReport:
    """A specialised sub-report (SEO, GEO, AEO, backlink, blog authority)."""

    key: str  # e.g. "seo-authority"
    label: str
    overall: int
    verdict: AuthorityVerdict
    details: tuple[str, ...] = ()
    action_plan: tuple[str, ...] = ()

    @property
    def color(self) -> ScoreColor:
        return score_color(self.overall)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "overall": self.overall,
            "color": self.color.value,
            "verdict": self.verdict.value,
            "details": list(self.details),
            "action_plan": list(self.action_plan),
        }


@dataclass(frozen=True)
class TreatmentPhase:
    id: str  # acil | temel | ileri
    name: str
    description: str
    steps: tuple[Recommendation, ...]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [step.to_dict() for step in self.steps],
        }


@dataclass(frozen=True)
class TreatmentPlan:
    phases: tuple[TreatmentPhase, ...]
    total_steps: int

    def to_dict(self) -> dict:
        return {
            "phases": [phase.to_dict() for phase in self.phases],
            "total_steps": self.total_steps,
        }


def _outcome_to_dict(outcome: CollectorOutcome[Any]) -> dict:
    if isinstance(outcome, Success):
        return {"status": "success", "value": asdict(outcome.value)}
    return {"status": "failed", "reason": outcome.reason}


def facts_to_dict(facts: CollectedFacts) -> dict:
    data: dict[str, Any] = {"crawl": asdict(facts.crawl)}
    for slot in CollectedFacts.OUTCOME_SLOTS:
        data[slot] = _outcome_to_dict(getattr(facts, slot))
    return data


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one scan learned about a site."""

    url: str
    domain: str
    facts: CollectedFacts
    markup_bytes: int
    crawl_reliable: bool
    scoring: ScoringResult
    authority_reports: dict[str, AuthorityReport] = field(default_factory=dict)
    recommendations: tuple[Recommendation, ...] = ()
    # True when the generator raised or is not configured
    recommendations_failed: bool = False
    authority_reports_failed: bool = False
    treatment_plan: TreatmentPlan | None = None
    validation: ValidationSummary | None = None
    ai_summary: str | None = None
    analyzed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_ms: int = 0

    @property
    def collector_failures(self) -> dict[str, str]:
        return self.facts.failures()

    @property
    def recommendation_keys(self) -> list[str]:
        """Distinct recommendation keys, in first-seen order."""
        return list(dict.fromkeys(rec.key for rec in self.recommendations))

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "domain": self.domain,
            "markup_bytes": self.markup_bytes,
            "crawl_reliable": self.crawl_reliable,
            "facts": facts_to_dict(self.facts),
            "scoring": self.scoring.to_dict(),
            "authority_reports": {
                key: report.to_dict() for key, report in self.authority_reports.items()
            },
            "recommendations": [rec.to_dict() for rec in self.recommendations],
            "recommendations_failed": self.recommendations_failed,
            "authority_reports_failed": self.authority_reports_failed,
            "treatment_plan": self.treatment_plan.to_dict() if self.treatment_plan else None,
            "validation": self.validation.to_dict() if self.validation else None,
            "ai_summary": self.ai_summary,
            "collector_failures": self.collector_failures,
            "analyzed_at": self.analyzed_at.isoformat(),
            "duration_ms": self.duration_ms,
        }
