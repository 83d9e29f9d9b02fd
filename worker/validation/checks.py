"""Validation check records and the summary built from them."""

from dataclasses import dataclass
from enum import StrEnum

from worker.scoring.bands import round_half_up

# Reason markers; the reconciler and the UI both read them
CORRECTED_MARKER = "düzeltildi"
REMOVED_MARKER = "kaldırıldı"


class CheckOutcome(StrEnum):
    VERIFIED = "verified"
    CORRECTED = "corrected"
    FILTERED = "filtered"
    UNVERIFIED = "unverified"


@dataclass(frozen=True)
class ValidationCheck:
    """One comparison between two derivations of the same fact."""

    field: str  # e.g. "dna.identity.site_type", "score.content"
    verified: bool
    reason: str | None = None

    @property
    def outcome(self) -> CheckOutcome:
        if self.verified:
            return CheckOutcome.VERIFIED
        reason = self.reason or ""
        if CORRECTED_MARKER in reason:
            return CheckOutcome.CORRECTED
        if REMOVED_MARKER in reason:
            return CheckOutcome.FILTERED
        return CheckOutcome.UNVERIFIED

    @property
    def changed_fact(self) -> bool:
        """True when the reconciler rewrote or removed the checked fact."""
        return self.outcome in (CheckOutcome.CORRECTED, CheckOutcome.FILTERED)

    def to_dict(self) -> dict:
        data = {"field": self.field, "verified": self.verified, "outcome": self.outcome.value}
        if self.reason:
            data["reason"] = self.reason
        return data


def verified(field: str, reason: str | None = None) -> ValidationCheck:
    return ValidationCheck(field=field, verified=True, reason=reason)


def unverified(field: str, reason: str) -> ValidationCheck:
    return ValidationCheck(field=field, verified=False, reason=reason)


def corrected(field: str, reason: str) -> ValidationCheck:
    return ValidationCheck(field=field, verified=False, reason=f"{reason} {CORRECTED_MARKER}")


def removed(field: str, reason: str) -> ValidationCheck:
    return ValidationCheck(field=field, verified=False, reason=f"{reason} — {REMOVED_MARKER}")


@dataclass(frozen=True)
class ValidationSummary:
    """Aggregate of one validation run. Every count is derived from ``checks``."""

    checks: tuple[ValidationCheck, ...]
    duration_ms: int = 0

    @property
    def total_checks(self) -> int:
        return len(self.checks)

    @property
    def verified(self) -> int:
        return sum(1 for check in self.checks if check.verified)

    @property
    def unverified(self) -> int:
        return self.total_checks - self.verified

    @property
    def filtered(self) -> int:
        return sum(1 for check in self.checks if check.changed_fact)

    @property
    def verification_score(self) -> int:
        if not self.checks:
            return 0
        return round_half_up(self.verified / self.total_checks * 100)

    @classmethod
    def from_checks(
        cls, checks: list[ValidationCheck], duration_ms: int = 0
    ) -> "ValidationSummary | None":
        """Build a summary, or None when nothing was checked."""
        if not checks:
            return None
        return cls(checks=tuple(checks), duration_ms=duration_ms)

    def to_dict(self) -> dict:
        return {
            "total_checks": self.total_checks,
            "verified": self.verified,
            "unverified": self.unverified,
            "filtered": self.filtered,
            "verification_score": self.verification_score,
            "duration_ms": self.duration_ms,
            "checks": [check.to_dict() for check in self.checks],
        }
