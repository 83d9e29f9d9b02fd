"""Collector outcome variant.

Every collector call resolves to exactly one of ``Success(value)`` or
``Failed(reason)``. Downstream code branches on ``outcome.is_success`` (or uses
``value_or_none()``) and never sees a raised collector exception.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

TIMEOUT_REASON = "timeout"


@dataclass(frozen=True)
class Success(Generic[T]):
    """A collector returned a usable value."""

    value: T

    @property
    def is_success(self) -> bool:
        return True

    def value_or_none(self) -> T:
        return self.value

    @property
    def reason(self) -> None:
        return None


@dataclass(frozen=True)
class Failed:
    """A collector raised, timed out, or returned nothing usable."""

    reason: str

    @property
    def is_success(self) -> bool:
        return False

    def value_or_none(self) -> None:
        return None


CollectorOutcome = Success[T] | Failed


def failed_from_exception(exc: BaseException) -> Failed:
    """Turn an exception into a Failed marker with a readable reason."""
    message = str(exc).strip()
    name = type(exc).__name__
    return Failed(reason=f"{name}: {message}" if message else name)


def all_failed(*outcomes: Any) -> bool:
    """True when every given outcome is a Failed marker."""
    return all(isinstance(o, Failed) for o in outcomes)
