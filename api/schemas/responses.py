"""Response envelopes shared by every route and error handler."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(None, description="Request field that failed validation")
    details: dict[str, Any] | None = Field(None, description="Additional error details")


class ErrorResponse(BaseModel):
    """Body of every non-2xx response: ``{"error": {...}}``."""

    error: ErrorDetail


class SuccessResponse(BaseModel, Generic[T]):
    """Envelope for successful responses."""

    data: T
    meta: dict[str, Any] | None = None
