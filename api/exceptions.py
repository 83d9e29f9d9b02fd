"""Custom exceptions and error handling."""

from typing import Any

from fastapi import status


class LaunchPilotError(Exception):
    """Base exception for the LaunchPilot application."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(LaunchPilotError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str | None = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            message=message,
            code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ValidationError(LaunchPilotError):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code="validation_error",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class ConflictError(LaunchPilotError):
    """Resource conflict."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="conflict",
            status_code=status.HTTP_409_CONFLICT,
        )


class ExternalServiceError(LaunchPilotError):
    """External service error."""

    def __init__(self, service: str, message: str):
        super().__init__(
            message=f"{service}: {message}",
            code="external_service_error",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"service": service},
        )


class InvalidScanTargetError(ValidationError):
    """The submitted URL cannot be scanned."""

    def __init__(self, url: str):
        super().__init__(f"Invalid URL format: {url!r}", field="url")


class ScanFailedError(LaunchPilotError):
    """The primary crawl could not be performed, so there is nothing to analyze."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Scan of {url} failed: {reason}",
            code="scan_failed",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"url": url, "reason": reason},
        )


class CollectorsNotConfiguredError(LaunchPilotError):
    """No collector suite has been wired into this deployment."""

    def __init__(self, message: str = "Signal collectors are not configured"):
        super().__init__(
            message=message,
            code="collectors_not_configured",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
