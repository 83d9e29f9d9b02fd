"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog

from api.config import get_settings

# Third-party loggers that drown out scan events at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "rq.worker", "asyncio")


def setup_logging() -> None:
    """Configure structlog for the API process and the scan worker."""
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.is_production:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=not settings.is_test,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_scan_context(domain: str, **extra: Any) -> None:
    """Attach the scanned domain (and any ids) to every log line in this context."""
    structlog.contextvars.bind_contextvars(domain=domain, **extra)


def clear_scan_context() -> None:
    """Drop scan-scoped log context."""
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
