"""Sentry error tracking integration."""

from __future__ import annotations

from typing import Any

import sentry_sdk
import structlog
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.rq import RqIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from api.config import get_settings
from api.exceptions import LaunchPilotError

logger = structlog.get_logger(__name__)

_sentry_initialized = False

_SENSITIVE_HEADERS = ("authorization", "cookie", "x-api-key")
_IGNORED_TRANSACTIONS = frozenset({"/api/health", "/api/ready", "/metrics"})


def init_sentry() -> bool:
    """Initialize Sentry SDK if configured.

    Returns True if Sentry was initialized, False otherwise.
    """
    global _sentry_initialized

    settings = get_settings()
    if not settings.sentry_dsn:
        logger.info("sentry_not_configured")
        return False

    if _sentry_initialized:
        return True

    try:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.env,
            release="launchpilot@0.1.0",
            sample_rate=1.0,
            traces_sample_rate=0.1 if settings.is_production else 1.0,
            send_default_pii=False,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                StarletteIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                HttpxIntegration(),
                AsyncioIntegration(),
                RqIntegration(),
                LoggingIntegration(level=None, event_level=None),
            ],
            before_send=_before_send,
            before_send_transaction=_before_send_transaction,
        )
    except Exception as e:
        logger.error("sentry_init_failed", error=str(e))
        return False

    _sentry_initialized = True
    logger.info("sentry_initialized", environment=settings.env)
    return True


def _before_send(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """Drop client errors and scrub credentials before an event leaves the process."""
    if "exc_info" in hint:
        _, exc_value, _ = hint["exc_info"]
        # 4xx application errors are user errors
        if isinstance(exc_value, LaunchPilotError) and exc_value.status_code < 500:
            return None

    headers = event.get("request", {}).get("headers")
    if headers:
        for header in _SENSITIVE_HEADERS:
            if header in headers:
                headers[header] = "[Filtered]"
    return event


def _before_send_transaction(
    event: dict[str, Any], hint: dict[str, Any]  # noqa: ARG001
) -> dict[str, Any] | None:
    if event.get("transaction") in _IGNORED_TRANSACTIONS:
        return None
    return event


def set_scan_context(domain: str, url: str) -> None:
    """Tag subsequent Sentry events with the scanned site."""
    if not _sentry_initialized:
        return
    sentry_sdk.set_tag("domain", domain)
    sentry_sdk.set_context("scan", {"domain": domain, "url": url})
