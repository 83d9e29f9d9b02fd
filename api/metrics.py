"""Prometheus metrics for monitoring and observability."""

from __future__ import annotations

import re
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

_UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
_NUMERIC_ID_PATTERN = re.compile(r"/\d+(/|$)")

# Request metrics
REQUEST_COUNT = Counter(
    "launchpilot_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "launchpilot_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

REQUEST_IN_PROGRESS = Gauge(
    "launchpilot_http_requests_in_progress",
    "HTTP requests currently being processed",
    ["method", "endpoint"],
)

ERROR_COUNT = Counter(
    "launchpilot_errors_total",
    "Total application errors",
    ["error_type", "endpoint"],
)

# Scan pipeline metrics
SCANS_TOTAL = Counter(
    "launchpilot_scans_total",
    "Total scans by outcome",
    ["status"],
)

SCANS_IN_PROGRESS = Gauge(
    "launchpilot_scans_in_progress",
    "Scans currently running",
)

SCAN_DURATION = Histogram(
    "launchpilot_scan_duration_seconds",
    "End-to-end scan duration in seconds",
    buckets=[1.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0, 300.0],
)

COLLECTOR_OUTCOMES = Counter(
    "launchpilot_collector_outcomes_total",
    "Collector results by collector and outcome",
    ["collector", "outcome"],
)

VALIDATION_CHECKS = Counter(
    "launchpilot_validation_checks_total",
    "Validation checks by outcome",
    ["outcome"],
)

TASK_TRANSITIONS = Counter(
    "launchpilot_task_transitions_total",
    "Task lifecycle transitions applied by scan sync",
    ["transition"],
)

PERSISTENCE_FAILURES = Counter(
    "launchpilot_persistence_failures_total",
    "Records that could not be persisted",
    ["entity"],
)

# Job metrics
JOB_QUEUE_SIZE = Gauge(
    "launchpilot_job_queue_size",
    "Number of jobs in queue",
    ["queue"],
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    metrics: bytes = generate_latest()
    return metrics


def get_metrics_content_type() -> str:
    content_type: str = CONTENT_TYPE_LATEST
    return content_type


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect request metrics."""

    EXCLUDE_PATHS = {"/metrics", "/api/health", "/api/ready", "/favicon.ico"}

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path in self.EXCLUDE_PATHS:
            return await call_next(request)

        method = request.method
        endpoint = self._normalize_path(request.url.path)

        REQUEST_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(response.status_code),
            ).inc()
            REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(
                time.perf_counter() - start_time
            )
            return response

        except Exception as e:
            ERROR_COUNT.labels(error_type=type(e).__name__, endpoint=endpoint).inc()
            raise

        finally:
            REQUEST_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()

    def _normalize_path(self, path: str) -> str:
        """Replace UUIDs and numeric IDs with placeholders."""
        path = _UUID_PATTERN.sub("{id}", path)
        return _NUMERIC_ID_PATTERN.sub(r"/{id}\1", path)


# Helper functions for recording pipeline metrics


def record_scan_started() -> None:
    SCANS_TOTAL.labels(status="started").inc()
    SCANS_IN_PROGRESS.inc()


def record_scan_finished(success: bool, duration_seconds: float | None = None) -> None:
    """Record a finished scan and, when known, its duration."""
    SCANS_TOTAL.labels(status="completed" if success else "failed").inc()
    SCANS_IN_PROGRESS.dec()
    if duration_seconds is not None:
        SCAN_DURATION.observe(duration_seconds)


def record_collector_outcome(collector: str, outcome: str) -> None:
    """Record a collector result (success, failed or timeout)."""
    COLLECTOR_OUTCOMES.labels(collector=collector, outcome=outcome).inc()


def record_validation_checks(verified: int, unverified: int, filtered: int) -> None:
    VALIDATION_CHECKS.labels(outcome="verified").inc(verified)
    VALIDATION_CHECKS.labels(outcome="unverified").inc(unverified)
    VALIDATION_CHECKS.labels(outcome="filtered").inc(filtered)


def record_task_transition(transition: str, count: int = 1) -> None:
    if count:
        TASK_TRANSITIONS.labels(transition=transition).inc(count)


def record_persistence_failure(entity: str) -> None:
    PERSISTENCE_FAILURES.labels(entity=entity).inc()


def update_queue_size(queue: str, size: int) -> None:
    JOB_QUEUE_SIZE.labels(queue=queue).set(size)
