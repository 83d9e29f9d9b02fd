"""Health check endpoints."""

import time
from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Response
from pydantic import BaseModel, Field
from sqlalchemy import text

from api.database import async_session_maker
from api.metrics import get_metrics, get_metrics_content_type
from worker.redis import get_redis_connection

router = APIRouter(tags=["Health"])
logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"

_server_start_time = time.time()


class DependencyCheck(BaseModel):
    status: str = Field(..., description="Status: healthy, unhealthy")
    latency_ms: float | None = Field(None, description="Check latency in milliseconds")
    error: str | None = Field(None, description="Error message if unhealthy")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status: healthy, degraded, unhealthy")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    version: str = Field(..., description="API version")
    uptime_seconds: int = Field(..., description="Server uptime in seconds")
    checks: dict[str, DependencyCheck] | None = None


def _uptime() -> int:
    return int(time.time() - _server_start_time)


@router.get("/api/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check. Does not touch dependencies; use /api/ready for that."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=API_VERSION,
        uptime_seconds=_uptime(),
    )


async def _check_database() -> DependencyCheck:
    start = time.perf_counter()
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("database_check_failed", error=str(e))
        return DependencyCheck(status="unhealthy", error=str(e))
    return DependencyCheck(
        status="healthy", latency_ms=round((time.perf_counter() - start) * 1000, 2)
    )


def _check_redis() -> DependencyCheck:
    start = time.perf_counter()
    try:
        get_redis_connection().ping()
    except Exception as e:
        logger.warning("redis_check_failed", error=str(e))
        return DependencyCheck(status="unhealthy", error=str(e))
    return DependencyCheck(
        status="healthy", latency_ms=round((time.perf_counter() - start) * 1000, 2)
    )


@router.get("/api/ready", response_model=HealthResponse)
async def readiness_check() -> HealthResponse:
    """Readiness check: database and Redis (the scan queue) must answer."""
    checks = {"database": await _check_database(), "redis": _check_redis()}

    unhealthy = sum(1 for check in checks.values() if check.status == "unhealthy")
    if unhealthy == 0:
        overall = "healthy"
    elif unhealthy < len(checks):
        overall = "degraded"
    else:
        overall = "unhealthy"

    return HealthResponse(
        status=overall,
        timestamp=datetime.now(UTC).isoformat(),
        version=API_VERSION,
        uptime_seconds=_uptime(),
        checks=checks,
    )


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())
