"""Scan service for persisting and reading analysis results."""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import orjson
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.database import async_session_maker
from api.metrics import record_persistence_failure
from api.models import Scan
from worker.analysis.result import AnalysisResult

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PersistenceFailure:
    """A record that could not be written."""

    entity: str  # "scan" | "task"
    key: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"entity": self.entity, "key": self.key, "reason": self.reason}


@dataclass
class PersistenceReport:
    """Outcome of persisting one scan."""

    scan_id: uuid.UUID | None = None
    result_json_dropped: bool = False
    failures: list[PersistenceFailure] = field(default_factory=list)

    @property
    def saved(self) -> bool:
        return self.scan_id is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan_id": str(self.scan_id) if self.scan_id else None,
            "result_json_dropped": self.result_json_dropped,
            "failures": [failure.to_dict() for failure in self.failures],
        }


def result_payload(result: AnalysisResult) -> dict[str, Any]:
    """JSON-safe payload of a result (round-tripped through orjson)."""
    payload: dict[str, Any] = orjson.loads(orjson.dumps(result.to_dict()))
    return payload


def build_scan(result: AnalysisResult, *, include_payload: bool = True) -> Scan:
    """Map an AnalysisResult onto a scan row."""
    scoring = result.scoring
    return Scan(
        domain=result.domain,
        url=result.url,
        overall_score=scoring.overall,
        category_scores=scoring.category_scores(),
        recommendation_keys=result.recommendation_keys,
        recommendations_count=len(result.recommendations),
        crawl_reliable=result.crawl_reliable,
        verification_score=(
            result.validation.verification_score if result.validation is not None else None
        ),
        result_json=result_payload(result) if include_payload else None,
        persistence={"result_json_dropped": not include_payload},
        duration_ms=result.duration_ms,
        analyzed_at=result.analyzed_at,
    )


class ScanService:
    """Service for scan operations."""

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None) -> None:
        self._session_factory = session_factory or async_session_maker

    async def _insert(self, scan: Scan) -> uuid.UUID:
        async with self._session_factory() as db:
            db.add(scan)
            await db.commit()
            await db.refresh(scan)
            return scan.id

    async def save_scan(self, result: AnalysisResult) -> PersistenceReport:
        """
        Persist a scan result.

        The full payload is tried first; if that insert fails the row is
        retried without ``result_json``. Never raises: when both attempts
        fail the report carries a PersistenceFailure and no scan id.
        """
        report = PersistenceReport()

        try:
            report.scan_id = await self._insert(build_scan(result))
            return report
        except Exception as e:
            logger.warning("scan_insert_failed", domain=result.domain, error=str(e))

        try:
            report.scan_id = await self._insert(build_scan(result, include_payload=False))
            report.result_json_dropped = True
            logger.warning("scan_saved_without_payload", domain=result.domain)
        except Exception as e:
            logger.error("scan_insert_retry_failed", domain=result.domain, error=str(e))
            record_persistence_failure("scan")
            report.failures.append(
                PersistenceFailure(entity="scan", key=result.domain, reason=str(e))
            )
        return report

    async def get_latest_scan(self, db: AsyncSession, domain: str) -> Scan | None:
        """Most recent scan of a domain, if any."""
        result = await db.execute(
            select(Scan)
            .where(Scan.domain == domain)
            .order_by(Scan.analyzed_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


scan_service = ScanService()
