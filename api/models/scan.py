"""Scan model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from api.database import Base


class Scan(Base):
    """Scan model - one persisted analysis of a domain."""

    __tablename__ = "scans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    domain: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)

    # Quick access fields (denormalized from result_json)
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    category_scores: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    recommendation_keys: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    recommendations_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    crawl_reliable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    verification_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Full AnalysisResult payload; dropped when the row is too large to store
    result_json: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # Persistence outcome of this scan, e.g. {"result_json_dropped": true}
    persistence: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    analyzed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
