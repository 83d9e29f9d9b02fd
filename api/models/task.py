"""Task model - durable improvement items derived from scan recommendations."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from api.database import Base


class TaskStatus(StrEnum):
    """Task lifecycle states.

    pending -> completed (user) -> verified (scan no longer reports it)
    completed/verified -> regressed (scan reports it again)
    """

    PENDING = "pending"
    COMPLETED = "completed"
    VERIFIED = "verified"
    REGRESSED = "regressed"


class Task(Base):
    """Task model. Never deleted by the scan pipeline."""

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("domain", "recommendation_key", name="uq_tasks_domain_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    domain: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    recommendation_key: Mapped[str] = mapped_column(String(500), nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    how_to: Mapped[str] = mapped_column(Text, nullable=False, default="")
    effort: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=TaskStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    last_seen_scan_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )

    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
