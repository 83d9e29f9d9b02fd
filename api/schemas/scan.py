"""Scan schemas."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.schemas.task import TaskRead


class ScanCreate(BaseModel):
    """Request body for starting a scan."""

    url: str = Field(..., min_length=1, max_length=2048, description="Site URL, scheme optional")

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        return v.strip()


class ScanQueued(BaseModel):
    job_id: str
    domain: str
    status: str = "queued"


class ScanRead(BaseModel):
    """A persisted scan. ``result_json`` is null when the payload was dropped."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    domain: str
    url: str
    overall_score: int
    category_scores: dict[str, int]
    recommendation_keys: list[str]
    recommendations_count: int
    crawl_reliable: bool
    verification_score: int | None
    result_json: dict[str, Any] | None
    duration_ms: int
    analyzed_at: datetime


class SiteOverview(BaseModel):
    """Latest scan of a domain plus its tasks."""

    domain: str
    latest_scan: ScanRead | None
    tasks: list[TaskRead]
