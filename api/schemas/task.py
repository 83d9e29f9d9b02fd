"""Task schemas."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    domain: str
    category: str
    recommendation_key: str
    title: str
    description: str
    how_to: str
    effort: str
    priority: str
    status: str
    last_seen_scan_id: uuid.UUID | None
    completed_at: datetime | None
    verified_at: datetime | None
    created_at: datetime
    updated_at: datetime


class TaskStatusUpdate(BaseModel):
    """Manual status change. Verified and regressed are set only by scans."""

    status: Literal["completed", "pending"]
