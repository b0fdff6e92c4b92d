"""Activity log schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.models.activity_log import ActivityType


class ActivityLogRead(BaseModel):
    """Serialized activity log entry."""

    id: int
    member_id: int | None = None
    member_login_id: str | None = None
    activity_type: ActivityType
    description: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    request_uri: str | None = None
    http_method: str | None = None
    correlation_id: str | None = None
    details: dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityLogPage(BaseModel):
    items: list[ActivityLogRead]
    page: int
    size: int
    total: int
