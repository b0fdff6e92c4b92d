"""Activity log model for member and reservation actions."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import DateTime, Enum, Index, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import utcnow


class ActivityType(str, enum.Enum):
    """Kinds of activity recorded in the log."""

    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    MEMBER_CREATE = "MEMBER_CREATE"
    MEMBER_UPDATE = "MEMBER_UPDATE"
    MEMBER_DELETE = "MEMBER_DELETE"
    GRADE_UPGRADE = "GRADE_UPGRADE"
    RESERVATION_CREATE = "RESERVATION_CREATE"
    RESERVATION_UPDATE = "RESERVATION_UPDATE"
    RESERVATION_DELETE = "RESERVATION_DELETE"
    RESERVATION_APPLY = "RESERVATION_APPLY"
    RESERVATION_CANCEL = "RESERVATION_CANCEL"
    SEARCH = "SEARCH"
    VIEW = "VIEW"
    ERROR = "ERROR"


class ActivityLog(Base):
    """Immutable record of something a member (or the system) did."""

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_member_id", "member_id"),
        Index("ix_activity_logs_activity_type", "activity_type"),
        Index("ix_activity_logs_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # plain id: logs outlive deleted members
    member_id: Mapped[int | None] = mapped_column(Integer)
    member_login_id: Mapped[str | None] = mapped_column(String(50))
    activity_type: Mapped[ActivityType] = mapped_column(
        Enum(ActivityType, name="activity_type"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(String(500))
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(500))
    request_uri: Mapped[str | None] = mapped_column(String(500))
    http_method: Mapped[str | None] = mapped_column(String(10))
    correlation_id: Mapped[str | None] = mapped_column(String(64))
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=sa.func.now(),
    )
