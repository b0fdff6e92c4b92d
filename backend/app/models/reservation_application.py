"""Reservation application model: a member's seat or waitlist position."""
from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import utcnow

if TYPE_CHECKING:  # pragma: no cover
    from app.models.member import Member
    from app.models.reservation import Reservation


class ApplicationStatus(str, enum.Enum):
    """Lifecycle of an application."""

    CONFIRMED = "CONFIRMED"
    WAITING = "WAITING"
    CANCELLED = "CANCELLED"

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]


_STATUS_DESCRIPTIONS = {
    ApplicationStatus.CONFIRMED: "확정",
    ApplicationStatus.WAITING: "대기",
    ApplicationStatus.CANCELLED: "취소",
}

ACTIVE_STATUSES = (ApplicationStatus.CONFIRMED, ApplicationStatus.WAITING)


class ReservationApplication(Base):
    """One row per (member, reservation); CANCELLED rows are reused on re-apply."""

    __tablename__ = "reservation_applications"
    __table_args__ = (
        UniqueConstraint(
            "member_id", "reservation_id", name="uq_application_member_reservation"
        ),
        Index(
            "ix_application_reservation_status_applied",
            "reservation_id",
            "status",
            "applied_at",
        ),
        Index("ix_application_member", "member_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    reservation_id: Mapped[int] = mapped_column(
        ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status"), nullable=False
    )
    note: Mapped[str | None] = mapped_column(String(500))
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    member: Mapped["Member"] = relationship("Member", lazy="joined", innerjoin=True)
    reservation: Mapped["Reservation"] = relationship(
        "Reservation", lazy="joined", innerjoin=True
    )

    __mapper_args__ = {"version_id_col": version}
