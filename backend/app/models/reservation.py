"""Reservation model."""
from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover
    from app.models.location import Location
    from app.models.member import Member


class Reservation(TimestampMixin, Base):
    """A dated event at a location with a maximum headcount."""

    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_date_time", "reservation_date", "reservation_time"),
        Index("ix_reservations_creator", "creator_id"),
        Index("ix_reservations_location", "location_id"),
        CheckConstraint("max_capacity > 0", name="max_capacity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    creator_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    location_id: Mapped[int] = mapped_column(
        ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False
    )
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    reservation_time: Mapped[time] = mapped_column(Time, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    creator: Mapped["Member"] = relationship(
        "Member", lazy="joined", innerjoin=True
    )
    location: Mapped["Location"] = relationship(
        "Location", lazy="joined", innerjoin=True
    )

    __mapper_args__ = {"version_id_col": version}
