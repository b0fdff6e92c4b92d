"""Pydantic schemas for reservation applications."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from app.models.reservation_application import ApplicationStatus
from app.schemas.member import MemberSummary
from app.schemas.reservation import ReservationBrief


class ApplicationCreate(BaseModel):
    """Apply to a reservation; ``member_id`` defaults to the caller."""

    reservation_id: int
    member_id: int | None = None
    note: str | None = Field(default=None, max_length=500)


class ApplicationRead(BaseModel):
    """Serialized application."""

    id: int
    member: MemberSummary
    reservation: ReservationBrief
    status: ApplicationStatus
    note: str | None = None
    applied_at: datetime
    updated_at: datetime
    version: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_description(self) -> str:
        return self.status.description
