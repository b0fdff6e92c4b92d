"""Pydantic schemas for reservations."""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    StringConstraints,
)

from app.models.reservation_application import ApplicationStatus
from app.schemas.location import LocationName, LocationSummary, LocationUrl
from app.schemas.member import MemberSummary

TITLE_PATTERN = r"^[가-힣a-zA-Z0-9\s\-_().,!?]+$"


def validate_not_past(value: date) -> date:
    if value < date.today():
        raise ValueError("Reservation date must be today or later")
    return value


Title = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=2, max_length=100, pattern=TITLE_PATTERN
    ),
]
Capacity = Annotated[int, Field(ge=1, le=1000)]
ReservationDate = Annotated[date, AfterValidator(validate_not_past)]


class LocationInput(BaseModel):
    """Location given inline; matched case-insensitively or created."""

    name: LocationName
    address: str | None = Field(default=None, max_length=500)
    url: LocationUrl


class ReservationCreate(BaseModel):
    """Payload for creating reservations. Only the first location is used."""

    title: Title
    description: str | None = Field(default=None, max_length=1000)
    locations: list[LocationInput] = Field(min_length=1)
    max_capacity: Capacity
    reservation_date: ReservationDate
    reservation_time: time


class ReservationUpdate(BaseModel):
    """Mutable reservation fields; ``version`` enables a stale-read check."""

    title: Title | None = None
    description: str | None = Field(default=None, max_length=1000)
    locations: list[LocationInput] | None = Field(default=None, min_length=1)
    max_capacity: Capacity | None = None
    reservation_date: ReservationDate | None = None
    reservation_time: time | None = None
    version: int | None = None


class ReservationRead(BaseModel):
    """Reservation view with live application counts."""

    id: int
    title: str
    description: str | None = None
    location: LocationSummary
    max_capacity: int
    creator: MemberSummary
    reservation_date: date
    reservation_time: time
    confirmed_count: int
    waiting_count: int
    available_slots: int
    is_fully_booked: bool
    version: int
    created_at: datetime
    updated_at: datetime


class ApplicantRead(BaseModel):
    """One row of a reservation's applicant list."""

    application_id: int
    member: MemberSummary
    status: ApplicationStatus
    status_description: str
    note: str | None = None
    applied_at: datetime
    is_creator: bool


class ReservationBrief(BaseModel):
    """Compact reservation representation embedded in applications."""

    id: int
    title: str
    reservation_date: date
    reservation_time: time
    location_name: str
