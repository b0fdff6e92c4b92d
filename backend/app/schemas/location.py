"""Location schemas for CRUD operations."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from app.core.config import get_settings


def validate_location_url(value: str) -> str:
    """Only reservable-map links are accepted."""
    if not re.match(get_settings().location_url_pattern, value, re.IGNORECASE):
        raise ValueError("Only naver.com or naver.me map URLs are allowed")
    return value


LocationName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)
]
LocationUrl = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=500),
    AfterValidator(validate_location_url),
]


class LocationCreate(BaseModel):
    """Payload for creating a location."""

    name: LocationName
    address: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=1000)
    url: LocationUrl


class LocationUpdate(BaseModel):
    """Mutable location fields."""

    name: LocationName | None = None
    address: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=1000)
    url: LocationUrl | None = None


class LocationSummary(BaseModel):
    """Compact location representation embedded in reservations."""

    id: int
    name: str
    address: str | None = None
    url: str

    model_config = ConfigDict(from_attributes=True)


class LocationRead(LocationSummary):
    """Serialized location response."""

    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class LocationDetail(LocationRead):
    """Location with the number of current-or-future reservations using it."""

    active_reservation_count: int = 0
