"""Member-related schemas."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
)

from app.models.member import MemberGrade

LOGIN_ID_PATTERN = r"^[a-zA-Z0-9_]{4,20}$"
NAME_PATTERN = r"^[가-힣a-zA-Z\s]{2,50}$"
_PASSWORD_RE = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,20}$"
)


def validate_password_strength(value: str) -> str:
    """Require 8-20 chars with lower, upper, digit and a special character."""
    if not _PASSWORD_RE.match(value):
        raise ValueError(
            "Password must be 8-20 characters and include upper and lower case "
            "letters, a digit and one of @$!%*?&"
        )
    return value


def validate_birth_year(value: int) -> int:
    current_year = date.today().year
    if not 1900 <= value <= current_year:
        raise ValueError(f"Birth year must be between 1900 and {current_year}")
    return value


Password = Annotated[str, AfterValidator(validate_password_strength)]
BirthYear = Annotated[int, AfterValidator(validate_birth_year)]
MemberName = Annotated[str, Field(pattern=NAME_PATTERN)]


class GradeInfo(BaseModel):
    """Display metadata for a grade."""

    grade: MemberGrade
    level: int
    emoji: str
    display_name: str

    @classmethod
    def from_grade(cls, grade: MemberGrade) -> "GradeInfo":
        return cls(
            grade=grade,
            level=grade.level,
            emoji=grade.emoji,
            display_name=grade.display_name,
        )


class MemberCreate(BaseModel):
    """Self-service registration payload."""

    login_id: str = Field(pattern=LOGIN_ID_PATTERN)
    password: Password
    name: MemberName
    email: EmailStr | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    birth_year: BirthYear


class MemberUpdate(BaseModel):
    """Mutable member fields; ``grade`` is honoured for administrators only."""

    name: MemberName | None = None
    email: EmailStr | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    birth_year: BirthYear | None = None
    grade: MemberGrade | None = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: Password


class MemberSummary(BaseModel):
    """Compact member representation embedded in other payloads."""

    id: int
    login_id: str
    name: str
    grade: MemberGrade

    model_config = ConfigDict(from_attributes=True)


class MemberRead(BaseModel):
    """Serialized member response."""

    id: int
    login_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    birth_year: int
    grade: MemberGrade
    profile_image_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def grade_info(self) -> GradeInfo:
        return GradeInfo.from_grade(self.grade)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_admin(self) -> bool:
        return self.grade.is_admin


class MemberPage(BaseModel):
    """One page of the member listing."""

    items: list[MemberRead]
    page: int
    size: int
    total: int
    total_pages: int


class MemberStats(BaseModel):
    """Participation statistics for a member."""

    member_id: int
    total_applications: int
    confirmed_count: int
    waiting_count: int
    cancelled_count: int
    participation_rate: float
    join_date: date
