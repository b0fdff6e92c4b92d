"""Member model and the grade ladder."""
from __future__ import annotations

import enum

from sqlalchemy import Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import TimestampMixin


class MemberGrade(str, enum.Enum):
    """Ordered community grades; ROOSTER is the administrator grade."""

    EGG = "EGG"
    HATCHING = "HATCHING"
    CHICK = "CHICK"
    YOUNG_BIRD = "YOUNG_BIRD"
    ROOSTER = "ROOSTER"

    @property
    def level(self) -> int:
        return _GRADE_DETAILS[self][0]

    @property
    def emoji(self) -> str:
        return _GRADE_DETAILS[self][1]

    @property
    def display_name(self) -> str:
        return _GRADE_DETAILS[self][2]

    @property
    def is_admin(self) -> bool:
        return self is MemberGrade.ROOSTER


_GRADE_DETAILS: dict[MemberGrade, tuple[int, str, str]] = {
    MemberGrade.EGG: (1, "🥚", "알"),
    MemberGrade.HATCHING: (2, "🐣", "부화중"),
    MemberGrade.CHICK: (3, "🐥", "병아리"),
    MemberGrade.YOUNG_BIRD: (4, "🐤", "어린새"),
    MemberGrade.ROOSTER: (5, "🐔", "관리자"),
}


class Member(TimestampMixin, Base):
    """A registered community member."""

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    login_id: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100))
    phone: Mapped[str | None] = mapped_column(String(20))
    birth_year: Mapped[int] = mapped_column(Integer, nullable=False)
    grade: Mapped[MemberGrade] = mapped_column(
        Enum(MemberGrade, name="member_grade"),
        nullable=False,
        default=MemberGrade.EGG,
    )
    profile_image_url: Mapped[str | None] = mapped_column(String(500))

    @property
    def is_admin(self) -> bool:
        return self.grade.is_admin
