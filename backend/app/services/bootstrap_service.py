"""Bootstrap helpers for default data."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.security import get_password_hash
from app.db.session import get_sessionmaker
from app.models.location import Location
from app.models.member import Member, MemberGrade
from app.services import member_service

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "시스템 관리자"
DEFAULT_ADMIN_EMAIL = "admin@friendlyi.com"
DEFAULT_ADMIN_PHONE = "010-0000-0000"
DEFAULT_ADMIN_BIRTH_YEAR = 1990

DEFAULT_LOCATION_URL = "https://naver.me/IgJGvT1Y"
DEFAULT_LOCATIONS = (
    ("회의실 A", "서울시 강남구 테헤란로 123번길 1층", "소규모 회의 및 스터디용 공간 (최대 10명)"),
    ("대강당", "서울시 강남구 테헤란로 123번길 지하 1층", "대규모 세미나 및 컨퍼런스용 공간 (최대 100명)"),
    ("스터디룸 1", "서울시 강남구 테헤란로 123번길 2층", "조용한 스터디 공간 (최대 6명)"),
    ("세미나실 B", "서울시 강남구 테헤란로 123번길 3층", "중규모 세미나 및 워크샵용 공간 (최대 30명)"),
    ("온라인 회의실", "온라인", "온라인 화상회의 공간 (제한 없음)"),
)

SAMPLE_PASSWORD = "1234"
SAMPLE_MEMBERS = (
    ("egg_user", "김알이", "egg@test.com", "010-1111-1111", 2005, MemberGrade.EGG),
    ("hatching_user", "이부화", "hatching@test.com", "010-2222-2222", 2003, MemberGrade.HATCHING),
    ("chick_user", "박병아리", "chick@test.com", "010-3333-3333", 2001, MemberGrade.CHICK),
    ("young_bird_user", "최어린새", "youngbird@test.com", "010-4444-4444", 1999, MemberGrade.YOUNG_BIRD),
)


async def ensure_default_admin(session: AsyncSession) -> Member | None:
    """Create the administrator account if its login id is unused."""
    settings = get_settings()
    if await member_service.login_id_exists(session, settings.admin_username):
        return None
    admin = Member(
        login_id=settings.admin_username,
        password_hash=get_password_hash(settings.admin_password),
        name=DEFAULT_ADMIN_NAME,
        email=DEFAULT_ADMIN_EMAIL,
        phone=DEFAULT_ADMIN_PHONE,
        birth_year=DEFAULT_ADMIN_BIRTH_YEAR,
        grade=MemberGrade.ROOSTER,
    )
    await member_service.save(session, admin)
    logger.info("Created default administrator %s", admin.login_id)
    logger.warning("Change the initial administrator password")
    return admin


async def seed_default_locations(session: AsyncSession) -> list[Location]:
    """Insert the default locations when the table is empty."""
    total = await session.scalar(select(func.count()).select_from(Location))
    if total:
        return []
    locations = [
        Location(
            name=name,
            address=address,
            description=description,
            url=DEFAULT_LOCATION_URL,
            is_active=True,
        )
        for name, address, description in DEFAULT_LOCATIONS
    ]
    session.add_all(locations)
    await session.commit()
    logger.info("Seeded %d default locations", len(locations))
    return locations


async def seed_sample_members(session: AsyncSession) -> list[Member]:
    """Create one sample member per non-admin grade, skipping existing ids."""
    created: list[Member] = []
    for login_id, name, email, phone, birth_year, grade in SAMPLE_MEMBERS:
        if await member_service.login_id_exists(session, login_id):
            continue
        member = Member(
            login_id=login_id,
            password_hash=get_password_hash(SAMPLE_PASSWORD),
            name=name,
            email=email,
            phone=phone,
            birth_year=birth_year,
            grade=grade,
        )
        await member_service.save(session, member)
        created.append(member)
    if created:
        logger.info("Seeded sample members: %s", [member.login_id for member in created])
    return created


async def bootstrap(session: AsyncSession) -> None:
    """Admin account always; sample data only when enabled."""
    await ensure_default_admin(session)
    if get_settings().seed_sample_data:
        await seed_default_locations(session)
        await seed_sample_members(session)


async def run_bootstrap() -> None:
    """Open a dedicated session and apply the bootstrap data."""
    sessionmaker = get_sessionmaker(get_settings().database_url)
    async with sessionmaker() as session:
        await bootstrap(session)
