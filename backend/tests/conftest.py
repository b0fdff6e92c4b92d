"""Test fixtures for the reservations backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_SAMPLE_DATA", "false")

from app.core.config import get_settings
from app.core.security import get_password_hash
from app.db.base import Base
from app.db.session import dispose_engine, get_sessionmaker
from app.main import app
from app.models import Location, Member, MemberGrade
from app.services import member_cache
from app.services.activity_log_queue import default_queue

DEFAULT_PASSWORD = "Passw0rd!"
NAVER_URL = "https://naver.me/IgJGvT1Y"


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture()
def upload_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point profile image storage at a per-test directory."""
    target = tmp_path / "uploads"
    monkeypatch.setenv("UPLOAD_DIR", str(target))
    get_settings.cache_clear()
    yield target
    get_settings.cache_clear()


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()
    member_cache.clear()
    default_queue.clear()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    default_queue.clear()
    await dispose_engine(db_url)


def _make_member(
    login_id: str,
    *,
    grade: MemberGrade = MemberGrade.EGG,
    name: str = "Tester",
    password: str = DEFAULT_PASSWORD,
) -> Member:
    return Member(
        login_id=login_id,
        password_hash=get_password_hash(password),
        name=name,
        birth_year=1995,
        grade=grade,
    )


@pytest_asyncio.fixture()
async def app_context(
    reset_database: AsyncIterator[None], db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client plus an administrator, two members and a location."""
    sessionmaker = get_sessionmaker(db_url)

    async with sessionmaker() as session:
        admin = _make_member("admin_user", grade=MemberGrade.ROOSTER, name="Admin")
        alice = _make_member("alice_01", name="Alice")
        bob = _make_member("bob_02", grade=MemberGrade.CHICK, name="Bob")
        location = Location(
            name="Study Room",
            address="Seoul 1F",
            description="quiet room",
            url=NAVER_URL,
            is_active=True,
        )
        session.add_all([admin, alice, bob, location])
        await session.commit()

        context: dict[str, object] = {
            "admin_id": admin.id,
            "admin_login": admin.login_id,
            "alice_id": alice.id,
            "alice_login": alice.login_id,
            "bob_id": bob.id,
            "bob_login": bob.login_id,
            "password": DEFAULT_PASSWORD,
            "location_id": location.id,
            "location_name": location.name,
            "location_address": location.address,
        }

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
