"""Authentication service helpers."""

from __future__ import annotations

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import UnauthorizedError
from app.core.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password,
)
from app.models.member import Member
from app.schemas.auth import TokenPair
from app.services import member_service


async def authenticate_member(
    session: AsyncSession, login_id: str, password: str
) -> Member | None:
    """Validate credentials and return the member if correct."""
    member = await member_service.get_member_by_login_id(session, login_id)
    if member is None:
        return None
    if not verify_password(password, member.password_hash):
        return None
    return member


def _claims(member: Member) -> dict[str, object]:
    return {"member_id": member.id, "grade": member.grade.value}


def issue_tokens(member: Member) -> TokenPair:
    """Generate an access/refresh token pair for a member."""
    settings = get_settings()
    return TokenPair(
        access_token=create_access_token(member.login_id, **_claims(member)),
        refresh_token=create_refresh_token(member.login_id, **_claims(member)),
        expires_in=settings.access_token_expire_minutes * 60,
    )


async def refresh_tokens(session: AsyncSession, refresh_token: str) -> tuple[Member, TokenPair]:
    """Exchange a refresh token for a fresh pair; access tokens are refused."""
    try:
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
    except JWTError as exc:
        raise UnauthorizedError("Invalid refresh token") from exc
    login_id = payload.get("sub")
    if not login_id:
        raise UnauthorizedError("Invalid refresh token")
    member = await member_service.get_member_by_login_id(session, login_id)
    if member is None:
        raise UnauthorizedError("Invalid refresh token")
    return member, issue_tokens(member)
