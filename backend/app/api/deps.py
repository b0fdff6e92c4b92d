"""Common API dependencies."""

from __future__ import annotations

from typing import Annotated
from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.context import CallContext, context_from_request
from app.core.errors import UnauthorizedError
from app.core.security import decode_access_token
from app.db.session import get_session
from app.models.member import Member
from app.services import member_service

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/auth/token")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_current_member(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> Member:
    """Authenticate request via bearer access token."""
    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        raise UnauthorizedError() from exc

    login_id = payload.get("sub")
    if not login_id:
        raise UnauthorizedError()

    member = await member_service.get_member_by_login_id(session, login_id)
    if member is None:
        raise UnauthorizedError()
    return member


async def get_call_context(
    request: Request,
    current_member: Annotated[Member, Depends(get_current_member)],
) -> CallContext:
    """Request metadata bound to the authenticated member."""
    return context_from_request(
        request,
        actor_id=current_member.id,
        actor_login_id=current_member.login_id,
    )
