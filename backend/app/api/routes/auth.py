"""Authentication endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.config import get_settings
from app.core.context import CallContext, context_from_request
from app.core.errors import UnauthorizedError
from app.models.activity_log import ActivityType
from app.models.member import Member
from app.schemas.auth import LoginRequest, LoginResponse, RefreshRequest, Token, TokenPair
from app.schemas.member import MemberRead
from app.services import activity_log_service, auth_service

router = APIRouter()

_settings = get_settings()


def _parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except ValueError:
        return fallback
    window = window_str.strip().lower().rstrip("s")
    seconds_map = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
    return count, seconds_map.get(window, fallback[1])


_LOGIN_LIMIT = _parse_rate(_settings.rate_limit_login, fallback=(10, 60))


async def _login_rate_limit(request: Request, response: Response) -> None:
    if FastAPILimiter.redis is None:
        return None
    limiter = RateLimiter(times=_LOGIN_LIMIT[0], seconds=_LOGIN_LIMIT[1])
    await limiter(request, response)


async def _login(
    session: AsyncSession, request: Request, login_id: str, password: str
) -> tuple[Member, TokenPair]:
    member = await auth_service.authenticate_member(session, login_id, password)
    if member is None:
        raise UnauthorizedError("Invalid login id or password")
    tokens = auth_service.issue_tokens(member)
    activity_log_service.record(
        context_from_request(request, actor_id=member.id, actor_login_id=member.login_id),
        ActivityType.LOGIN,
        "Logged in",
    )
    return member, tokens


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in with login id and password",
    dependencies=[Depends(_login_rate_limit)],
)
async def login(
    payload: LoginRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    request: Request,
) -> LoginResponse:
    member, tokens = await _login(session, request, payload.login_id, payload.password)
    return LoginResponse(**tokens.model_dump(), member=MemberRead.model_validate(member))


@router.post(
    "/token",
    response_model=Token,
    summary="Obtain access token",
    dependencies=[Depends(_login_rate_limit)],
)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    request: Request,
) -> Token:
    """OAuth2 password flow used by the interactive API docs."""
    _, tokens = await _login(session, request, form_data.username, form_data.password)
    return Token(access_token=tokens.access_token)


@router.post("/refresh", response_model=TokenPair, summary="Refresh tokens")
async def refresh(
    payload: RefreshRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> TokenPair:
    _, tokens = await auth_service.refresh_tokens(session, payload.refresh_token)
    return tokens


@router.get("/me", response_model=MemberRead, summary="Current member")
async def read_me(
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> MemberRead:
    return MemberRead.model_validate(current_member)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log out")
async def logout(
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> None:
    """Tokens are stateless; the logout is only recorded."""
    activity_log_service.record(ctx, ActivityType.LOGOUT, "Logged out")
    return None
