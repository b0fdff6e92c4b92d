"""Authentication schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.member import MemberRead


class Token(BaseModel):
    """Response body for access tokens."""

    access_token: str
    token_type: str = "bearer"


class TokenPair(Token):
    """Access plus refresh token, with the access lifetime in seconds."""

    refresh_token: str
    expires_in: int


class LoginRequest(BaseModel):
    """Login payload."""

    login_id: str = Field(min_length=1, max_length=20)
    password: str = Field(min_length=1)


class LoginResponse(TokenPair):
    """Tokens together with the authenticated member."""

    member: MemberRead


class RefreshRequest(BaseModel):
    refresh_token: str
