"""Security utilities for hashing and JWT handling."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from app.core.config import get_settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its hash using bcrypt."""
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except (ValueError, TypeError):  # guard against malformed hashes
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storage using bcrypt."""
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def _encode(subject: str, token_type: str, expires_delta: timedelta, extra: dict[str, Any]) -> str:
    settings = get_settings()
    now = datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    claims.update(extra)
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    subject: str, expires_delta: timedelta | None = None, **extra: Any
) -> str:
    """Create a JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=get_settings().access_token_expire_minutes)
    return _encode(subject, ACCESS_TOKEN_TYPE, expires_delta, extra)


def create_refresh_token(
    subject: str, expires_delta: timedelta | None = None, **extra: Any
) -> str:
    """Create a long-lived JWT refresh token."""
    if expires_delta is None:
        expires_delta = timedelta(days=get_settings().refresh_token_expire_days)
    return _encode(subject, REFRESH_TOKEN_TYPE, expires_delta, extra)


def decode_token(token: str, *, expected_type: str = ACCESS_TOKEN_TYPE) -> dict[str, Any]:
    """Decode a JWT token, raising JWTError on failure or a type mismatch."""
    settings = get_settings()
    payload = jwt.decode(
        token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
    )
    if payload.get("type", ACCESS_TOKEN_TYPE) != expected_type:
        raise JWTError(f"Expected a {expected_type} token")
    return payload


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode a bearer access token."""
    return decode_token(token, expected_type=ACCESS_TOKEN_TYPE)
