"""Explicit per-call context threaded from the HTTP layer into services."""

from __future__ import annotations

from dataclasses import dataclass

from asgi_correlation_id import correlation_id
from fastapi import Request


@dataclass(frozen=True)
class CallContext:
    """Who is acting, from where, and under which correlation id."""

    actor_id: int | None = None
    actor_login_id: str | None = None
    remote_address: str | None = None
    user_agent: str | None = None
    request_uri: str | None = None
    http_method: str | None = None
    correlation_id: str | None = None


SYSTEM_CONTEXT = CallContext(actor_login_id="system")


def _client_address(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def context_from_request(
    request: Request,
    *,
    actor_id: int | None = None,
    actor_login_id: str | None = None,
) -> CallContext:
    """Capture the request metadata used by activity logging."""
    return CallContext(
        actor_id=actor_id,
        actor_login_id=actor_login_id,
        remote_address=_client_address(request),
        user_agent=request.headers.get("User-Agent"),
        request_uri=request.url.path,
        http_method=request.method,
        correlation_id=correlation_id.get(),
    )


__all__ = ["CallContext", "SYSTEM_CONTEXT", "context_from_request"]
