"""Authorization predicates for explicit checks in routers."""

from __future__ import annotations

from app.core.errors import ForbiddenError
from app.models.member import Member


def require_admin(member: Member) -> None:
    """Raise 403 unless the member is an administrator."""

    if not member.is_admin:
        raise ForbiddenError("Administrator privileges required")


def require_self_or_admin(member: Member, owner_id: int) -> None:
    """Raise 403 unless the member owns the resource or is an administrator."""

    if member.id != owner_id and not member.is_admin:
        raise ForbiddenError("You may only access your own data")


__all__ = ["require_admin", "require_self_or_admin"]
