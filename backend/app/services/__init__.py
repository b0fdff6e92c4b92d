"""Service layer exports."""
from app.services import (
    activity_log_service,
    application_service,
    auth_service,
    location_service,
    member_service,
    reservation_service,
    waitlist_engine,
)

__all__ = [
    "activity_log_service",
    "application_service",
    "auth_service",
    "location_service",
    "member_service",
    "reservation_service",
    "waitlist_engine",
]
