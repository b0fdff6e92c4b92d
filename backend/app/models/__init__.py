"""ORM models exposed for metadata discovery."""

from app.models.activity_log import ActivityLog, ActivityType
from app.models.location import Location
from app.models.member import Member, MemberGrade
from app.models.reservation import Reservation
from app.models.reservation_application import (
    ACTIVE_STATUSES,
    ApplicationStatus,
    ReservationApplication,
)

__all__ = [
    "ACTIVE_STATUSES",
    "ActivityLog",
    "ActivityType",
    "ApplicationStatus",
    "Location",
    "Member",
    "MemberGrade",
    "Reservation",
    "ReservationApplication",
]
