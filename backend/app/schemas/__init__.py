"""Schema exports."""

from app.schemas.activity_log import ActivityLogPage, ActivityLogRead
from app.schemas.application import ApplicationCreate, ApplicationRead
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    Token,
    TokenPair,
)
from app.schemas.location import (
    LocationCreate,
    LocationDetail,
    LocationRead,
    LocationSummary,
    LocationUpdate,
)
from app.schemas.member import (
    GradeInfo,
    MemberCreate,
    MemberPage,
    MemberRead,
    MemberStats,
    MemberSummary,
    MemberUpdate,
    PasswordChange,
)
from app.schemas.reservation import (
    ApplicantRead,
    LocationInput,
    ReservationBrief,
    ReservationCreate,
    ReservationRead,
    ReservationUpdate,
)

__all__ = [
    "ActivityLogPage",
    "ActivityLogRead",
    "ApplicantRead",
    "ApplicationCreate",
    "ApplicationRead",
    "GradeInfo",
    "LocationCreate",
    "LocationDetail",
    "LocationInput",
    "LocationRead",
    "LocationSummary",
    "LocationUpdate",
    "LoginRequest",
    "LoginResponse",
    "MemberCreate",
    "MemberPage",
    "MemberRead",
    "MemberStats",
    "MemberSummary",
    "MemberUpdate",
    "PasswordChange",
    "RefreshRequest",
    "ReservationBrief",
    "ReservationCreate",
    "ReservationRead",
    "ReservationUpdate",
    "Token",
    "TokenPair",
]
