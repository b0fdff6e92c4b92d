"""API routers mounted under the configured prefix."""

from fastapi import APIRouter

from . import (
    activity_logs,
    auth,
    files,
    health,
    locations,
    members,
    reservation_applications,
    reservations,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(members.router, prefix="/members", tags=["members"])
router.include_router(locations.router, prefix="/locations", tags=["locations"])
router.include_router(
    reservations.router, prefix="/reservations", tags=["reservations"]
)
router.include_router(
    reservation_applications.router,
    prefix="/reservation-applications",
    tags=["reservation-applications"],
)
router.include_router(
    activity_logs.router, prefix="/activity-logs", tags=["activity-logs"]
)
router.include_router(files.router, prefix="/files", tags=["files"])

__all__ = ["router"]
