"""Profile image upload and download."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.api import deps
from app.core.context import CallContext
from app.models.activity_log import ActivityType
from app.models.member import Member
from app.schemas.member import MemberRead
from app.services import activity_log_service, member_service, profile_image_service

router = APIRouter()


@router.post(
    "/profile-image",
    response_model=MemberRead,
    summary="Upload profile image",
)
async def upload_profile_image(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
    file: UploadFile = File(...),
) -> MemberRead:
    """Replace the caller's profile image."""
    data = await file.read()
    url = await run_in_threadpool(
        profile_image_service.store_profile_image,
        current_member.id,
        file.filename,
        data,
    )
    current_member.profile_image_url = url
    member = await member_service.save(session, current_member)
    activity_log_service.record(
        ctx, ActivityType.MEMBER_UPDATE, "Uploaded profile image", details={"url": url}
    )
    return MemberRead.model_validate(member)


@router.delete(
    "/profile-image",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove profile image",
)
async def delete_profile_image(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> None:
    await run_in_threadpool(profile_image_service.remove_profile_images, current_member.id)
    current_member.profile_image_url = None
    await member_service.save(session, current_member)
    activity_log_service.record(ctx, ActivityType.MEMBER_UPDATE, "Removed profile image")
    return None


@router.get(
    "/profiles/{member_id}/{filename}",
    response_class=FileResponse,
    summary="Download profile image",
)
async def download_profile_image(member_id: int, filename: str) -> FileResponse:
    path = profile_image_service.resolve_profile_file(member_id, filename)
    return FileResponse(path)
