"""Profile image validation and on-disk storage."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from app.core.config import get_settings
from app.core.errors import NotFoundError, ValidationFailed

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif"})
PROFILE_PREFIX = "profile_"
PUBLIC_PATH = "/api/files/profiles"


def _extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def validate_image(filename: str | None, data: bytes) -> str:
    """Check size, extension and content; return the normalised extension."""
    settings = get_settings()
    if not data:
        raise ValidationFailed("No file was uploaded", errors={"file": "empty upload"})
    if len(data) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise ValidationFailed(
            f"File is too large (max {limit_mb}MB)", errors={"file": "too large"}
        )
    extension = _extension(filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationFailed(
            "Only jpg, jpeg, png and gif files are allowed",
            errors={"file": "unsupported extension"},
        )
    try:
        with Image.open(BytesIO(data)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationFailed(
            "File is not a readable image", errors={"file": "not an image"}
        ) from exc
    return extension


def profile_dir(member_id: int) -> Path:
    return get_settings().upload_dir / "profiles" / str(member_id)


def _generate_name(member_id: int, extension: str) -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{PROFILE_PREFIX}{member_id}_{timestamp}_{uuid.uuid4().hex[:8]}.{extension}"


def remove_profile_images(member_id: int) -> int:
    """Delete stored profile images of a member; return how many were removed."""
    directory = profile_dir(member_id)
    if not directory.is_dir():
        return 0
    removed = 0
    for path in directory.iterdir():
        if path.is_file() and path.name.startswith(PROFILE_PREFIX):
            path.unlink(missing_ok=True)
            removed += 1
    logger.debug("Removed %d profile images of member %s", removed, member_id)
    return removed


def store_profile_image(member_id: int, filename: str | None, data: bytes) -> str:
    """Validate and save an upload, replacing earlier images; return its URL."""
    extension = validate_image(filename, data)
    directory = profile_dir(member_id)
    directory.mkdir(parents=True, exist_ok=True)
    remove_profile_images(member_id)
    name = _generate_name(member_id, extension)
    (directory / name).write_bytes(data)
    logger.info("Stored profile image %s for member %s", name, member_id)
    return f"{PUBLIC_PATH}/{member_id}/{name}"


def resolve_profile_file(member_id: int, filename: str) -> Path:
    """Map a public file name to its path, refusing anything outside the member folder."""
    directory = profile_dir(member_id).resolve()
    candidate = (directory / filename).resolve()
    if candidate.parent != directory or not candidate.is_file():
        raise NotFoundError("File not found")
    return candidate
