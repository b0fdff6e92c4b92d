from __future__ import annotations

import io
from pathlib import Path

import pytest
from httpx import AsyncClient
from PIL import Image

pytestmark = pytest.mark.asyncio


async def _authenticate(client: AsyncClient, login_id: str, password: str) -> dict[str, str]:
    response = await client.post(
        "/api/auth/login", json={"login_id": login_id, "password": password}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(255, 200, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


async def test_profile_image_upload_download_and_delete(
    upload_dir: Path, app_context: dict[str, object]
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "alice_01", app_context["password"])  # type: ignore[arg-type]
    payload = _png_bytes()

    uploaded = await client.post(
        "/api/files/profile-image",
        files={"file": ("avatar.png", payload, "image/png")},
        headers=headers,
    )
    assert uploaded.status_code == 200
    url = uploaded.json()["profile_image_url"]
    assert url.startswith(f"/api/files/profiles/{app_context['alice_id']}/profile_")
    assert url.endswith(".png")

    downloaded = await client.get(url)
    assert downloaded.status_code == 200
    assert downloaded.content == payload

    removed = await client.delete("/api/files/profile-image", headers=headers)
    assert removed.status_code == 204
    me = await client.get("/api/auth/me", headers=headers)
    assert me.json()["profile_image_url"] is None
    assert not list((upload_dir / "profiles" / str(app_context["alice_id"])).iterdir())


async def test_upload_rejects_non_images(
    upload_dir: Path, app_context: dict[str, object]
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "alice_01", app_context["password"])  # type: ignore[arg-type]

    response = await client.post(
        "/api/files/profile-image",
        files={"file": ("notes.txt", b"plain text", "text/plain")},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_download_of_missing_file_is_404(
    upload_dir: Path, app_context: dict[str, object]
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.get(
        f"/api/files/profiles/{app_context['alice_id']}/profile_missing.png"
    )

    assert response.status_code == 404
