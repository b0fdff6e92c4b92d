from __future__ import annotations

import pytest
from httpx import AsyncClient

from app.models import ActivityType
from app.services.activity_log_queue import ActivityRecord, default_queue, persist_record

pytestmark = pytest.mark.asyncio


async def _authenticate(client: AsyncClient, login_id: str, password: str) -> dict[str, str]:
    response = await client.post(
        "/api/auth/login", json={"login_id": login_id, "password": password}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def test_login_is_queued_for_the_activity_log(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    before = default_queue.pending()

    await _authenticate(client, "alice_01", app_context["password"])  # type: ignore[arg-type]

    assert default_queue.pending() == before + 1


async def test_admin_pages_and_filters_logs(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    alice_id = app_context["alice_id"]
    for activity_type, member_id in (
        (ActivityType.LOGIN, alice_id),
        (ActivityType.RESERVATION_APPLY, alice_id),
        (ActivityType.LOGIN, app_context["bob_id"]),
    ):
        await persist_record(
            ActivityRecord(
                activity_type=activity_type,
                description=activity_type.value.lower(),
                member_id=member_id,  # type: ignore[arg-type]
            )
        )
    headers = await _authenticate(client, "admin_user", app_context["password"])  # type: ignore[arg-type]

    everything = await client.get("/api/activity-logs?size=2", headers=headers)
    assert everything.status_code == 200
    assert everything.json()["total"] == 3
    assert len(everything.json()["items"]) == 2

    logins = await client.get("/api/activity-logs?activity_type=LOGIN", headers=headers)
    assert logins.json()["total"] == 2

    alice = await client.get(f"/api/activity-logs/member/{alice_id}", headers=headers)
    assert {item["activity_type"] for item in alice.json()["items"]} == {
        "LOGIN",
        "RESERVATION_APPLY",
    }


async def test_members_cannot_read_logs(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "bob_02", app_context["password"])  # type: ignore[arg-type]

    response = await client.get("/api/activity-logs", headers=headers)

    assert response.status_code == 403
