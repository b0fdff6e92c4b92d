from __future__ import annotations

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

NAVER_URL = "https://map.naver.com/p/entry/place/1234"


async def _authenticate(client: AsyncClient, login_id: str, password: str) -> dict[str, str]:
    response = await client.post(
        "/api/auth/login", json={"login_id": login_id, "password": password}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def test_admin_creates_and_updates_location(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "admin_user", app_context["password"])  # type: ignore[arg-type]

    created = await client.post(
        "/api/locations",
        json={"name": "Main Hall", "address": "Seoul 2F", "url": NAVER_URL},
        headers=headers,
    )
    assert created.status_code == 201
    location_id = created.json()["id"]
    assert created.json()["is_active"] is True

    updated = await client.put(
        f"/api/locations/{location_id}",
        json={"description": "Seats forty"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["description"] == "Seats forty"
    assert updated.json()["name"] == "Main Hall"

    listed = await client.get("/api/locations", headers=headers)
    assert [item["name"] for item in listed.json()] == ["Main Hall", "Study Room"]


async def test_location_names_are_unique_ignoring_case(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "admin_user", app_context["password"])  # type: ignore[arg-type]

    response = await client.post(
        "/api/locations",
        json={"name": "study room", "url": NAVER_URL},
        headers=headers,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "CONFLICT"


async def test_location_url_must_be_a_map_link(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "admin_user", app_context["password"])  # type: ignore[arg-type]

    response = await client.post(
        "/api/locations",
        json={"name": "Elsewhere", "url": "https://maps.example.com/place"},
        headers=headers,
    )

    assert response.status_code == 400
    assert "url" in response.json()["errors"]


async def test_members_cannot_manage_locations(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "alice_01", app_context["password"])  # type: ignore[arg-type]

    created = await client.post(
        "/api/locations", json={"name": "Rooftop", "url": NAVER_URL}, headers=headers
    )
    assert created.status_code == 403

    everything = await client.get("/api/locations/all", headers=headers)
    assert everything.status_code == 403

    found = await client.get("/api/locations/search?keyword=seoul", headers=headers)
    assert [item["name"] for item in found.json()] == ["Study Room"]


async def test_deactivate_blocked_by_upcoming_reservation(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "admin_user", app_context["password"])  # type: ignore[arg-type]
    location_id = app_context["location_id"]

    reservation = await client.post(
        "/api/reservations",
        json={
            "title": "Weekly sync",
            "locations": [
                {
                    "name": app_context["location_name"],
                    "address": app_context["location_address"],
                    "url": NAVER_URL,
                }
            ],
            "max_capacity": 4,
            "reservation_date": (date.today() + timedelta(days=2)).isoformat(),
            "reservation_time": "10:00:00",
        },
        headers=headers,
    )
    assert reservation.status_code == 201

    detail = await client.get(f"/api/locations/{location_id}", headers=headers)
    assert detail.json()["active_reservation_count"] == 1

    blocked = await client.put(f"/api/locations/{location_id}/deactivate", headers=headers)
    assert blocked.status_code == 409

    deleted = await client.delete(
        f"/api/reservations/{reservation.json()['id']}", headers=headers
    )
    assert deleted.status_code == 204

    deactivated = await client.put(f"/api/locations/{location_id}/deactivate", headers=headers)
    assert deactivated.status_code == 200
    assert deactivated.json()["is_active"] is False

    active = await client.get("/api/locations", headers=headers)
    assert active.json() == []
    everything = await client.get("/api/locations/all", headers=headers)
    assert len(everything.json()) == 1

    reactivated = await client.put(f"/api/locations/{location_id}/activate", headers=headers)
    assert reactivated.json()["is_active"] is True


async def test_unknown_location_returns_404(app_context: dict[str, object]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = await _authenticate(client, "alice_01", app_context["password"])  # type: ignore[arg-type]

    response = await client.get("/api/locations/9999", headers=headers)

    assert response.status_code == 404
    assert response.json()["error"] == "LOCATION_NOT_FOUND"
