"""Integration tests for /api/v1/users endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


async def _create_user(client: AsyncClient, name: str, role: str = "STUDENT") -> dict:
    response = await client.post(
        "/api/v1/users", json={"email": f"{name.lower()}@example.com", "name": name, "role": role}
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestUserEndpoints:
    """Test user CRUD."""

    @pytest.mark.asyncio
    async def test_create_user(self, client: AsyncClient):
        data = await _create_user(client, "Ana", "TUTOR")
        assert data["email"] == "ana@example.com"
        assert data["role"] == "TUTOR"
        assert data["points"] == 0
        assert "id" in data

    @pytest.mark.asyncio
    async def test_duplicate_email_conflict(self, client: AsyncClient):
        await _create_user(client, "Ana")
        response = await client.post("/api/v1/users", json={"email": "ana@example.com", "name": "Ana 2"})
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_email_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/users", json={"email": "not-an-email", "name": "Ana"})
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    @pytest.mark.asyncio
    async def test_get_user(self, client: AsyncClient):
        created = await _create_user(client, "Ana")
        response = await client.get(f"/api/v1/users/{created['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Ana"

    @pytest.mark.asyncio
    async def test_get_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/v1/users/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}

    @pytest.mark.asyncio
    async def test_list_filtered_by_role(self, client: AsyncClient):
        await _create_user(client, "Ana", "TUTOR")
        await _create_user(client, "Ben")
        response = await client.get("/api/v1/users", params={"role": "TUTOR"})
        assert response.status_code == 200
        assert [u["name"] for u in response.json()] == ["Ana"]


class TestScoreEndpoints:
    """Test the point ledger over HTTP."""

    @pytest.mark.asyncio
    async def test_add_points_and_read_score(self, client: AsyncClient):
        user = await _create_user(client, "Ana")
        url = f"/api/v1/users/{user['id']}"

        first = await client.post(f"{url}/points", json={"reason": "Uploaded notes", "amount": 30})
        assert first.status_code == 200
        assert first.json()["total_points"] == 30

        await client.post(f"{url}/points", json={"reason": "Late cancel", "amount": -10})

        response = await client.get(f"{url}/score")
        assert response.status_code == 200
        data = response.json()
        assert data["total_points"] == 20
        assert data["user_name"] == "Ana"
        assert [r["reason"] for r in data["reasons"]] == ["Late cancel", "Uploaded notes"]

        profile = await client.get(url)
        assert profile.json()["points"] == 20

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, client: AsyncClient):
        user = await _create_user(client, "Ana")
        response = await client.post(
            f"/api/v1/users/{user['id']}/points", json={"reason": "Nothing", "amount": 0}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_reason_rejected(self, client: AsyncClient):
        user = await _create_user(client, "Ana")
        response = await client.post(f"/api/v1/users/{user['id']}/points", json={"amount": 5})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_points_for_unknown_user(self, client: AsyncClient):
        response = await client.post("/api/v1/users/nobody/points", json={"reason": "Bonus", "amount": 5})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_score_for_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/v1/users/nobody/score")
        assert response.status_code == 404


class TestStatsEndpoints:
    """Test activity stats."""

    @pytest.mark.asyncio
    async def test_patch_and_get_stats(self, client: AsyncClient):
        user = await _create_user(client, "Ana")
        url = f"/api/v1/users/{user['id']}/stats"

        response = await client.patch(url, json={"materials_uploaded": 4, "avg_likes": 5.5})
        assert response.status_code == 200
        assert response.json()["materials_uploaded"] == 4

        await client.patch(url, json={"materials_uploaded": 6})
        data = (await client.get(url)).json()
        assert data["materials_uploaded"] == 10
        assert data["avg_likes"] == pytest.approx(5.5)
        assert data["user_name"] == "Ana"

    @pytest.mark.asyncio
    async def test_negative_increment_rejected(self, client: AsyncClient):
        user = await _create_user(client, "Ana")
        response = await client.patch(f"/api/v1/users/{user['id']}/stats", json={"materials_uploaded": -1})
        assert response.status_code == 422


class TestBadgeAndNotificationEndpoints:
    """Test per-user badges and notifications."""

    @pytest.mark.asyncio
    async def test_badges_empty_for_new_user(self, client: AsyncClient):
        user = await _create_user(client, "Ana")
        response = await client.get(f"/api/v1/users/{user['id']}/badges")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_badges_for_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/v1/users/nobody/badges")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_awarded_badge_and_notification_visible(self, client: AsyncClient):
        user = await _create_user(client, "Ana")
        badges = (await client.get("/api/v1/admin/badges")).json()
        mentor = next(b for b in badges if b["name"] == "Mentor del Mes")

        await client.post("/api/v1/admin/award-badge", json={"user_id": user["id"], "badge_id": mentor["id"]})

        held = (await client.get(f"/api/v1/users/{user['id']}/badges")).json()
        assert [b["name"] for b in held] == ["Mentor del Mes"]

        notifications = (await client.get(f"/api/v1/users/{user['id']}/notifications")).json()
        assert len(notifications) == 1
        assert notifications[0]["channel"] == "PUSH"
        assert notifications[0]["status"] == "PENDING"

        sent = await client.patch(
            f"/api/v1/notifications/{notifications[0]['id']}/status", json={"status": "SENT"}
        )
        assert sent.status_code == 200
        assert sent.json()["status"] == "SENT"
        assert sent.json()["sent_at"] is not None

    @pytest.mark.asyncio
    async def test_unknown_notification_status_update(self, client: AsyncClient):
        response = await client.patch("/api/v1/notifications/missing/status", json={"status": "FAILED"})
        assert response.status_code == 404
