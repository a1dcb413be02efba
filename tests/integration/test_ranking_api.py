"""Integration tests for /api/v1/ranking endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


async def _create_tutor(client: AsyncClient, name: str, profile: dict, points: int = 0) -> dict:
    response = await client.post(
        "/api/v1/users", json={"email": f"{name.lower()}@example.com", "name": name, "role": "TUTOR"}
    )
    assert response.status_code == 201, response.text
    user = response.json()

    patched = await client.patch(f"/api/v1/ranking/tutors/{user['id']}/profile", json=profile)
    assert patched.status_code == 200, patched.text
    if points:
        await client.post(f"/api/v1/users/{user['id']}/points", json={"reason": "Seed", "amount": points})
    return user


class TestTutorRanking:
    """Test GET /api/v1/ranking/tutors."""

    @pytest.mark.asyncio
    async def test_empty_ranking(self, client: AsyncClient):
        response = await client.get("/api/v1/ranking/tutors")
        assert response.status_code == 200
        assert response.json() == {"tutors": [], "limit": 10, "subject": None}

    @pytest.mark.asyncio
    async def test_formula_with_subject(self, client: AsyncClient):
        await _create_tutor(
            client,
            "Ana",
            {"avg_rating": 4.0, "response_time_seconds": 20, "availability_score": 0.5, "subjects": ["math"]},
            points=100,
        )

        with_subject = (await client.get("/api/v1/ranking/tutors", params={"subject": "math"})).json()
        [entry] = with_subject["tutors"]
        assert entry["ranking_score"] == pytest.approx(1278)
        assert entry["subject_match"] == 1
        assert entry["rank"] == 1
        assert with_subject["subject"] == "math"

        without = (await client.get("/api/v1/ranking/tutors")).json()
        assert without["tutors"][0]["ranking_score"] == pytest.approx(978)

    @pytest.mark.asyncio
    async def test_ordering_and_limit(self, client: AsyncClient):
        await _create_tutor(client, "Low", {"avg_rating": 2.0})
        await _create_tutor(client, "High", {"avg_rating": 5.0})
        await _create_tutor(client, "Mid", {"avg_rating": 3.5})

        data = (await client.get("/api/v1/ranking/tutors", params={"limit": 2})).json()
        assert [t["name"] for t in data["tutors"]] == ["High", "Mid"]
        assert data["limit"] == 2

    @pytest.mark.asyncio
    async def test_students_not_ranked(self, client: AsyncClient):
        response = await client.post("/api/v1/users", json={"email": "s@example.com", "name": "Student"})
        student = response.json()
        await client.patch(f"/api/v1/ranking/tutors/{student['id']}/profile", json={"avg_rating": 5.0})

        assert (await client.get("/api/v1/ranking/tutors")).json()["tutors"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 101])
    async def test_limit_out_of_range(self, client: AsyncClient, limit: int):
        response = await client.get("/api/v1/ranking/tutors", params={"limit": limit})
        assert response.status_code == 422


class TestTutorProfile:
    """Test PATCH /api/v1/ranking/tutors/{id}/profile."""

    @pytest.mark.asyncio
    async def test_partial_update_merges(self, client: AsyncClient):
        tutor = await _create_tutor(client, "Ana", {"avg_rating": 4.2, "subjects": ["math"]})
        response = await client.patch(
            f"/api/v1/ranking/tutors/{tutor['id']}/profile", json={"sessions_last_month": 22}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["avg_rating"] == pytest.approx(4.2)
        assert data["sessions_last_month"] == 22
        assert data["subjects"] == ["math"]

    @pytest.mark.asyncio
    async def test_out_of_range_rating(self, client: AsyncClient):
        tutor = await _create_tutor(client, "Ana", {})
        response = await client.patch(f"/api/v1/ranking/tutors/{tutor['id']}/profile", json={"avg_rating": 7})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_null_for_required_field(self, client: AsyncClient):
        tutor = await _create_tutor(client, "Ana", {})
        response = await client.patch(
            f"/api/v1/ranking/tutors/{tutor['id']}/profile", json={"sessions_last_month": None}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient):
        response = await client.patch("/api/v1/ranking/tutors/nobody/profile", json={"avg_rating": 4.0})
        assert response.status_code == 404
