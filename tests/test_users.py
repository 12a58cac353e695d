"""Tests for user endpoints: aggregate stats and dev seed."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient

from trainingapp.config import settings


@pytest.mark.asyncio
async def test_my_stats_starts_at_zero(client: AsyncClient, auth_headers: dict):
    resp = await client.get("/api/v1/users/me/stats", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["workouts"] == 0
    assert data["current_streak"] == 0
    assert data["last_workout_date"] is None
    assert data["swimming"]["average_swolf"] == 0


@pytest.mark.asyncio
async def test_seed_only_in_debug(client: AsyncClient):
    with patch.object(settings, "debug", False):
        resp = await client.post("/api/v1/users/seed")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_seed_creates_user_with_stats(client: AsyncClient):
    with patch.object(settings, "debug", True):
        resp = await client.post("/api/v1/users/seed", json={"email": "Seed@Test.com", "name": "Seed"})
        again = await client.post("/api/v1/users/seed", json={"email": "seed@test.com"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["email"] == "seed@test.com"
    assert resp.json()["message"] == "User created"
    assert again.json()["message"] == "User already exists"
    assert again.json()["data"]["id"] == data["id"]

    headers = {"Authorization": f"Bearer {data['access_token']}"}
    resp = await client.get("/api/v1/users/me/stats", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["workouts"] == 0


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
