"""Tests for achievements API: list, recent, progress, templates, leaderboard, sharing."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from trainingapp.services.achievement_catalog import DEFAULT_CATALOG

from tests.conftest import workout_body

DAY1 = datetime(2026, 3, 2, 7, 0, tzinfo=timezone.utc)


async def _earn_first_and_5k(client: AsyncClient, headers: dict) -> list[dict]:
    resp = await client.post(
        "/api/v1/workouts",
        json=workout_body(start=DAY1, duration=1500, running={"distance_m": 5200}),
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()["data"]["achievementsEarned"]


@pytest.mark.asyncio
async def test_list_and_category_filter(client: AsyncClient, auth_headers: dict):
    await _earn_first_and_5k(client, auth_headers)
    resp = await client.get("/api/v1/achievements", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total"] == 2
    assert data["totalPoints"] == DEFAULT_CATALOG["first_workout"].points + DEFAULT_CATALOG["distance_5k"].points

    resp = await client.get("/api/v1/achievements", params={"category": "distance"}, headers=auth_headers)
    assert [a["type"] for a in resp.json()["data"]["achievements"]] == ["distance_5k"]

    resp = await client.get("/api/v1/achievements", params={"category": "karma"}, headers=auth_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_recent_limit(client: AsyncClient, auth_headers: dict):
    await _earn_first_and_5k(client, auth_headers)
    resp = await client.get("/api/v1/achievements/recent", params={"limit": 1}, headers=auth_headers)
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 1


@pytest.mark.asyncio
async def test_progress(client: AsyncClient, auth_headers: dict):
    await _earn_first_and_5k(client, auth_headers)
    resp = await client.get("/api/v1/achievements/progress", headers=auth_headers)
    assert resp.status_code == 200
    progress = {p["key"]: p for p in resp.json()["data"]}
    assert len(progress) == len(DEFAULT_CATALOG)
    assert progress["distance_5k"]["earned"] is True
    assert progress["distance_5k"]["progress"]["percentage"] == 100.0
    assert progress["distance_10k"]["earned"] is False
    assert progress["distance_10k"]["progress"]["percentage"] == 52.0
    assert progress["workouts_10"]["progress"]["current"] == 1


@pytest.mark.asyncio
async def test_templates(client: AsyncClient, auth_headers: dict):
    resp = await client.get("/api/v1/achievements/templates", headers=auth_headers)
    assert resp.status_code == 200
    templates = resp.json()["data"]
    assert len(templates) == len(DEFAULT_CATALOG)
    first = next(t for t in templates if t["key"] == "first_workout")
    assert first["category"] == "milestone"
    assert first["rarity"] == "common"

    resp = await client.get("/api/v1/achievements/templates", params={"category": "consistency"}, headers=auth_headers)
    assert all(t["category"] == "consistency" for t in resp.json()["data"])


@pytest.mark.asyncio
async def test_share_is_idempotent(client: AsyncClient, auth_headers: dict):
    earned = await _earn_first_and_5k(client, auth_headers)
    achievement_id = earned[0]["id"]
    assert earned[0]["is_shared"] is False

    resp = await client.post(f"/api/v1/achievements/{achievement_id}/share", headers=auth_headers)
    assert resp.status_code == 200
    first = resp.json()["data"]
    assert first["is_shared"] is True
    assert first["shared_at"] is not None

    resp = await client.post(f"/api/v1/achievements/{achievement_id}/share", headers=auth_headers)
    assert resp.status_code == 200
    second = resp.json()["data"]
    assert second["is_shared"] is True
    assert second["shared_at"] >= first["shared_at"]


@pytest.mark.asyncio
async def test_share_requires_owner(client: AsyncClient, auth_headers: dict, other_headers: dict):
    earned = await _earn_first_and_5k(client, auth_headers)
    resp = await client.post(f"/api/v1/achievements/{earned[0]['id']}/share", headers=other_headers)
    assert resp.status_code == 403
    assert resp.json()["status"] == "error"
    resp = await client.post("/api/v1/achievements/99999/share", headers=auth_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_leaderboard_ranks_by_points(client: AsyncClient, auth_headers: dict, other_headers: dict):
    await _earn_first_and_5k(client, auth_headers)
    resp = await client.post(
        "/api/v1/workouts",
        json=workout_body(start=DAY1, type="Walking"),
        headers=other_headers,
    )
    assert resp.status_code == 201

    resp = await client.get("/api/v1/achievements/leaderboard", headers=auth_headers)
    assert resp.status_code == 200
    board = resp.json()["data"]["leaderboard"]
    assert [row["name"] for row in board] == ["Tester", "Other"]
    assert board[0]["rank"] == 1
    assert board[0]["points"] == DEFAULT_CATALOG["first_workout"].points + DEFAULT_CATALOG["distance_5k"].points
    assert board[0]["achievements"] == 2
    assert board[1]["achievements"] == 1

    resp = await client.get("/api/v1/achievements/leaderboard", params={"category": "distance"}, headers=auth_headers)
    assert [row["name"] for row in resp.json()["data"]["leaderboard"]] == ["Tester"]

    resp = await client.get("/api/v1/achievements/leaderboard", params={"period": "week"}, headers=auth_headers)
    assert len(resp.json()["data"]["leaderboard"]) == 2

    resp = await client.get("/api/v1/achievements/leaderboard", params={"period": "decade"}, headers=auth_headers)
    assert resp.status_code == 400
