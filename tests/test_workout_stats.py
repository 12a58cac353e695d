"""Tests for workout statistics: periods, personal bests, stats summary endpoint."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from trainingapp.core.errors import ValidationError
from trainingapp.db.session import async_session_maker
from trainingapp.models.achievement import Achievement
from trainingapp.services.workout_stats import leaderboard, period_start, reduce_personal_bests

from tests.conftest import create_user, workout_body

NOW = datetime(2026, 3, 18, 15, 30, tzinfo=timezone.utc)


def test_period_start():
    assert period_start("week", NOW) == NOW - timedelta(days=7)
    assert period_start("month", NOW) == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert period_start("year", NOW) == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert period_start("all", NOW) is None
    with pytest.raises(ValidationError):
        period_start("fortnight", NOW)


def test_personal_bests_empty_is_zero():
    bests = reduce_personal_bests([])
    assert bests["running"] == {"longest_distance": 0, "best_pace": 0, "longest_duration": 0, "fastest_speed": 0}
    assert bests["swimming"]["best_swolf"] == 0
    assert bests["gym"]["heaviest_weight"] == 0


def test_personal_bests_reduction():
    rows = [
        ("Running", 1500, 5000.0, {"kind": "running", "distance_m": 5000, "max_speed": 15}),
        ("Running", 3300, 10000.0, {"kind": "running", "distance_m": 10000, "avg_pace": 330}),
        ("Cycling", 3600, 30000.0, {"kind": "cycling", "distance_m": 30000, "avg_speed": 30, "max_speed": 48}),
        ("Cycling", 1800, 10000.0, {"kind": "cycling", "distance_m": 10000, "avg_speed": 20}),
        ("Swimming", 1200, 1000.0, {"kind": "swimming", "pool_length_m": 25, "distance_m": 1000, "avg_swolf": 42}),
        ("Swimming", 1500, 500.0, {"kind": "swimming", "pool_length_m": 50, "distance_m": 500, "avg_swolf": 38,
                                   "laps": [{"lap_number": i, "time": 60} for i in range(1, 11)]}),
        ("Gym", 3600, 0.0, {"kind": "gym", "exercises": [{"name": "Deadlift", "sets": [
            {"set_number": 1, "reps": 5, "weight": 140}, {"set_number": 2, "reps": 5, "weight": 150}]}]}),
        ("Walking", 5000, 0.0, None),
    ]
    bests = reduce_personal_bests(rows)
    assert bests["running"] == {"longest_distance": 10000, "best_pace": 300.0, "longest_duration": 3300, "fastest_speed": 15}
    assert bests["cycling"] == {"longest_distance": 30000, "best_speed": 48, "longest_duration": 3600, "avg_speed": 25.0}
    assert bests["swimming"] == {"most_laps": 10, "best_swolf": 38, "longest_duration": 1500, "longest_distance": 1000}
    assert bests["gym"] == {"heaviest_weight": 150, "most_sets": 2, "most_reps": 10, "longest_duration": 3600}


@pytest.mark.asyncio
async def test_stats_summary_endpoint(client: AsyncClient, auth_headers: dict):
    now = datetime.now(timezone.utc).replace(microsecond=0)
    yesterday = now - timedelta(days=1)
    long_ago = now - timedelta(days=400)
    for start, body in [
        (yesterday, {"running": {"distance_m": 5200}}),
        (yesterday + timedelta(hours=1), {"running": {"distance_m": 3000}}),
        (now - timedelta(hours=1), {"type": "Cycling", "cycling": {"distance_m": 20000, "max_speed": 40}}),
        (long_ago, {"type": "Walking"}),
    ]:
        resp = await client.post("/api/v1/workouts", json=workout_body(start=start, duration=1800, **body), headers=auth_headers)
        assert resp.status_code == 201

    resp = await client.get("/api/v1/workouts/stats/summary", params={"period": "week"}, headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["period"] == "week"
    assert [(s["type"], s["count"]) for s in data["stats"]] == [("Running", 2), ("Cycling", 1)]
    assert data["stats"][0]["total_distance"] == 8200
    assert data["personalBests"]["running"]["longest_distance"] == 5200
    assert data["personalBests"]["cycling"]["best_speed"] == 40
    assert {a["type"] for a in data["recentAchievements"]} >= {"first_workout", "distance_5k"}
    assert sum(day["count"] for day in data["trends"]) == 3
    assert [day["date"] for day in data["trends"]] == sorted(day["date"] for day in data["trends"])

    resp = await client.get("/api/v1/workouts/stats/summary", params={"period": "all"}, headers=auth_headers)
    counts = {s["type"]: s["count"] for s in resp.json()["data"]["stats"]}
    assert counts == {"Running": 2, "Cycling": 1, "Walking": 1}

    resp = await client.get("/api/v1/workouts/stats/summary", params={"period": "decade"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"


def _achievement(user_id: int, type: str, points: int) -> Achievement:
    return Achievement(user_id=user_id, type=type, title=type, emoji="*", category="milestone",
                       rarity="common", points=points)


@pytest.mark.asyncio
async def test_leaderboard_ties_broken_by_achievement_count(clean_db):
    solo_id, _, __ = await create_user("solo@test.com", "Solo")
    pair_id, _, __ = await create_user("pair@test.com", "Pair")
    async with async_session_maker() as session:
        session.add_all([
            _achievement(solo_id, "big_one", 30),
            _achievement(pair_id, "small_one", 15),
            _achievement(pair_id, "small_two", 15),
        ])
        await session.commit()
        board = await leaderboard(session, now=datetime.now(timezone.utc))

    assert [(row["name"], row["points"], row["achievements"]) for row in board] == [("Pair", 30, 2), ("Solo", 30, 1)]
    assert [row["rank"] for row in board] == [1, 2]
