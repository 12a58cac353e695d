"""Tests for versioned stats updates: retry on concurrent writes, give up after max retries."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.orm.exc import StaleDataError

from trainingapp.core.errors import AggregationFailure
from trainingapp.db.session import async_session_maker
from trainingapp.services import user_stats
from trainingapp.services.user_stats import load_aggregate, mutate_stats


def _add_workout(agg):
    agg.workouts += 1


@pytest.mark.asyncio
async def test_concurrent_write_is_retried(test_user, monkeypatch):
    user_id = test_user[0]
    real_get = user_stats.get_or_create_stats
    calls = 0

    async def get_with_concurrent_writer(session, uid):
        nonlocal calls
        calls += 1
        row = await real_get(session, uid)
        if calls == 1:
            # Another request commits between our read and our write
            async with async_session_maker() as other:
                other_row = await real_get(other, uid)
                other_row.workouts = 10
                await other.commit()
        return row

    monkeypatch.setattr(user_stats, "get_or_create_stats", get_with_concurrent_writer)
    async with async_session_maker() as session:
        agg = await mutate_stats(session, user_id, _add_workout)

    assert calls == 2
    assert agg.workouts == 11
    async with async_session_maker() as session:
        assert (await load_aggregate(session, user_id)).workouts == 11


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(test_user, monkeypatch):
    user_id = test_user[0]
    async with async_session_maker() as session:
        commit = AsyncMock(side_effect=StaleDataError("row changed"))
        monkeypatch.setattr(session, "commit", commit)
        with pytest.raises(AggregationFailure) as exc:
            await mutate_stats(session, user_id, _add_workout, max_retries=3)
    assert commit.await_count == 3
    assert "gave up after 3" in exc.value.message

    async with async_session_maker() as session:
        assert (await load_aggregate(session, user_id)).workouts == 0


@pytest.mark.asyncio
async def test_error_in_mutation_is_wrapped(test_user):
    user_id = test_user[0]

    def broken(agg):
        raise ValueError("bad document")

    async with async_session_maker() as session:
        with pytest.raises(AggregationFailure) as exc:
            await mutate_stats(session, user_id, broken)
    assert exc.value.message == "Stats update failed: ValueError"
