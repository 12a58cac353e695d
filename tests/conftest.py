"""Pytest configuration and shared fixtures for API tests."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test DB before app imports so config/engine use it
_DB_PATH = os.path.join(tempfile.gettempdir(), f"trainingapp_test_{os.getpid()}.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_PATH}")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DEFAULT_RATE_LIMIT", "10000/minute")

import trainingapp.models  # noqa: E402,F401 - register all tables
from trainingapp.core.auth import create_access_token  # noqa: E402
from trainingapp.db.base import Base  # noqa: E402
from trainingapp.db.session import async_session_maker, engine  # noqa: E402
from trainingapp.main import app  # noqa: E402
from trainingapp.models.user import User  # noqa: E402
from trainingapp.services.user_stats import new_stats_row  # noqa: E402


@pytest_asyncio.fixture
async def clean_db():
    """Fresh schema for every test; pooled connections are closed with the test's event loop."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def client(clean_db):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


async def create_user(email: str, name: str | None = None, created_at: datetime | None = None) -> tuple[int, str, str]:
    """Create a user with its zero stats row (committed); returns (user_id, email, access_token)."""
    async with async_session_maker() as session:
        user = User(email=email, name=name or email.split("@")[0])
        if created_at is not None:
            user.created_at = created_at
        session.add(user)
        await session.flush()
        session.add(new_stats_row(user.id))
        await session.commit()
        return user.id, user.email, create_access_token(user.id, user.email)


@pytest_asyncio.fixture
async def test_user(clean_db):
    """User registered 60 days ago, so per-week averages are stable."""
    return await create_user("test@test.com", "Tester", datetime.now(timezone.utc) - timedelta(days=60))


@pytest.fixture
def auth_headers(test_user):
    """Return dict of Authorization header for test_user."""
    _, __, token = test_user
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def other_headers(clean_db):
    """Authorization header for a second user."""
    _, __, token = await create_user("other@test.com", "Other")
    return {"Authorization": f"Bearer {token}"}


def workout_body(
    type: str = "Running",
    start: datetime | None = None,
    duration: int = 1800,
    **extra,
) -> dict:
    """JSON body for POST /workouts; `extra` may carry name/notes/privacy/calories and per-type metrics."""
    start = start or datetime(2026, 3, 2, 7, 0, tzinfo=timezone.utc)
    body = {
        "type": type,
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(seconds=duration)).isoformat(),
        "duration": duration,
    }
    body.update(extra)
    return body
