"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.config import Settings
from reputation.database import Database
from reputation.db.models import Score, TutorProfile, User, UserRole, UserStats
from reputation.gamification.seed import seed_badges
from reputation.main import create_app
from reputation.users.service import create_user

UserFactory = Callable[..., Awaitable[User]]


def _sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'reputation.db'}"


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """A fresh file-backed SQLite database per test (file-backed so sessions can run concurrently)."""
    db = Database(_sqlite_url(tmp_path))
    await db.create_all()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service calls and assertions."""
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """Session with the rule badges seeded."""
    await seed_badges(db_session)
    return db_session


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> UserFactory:
    """Factory: create a user, optionally with points, stats and a tutor profile."""
    counter = {"n": 0}

    async def _make(
        name: str | None = None,
        role: UserRole = UserRole.STUDENT,
        points: int = 0,
        profile: dict | None = None,
        stats: dict | None = None,
    ) -> User:
        counter["n"] += 1
        name = name or f"user{counter['n']}"
        user = await create_user(db_session, f"{name.lower()}@example.com", name, role)

        if points:
            score = await db_session.get(Score, user.id)
            score.points = points
        if profile is not None:
            db_session.add(TutorProfile(user_id=user.id, **{"subjects": [], **profile}))
        if stats:
            user_stats = await db_session.get(UserStats, user.id)
            for key, value in stats.items():
                setattr(user_stats, key, value)
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def app(database: Database) -> FastAPI:
    """App wired to the per-test database, with Redis disabled and rule badges seeded."""
    settings = Settings(database_url="sqlite+aiosqlite://", redis_url="", log_format="console")
    application = create_app(settings)
    application.state.database = database
    application.state.redis = None

    async with database.session_factory() as session:
        await seed_badges(session)
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the ASGI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
