"""Async SQLAlchemy engine and session management."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


class Database:
    """Engine plus session factory, owned by whoever creates it (app lifespan, worker, tests)."""

    def __init__(self, url: str, pool_size: int = 20) -> None:
        engine_kwargs: dict[str, object] = {"pool_pre_ping": True, "echo": False}
        if url.startswith("postgresql"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=10,
                connect_args={"statement_cache_size": 0},
            )
        elif url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"timeout": 30}

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create all tables from model metadata (tests and local bootstrap)."""
        from reputation.db.base import Base
        import reputation.db.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the database engine."""
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session from the app's database (FastAPI dependency)."""
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        msg = "Database not initialized. Set app.state.database first."
        raise RuntimeError(msg)
    async with database.session_factory() as session:
        yield session
