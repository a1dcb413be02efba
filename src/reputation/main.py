"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from reputation.admin.router import router as admin_router
from reputation.audit.router import router as audit_router
from reputation.config import Settings, get_settings
from reputation.database import Database
from reputation.gamification.seed import seed_badges
from reputation.health.router import router as health_router
from reputation.middleware import setup_middleware
from reputation.notifications.router import router as notifications_router
from reputation.ranking.router import router as ranking_router
from reputation.redis_client import close_redis, create_redis
from reputation.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database and Redis handles, seed rule badges, and close on shutdown."""
    settings: Settings = app.state.settings
    database = Database(settings.database_url, pool_size=settings.database_pool_size)
    app.state.database = database
    app.state.redis = create_redis(settings.redis_url) if settings.redis_url else None

    # Seed rule badge definitions (idempotent)
    try:
        async with database.session_factory() as db:
            await seed_badges(db)
    except Exception:
        logger.warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_redis(app.state.redis)
    await database.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Tutor Reputation API",
        description="Point ledger, badge awards and weighted tutor ranking",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(admin_router)
    app.include_router(ranking_router)
    app.include_router(audit_router)
    app.include_router(notifications_router)

    return app


app = create_app()
