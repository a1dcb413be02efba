"""Badge evaluation arq worker: scheduled batch run of the automatic badge rules.

Runs as a standalone arq process:

    arq reputation.workers.settings.WorkerSettings
"""

from __future__ import annotations

import logging

from arq import cron

from reputation.config import get_settings
from reputation.database import Database
from reputation.gamification.rule_engine import BadgeRuleEvaluator
from reputation.gamification.seed import seed_badges
from reputation.redis_client import close_redis, create_redis

logger = logging.getLogger(__name__)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Open DB + Redis handles on worker startup and make sure rule badges exist."""
    settings = get_settings()
    database = Database(settings.database_url, pool_size=5)
    ctx["database"] = database
    ctx["redis_client"] = create_redis(settings.redis_url, max_connections=10)

    async with database.session_factory() as db:
        await seed_badges(db)
    logger.info("Badge worker started")


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    await close_redis(ctx.get("redis_client"))
    database: Database | None = ctx.get("database")
    if database is not None:
        await database.close()
    logger.info("Badge worker shut down")


async def evaluate_badges(ctx: dict) -> dict[str, int]:  # type: ignore[type-arg]
    """Scheduled task: evaluate all badge rules. Safe to overlap with itself."""
    database: Database = ctx["database"]
    async with database.session_factory() as db:
        evaluator = BadgeRuleEvaluator(db, ctx.get("redis_client"))
        report = await evaluator.evaluate_all()

    logger.info("Scheduled badge evaluation awarded %d badges: %s", report.total_awarded, report.results)
    return report.results


def _evaluation_cron() -> object:
    settings = get_settings()
    return cron(
        evaluate_badges,
        day=settings.badge_evaluation_day,
        hour=settings.badge_evaluation_hour,
        minute=settings.badge_evaluation_minute,
        run_at_startup=False,
    )


class BadgeWorkerSettings:
    """arq worker settings for scheduled badge evaluation."""

    functions = [evaluate_badges]
    cron_jobs = [_evaluation_cron()]
    on_startup = startup
    on_shutdown = shutdown
    max_jobs = 2
    job_timeout = 600  # 10 minutes max per evaluation run
