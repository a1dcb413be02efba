"""Scheduled badge evaluation worker tests."""

from __future__ import annotations

import pytest

from reputation.database import Database
from reputation.gamification.rules import BADGE_RULES
from reputation.workers.badge_worker import BadgeWorkerSettings, evaluate_badges


class TestEvaluateBadgesTask:
    """Test the arq task body."""

    @pytest.mark.asyncio
    async def test_returns_per_rule_counts(self, database: Database, seeded_db, make_user):
        await make_user("star", points=10, profile={"avg_rating": 4.9, "sessions_last_month": 21})

        results = await evaluate_badges({"database": database})
        assert results == {"tutor_destacado": 1, "colaborador_activo": 0, "mentor_del_mes": 1}

        again = await evaluate_badges({"database": database})
        assert again == {rule.key: 0 for rule in BADGE_RULES}


class TestWorkerSettings:
    """Test arq registration."""

    def test_task_registered(self):
        assert evaluate_badges in BadgeWorkerSettings.functions

    def test_monthly_cron(self):
        [job] = BadgeWorkerSettings.cron_jobs
        assert job.coroutine is evaluate_badges
        assert job.day == 1
        assert job.hour == 0
        assert job.minute == 5
        assert job.run_at_startup is False
