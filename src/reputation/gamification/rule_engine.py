"""Badge rule evaluator: scans eligible populations and grants badges idempotently."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from reputation.errors import NotFoundError
from reputation.gamification.badge_service import BadgeAwardStore, get_badge_by_name
from reputation.gamification.rules import BADGE_RULES, RULES_BY_KEY, BadgeRule, eligible_users_query

logger = logging.getLogger(__name__)


@dataclass
class EvaluationReport:
    """New awards per rule key for one evaluation run."""

    results: dict[str, int] = field(default_factory=dict)

    @property
    def total_awarded(self) -> int:
        return sum(self.results.values())


class BadgeRuleEvaluator:
    """Runs badge rules in batch.

    Re-running with unchanged data awards nothing: duplicates come back from
    the award store as ALREADY_GRANTED and are simply not counted.
    """

    def __init__(
        self,
        db: AsyncSession,
        redis: object | None = None,
        rules: tuple[BadgeRule, ...] = BADGE_RULES,
        store: BadgeAwardStore | None = None,
    ) -> None:
        self.db = db
        self.rules = rules
        self.store = store or BadgeAwardStore(db, redis)

    async def evaluate_all(self) -> EvaluationReport:
        """Evaluate every rule. A failing rule counts 0 and does not stop the rest."""
        report = EvaluationReport()
        for rule in self.rules:
            try:
                report.results[rule.key] = await self._evaluate(rule)
            except Exception:
                logger.exception("Badge rule %s failed", rule.key)
                await self.db.rollback()
                report.results[rule.key] = 0

        logger.info("Badge evaluation complete: %s", report.results)
        return report

    async def evaluate_rule(self, key: str) -> int:
        """Evaluate a single rule by key. Raises NotFoundError for unknown keys."""
        rule = RULES_BY_KEY.get(key)
        if rule is None or rule not in self.rules:
            raise NotFoundError(f"Unknown badge rule: {key}")
        return await self._evaluate(rule)

    async def _evaluate(self, rule: BadgeRule) -> int:
        badge = await get_badge_by_name(self.db, rule.badge_name)
        if badge is None:
            logger.warning("Badge not found for rule %s: %s", rule.key, rule.badge_name)
            return 0
        # Plain value; a rollback inside grant() expires ORM instances
        badge_id = badge.id

        result = await self.db.execute(eligible_users_query(rule.spec))
        candidates = list(result.scalars().all())

        granted = 0
        for user_id in candidates:
            try:
                outcome = await self.store.grant(user_id, badge_id, rule.reason)
            except NotFoundError:
                logger.info("Skipping %s for rule %s: user or badge vanished", user_id, rule.key)
                continue
            if outcome.granted:
                granted += 1

        return granted
