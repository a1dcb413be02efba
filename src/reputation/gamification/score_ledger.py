"""Point ledger with atomic increments and an append-only reason history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.db.models import Score, ScoreReason, User
from reputation.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SCORE_HISTORY_PAGE_SIZE = 50
RECENT_REASONS_DEFAULT = 10


@dataclass
class ScoreSnapshot:
    user_id: str
    total: int
    reasons: list[ScoreReason] = field(default_factory=list)
    user_name: str | None = None


class ScoreLedger:
    """Per-user point counter. All mutations go through `add_points`."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def add_points(
        self,
        user_id: str,
        reason: str,
        amount: int,
        recent: int = RECENT_REASONS_DEFAULT,
    ) -> ScoreSnapshot:
        """Add `amount` (negative for penalties) and record why.

        The increment is a single UPDATE ... SET points = points + :amount
        so concurrent calls for the same user never lose updates.
        """
        if amount == 0:
            raise ValidationError("amount must be a non-zero integer")
        if not reason or not reason.strip():
            raise ValidationError("reason is required")

        now = datetime.now(timezone.utc)
        result = await self.db.execute(
            update(Score)
            .where(Score.user_id == user_id)
            .values(points=Score.points + amount, updated_at=now)
            .returning(Score.points)
            .execution_options(synchronize_session=False)
        )
        total = result.scalar_one_or_none()
        if total is None:
            await self.db.rollback()
            raise NotFoundError("Score not found for user")

        self.db.add(ScoreReason(user_id=user_id, reason=reason.strip(), amount=amount, created_at=now))
        await self.db.commit()

        logger.info("Added %d points to %s (%s), total=%d", amount, user_id, reason, total)
        reasons = await self._recent_reasons(user_id, min(max(recent, 1), SCORE_HISTORY_PAGE_SIZE))
        return ScoreSnapshot(user_id=user_id, total=total, reasons=reasons)

    async def get_score(self, user_id: str) -> ScoreSnapshot:
        """Current total plus the latest reasons, newest first."""
        result = await self.db.execute(
            select(Score, User.name)
            .join(User, User.id == Score.user_id)
            .where(Score.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Score not found for user")

        score, user_name = row
        reasons = await self._recent_reasons(user_id, SCORE_HISTORY_PAGE_SIZE)
        return ScoreSnapshot(user_id=user_id, total=score.points, reasons=reasons, user_name=user_name)

    async def _recent_reasons(self, user_id: str, limit: int) -> list[ScoreReason]:
        result = await self.db.execute(
            select(ScoreReason)
            .where(ScoreReason.user_id == user_id)
            .order_by(ScoreReason.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
