"""Badge catalogue and award store with duplicate prevention and notification."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.audit.service import AuditService
from reputation.db.models import Badge, BadgeAward, NotificationChannel, User
from reputation.errors import ConflictError, NotFoundError, ValidationError
from reputation.notifications.service import NotificationService

logger = logging.getLogger(__name__)


class GrantOutcome(str, enum.Enum):
    GRANTED = "granted"
    ALREADY_GRANTED = "already_granted"


@dataclass
class GrantResult:
    outcome: GrantOutcome
    award: BadgeAward | None = None

    @property
    def granted(self) -> bool:
        return self.outcome is GrantOutcome.GRANTED


async def get_badge_by_name(db: AsyncSession, name: str) -> Badge | None:
    """Fetch a badge definition by its unique name."""
    result = await db.execute(select(Badge).where(Badge.name == name))
    return result.scalar_one_or_none()


async def find_award(db: AsyncSession, user_id: str, badge_id: str) -> BadgeAward | None:
    """Return the award for (user, badge) if one exists."""
    result = await db.execute(
        select(BadgeAward).where(
            BadgeAward.user_id == user_id,
            BadgeAward.badge_id == badge_id,
        )
    )
    return result.scalar_one_or_none()


class BadgeAwardStore:
    """Grants badges at most once per (user, badge).

    The UNIQUE(user_id, badge_id) constraint is the source of truth. The
    existence pre-check only avoids a doomed INSERT in the common case.
    """

    def __init__(
        self,
        db: AsyncSession,
        redis: object | None = None,
        audit: AuditService | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        self.db = db
        self.audit = audit or AuditService(db)
        self.notifications = notifications or NotificationService(db, redis)

    async def grant(self, user_id: str, badge_id: str, reason: str | None = None) -> GrantResult:
        """Award a badge to a user.

        Raises NotFoundError if the user or badge is missing. Returns
        ALREADY_GRANTED instead of raising when the pair already exists,
        including when a concurrent grant wins the INSERT race.
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        badge = await self.db.get(Badge, badge_id)
        if badge is None:
            raise NotFoundError("Badge not found")

        user_name = user.name
        badge_name = badge.name

        existing = await find_award(self.db, user_id, badge_id)
        if existing is not None:
            return GrantResult(GrantOutcome.ALREADY_GRANTED, existing)

        award = BadgeAward(
            user_id=user_id,
            badge_id=badge_id,
            awarded_at=datetime.now(timezone.utc),
            reason=reason,
        )
        self.db.add(award)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            existing = await find_award(self.db, user_id, badge_id)
            if existing is None:
                # Constraint other than uniqueness, e.g. user deleted mid-grant
                raise NotFoundError("User or badge no longer exists") from None
            return GrantResult(GrantOutcome.ALREADY_GRANTED, existing)

        award_id = award.id
        logger.info("Awarded badge %s to %s", badge_name, user_id)

        await self._notify_awarded(user_id, badge_name)
        await self.audit.log(
            action="BADGE_AWARDED",
            actor_user_id=user_id,
            resource_type="BadgeAward",
            resource_id=award_id,
            metadata={
                "badge_id": badge_id,
                "badge_name": badge_name,
                "reason": reason,
                "user_name": user_name,
            },
        )
        # Side-effect rollbacks expire instances; reload the committed row with its badge
        await self.db.refresh(award)
        return GrantResult(GrantOutcome.GRANTED, award)

    async def _notify_awarded(self, user_id: str, badge_name: str) -> None:
        """Queue the badge notification. The award is already committed; failures are logged only."""
        try:
            await self.notifications.create(
                user_id=user_id,
                channel=NotificationChannel.PUSH,
                title="New badge awarded",
                message=f'You received the "{badge_name}" badge!',
            )
        except Exception:
            logger.warning("Failed to queue badge notification for %s", user_id, exc_info=True)
            await self.db.rollback()

    # ── Catalogue ──

    async def create_badge(
        self,
        name: str,
        description: str,
        criteria: dict[str, Any] | None = None,
        icon_url: str | None = None,
    ) -> Badge:
        name = name.strip()
        if not name:
            raise ValidationError("Badge name is required")
        if await get_badge_by_name(self.db, name) is not None:
            raise ConflictError(f'A badge named "{name}" already exists')

        badge = Badge(
            name=name,
            description=description,
            criteria=criteria or {},
            icon_url=icon_url,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(badge)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f'A badge named "{name}" already exists') from None

        await self.audit.log(
            action="BADGE_CREATED",
            resource_type="Badge",
            resource_id=badge.id,
            metadata={"name": name, "description": description},
        )
        return badge

    async def list_badges(self) -> list[tuple[Badge, int]]:
        """All badges with how many users hold each."""
        award_count = func.count(BadgeAward.id)
        result = await self.db.execute(
            select(Badge, award_count)
            .outerjoin(BadgeAward, BadgeAward.badge_id == Badge.id)
            .group_by(Badge.id)
            .order_by(Badge.name)
        )
        return [(badge, count) for badge, count in result.all()]

    async def get_user_badges(self, user_id: str) -> list[BadgeAward]:
        """A user's awards, newest first. Raises NotFoundError for unknown users."""
        if await self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")
        result = await self.db.execute(
            select(BadgeAward)
            .where(BadgeAward.user_id == user_id)
            .order_by(BadgeAward.awarded_at.desc())
        )
        return list(result.scalars().unique().all())
