"""Badge seed data: one badge per automatic rule."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.db.models import Badge
from reputation.gamification.badge_service import get_badge_by_name
from reputation.gamification.rules import BADGE_RULES, describe_criteria

logger = logging.getLogger(__name__)

BADGE_ICONS: dict[str, str] = {
    "tutor_destacado": "/icons/badges/tutor-destacado.svg",
    "colaborador_activo": "/icons/badges/colaborador-activo.svg",
    "mentor_del_mes": "/icons/badges/mentor-del-mes.svg",
}


async def seed_badges(db: AsyncSession) -> int:
    """Create missing rule badges and refresh their descriptive criteria. Returns badges created."""
    created = 0
    for rule in BADGE_RULES:
        criteria = describe_criteria(rule.spec)
        badge = await get_badge_by_name(db, rule.badge_name)
        if badge is not None:
            badge.criteria = criteria
            badge.description = rule.description
            continue

        db.add(Badge(
            name=rule.badge_name,
            description=rule.description,
            criteria=criteria,
            icon_url=BADGE_ICONS.get(rule.key),
            created_at=datetime.now(timezone.utc),
        ))
        try:
            await db.commit()
            created += 1
        except IntegrityError:
            # Another process seeded the same badge first
            await db.rollback()

    await db.commit()
    logger.info("Seeded %d badge definitions", created)
    return created
