"""User directory: creation with score bootstrap, lookups and activity stats."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reputation.audit.service import AuditService
from reputation.db.models import Score, User, UserRole, UserStats
from reputation.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


async def create_user(
    db: AsyncSession,
    email: str,
    name: str,
    role: UserRole = UserRole.STUDENT,
) -> User:
    """Create a user together with its zeroed Score and UserStats rows."""
    email = email.strip().lower()
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("A user with this email already exists")

    now = datetime.now(timezone.utc)
    user = User(email=email, name=name.strip(), role=role, created_at=now, updated_at=now)
    db.add(user)
    await db.flush()

    db.add(Score(user_id=user.id, points=0, updated_at=now))
    db.add(UserStats(user_id=user.id, last_updated=now))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("A user with this email already exists") from None

    action = "ADMIN_CREATED" if role == UserRole.ADMIN else "USER_CREATED"
    await AuditService(db).log(
        action=action,
        actor_user_id=user.id,
        resource_type="User",
        resource_id=user.id,
        metadata={"email": email, "name": user.name, "role": role.value},
    )
    return user


async def get_user(db: AsyncSession, user_id: str) -> User:
    """Fetch a user with score, stats and tutor profile loaded."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(
            selectinload(User.score),
            selectinload(User.stats),
            selectinload(User.tutor_profile),
        )
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_users(db: AsyncSession, role: UserRole | None = None) -> list[User]:
    """All users (optionally one role), newest first."""
    stmt = (
        select(User)
        .options(selectinload(User.score))
        .order_by(User.created_at.desc())
        .execution_options(populate_existing=True)
    )
    if role is not None:
        stmt = stmt.where(User.role == role)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_stats(db: AsyncSession, user_id: str) -> tuple[UserStats, str]:
    """Return (stats, user name)."""
    result = await db.execute(
        select(UserStats, User.name)
        .join(User, User.id == UserStats.user_id)
        .where(UserStats.user_id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("User not found")
    return row[0], row[1]


async def increment_stats(
    db: AsyncSession,
    user_id: str,
    study_hours: float | None = None,
    materials_uploaded: int | None = None,
    sessions_completed: int | None = None,
    goals_completed: int | None = None,
    avg_likes: float | None = None,
) -> UserStats:
    """Add to activity counters; avg_likes is replaced rather than incremented."""
    if avg_likes is not None and avg_likes < 0:
        raise ValidationError("avg_likes cannot be negative")

    stats = await db.get(UserStats, user_id)
    if stats is None:
        raise NotFoundError("User not found")

    # Counters are bumped in SQL so concurrent event handlers do not lose increments
    values: dict[str, object] = {}
    if study_hours:
        values["total_study_hours"] = UserStats.total_study_hours + study_hours
    if materials_uploaded:
        values["materials_uploaded"] = UserStats.materials_uploaded + materials_uploaded
    if sessions_completed:
        values["sessions_completed"] = UserStats.sessions_completed + sessions_completed
    if goals_completed:
        values["goals_completed"] = UserStats.goals_completed + goals_completed
    if avg_likes is not None:
        values["avg_likes"] = avg_likes

    if values:
        for column, expression in values.items():
            setattr(stats, column, expression)
        stats.last_updated = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(stats)
    return stats
