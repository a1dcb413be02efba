"""Tutor ranking reads and tutor profile upserts."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.db.models import Score, TutorProfile, User, UserRole
from reputation.errors import NotFoundError, ValidationError
from reputation.ranking.calculator import DEFAULT_LIMIT, TutorCandidate, TutorRankEntry, rank_tutors

logger = logging.getLogger(__name__)

MAX_RANKING_LIMIT = 100

PROFILE_FIELDS = frozenset({
    "avg_rating",
    "total_ratings",
    "response_time_seconds",
    "sessions_last_month",
    "subjects",
    "availability_score",
})

_NOT_NULL_FIELDS = ("total_ratings", "sessions_last_month", "subjects")

# field -> (min, max); None means unbounded
_PROFILE_RANGES: dict[str, tuple[float, float | None]] = {
    "avg_rating": (0.0, 5.0),
    "availability_score": (0.0, 1.0),
    "total_ratings": (0, None),
    "response_time_seconds": (0, None),
    "sessions_last_month": (0, None),
}


def validate_profile_fields(fields: dict[str, Any]) -> None:
    """Reject unknown fields and out-of-range values."""
    unknown = set(fields) - PROFILE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown tutor profile fields: {', '.join(sorted(unknown))}")

    for name in _NOT_NULL_FIELDS:
        if name in fields and fields[name] is None:
            raise ValidationError(f"{name} cannot be null")

    for name, (low, high) in _PROFILE_RANGES.items():
        value = fields.get(name)
        if value is None:
            continue
        if value < low or (high is not None and value > high):
            bounds = f"[{low}, {high}]" if high is not None else f">= {low}"
            raise ValidationError(f"{name} must be {bounds}")

    subjects = fields.get("subjects")
    if subjects is not None and not all(isinstance(s, str) for s in subjects):
        raise ValidationError("subjects must be a list of strings")


class TutorRankingService:
    """Read-only ranking over current data plus the manual profile override."""

    def __init__(self, db: AsyncSession, max_limit: int = MAX_RANKING_LIMIT) -> None:
        self.db = db
        self.max_limit = max_limit

    async def load_candidates(self) -> list[TutorCandidate]:
        """All TUTOR users that have a profile, joined with their score."""
        result = await self.db.execute(
            select(User, TutorProfile, Score.points)
            .join(TutorProfile, TutorProfile.user_id == User.id)
            .outerjoin(Score, Score.user_id == User.id)
            .where(User.role == UserRole.TUTOR)
        )
        return [
            TutorCandidate(
                user_id=user.id,
                name=user.name,
                email=user.email,
                points=points,
                avg_rating=profile.avg_rating,
                total_ratings=profile.total_ratings,
                response_time_seconds=profile.response_time_seconds,
                sessions_last_month=profile.sessions_last_month,
                availability_score=profile.availability_score,
                subjects=list(profile.subjects or []),
            )
            for user, profile, points in result.all()
        ]

    async def rank(self, limit: int = DEFAULT_LIMIT, subject: str | None = None) -> list[TutorRankEntry]:
        """Rank tutors, recomputed from the store on every call."""
        if limit < 1 or limit > self.max_limit:
            raise ValidationError(f"limit must be between 1 and {self.max_limit}")

        candidates = await self.load_candidates()
        return rank_tutors(candidates, limit=limit, subject=subject.strip() if subject else None)

    async def update_tutor_profile(self, user_id: str, fields: dict[str, Any]) -> TutorProfile:
        """Create the profile if absent, else merge only the supplied fields."""
        validate_profile_fields(fields)

        if await self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")

        now = datetime.now(timezone.utc)
        profile = await self.db.get(TutorProfile, user_id)
        if profile is None:
            profile = TutorProfile(user_id=user_id, subjects=[], updated_at=now)
            self.db.add(profile)

        for name, value in fields.items():
            if name == "subjects" and value is not None:
                value = list(value)
            setattr(profile, name, value)
        profile.updated_at = now

        await self.db.commit()
        logger.info("Updated tutor profile %s: %s", user_id, sorted(fields))
        return profile
