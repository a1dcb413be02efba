"""Ranking endpoints: weighted tutor ranking and tutor profile override."""

from __future__ import annotations

from dataclasses import asdict

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.config import get_settings
from reputation.dependencies import get_db
from reputation.ranking.schemas import (
    TutorProfileResponse,
    TutorProfileUpdateRequest,
    TutorRankingResponse,
    TutorRankResponse,
)
from reputation.ranking.service import TutorRankingService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/ranking", tags=["Ranking"])


@router.get("/tutors", response_model=TutorRankingResponse)
async def tutor_ranking(
    limit: int | None = Query(default=None, description="Max tutors to return"),
    subject: str | None = Query(default=None, description="Boost tutors teaching this subject"),
    db: AsyncSession = Depends(get_db),
) -> TutorRankingResponse:
    """Rank tutors by points, rating, responsiveness, subject match and availability."""
    settings = get_settings()
    effective_limit = settings.ranking_default_limit if limit is None else limit

    service = TutorRankingService(db, max_limit=settings.ranking_max_limit)
    entries = await service.rank(limit=effective_limit, subject=subject)
    return TutorRankingResponse(
        tutors=[TutorRankResponse(**asdict(entry)) for entry in entries],
        limit=effective_limit,
        subject=subject,
    )


@router.patch("/tutors/{user_id}/profile", response_model=TutorProfileResponse)
async def update_tutor_profile(
    user_id: str,
    body: TutorProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> TutorProfileResponse:
    """Create or merge a tutor profile (manual override of collected signals)."""
    fields = body.model_dump(exclude_unset=True)
    profile = await TutorRankingService(db).update_tutor_profile(user_id, fields)
    logger.info("tutor_profile_updated", user_id=user_id, fields=sorted(fields))
    return TutorProfileResponse(
        user_id=profile.user_id,
        avg_rating=profile.avg_rating,
        total_ratings=profile.total_ratings,
        response_time_seconds=profile.response_time_seconds,
        sessions_last_month=profile.sessions_last_month,
        subjects=list(profile.subjects or []),
        availability_score=profile.availability_score,
        updated_at=profile.updated_at,
    )
