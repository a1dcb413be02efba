"""User endpoints: /api/v1/users/*: profile, score ledger, badges and stats."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.db.models import User, UserRole, UserStats
from reputation.dependencies import get_db, get_redis_dep
from reputation.gamification.badge_service import BadgeAwardStore
from reputation.gamification.score_ledger import ScoreLedger, ScoreSnapshot
from reputation.notifications.service import NotificationService
from reputation.users.schemas import (
    AddPointsRequest,
    NotificationResponse,
    ScoreReasonResponse,
    ScoreResponse,
    StatsIncrementRequest,
    UserBadgeResponse,
    UserCreateRequest,
    UserResponse,
    UserStatsResponse,
)
from reputation.users.service import create_user, get_stats, get_user, increment_stats, list_users

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def user_response(user: User) -> UserResponse:
    """Build a UserResponse from a User with its score loaded."""
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        points=user.score.points if user.score else 0,
        created_at=user.created_at,
    )


def _score_response(snapshot: ScoreSnapshot) -> ScoreResponse:
    return ScoreResponse(
        user_id=snapshot.user_id,
        user_name=snapshot.user_name,
        total_points=snapshot.total,
        reasons=[ScoreReasonResponse.model_validate(r) for r in snapshot.reasons],
    )


@router.post("", response_model=UserResponse, status_code=201)
async def create(body: UserCreateRequest, db: AsyncSession = Depends(get_db)) -> UserResponse:
    """Create a user with a zero score."""
    user = await create_user(db, body.email, body.name, body.role)
    logger.info("user_created", user_id=user.id, role=user.role.value)
    return user_response(await get_user(db, user.id))


@router.get("", response_model=list[UserResponse])
async def list_all(role: UserRole | None = None, db: AsyncSession = Depends(get_db)) -> list[UserResponse]:
    return [user_response(u) for u in await list_users(db, role)]


@router.get("/{user_id}", response_model=UserResponse)
async def get_one(user_id: str, db: AsyncSession = Depends(get_db)) -> UserResponse:
    return user_response(await get_user(db, user_id))


@router.get("/{user_id}/score", response_model=ScoreResponse)
async def get_score(user_id: str, db: AsyncSession = Depends(get_db)) -> ScoreResponse:
    """Total points plus the 50 most recent reasons."""
    return _score_response(await ScoreLedger(db).get_score(user_id))


@router.post("/{user_id}/points", response_model=ScoreResponse)
async def add_points(
    user_id: str,
    body: AddPointsRequest,
    db: AsyncSession = Depends(get_db),
) -> ScoreResponse:
    """Add (or with a negative amount, deduct) points."""
    snapshot = await ScoreLedger(db).add_points(user_id, body.reason, body.amount, recent=body.recent)
    logger.info("points_added", user_id=user_id, amount=body.amount, total=snapshot.total)
    return _score_response(snapshot)


@router.get("/{user_id}/badges", response_model=list[UserBadgeResponse])
async def get_badges(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    redis: object | None = Depends(get_redis_dep),
) -> list[UserBadgeResponse]:
    awards = await BadgeAwardStore(db, redis).get_user_badges(user_id)
    return [
        UserBadgeResponse(
            badge_id=award.badge.id,
            name=award.badge.name,
            description=award.badge.description,
            icon_url=award.badge.icon_url,
            awarded_at=award.awarded_at,
            reason=award.reason,
        )
        for award in awards
    ]


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(user_id: str, db: AsyncSession = Depends(get_db)) -> UserStatsResponse:
    stats, user_name = await get_stats(db, user_id)
    return _stats_response(stats, user_name)


@router.patch("/{user_id}/stats", response_model=UserStatsResponse)
async def patch_user_stats(
    user_id: str,
    body: StatsIncrementRequest,
    db: AsyncSession = Depends(get_db),
) -> UserStatsResponse:
    """Increment activity counters (avg_likes is overwritten)."""
    await increment_stats(db, user_id, **body.model_dump(exclude_none=True))
    stats, user_name = await get_stats(db, user_id)
    return _stats_response(stats, user_name)


def _stats_response(stats: UserStats, user_name: str) -> UserStatsResponse:
    return UserStatsResponse(
        user_id=stats.user_id,
        user_name=user_name,
        total_study_hours=stats.total_study_hours,
        materials_uploaded=stats.materials_uploaded,
        avg_likes=stats.avg_likes,
        sessions_completed=stats.sessions_completed,
        goals_completed=stats.goals_completed,
        last_updated=stats.last_updated,
    )


@router.get("/{user_id}/notifications", response_model=list[NotificationResponse])
async def get_notifications(user_id: str, db: AsyncSession = Depends(get_db)) -> list[NotificationResponse]:
    notifications = await NotificationService(db).list_for_user(user_id)
    return [NotificationResponse.model_validate(n) for n in notifications]
