"""Admin endpoints: administrators, badge catalogue, manual awards and batch evaluation."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.db.models import UserRole
from reputation.dependencies import get_db, get_redis_dep
from reputation.gamification.badge_service import BadgeAwardStore, GrantOutcome
from reputation.gamification.rule_engine import BadgeRuleEvaluator
from reputation.gamification.schemas import (
    AwardBadgeRequest,
    BadgeAwardResponse,
    BadgeCreateRequest,
    BadgeResponse,
    EvaluationResponse,
)
from reputation.users.router import user_response
from reputation.users.schemas import UserCreateRequest, UserResponse
from reputation.users.service import create_user, get_user, list_users

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


@router.post("/admins", response_model=UserResponse, status_code=201)
async def create_admin(body: UserCreateRequest, db: AsyncSession = Depends(get_db)) -> UserResponse:
    """Create a user with the ADMIN role regardless of the role in the body."""
    user = await create_user(db, body.email, body.name, UserRole.ADMIN)
    return user_response(await get_user(db, user.id))


@router.get("/admins", response_model=list[UserResponse])
async def list_admins(db: AsyncSession = Depends(get_db)) -> list[UserResponse]:
    return [user_response(u) for u in await list_users(db, UserRole.ADMIN)]


@router.post("/badges", response_model=BadgeResponse, status_code=201)
async def create_badge(
    body: BadgeCreateRequest,
    db: AsyncSession = Depends(get_db),
    redis: object | None = Depends(get_redis_dep),
) -> BadgeResponse:
    badge = await BadgeAwardStore(db, redis).create_badge(
        name=body.name,
        description=body.description,
        criteria=body.criteria,
        icon_url=body.icon_url,
    )
    return BadgeResponse(
        id=badge.id,
        name=badge.name,
        description=badge.description,
        criteria=badge.criteria,
        icon_url=badge.icon_url,
    )


@router.get("/badges", response_model=list[BadgeResponse])
async def list_badges(
    db: AsyncSession = Depends(get_db),
    redis: object | None = Depends(get_redis_dep),
) -> list[BadgeResponse]:
    """All badge definitions with award counts."""
    return [
        BadgeResponse(
            id=badge.id,
            name=badge.name,
            description=badge.description,
            criteria=badge.criteria or {},
            icon_url=badge.icon_url,
            total_awarded=count,
        )
        for badge, count in await BadgeAwardStore(db, redis).list_badges()
    ]


@router.post("/award-badge", response_model=BadgeAwardResponse, status_code=201)
async def award_badge(
    body: AwardBadgeRequest,
    db: AsyncSession = Depends(get_db),
    redis: object | None = Depends(get_redis_dep),
) -> BadgeAwardResponse:
    """Manually grant a badge. 409 if the user already holds it."""
    result = await BadgeAwardStore(db, redis).grant(body.user_id, body.badge_id, body.reason)
    if result.outcome is GrantOutcome.ALREADY_GRANTED:
        raise HTTPException(status_code=409, detail="User already holds this badge")

    award = result.award
    if award is None:
        raise HTTPException(status_code=500, detail="Badge award was not persisted")
    logger.info("badge_awarded", user_id=body.user_id, badge_id=body.badge_id)
    return BadgeAwardResponse(
        id=award.id,
        user_id=award.user_id,
        badge_id=award.badge_id,
        badge_name=award.badge.name,
        awarded_at=award.awarded_at,
        reason=award.reason,
    )


@router.post("/evaluate-badges", response_model=EvaluationResponse)
async def evaluate_badges(
    rule: str | None = None,
    db: AsyncSession = Depends(get_db),
    redis: object | None = Depends(get_redis_dep),
) -> EvaluationResponse:
    """Run all automatic badge rules, or a single one with ?rule=<key>."""
    evaluator = BadgeRuleEvaluator(db, redis)
    if rule is not None:
        results = {rule: await evaluator.evaluate_rule(rule)}
    else:
        results = (await evaluator.evaluate_all()).results

    logger.info("badge_evaluation", results=results)
    return EvaluationResponse(
        message="Badge evaluation complete",
        results=results,
        total_awarded=sum(results.values()),
    )
