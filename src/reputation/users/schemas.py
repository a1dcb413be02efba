"""Pydantic request/response models for user, score and stats endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from reputation.db.models import NotificationChannel, NotificationStatus, UserRole


class UserCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(min_length=1, max_length=128)
    role: UserRole = UserRole.STUDENT


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: UserRole
    points: int = 0
    created_at: datetime


# --- Score ---


class AddPointsRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=256)
    amount: int
    recent: int = Field(default=10, ge=1, le=50)


class ScoreReasonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reason: str
    amount: int
    created_at: datetime


class ScoreResponse(BaseModel):
    user_id: str
    user_name: str | None = None
    total_points: int
    reasons: list[ScoreReasonResponse]


# --- Badges held by a user ---


class UserBadgeResponse(BaseModel):
    badge_id: str
    name: str
    description: str
    icon_url: str | None = None
    awarded_at: datetime
    reason: str | None = None


# --- Stats ---


class UserStatsResponse(BaseModel):
    user_id: str
    user_name: str
    total_study_hours: float
    materials_uploaded: int
    avg_likes: float
    sessions_completed: int
    goals_completed: int
    last_updated: datetime | None = None


class StatsIncrementRequest(BaseModel):
    study_hours: float | None = Field(default=None, ge=0)
    materials_uploaded: int | None = Field(default=None, ge=0)
    sessions_completed: int | None = Field(default=None, ge=0)
    goals_completed: int | None = Field(default=None, ge=0)
    avg_likes: float | None = Field(default=None, ge=0)


# --- Notifications ---


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    channel: NotificationChannel
    title: str
    message: str
    status: NotificationStatus
    created_at: datetime
    sent_at: datetime | None = None


class NotificationStatusRequest(BaseModel):
    status: NotificationStatus
