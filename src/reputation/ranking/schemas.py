"""Pydantic models for ranking endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class TutorRankResponse(BaseModel):
    rank: int
    user_id: str
    name: str
    email: str
    points: int
    avg_rating: float
    total_ratings: int
    response_time_seconds: int
    sessions_last_month: int
    availability_score: float
    subjects: list[str]
    subject_match: int
    ranking_score: float


class TutorRankingResponse(BaseModel):
    tutors: list[TutorRankResponse]
    limit: int
    subject: str | None = None


class TutorProfileUpdateRequest(BaseModel):
    avg_rating: float | None = Field(default=None, ge=0, le=5)
    total_ratings: int | None = Field(default=None, ge=0)
    response_time_seconds: int | None = Field(default=None, ge=0)
    sessions_last_month: int | None = Field(default=None, ge=0)
    subjects: list[str] | None = None
    availability_score: float | None = Field(default=None, ge=0, le=1)


class TutorProfileResponse(BaseModel):
    user_id: str
    avg_rating: float | None
    total_ratings: int
    response_time_seconds: int | None
    sessions_last_month: int
    subjects: list[str]
    availability_score: float | None
    updated_at: datetime | None = None
