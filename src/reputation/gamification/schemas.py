"""Pydantic models for badge administration endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class BadgeCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: str = Field(min_length=1)
    criteria: dict[str, Any] = {}
    icon_url: str | None = Field(default=None, max_length=256)


class BadgeResponse(BaseModel):
    id: str
    name: str
    description: str
    criteria: dict[str, Any] = {}
    icon_url: str | None = None
    total_awarded: int = 0


class AwardBadgeRequest(BaseModel):
    user_id: str
    badge_id: str
    reason: str | None = Field(default=None, max_length=512)


class BadgeAwardResponse(BaseModel):
    id: str
    user_id: str
    badge_id: str
    badge_name: str
    awarded_at: datetime
    reason: str | None = None


class EvaluationResponse(BaseModel):
    message: str
    results: dict[str, int]
    total_awarded: int
