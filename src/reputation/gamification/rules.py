"""Badge rule specifications.

A rule is data: which badge it grants, the reason recorded on the award,
and a tagged spec describing the eligible population. `eligible_users_query`
turns any spec into a SELECT of user ids, so adding a badge of an existing
shape needs no new evaluator code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, select

from reputation.db.models import Score, TutorProfile, UserStats


@dataclass(frozen=True)
class MinThresholds:
    """Every listed column must be >= its threshold."""

    model: type
    thresholds: tuple[tuple[str, float], ...]


@dataclass(frozen=True)
class TopN:
    """The `n` rows with the highest `field`, ties broken by user id ascending."""

    model: type
    field: str
    n: int


RuleSpec = MinThresholds | TopN


@dataclass(frozen=True)
class BadgeRule:
    key: str
    badge_name: str
    description: str
    reason: str
    spec: RuleSpec


BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule(
        key="tutor_destacado",
        badge_name="Tutor Destacado",
        description="Tutor with an average rating of 4.8+ and 20+ sessions last month",
        reason="Automatic: avg rating >= 4.8 and 20+ sessions last month",
        spec=MinThresholds(TutorProfile, (("avg_rating", 4.8), ("sessions_last_month", 20))),
    ),
    BadgeRule(
        key="colaborador_activo",
        badge_name="Colaborador Activo",
        description="Uploaded 10+ study materials averaging 5+ likes",
        reason="Automatic: 10+ materials with 5+ average likes",
        spec=MinThresholds(UserStats, (("materials_uploaded", 10), ("avg_likes", 5))),
    ),
    BadgeRule(
        key="mentor_del_mes",
        badge_name="Mentor del Mes",
        description="Top 3 users by points",
        reason="Automatic: top 3 by points this month",
        spec=TopN(Score, "points", 3),
    ),
)

RULES_BY_KEY: dict[str, BadgeRule] = {rule.key: rule for rule in BADGE_RULES}


def eligible_users_query(spec: RuleSpec) -> Select[Any]:
    """Compile a rule spec into a SELECT of eligible user ids in a stable order."""
    if isinstance(spec, MinThresholds):
        model: Any = spec.model
        conditions = [getattr(model, column) >= value for column, value in spec.thresholds]
        return select(model.user_id).where(*conditions).order_by(model.user_id)
    if isinstance(spec, TopN):
        model = spec.model
        column = getattr(model, spec.field)
        return select(model.user_id).order_by(column.desc(), model.user_id.asc()).limit(spec.n)
    raise TypeError(f"Unsupported rule spec: {spec!r}")


def describe_criteria(spec: RuleSpec) -> dict[str, Any]:
    """Render a spec as the descriptive `criteria` JSON stored on the badge."""
    if isinstance(spec, MinThresholds):
        return {column: {"gte": value} for column, value in spec.thresholds}
    if isinstance(spec, TopN):
        return {spec.field: {"top": spec.n}}
    raise TypeError(f"Unsupported rule spec: {spec!r}")
