"""Deterministic tutor ranking: a weighted sum of reputation signals.

    score = points * 0.3
          + avg_rating * 200
          + (1000 - response_time_seconds) * 0.1
          + subject_match * 300
          + availability_score * 100

Tutors are sorted by score DESC, then user_id ASC so equal scores always
come back in the same order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Values used when a signal is missing. A missing response time is a
# penalty (999s), not a neutral value.
RANKING_DEFAULTS: dict[str, Any] = {
    "points": 0,
    "avg_rating": 0.0,
    "total_ratings": 0,
    "response_time_seconds": 999,
    "sessions_last_month": 0,
    "availability_score": 0.0,
}

WEIGHTS: dict[str, float] = {
    "points": 0.3,
    "avg_rating": 200,
    "responsiveness": 0.1,
    "subject_match": 300,
    "availability_score": 100,
}

RESPONSE_TIME_CEILING = 1000
DEFAULT_LIMIT = 10


@dataclass
class TutorCandidate:
    """Raw signals for one tutor; any numeric signal may be None."""

    user_id: str
    name: str = ""
    email: str = ""
    points: int | None = None
    avg_rating: float | None = None
    total_ratings: int | None = None
    response_time_seconds: int | None = None
    sessions_last_month: int | None = None
    availability_score: float | None = None
    subjects: list[str] = field(default_factory=list)


@dataclass
class TutorRankEntry:
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


def with_defaults(candidate: TutorCandidate) -> dict[str, Any]:
    """Resolve every signal, substituting RANKING_DEFAULTS for missing values."""
    resolved: dict[str, Any] = {}
    for key, default in RANKING_DEFAULTS.items():
        value = getattr(candidate, key)
        resolved[key] = default if value is None else value
    return resolved


def subject_match(subjects: list[str] | None, subject: str | None) -> int:
    """1 when a non-empty subject filter is among the tutor's subjects, else 0."""
    if not subject or not subjects:
        return 0
    return 1 if subject in subjects else 0


def compute_score(signals: dict[str, Any], match: int) -> float:
    """Apply the weighted ranking formula to resolved signals."""
    return (
        signals["points"] * WEIGHTS["points"]
        + signals["avg_rating"] * WEIGHTS["avg_rating"]
        + (RESPONSE_TIME_CEILING - signals["response_time_seconds"]) * WEIGHTS["responsiveness"]
        + match * WEIGHTS["subject_match"]
        + signals["availability_score"] * WEIGHTS["availability_score"]
    )


def rank_tutors(
    candidates: list[TutorCandidate],
    limit: int = DEFAULT_LIMIT,
    subject: str | None = None,
) -> list[TutorRankEntry]:
    """Score, sort and truncate tutors. Pure: no I/O, input is not mutated."""
    if limit < 1 or not candidates:
        return []

    scored: list[tuple[float, TutorCandidate, dict[str, Any], int]] = []
    for candidate in candidates:
        signals = with_defaults(candidate)
        match = subject_match(candidate.subjects, subject)
        scored.append((compute_score(signals, match), candidate, signals, match))

    scored.sort(key=lambda item: (-item[0], item[1].user_id))

    return [
        TutorRankEntry(
            rank=idx + 1,
            user_id=candidate.user_id,
            name=candidate.name,
            email=candidate.email,
            points=signals["points"],
            avg_rating=signals["avg_rating"],
            total_ratings=signals["total_ratings"],
            response_time_seconds=signals["response_time_seconds"],
            sessions_last_month=signals["sessions_last_month"],
            availability_score=signals["availability_score"],
            subjects=list(candidate.subjects or []),
            subject_match=match,
            ranking_score=score,
        )
        for idx, (score, candidate, signals, match) in enumerate(scored[:limit])
    ]
