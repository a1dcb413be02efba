"""Domain error taxonomy shared by services and the HTTP error handler."""

from __future__ import annotations


class ReputationError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ReputationError):
    """A referenced user, badge, score or notification does not exist."""

    status_code = 404


class ConflictError(ReputationError):
    """The write would violate a uniqueness rule (duplicate award, badge name, email)."""

    status_code = 409


class ValidationError(ReputationError):
    """Malformed input that passed schema validation but breaks a domain rule."""

    status_code = 422
