"""Structured error taxonomy raised by the engine."""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base class for errors surfaced to the API layer."""

    code = "ENGINE_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload


class ValidationError(EngineError):
    """Missing or malformed required input."""

    code = "VALIDATION_ERROR"


class InvalidState(EngineError):
    """Transition attempted from a state that does not allow it."""

    code = "INVALID_STATE"


class Conflict(EngineError):
    """Duplicate open request, or a concurrent transition won the race."""

    code = "CONFLICT"


class Forbidden(EngineError):
    """Actor lacks the team or client ownership the action requires."""

    code = "FORBIDDEN"


class InvalidRange(EngineError):
    """Malformed or inverted date window."""

    code = "INVALID_RANGE"


class NotFound(EngineError):
    """Referenced user, role, client, team or request does not exist."""

    code = "NOT_FOUND"


__all__ = [
    "EngineError",
    "ValidationError",
    "InvalidState",
    "Conflict",
    "Forbidden",
    "InvalidRange",
    "NotFound",
]
