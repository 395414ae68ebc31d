"""Dropout request states and decision payloads."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from .activity import RoleStatus


class DropoutState(str, Enum):
    """Lifecycle of a dropout request. Transitions only move forward."""

    PENDING_RM = "pending_rm"
    PENDING_AM = "pending_am"
    ACCEPTED = "accepted"
    IGNORED = "ignored"

    @property
    def is_terminal(self) -> bool:
        return self in (DropoutState.ACCEPTED, DropoutState.IGNORED)


OPEN_DROPOUT_STATES: frozenset[DropoutState] = frozenset({DropoutState.PENDING_RM, DropoutState.PENDING_AM})


class DropoutDecision(BaseModel):
    """Account-manager decision on an acknowledged dropout."""

    decision: Literal["accept", "ignore"]
    new_role_status: RoleStatus | None = None

    model_config = ConfigDict(extra="forbid")


class DropoutAcknowledgement(BaseModel):
    """Recruitment-manager acknowledgement payload."""

    rm_notes: str = ""

    model_config = ConfigDict(extra="forbid")
