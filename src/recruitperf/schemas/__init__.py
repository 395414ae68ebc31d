"""Pydantic schema definitions shared across the engine."""

from __future__ import annotations

from .activity import (
    OPEN_ROLE_STATUSES,
    ROLE_STATUSES,
    ActivityEntryCreate,
    ActivityRecord,
    AgingScope,
    ClientActivityCounts,
    PenaltyRecord,
    RoleAgingInput,
)
from .dropout import (
    OPEN_DROPOUT_STATES,
    DropoutAcknowledgement,
    DropoutDecision,
    DropoutState,
)

__all__ = [
    "ActivityEntryCreate",
    "ActivityRecord",
    "AgingScope",
    "ClientActivityCounts",
    "DropoutAcknowledgement",
    "DropoutDecision",
    "DropoutState",
    "OPEN_DROPOUT_STATES",
    "OPEN_ROLE_STATUSES",
    "PenaltyRecord",
    "ROLE_STATUSES",
    "RoleAgingInput",
]
