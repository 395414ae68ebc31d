"""Relational persistence for the activity ledger and dropout workflow."""

from __future__ import annotations

from .db import DEFAULT_DATABASE_URL, Base, SessionFactory, init_schema, make_engine, make_session_factory
from .models import (
    ActivityEntry,
    Candidate,
    CandidateRoleAssociation,
    Client,
    DropoutRequest,
    Role,
    ScorePenalty,
    Team,
    TeamMembership,
    User,
)
from .repository import LedgerRepository

__all__ = [
    "ActivityEntry",
    "Base",
    "Candidate",
    "CandidateRoleAssociation",
    "Client",
    "DEFAULT_DATABASE_URL",
    "DropoutRequest",
    "LedgerRepository",
    "Role",
    "ScorePenalty",
    "SessionFactory",
    "Team",
    "TeamMembership",
    "User",
    "init_schema",
    "make_engine",
    "make_session_factory",
]
