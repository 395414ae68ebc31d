from __future__ import annotations

import pendulum
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from ..schemas import DropoutState
from .db import Base


def _utcnow() -> pendulum.DateTime:
    return pendulum.now("UTC")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True)
    name = Column(Text, nullable=False, default="")
    role = Column(String(32), nullable=False, index=True)
    company_id = Column(Integer, nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True)
    name = Column(Text, nullable=False, default="")
    company_id = Column(Integer, nullable=True, index=True)
    account_manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True)
    name = Column(Text, nullable=False, default="")
    recruitment_manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)


class TeamMembership(Base):
    __tablename__ = "team_memberships"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_memberships_team_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True)
    title = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="open", index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True, index=True)
    account_manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    # Set whenever an explicit action rewrites status; freezes aging for terminal roles.
    status_changed_at = Column(DateTime(timezone=True), nullable=True)


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True)
    name = Column(Text, nullable=False, default="")
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    recruiter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class CandidateRoleAssociation(Base):
    __tablename__ = "candidate_roles"
    __table_args__ = (UniqueConstraint("candidate_id", "role_id", name="uq_candidate_roles_candidate_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="submitted")
    is_discarded = Column(Boolean, nullable=False, default=False)
    discard_reason = Column(Text, nullable=True)
    discarded_at = Column(DateTime(timezone=True), nullable=True)


class ActivityEntry(Base):
    """Append-only ledger row."""

    __tablename__ = "activity_entries"
    __table_args__ = (
        CheckConstraint(
            "entry_type IN ('submission', 'interview', 'deal', 'dropout')",
            name="ck_activity_entries_type",
        ),
        CheckConstraint(
            "interview_level IS NULL OR interview_level BETWEEN 1 AND 3",
            name="ck_activity_entries_interview_level",
        ),
        Index("ix_activity_entries_recruiter_date", "recruiter_id", "submission_date"),
        Index("ix_activity_entries_role_type", "role_id", "entry_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_type = Column(String(16), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    recruiter_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=True)
    submission_date = Column(Date, nullable=False)
    submission_type = Column(String(16), nullable=True)
    interview_level = Column(Integer, nullable=True)
    dropout_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class DropoutRequest(Base):
    __tablename__ = "dropout_requests"
    __table_args__ = (
        CheckConstraint(
            "decision IS NULL OR decision <> 'accepted' OR new_role_status IS NOT NULL",
            name="ck_dropout_requests_accept_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    activity_entry_id = Column(Integer, ForeignKey("activity_entries.id"), nullable=False, unique=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    recruiter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    state = Column(
        Enum(
            DropoutState,
            name="dropout_state",
            native_enum=False,
            length=20,
            values_callable=lambda states: [s.value for s in states],
        ),
        nullable=False,
        default=DropoutState.PENDING_RM,
        index=True,
    )
    # Mirrors role_id while the request is open, NULL once terminal: one open request per role.
    open_role_id = Column(Integer, nullable=True, unique=True)
    dropout_reason = Column(Text, nullable=False, default="Not specified")
    rm_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    rm_notes = Column(Text, nullable=True)
    rm_acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    am_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    decision = Column(String(16), nullable=True)
    new_role_status = Column(String(20), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ScorePenalty(Base):
    """Penalty materialized by an accepted dropout decision."""

    __tablename__ = "score_penalties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dropout_request_id = Column(Integer, ForeignKey("dropout_requests.id"), nullable=False, unique=True)
    recruiter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    points = Column(Float, nullable=False)
    effective_at = Column(DateTime(timezone=True), nullable=False)
    effective_on = Column(Date, nullable=False, index=True)
