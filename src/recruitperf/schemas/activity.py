"""Ledger, role and client schemas shared by the projections."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

EntryType = Literal["submission", "interview", "deal", "dropout"]
SubmissionType = Literal["6h", "24h", "after_24h"]
RoleStatus = Literal["open", "on_hold", "closed", "dropout", "lost", "cancelled", "no_answer"]
UserRole = Literal["recruiter", "account_manager", "recruitment_manager", "admin", "super_admin"]

ROLE_STATUSES: tuple[str, ...] = ("open", "on_hold", "closed", "dropout", "lost", "cancelled", "no_answer")
OPEN_ROLE_STATUSES: frozenset[str] = frozenset({"open", "on_hold"})


class ActivityEntryCreate(BaseModel):
    """Inbound ledger entry recorded by a recruiter.

    Dropout entries are not accepted here: they are created together with
    their DropoutRequest by the dropout workflow.
    """

    entry_type: Literal["submission", "interview", "deal"]
    role_id: int
    recruiter_id: int
    submission_date: date
    candidate_id: int | None = None
    submission_type: SubmissionType | None = None
    interview_level: int | None = Field(default=None, ge=1, le=3)
    notes: str | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_type_specific_fields(self) -> "ActivityEntryCreate":
        if self.entry_type == "interview" and self.interview_level is None:
            raise ValueError("interview entries require interview_level")
        if self.entry_type != "interview" and self.interview_level is not None:
            raise ValueError("interview_level is only valid for interview entries")
        if self.entry_type != "submission" and self.submission_type is not None:
            raise ValueError("submission_type is only valid for submission entries")
        return self


class ActivityRecord(BaseModel):
    """Read model of a ledger row as consumed by the score aggregator."""

    id: int | None = None
    entry_type: EntryType
    role_id: int
    recruiter_id: int
    submission_date: date
    candidate_id: int | None = None
    submission_type: SubmissionType | None = None
    interview_level: int | None = None
    dropout_reason: str | None = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class PenaltyRecord(BaseModel):
    """Materialized dropout penalty."""

    dropout_request_id: int
    recruiter_id: int
    role_id: int
    points: float
    effective_on: date

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class ClientActivityCounts(BaseModel):
    """Role and activity counts for one client."""

    total_roles: int = Field(default=0, ge=0)
    active_roles: int = Field(default=0, ge=0)
    deals: int = Field(default=0, ge=0)
    lost: int = Field(default=0, ge=0)
    dropouts: int = Field(default=0, ge=0)
    interviews: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")


class RoleAgingInput(BaseModel):
    """Per-role timestamps the aging tracker works from."""

    role_id: int
    code: str = ""
    title: str = ""
    status: RoleStatus
    created_at: datetime
    status_changed_at: datetime | None = None
    first_submission_on: date | None = None
    first_interview_on: date | None = None
    dropout_decision: str | None = None

    model_config = ConfigDict(extra="forbid")


class AgingScope(BaseModel):
    """Filters selecting the roles an aging report covers."""

    account_manager_id: int | None = None
    client_id: int | None = None
    team_id: int | None = None
    active_only: bool = True

    model_config = ConfigDict(extra="forbid")
