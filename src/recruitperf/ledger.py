"""Activity ledger writes."""

from __future__ import annotations

from typing import Any

import pydantic
import structlog

from .core.errors import Forbidden, NotFound, ValidationError
from .schemas import ActivityEntryCreate, ActivityRecord
from .store.db import SessionFactory
from .store.models import ActivityEntry, Candidate, Role, User


class ActivityLedger:
    """Append recruiter activity. Rows are never updated once written."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory
        self._logger = structlog.get_logger(__name__)

    def record(self, payload: ActivityEntryCreate | dict[str, Any]) -> ActivityRecord:
        entry_in = self._validate(payload)

        with self._session_factory.begin() as session:
            recruiter = session.get(User, entry_in.recruiter_id)
            if recruiter is None:
                raise NotFound("Recruiter not found", recruiter_id=entry_in.recruiter_id)
            if recruiter.role != "recruiter":
                raise Forbidden("Only recruiters record activity", user_id=recruiter.id, role=recruiter.role)
            if session.get(Role, entry_in.role_id) is None:
                raise NotFound("Role not found", role_id=entry_in.role_id)
            if entry_in.candidate_id is not None and session.get(Candidate, entry_in.candidate_id) is None:
                raise NotFound("Candidate not found", candidate_id=entry_in.candidate_id)

            entry = ActivityEntry(**entry_in.model_dump())
            session.add(entry)
            session.flush()
            record = ActivityRecord.model_validate(entry)

        self._logger.info(
            "ledger.recorded",
            entry_id=record.id,
            entry_type=record.entry_type,
            role_id=record.role_id,
            recruiter_id=record.recruiter_id,
            submission_date=record.submission_date.isoformat(),
        )
        return record

    @staticmethod
    def _validate(payload: ActivityEntryCreate | dict[str, Any]) -> ActivityEntryCreate:
        if isinstance(payload, ActivityEntryCreate):
            return payload
        if isinstance(payload, dict) and payload.get("entry_type") == "dropout":
            raise ValidationError("Dropouts are recorded through a dropout request", entry_type="dropout")
        try:
            return ActivityEntryCreate.model_validate(payload)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "Invalid activity entry",
                errors=exc.errors(include_url=False, include_context=False, include_input=False),
            ) from exc
