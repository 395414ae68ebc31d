"""Three-party dropout approval workflow.

A recruiter raises a dropout on an open role (``pending_rm``), the team's
recruitment manager acknowledges it (``pending_am``) and the client's account
manager decides (``accepted`` or ``ignored``). Only an accept decision
materializes a score penalty for the recruiter.

Every transition runs in one transaction and moves state with a conditional
``UPDATE ... WHERE state = <expected>``, so concurrent callers cannot both
succeed: the loser sees zero affected rows and gets ``InvalidState`` while its
transaction rolls back untouched.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Callable

import pendulum
import pydantic
import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .audit import AuditLogger, to_iso
from .core.clock import as_utc, utc_now
from .core.errors import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from .schemas import OPEN_DROPOUT_STATES, OPEN_ROLE_STATUSES, DropoutAcknowledgement, DropoutDecision, DropoutState
from .store.db import SessionFactory
from .store.models import ActivityEntry, Client, DropoutRequest, Role, ScorePenalty, Team, User

DROPOUT_PENALTY_POINTS = 5.0
DEFAULT_DROPOUT_REASON = "Not specified"

_DECISION_STATES: dict[str, DropoutState] = {
    "accept": DropoutState.ACCEPTED,
    "ignore": DropoutState.IGNORED,
}


@dataclass(slots=True)
class DropoutRequestSnapshot:
    """Detached view of a dropout request."""

    id: int
    activity_entry_id: int
    role_id: int
    recruiter_id: int
    state: str
    dropout_reason: str
    rm_user_id: int | None
    rm_notes: str | None
    rm_acknowledged_at: str | None
    am_user_id: int | None
    decision: str | None
    new_role_status: str | None
    decided_at: str | None
    created_at: str | None
    penalty_points: float = 0.0

    @classmethod
    def from_row(cls, row: DropoutRequest, *, penalty_points: float = 0.0) -> "DropoutRequestSnapshot":
        state = row.state.value if isinstance(row.state, DropoutState) else str(row.state)
        return cls(
            id=row.id,
            activity_entry_id=row.activity_entry_id,
            role_id=row.role_id,
            recruiter_id=row.recruiter_id,
            state=state,
            dropout_reason=row.dropout_reason,
            rm_user_id=row.rm_user_id,
            rm_notes=row.rm_notes,
            rm_acknowledged_at=to_iso(row.rm_acknowledged_at),
            am_user_id=row.am_user_id,
            decision=row.decision,
            new_role_status=row.new_role_status,
            decided_at=to_iso(row.decided_at),
            created_at=to_iso(row.created_at),
            penalty_points=penalty_points,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class DropoutWorkflow:
    """Create, acknowledge and decide dropout requests."""

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        now_provider: Callable[[], Any] | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._now_provider = now_provider or utc_now
        self._audit = audit_logger
        self._logger = structlog.get_logger(__name__)

    def create(
        self,
        *,
        actor_id: int,
        role_id: int,
        reason: str | None = None,
        candidate_id: int | None = None,
        submission_date: date | None = None,
    ) -> DropoutRequestSnapshot:
        now = self._now()
        with self._session_factory.begin() as session:
            actor = self._load_user(session, actor_id)
            if actor.role != "recruiter":
                raise Forbidden("Only recruiters can raise a dropout", user_id=actor.id, role=actor.role)

            role = self._load_role(session, role_id)
            if role.status not in OPEN_ROLE_STATUSES:
                raise InvalidState("Dropouts can only be raised on open roles", role_id=role.id, status=role.status)

            existing = session.execute(
                select(DropoutRequest.id)
                .where(DropoutRequest.role_id == role.id)
                .where(DropoutRequest.state.in_(list(OPEN_DROPOUT_STATES)))
            ).scalars().first()
            if existing is not None:
                raise Conflict("Role already has an open dropout request", role_id=role.id, request_id=existing)

            client = session.get(Client, role.client_id)
            team = session.get(Team, role.team_id) if role.team_id is not None else None
            dropout_reason = (reason or "").strip() or DEFAULT_DROPOUT_REASON

            entry = ActivityEntry(
                entry_type="dropout",
                role_id=role.id,
                recruiter_id=actor.id,
                candidate_id=candidate_id,
                submission_date=submission_date or now.date(),
                dropout_reason=dropout_reason,
                created_at=now,
            )
            session.add(entry)
            session.flush()

            request = DropoutRequest(
                activity_entry_id=entry.id,
                role_id=role.id,
                recruiter_id=actor.id,
                state=DropoutState.PENDING_RM,
                open_role_id=role.id,
                dropout_reason=dropout_reason,
                rm_user_id=team.recruitment_manager_id if team else None,
                am_user_id=(client.account_manager_id if client else None) or role.account_manager_id,
                created_at=now,
            )
            session.add(request)
            try:
                session.flush()
            except IntegrityError as exc:
                # a concurrent create claimed open_role_id first
                raise Conflict("Role already has an open dropout request", role_id=role.id) from exc
            snapshot = DropoutRequestSnapshot.from_row(request)

        self._record("dropout.created", snapshot, actor_id=actor_id)
        return snapshot

    def acknowledge(self, *, actor_id: int, request_id: int, rm_notes: str | None = "") -> DropoutRequestSnapshot:
        payload = DropoutAcknowledgement(rm_notes=rm_notes or "")
        now = self._now()
        with self._session_factory.begin() as session:
            request = self._load_request(session, request_id)
            actor = self._load_user(session, actor_id)
            role = self._load_role(session, request.role_id)
            self._authorize_recruitment_manager(session, actor, role)

            self._transition(
                session,
                request,
                expected=DropoutState.PENDING_RM,
                values={
                    "state": DropoutState.PENDING_AM,
                    "rm_notes": payload.rm_notes,
                    "rm_acknowledged_at": now,
                    "rm_user_id": actor.id,
                },
            )
            snapshot = DropoutRequestSnapshot.from_row(request)

        self._record("dropout.acknowledged", snapshot, actor_id=actor_id)
        return snapshot

    def decide(
        self,
        *,
        actor_id: int,
        request_id: int,
        decision: str,
        new_role_status: str | None = None,
    ) -> DropoutRequestSnapshot:
        payload = self._validate_decision(decision, new_role_status)
        target = _DECISION_STATES[payload.decision]
        now = self._now()

        with self._session_factory.begin() as session:
            request = self._load_request(session, request_id)
            actor = self._load_user(session, actor_id)
            role = self._load_role(session, request.role_id)
            self._authorize_account_manager(session, actor, role)

            self._transition(
                session,
                request,
                expected=DropoutState.PENDING_AM,
                values={
                    "state": target,
                    "decision": target.value,
                    "new_role_status": payload.new_role_status,
                    "decided_at": now,
                    "open_role_id": None,
                    "am_user_id": actor.id,
                },
            )

            if payload.new_role_status is not None:
                session.execute(
                    update(Role)
                    .where(Role.id == role.id)
                    .values(status=payload.new_role_status, status_changed_at=now)
                )

            penalty_points = 0.0
            # Penalties follow the decision only, never the resulting role status.
            if target is DropoutState.ACCEPTED:
                penalty_points = DROPOUT_PENALTY_POINTS
                session.add(
                    ScorePenalty(
                        dropout_request_id=request.id,
                        recruiter_id=request.recruiter_id,
                        role_id=request.role_id,
                        points=penalty_points,
                        effective_at=now,
                        effective_on=now.date(),
                    )
                )
                try:
                    session.flush()
                except IntegrityError as exc:
                    raise Conflict("Penalty already applied for this dropout request", request_id=request.id) from exc

            snapshot = DropoutRequestSnapshot.from_row(request, penalty_points=penalty_points)

        self._record("dropout.decided", snapshot, actor_id=actor_id)
        return snapshot

    def get(self, request_id: int) -> DropoutRequestSnapshot:
        with self._session_factory() as session:
            request = self._load_request(session, request_id)
            penalty = session.execute(
                select(ScorePenalty.points).where(ScorePenalty.dropout_request_id == request.id)
            ).scalar_one_or_none()
            return DropoutRequestSnapshot.from_row(request, penalty_points=float(penalty or 0.0))

    def pending_for_recruitment_manager(self, rm_user_id: int) -> list[DropoutRequestSnapshot]:
        stmt = (
            select(DropoutRequest)
            .join(Role, Role.id == DropoutRequest.role_id)
            .join(Team, Team.id == Role.team_id)
            .where(Team.recruitment_manager_id == rm_user_id)
            .where(DropoutRequest.state == DropoutState.PENDING_RM)
            .order_by(DropoutRequest.created_at.desc(), DropoutRequest.id.desc())
        )
        with self._session_factory() as session:
            return [DropoutRequestSnapshot.from_row(row) for row in session.execute(stmt).scalars().all()]

    def pending_for_account_manager(self, am_user_id: int) -> list[DropoutRequestSnapshot]:
        stmt = (
            select(DropoutRequest)
            .join(Role, Role.id == DropoutRequest.role_id)
            .join(Client, Client.id == Role.client_id)
            .where(Client.account_manager_id == am_user_id)
            .where(DropoutRequest.state == DropoutState.PENDING_AM)
            .order_by(DropoutRequest.rm_acknowledged_at.desc(), DropoutRequest.id.desc())
        )
        with self._session_factory() as session:
            return [DropoutRequestSnapshot.from_row(row) for row in session.execute(stmt).scalars().all()]

    def _transition(
        self,
        session: Session,
        request: DropoutRequest,
        *,
        expected: DropoutState,
        values: dict[str, Any],
    ) -> None:
        current = request.state
        if isinstance(current, DropoutState) and current.is_terminal:
            raise InvalidState(
                f"Dropout request was already decided ({current.value})",
                request_id=request.id,
                state=current.value,
                expected=expected.value,
            )
        if current != expected:
            raise InvalidState(
                f"Dropout request is {_state_value(current)}, expected {expected.value}",
                request_id=request.id,
                state=_state_value(current),
                expected=expected.value,
            )
        result = session.execute(
            update(DropoutRequest)
            .where(DropoutRequest.id == request.id)
            .where(DropoutRequest.state == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidState(
                "Dropout request changed state concurrently",
                request_id=request.id,
                expected=expected.value,
            )
        session.refresh(request)

    @staticmethod
    def _validate_decision(decision: str, new_role_status: str | None) -> DropoutDecision:
        try:
            payload = DropoutDecision(decision=decision, new_role_status=new_role_status)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "Invalid dropout decision",
                errors=exc.errors(include_url=False, include_context=False, include_input=False),
            ) from exc
        if payload.decision == "accept" and payload.new_role_status is None:
            raise ValidationError("new_role_status is required when accepting a dropout", field="new_role_status")
        return payload

    @staticmethod
    def _authorize_recruitment_manager(session: Session, actor: User, role: Role) -> None:
        if actor.role != "recruitment_manager":
            raise Forbidden("Only recruitment managers can acknowledge dropouts", user_id=actor.id, role=actor.role)
        team = session.get(Team, role.team_id) if role.team_id is not None else None
        if team is None or team.recruitment_manager_id != actor.id:
            raise Forbidden("Actor does not manage the role's team", user_id=actor.id, role_id=role.id)

    @staticmethod
    def _authorize_account_manager(session: Session, actor: User, role: Role) -> None:
        if actor.role != "account_manager":
            raise Forbidden("Only account managers can decide dropouts", user_id=actor.id, role=actor.role)
        client = session.get(Client, role.client_id)
        if client is None or client.account_manager_id != actor.id:
            raise Forbidden("Actor does not own the role's client", user_id=actor.id, role_id=role.id)

    @staticmethod
    def _load_request(session: Session, request_id: int) -> DropoutRequest:
        request = session.get(DropoutRequest, request_id)
        if request is None:
            raise NotFound("Dropout request not found", request_id=request_id)
        return request

    @staticmethod
    def _load_user(session: Session, user_id: int) -> User:
        user = session.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFound("User not found", user_id=user_id)
        return user

    @staticmethod
    def _load_role(session: Session, role_id: int) -> Role:
        role = session.get(Role, role_id)
        if role is None:
            raise NotFound("Role not found", role_id=role_id)
        return role

    def _now(self) -> pendulum.DateTime:
        return as_utc(self._now_provider())

    def _record(self, event: str, snapshot: DropoutRequestSnapshot, *, actor_id: int) -> None:
        self._logger.info(
            event,
            request_id=snapshot.id,
            role_id=snapshot.role_id,
            recruiter_id=snapshot.recruiter_id,
            actor_id=actor_id,
            state=snapshot.state,
            decision=snapshot.decision,
            penalty_points=snapshot.penalty_points,
        )
        if self._audit:
            self._audit.append({"event": event, "actor_id": actor_id, **snapshot.to_dict()})


def _state_value(state: DropoutState | str) -> str:
    return state.value if isinstance(state, DropoutState) else str(state)
