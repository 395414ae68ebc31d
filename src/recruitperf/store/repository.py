"""Read-side queries feeding the pure projections."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import func, select

from ..core.errors import NotFound
from ..core.scoring import ScoreWindow
from ..schemas import (
    OPEN_ROLE_STATUSES,
    ActivityRecord,
    AgingScope,
    ClientActivityCounts,
    DropoutState,
    PenaltyRecord,
    RoleAgingInput,
)
from .db import SessionFactory
from .models import ActivityEntry, Client, DropoutRequest, Role, ScorePenalty, Team, User


class LedgerRepository:
    """Query ledger rows, penalties and role snapshots."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def get_user(self, user_id: int) -> User:
        with self._session_factory() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFound("User not found", user_id=user_id)
            return user

    def entries_for_recruiter(self, recruiter_id: int, window: ScoreWindow) -> list[ActivityRecord]:
        stmt = (
            select(ActivityEntry)
            .where(ActivityEntry.recruiter_id == recruiter_id)
            .where(ActivityEntry.submission_date >= window.start)
            .where(ActivityEntry.submission_date <= window.end)
            .order_by(ActivityEntry.submission_date, ActivityEntry.id)
        )
        return self._activity(stmt)

    def penalties_for_recruiter(self, recruiter_id: int, window: ScoreWindow) -> list[PenaltyRecord]:
        stmt = (
            select(ScorePenalty)
            .where(ScorePenalty.recruiter_id == recruiter_id)
            .where(ScorePenalty.effective_on >= window.start)
            .where(ScorePenalty.effective_on <= window.end)
            .order_by(ScorePenalty.id)
        )
        return self._penalties(stmt)

    def entries_for_roles(self, role_ids: Iterable[int], window: ScoreWindow) -> list[ActivityRecord]:
        ids = list(role_ids)
        if not ids:
            return []
        stmt = (
            select(ActivityEntry)
            .where(ActivityEntry.role_id.in_(ids))
            .where(ActivityEntry.submission_date >= window.start)
            .where(ActivityEntry.submission_date <= window.end)
            .order_by(ActivityEntry.submission_date, ActivityEntry.id)
        )
        return self._activity(stmt)

    def penalties_for_roles(self, role_ids: Iterable[int], window: ScoreWindow) -> list[PenaltyRecord]:
        ids = list(role_ids)
        if not ids:
            return []
        stmt = (
            select(ScorePenalty)
            .where(ScorePenalty.role_id.in_(ids))
            .where(ScorePenalty.effective_on >= window.start)
            .where(ScorePenalty.effective_on <= window.end)
            .order_by(ScorePenalty.id)
        )
        return self._penalties(stmt)

    def role_ids_for_team(self, team_id: int) -> list[int]:
        with self._session_factory() as session:
            if session.get(Team, team_id) is None:
                raise NotFound("Team not found", team_id=team_id)
            return list(session.execute(select(Role.id).where(Role.team_id == team_id)).scalars().all())

    def role_ids_for_account_manager(self, account_manager_id: int) -> list[int]:
        with self._session_factory() as session:
            stmt = (
                select(Role.id)
                .join(Client, Client.id == Role.client_id)
                .where((Role.account_manager_id == account_manager_id) | (Client.account_manager_id == account_manager_id))
            )
            return list(session.execute(stmt).scalars().all())

    def client_counts(self, client_id: int) -> ClientActivityCounts:
        with self._session_factory() as session:
            if session.get(Client, client_id) is None:
                raise NotFound("Client not found", client_id=client_id)

            status_rows = session.execute(
                select(Role.status, func.count(Role.id)).where(Role.client_id == client_id).group_by(Role.status)
            ).all()
            by_status = {str(status): int(count) for status, count in status_rows}

            entry_rows = session.execute(
                select(ActivityEntry.entry_type, func.count(ActivityEntry.id))
                .join(Role, Role.id == ActivityEntry.role_id)
                .where(Role.client_id == client_id)
                .group_by(ActivityEntry.entry_type)
            ).all()
            by_type = {str(entry_type): int(count) for entry_type, count in entry_rows}

        return ClientActivityCounts(
            total_roles=sum(by_status.values()),
            active_roles=sum(by_status.get(status, 0) for status in OPEN_ROLE_STATUSES),
            lost=by_status.get("lost", 0),
            dropouts=by_status.get("dropout", 0),
            deals=by_type.get("deal", 0),
            interviews=by_type.get("interview", 0),
        )

    def aging_inputs(self, scope: AgingScope) -> list[RoleAgingInput]:
        stmt = select(Role).join(Client, Client.id == Role.client_id)
        if scope.account_manager_id is not None:
            stmt = stmt.where(
                (Role.account_manager_id == scope.account_manager_id)
                | (Client.account_manager_id == scope.account_manager_id)
            )
        if scope.client_id is not None:
            stmt = stmt.where(Role.client_id == scope.client_id)
        if scope.team_id is not None:
            stmt = stmt.where(Role.team_id == scope.team_id)
        if scope.active_only:
            stmt = stmt.where(Role.status.in_(sorted(OPEN_ROLE_STATUSES)))

        with self._session_factory() as session:
            roles = session.execute(stmt.order_by(Role.id)).scalars().all()
            role_ids = [role.id for role in roles]
            first_submission = self._first_entry_dates(session, role_ids, "submission")
            first_interview = self._first_entry_dates(session, role_ids, "interview")
            decisions = self._latest_decisions(session, role_ids)

            return [
                RoleAgingInput(
                    role_id=role.id,
                    code=role.code,
                    title=role.title,
                    status=role.status,
                    created_at=role.created_at,
                    status_changed_at=role.status_changed_at,
                    first_submission_on=first_submission.get(role.id),
                    first_interview_on=first_interview.get(role.id),
                    dropout_decision=decisions.get(role.id),
                )
                for role in roles
            ]

    @staticmethod
    def _first_entry_dates(session, role_ids: list[int], entry_type: str) -> dict:
        if not role_ids:
            return {}
        rows = session.execute(
            select(ActivityEntry.role_id, func.min(ActivityEntry.submission_date))
            .where(ActivityEntry.role_id.in_(role_ids))
            .where(ActivityEntry.entry_type == entry_type)
            .group_by(ActivityEntry.role_id)
        ).all()
        return {role_id: first for role_id, first in rows}

    @staticmethod
    def _latest_decisions(session, role_ids: list[int]) -> dict[int, str]:
        if not role_ids:
            return {}
        rows = session.execute(
            select(DropoutRequest.role_id, DropoutRequest.decision)
            .where(DropoutRequest.role_id.in_(role_ids))
            .where(DropoutRequest.state.in_([state for state in DropoutState if state.is_terminal]))
            .order_by(DropoutRequest.decided_at, DropoutRequest.id)
        ).all()
        # later rows overwrite earlier ones
        return {role_id: decision for role_id, decision in rows}

    def _activity(self, stmt) -> list[ActivityRecord]:
        with self._session_factory() as session:
            rows = session.execute(stmt).scalars().all()
            return [ActivityRecord.model_validate(row) for row in rows]

    def _penalties(self, stmt) -> list[PenaltyRecord]:
        with self._session_factory() as session:
            rows = session.execute(stmt).scalars().all()
            return [PenaltyRecord.model_validate(row) for row in rows]
