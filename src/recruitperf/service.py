"""Facade consumed by the HTTP API layer."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any

import pydantic
import structlog
from structlog.contextvars import bound_contextvars

from .audit import to_iso
from .core import (
    AgingReport,
    AgingTracker,
    HealthClassifier,
    ScoreAggregator,
    ScoreResult,
    ValidationError,
    parse_window,
)
from .ledger import ActivityLedger
from .schemas import AgingScope
from .store import LedgerRepository
from .workflow import DropoutWorkflow


class PerformanceService:
    """One method per API operation; every result is a JSON-ready dict."""

    def __init__(
        self,
        *,
        repository: LedgerRepository,
        ledger: ActivityLedger,
        workflow: DropoutWorkflow,
        aggregator: ScoreAggregator,
        classifier: HealthClassifier,
        tracker: AgingTracker,
    ) -> None:
        self._repository = repository
        self._ledger = ledger
        self._workflow = workflow
        self._aggregator = aggregator
        self._classifier = classifier
        self._tracker = tracker
        self._logger = structlog.get_logger(__name__)

    # -- scores ---------------------------------------------------------

    def recruiter_score(self, recruiter_id: int, start: date | str, end: date | str) -> dict[str, Any]:
        window = parse_window(start, end)
        self._repository.get_user(recruiter_id)
        result = self._aggregator.compute(
            self._repository.entries_for_recruiter(recruiter_id, window),
            self._repository.penalties_for_recruiter(recruiter_id, window),
            window_start=window.start,
            window_end=window.end,
        )
        self._log_score("recruiter", recruiter_id, result)
        return {"recruiter_id": recruiter_id, **_score_payload(result)}

    def team_score(self, team_id: int, start: date | str, end: date | str) -> dict[str, Any]:
        window = parse_window(start, end)
        role_ids = self._repository.role_ids_for_team(team_id)
        result = self.compute_scope_score(role_ids, window.start, window.end)
        self._log_score("team", team_id, result)
        return {"team_id": team_id, "role_count": len(role_ids), **_score_payload(result)}

    def account_manager_score(self, account_manager_id: int, start: date | str, end: date | str) -> dict[str, Any]:
        window = parse_window(start, end)
        self._repository.get_user(account_manager_id)
        role_ids = self._repository.role_ids_for_account_manager(account_manager_id)
        result = self.compute_scope_score(role_ids, window.start, window.end)
        self._log_score("account_manager", account_manager_id, result)
        return {"account_manager_id": account_manager_id, "role_count": len(role_ids), **_score_payload(result)}

    def compute_scope_score(self, role_ids: list[int], start: date | str, end: date | str) -> ScoreResult:
        """Score every entry and penalty on a set of roles, whoever recorded them."""
        window = parse_window(start, end)
        return self._aggregator.compute(
            self._repository.entries_for_roles(role_ids, window),
            self._repository.penalties_for_roles(role_ids, window),
            window_start=window.start,
            window_end=window.end,
        )

    def _log_score(self, scope: str, scope_id: int, result: ScoreResult) -> None:
        self._logger.info(
            "score.computed",
            scope=scope,
            scope_id=scope_id,
            start=result.window.start.isoformat(),
            end=result.window.end.isoformat(),
            score=result.score,
            performance_label=result.performance_label,
        )

    # -- client health and aging -----------------------------------------

    def client_health(self, client_id: int) -> dict[str, Any]:
        counts = self._repository.client_counts(client_id)
        return {
            "client_id": client_id,
            "health": self._classifier.classify(counts),
            "total_roles": counts.total_roles,
            "active_roles": counts.active_roles,
            "interviews": counts.interviews,
            "deals": counts.deals,
            "dropouts": counts.dropouts,
            "lost": counts.lost,
        }

    def aging(self, scope: AgingScope | dict[str, Any] | None = None, *, top: int | None = None) -> dict[str, Any]:
        try:
            resolved = AgingScope.model_validate(scope or {})
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "Invalid aging scope",
                errors=exc.errors(include_url=False, include_context=False, include_input=False),
            ) from exc
        report = self._tracker.compute(self._repository.aging_inputs(resolved))
        return _aging_payload(report, top=top)

    # -- ledger and dropout workflow ---------------------------------------

    def record_activity(self, payload: dict[str, Any]) -> dict[str, Any]:
        record = self._ledger.record(payload)
        return record.model_dump(mode="json")

    def create_dropout_request(
        self,
        actor_id: int,
        role_id: int,
        reason: str | None = None,
        candidate_id: int | None = None,
    ) -> dict[str, Any]:
        with bound_contextvars(actor_id=actor_id):
            return self._workflow.create(
                actor_id=actor_id,
                role_id=role_id,
                reason=reason,
                candidate_id=candidate_id,
            ).to_dict()

    def acknowledge_dropout(self, actor_id: int, request_id: int, rm_notes: str | None = "") -> dict[str, Any]:
        with bound_contextvars(actor_id=actor_id, request_id=request_id):
            return self._workflow.acknowledge(actor_id=actor_id, request_id=request_id, rm_notes=rm_notes).to_dict()

    def decide_dropout(
        self,
        actor_id: int,
        request_id: int,
        decision: str,
        new_role_status: str | None = None,
    ) -> dict[str, Any]:
        with bound_contextvars(actor_id=actor_id, request_id=request_id):
            return self._workflow.decide(
                actor_id=actor_id,
                request_id=request_id,
                decision=decision,
                new_role_status=new_role_status,
            ).to_dict()

    def pending_dropouts(self, actor_id: int) -> list[dict[str, Any]]:
        """Requests waiting on the actor, by their role."""
        actor = self._repository.get_user(actor_id)
        if actor.role == "recruitment_manager":
            pending = self._workflow.pending_for_recruitment_manager(actor_id)
        elif actor.role == "account_manager":
            pending = self._workflow.pending_for_account_manager(actor_id)
        else:
            pending = []
        return [item.to_dict() for item in pending]


def _score_payload(result: ScoreResult) -> dict[str, Any]:
    totals = asdict(result.totals)
    totals["interviews_by_level"] = {str(k): v for k, v in totals["interviews_by_level"].items()}
    return {
        "score": result.score,
        "performance_label": result.performance_label,
        "window": {"start": result.window.start.isoformat(), "end": result.window.end.isoformat()},
        "totals": totals,
    }


def _aging_payload(report: AgingReport, *, top: int | None = None) -> dict[str, Any]:
    roles = report.top(top) if top is not None else report.roles
    return {
        "metrics": asdict(report.metrics),
        "roles": [
            {
                "id": item.role_id,
                "role_code": item.code,
                "title": item.title,
                "status": item.status,
                "created_at": to_iso(item.created_at),
                "days_open": item.days_open,
                "first_submission_days": item.first_submission_days,
                "first_interview_days": item.first_interview_days,
                "has_dropout": item.has_dropout,
                "dropout_decision": item.dropout_decision,
            }
            for item in roles
        ],
    }
