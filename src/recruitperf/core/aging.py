"""Role aging and SLA timing metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterable

import pendulum

from ..schemas import OPEN_ROLE_STATUSES, RoleAgingInput
from .clock import as_utc, utc_now, whole_days_between

SLA_WARNING_DAYS = 14
SLA_BREACH_DAYS = 30


@dataclass(slots=True)
class RoleAging:
    """Aging figures for one role."""

    role_id: int
    code: str
    title: str
    status: str
    created_at: pendulum.DateTime
    days_open: int
    first_submission_days: int | None
    first_interview_days: int | None
    has_dropout: bool
    dropout_decision: str | None


@dataclass(slots=True)
class AgingMetrics:
    """Aggregates across a role set."""

    avg_days_open: float = 0.0
    roles_over_14: int = 0
    roles_over_30: int = 0
    avg_time_to_first_submission: float = 0.0
    avg_time_to_first_interview: float = 0.0


@dataclass(slots=True)
class AgingReport:
    metrics: AgingMetrics
    roles: list[RoleAging] = field(default_factory=list)

    def top(self, n: int) -> list[RoleAging]:
        return self.roles[: max(n, 0)]


class AgingTracker:
    """Derive days-open and time-to-first-activity figures per role."""

    def __init__(self, *, now_provider: Callable[[], Any] | None = None) -> None:
        self._now_provider = now_provider or utc_now

    def compute(self, roles: Iterable[RoleAgingInput], *, now: datetime | None = None) -> AgingReport:
        as_of = as_utc(now if now is not None else self._now_provider())
        items = [self._role_aging(role, as_of) for role in roles]
        items.sort(key=lambda item: (-item.days_open, item.created_at))
        return AgingReport(metrics=self._metrics(items), roles=items)

    def _role_aging(self, role: RoleAgingInput, as_of: pendulum.DateTime) -> RoleAging:
        created_at = as_utc(role.created_at)
        if role.status in OPEN_ROLE_STATUSES or role.status_changed_at is None:
            end = as_of
        else:
            # Terminal roles stop aging at their last status change.
            end = as_utc(role.status_changed_at)

        return RoleAging(
            role_id=role.role_id,
            code=role.code,
            title=role.title,
            status=role.status,
            created_at=created_at,
            days_open=whole_days_between(created_at, end),
            first_submission_days=_days_until(created_at, role.first_submission_on),
            first_interview_days=_days_until(created_at, role.first_interview_on),
            has_dropout=role.dropout_decision is not None,
            dropout_decision=role.dropout_decision,
        )

    @staticmethod
    def _metrics(items: list[RoleAging]) -> AgingMetrics:
        return AgingMetrics(
            avg_days_open=_average([item.days_open for item in items]),
            roles_over_14=sum(1 for item in items if item.days_open >= SLA_WARNING_DAYS),
            roles_over_30=sum(1 for item in items if item.days_open >= SLA_BREACH_DAYS),
            avg_time_to_first_submission=_average([item.first_submission_days for item in items]),
            avg_time_to_first_interview=_average([item.first_interview_days for item in items]),
        )


def compute_aging(
    roles: Iterable[RoleAgingInput],
    *,
    now: datetime | None = None,
) -> AgingReport:
    return AgingTracker().compute(roles, now=now)


def _days_until(created_at: pendulum.DateTime, event_on: date | None) -> int | None:
    if event_on is None:
        return None
    event_at = pendulum.datetime(event_on.year, event_on.month, event_on.day, tz="UTC")
    return whole_days_between(created_at, event_at)


def _average(values: Iterable[int | None]) -> float:
    present = [float(value) for value in values if value is not None]
    if not present:
        return 0.0
    return round(sum(present) / len(present), 1)
