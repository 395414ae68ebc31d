from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pendulum
import pytest

from recruitperf.container import PerformanceContainer, create_container
from recruitperf.store import ActivityEntry, Candidate, Client, Role, Team, TeamMembership, User

FIXED_NOW = pendulum.datetime(2025, 3, 20, 12, 0, tz="UTC")


@dataclass
class Seed:
    recruiter_id: int
    other_recruiter_id: int
    rm_id: int
    other_rm_id: int
    am_id: int
    other_am_id: int
    admin_id: int
    team_id: int
    client_id: int
    other_client_id: int
    role_id: int
    second_role_id: int
    other_client_role_id: int
    candidate_id: int


def seed_organisation(session_factory) -> Seed:
    with session_factory.begin() as session:
        recruiter = User(code="U-R1", name="Rina", role="recruiter")
        other_recruiter = User(code="U-R2", name="Ren", role="recruiter")
        rm = User(code="U-RM1", name="Mika", role="recruitment_manager")
        other_rm = User(code="U-RM2", name="Kenji", role="recruitment_manager")
        am = User(code="U-AM1", name="Aoi", role="account_manager")
        other_am = User(code="U-AM2", name="Sora", role="account_manager")
        admin = User(code="U-AD1", name="Haru", role="admin")
        session.add_all([recruiter, other_recruiter, rm, other_rm, am, other_am, admin])
        session.flush()

        team = Team(code="T-1", name="Platform", recruitment_manager_id=rm.id)
        client = Client(code="C-1", name="Acme", account_manager_id=am.id)
        other_client = Client(code="C-2", name="Globex", account_manager_id=other_am.id)
        session.add_all([team, client, other_client])
        session.flush()
        session.add_all(
            [
                TeamMembership(team_id=team.id, user_id=recruiter.id),
                TeamMembership(team_id=team.id, user_id=other_recruiter.id),
            ]
        )

        created = pendulum.datetime(2025, 3, 1, 9, 0, tz="UTC")
        role = Role(code="R-1", title="Backend Engineer", client_id=client.id, team_id=team.id, created_at=created)
        second_role = Role(code="R-2", title="SRE", client_id=client.id, team_id=team.id, created_at=created)
        other_client_role = Role(
            code="R-3",
            title="Data Engineer",
            client_id=other_client.id,
            team_id=team.id,
            created_at=created,
        )
        session.add_all([role, second_role, other_client_role])
        session.flush()

        candidate = Candidate(code="CA-1", name="Yuki", recruiter_id=recruiter.id)
        session.add(candidate)
        session.flush()

        return Seed(
            recruiter_id=recruiter.id,
            other_recruiter_id=other_recruiter.id,
            rm_id=rm.id,
            other_rm_id=other_rm.id,
            am_id=am.id,
            other_am_id=other_am.id,
            admin_id=admin.id,
            team_id=team.id,
            client_id=client.id,
            other_client_id=other_client.id,
            role_id=role.id,
            second_role_id=second_role.id,
            other_client_role_id=other_client_role.id,
            candidate_id=candidate.id,
        )


def add_entries(session_factory, *entries: dict) -> None:
    with session_factory.begin() as session:
        for raw in entries:
            session.add(ActivityEntry(**raw))


def entry(kind: str, *, role_id: int, recruiter_id: int, on: date, **extra) -> dict:
    return {
        "entry_type": kind,
        "role_id": role_id,
        "recruiter_id": recruiter_id,
        "submission_date": on,
        **extra,
    }


@pytest.fixture
def container() -> PerformanceContainer:
    return create_container(clock=lambda: FIXED_NOW)


@pytest.fixture
def session_factory(container: PerformanceContainer):
    return container.session_factory()


@pytest.fixture
def seed(session_factory) -> Seed:
    return seed_organisation(session_factory)
