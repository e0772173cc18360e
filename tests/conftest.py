from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TypeVar

import pytest
import sqlalchemy as sa
from sqlalchemy.orm import Session

import presto_sync.db.models  # noqa: F401
from presto_sync.db import configure_sqlite
from presto_sync.db.base import Base
from presto_sync.db.models.core.team import Team

T = TypeVar("T")


def make_session() -> Session:
    engine = configure_sqlite(sa.create_engine("sqlite+pysqlite:///:memory:", future=True))
    Base.metadata.create_all(engine)
    return Session(engine, expire_on_commit=False)


class StaticTokens:
    """Token source for synchronizer tests: every call gets the same bearer token."""

    def __init__(self, token: str = "test-token") -> None:
        self.token = token
        self.calls = 0

    def call(self, team_id: int, fn: Callable[[str], T]) -> T:
        self.calls += 1
        return fn(self.token)


@pytest.fixture
def session() -> Iterator[Session]:
    s = make_session()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def team(session: Session) -> Team:
    team = Team(
        name="Lamar Cardinals",
        school="Lamar University",
        presto_team_id="t100",
        presto_season_id="s2025",
    )
    session.add(team)
    session.commit()
    return team


@pytest.fixture
def tokens() -> StaticTokens:
    return StaticTokens()
