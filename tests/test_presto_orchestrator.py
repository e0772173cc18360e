from __future__ import annotations

import pytest
from sqlalchemy import select

from presto_sync.db.enums import SyncStatusEnum, SyncTypeEnum
from presto_sync.db.models.integration.sync_log import SyncLog
from presto_sync.ingestion.providers.base.errors import (
    NotConfiguredError,
    SyncAlreadyRunningError,
)
from presto_sync.ingestion.providers.presto.sync import orchestrator
from presto_sync.ingestion.providers.presto.sync.common import ItemError, SyncResult
from presto_sync.ingestion.providers.presto.sync.orchestrator import TeamSyncGuard, sync_all


def _fake_step(result: SyncResult, calls: list[str], name: str):
    def step(session, *, team_id, user_id, api, tokens) -> SyncResult:
        calls.append(name)
        return result

    return step


def test_failing_step_is_recorded_and_the_rest_still_run(
    session, team, tokens, monkeypatch
) -> None:
    calls: list[str] = []
    roster = SyncResult(
        created=3,
        errors=[ItemError(item_id="p9", entity_type="player", name="X", error="bad")],
    )
    stats = SyncResult(updated=2, skipped=1)

    def schedule(session, *, team_id, user_id, api, tokens) -> SyncResult:
        calls.append("schedule")
        raise NotConfiguredError("PrestoSports team id not configured for team 1")

    monkeypatch.setitem(orchestrator.STEP_FUNCTIONS, "roster", _fake_step(roster, calls, "roster"))
    monkeypatch.setitem(orchestrator.STEP_FUNCTIONS, "schedule", schedule)
    monkeypatch.setitem(orchestrator.STEP_FUNCTIONS, "stats", _fake_step(stats, calls, "stats"))

    result = sync_all(
        session,
        team_id=team.id,
        api=None,
        tokens=tokens,
        steps=("roster", "schedule", "stats"),
        guard=TeamSyncGuard(),
    )

    assert calls == ["roster", "schedule", "stats"]
    assert sorted(result.results) == ["roster", "stats"]
    assert result.errors == [
        {"type": "schedule", "error": "PrestoSports team id not configured for team 1"}
    ]
    assert (result.created, result.updated, result.skipped) == (3, 2, 1)
    assert result.failed == 2

    log = session.scalars(select(SyncLog).where(SyncLog.sync_type == SyncTypeEnum.FULL)).one()
    assert log.status == SyncStatusEnum.PARTIAL
    assert log.response_summary["step_errors"][0]["type"] == "schedule"
    assert log.item_errors[0]["type"] == "roster"
    assert log.item_errors[0]["item_id"] == "p9"


def test_unknown_step_is_rejected_before_anything_runs(session, team, tokens) -> None:
    with pytest.raises(ValueError, match="nope"):
        sync_all(session, team_id=team.id, api=None, tokens=tokens, steps=("roster", "nope"))

    assert session.scalars(select(SyncLog)).all() == []


def test_missing_team_is_not_configured(session, tokens) -> None:
    with pytest.raises(NotConfiguredError):
        sync_all(session, team_id=404, api=None, tokens=tokens, steps=("roster",))


def test_second_sync_for_same_team_is_refused(session, team, tokens) -> None:
    guard = TeamSyncGuard()

    with guard.hold(team.id):
        assert guard.is_running(team.id)
        with pytest.raises(SyncAlreadyRunningError):
            sync_all(
                session, team_id=team.id, api=None, tokens=tokens, steps=(), guard=guard
            )
        with guard.hold(team.id + 1):
            assert guard.is_running(team.id + 1)

    assert not guard.is_running(team.id)
    assert not guard.is_running(team.id + 1)


def test_guard_is_released_when_the_sync_raises() -> None:
    guard = TeamSyncGuard()

    with pytest.raises(RuntimeError):
        with guard.hold(7):
            raise RuntimeError("boom")

    assert not guard.is_running(7)
