from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy import select

from presto_sync.db.enums import SyncStatusEnum, SyncTypeEnum
from presto_sync.db.models.core.player import Player
from presto_sync.db.models.integration.sync_log import SyncLog
from presto_sync.ingestion.providers.base.errors import NotConfiguredError, ProviderRateLimited
from presto_sync.ingestion.providers.presto.sync.roster import map_player, sync_roster


def _roster() -> list[dict]:
    players = [
        {
            "id": f"p{i}",
            "firstName": f"First{i}",
            "lastName": f"Last{i}",
            "position": "RHP" if i % 2 else "SS",
            "jerseyNumber": str(i),
            "classYear": "R-Jr." if i == 0 else "So.",
            "height": "6-1",
            "weight": "190 lbs",
            "batsThrows": "L/R",
        }
        for i in range(8)
    ]
    players.append({"id": "p8", "firstName": "Only"})
    players.append({"id": "p9", "lastName": "Surname"})
    return players


def test_roster_sync_records_bad_entries_and_keeps_going(session, team, tokens) -> None:
    seen: list[tuple[str, str]] = []

    def get_team_players(token: str, presto_team_id: str) -> dict:
        seen.append((token, presto_team_id))
        return {"data": _roster()}

    api = SimpleNamespace(get_team_players=get_team_players)

    result = sync_roster(session, team_id=team.id, api=api, tokens=tokens)

    assert seen == [("test-token", "t100")]
    assert result.created == 8
    assert result.updated == 0
    assert [e.item_id for e in result.errors] == ["p8", "p9"]
    assert all("first or last name" in e.error for e in result.errors)
    assert result.summary == {"players_seen": 10}

    players = session.scalars(select(Player).order_by(Player.external_id)).all()
    assert len(players) == 8
    first = players[0]
    assert (first.class_year, first.is_redshirt) == ("JR", True)
    assert (first.bats, first.throws) == ("L", "R")
    assert first.weight == 190
    assert first.school == "Lamar University"
    assert players[1].position == "P"

    log = session.scalars(select(SyncLog)).one()
    assert log.sync_type == SyncTypeEnum.ROSTER
    assert log.status == SyncStatusEnum.PARTIAL
    assert log.items_created == 8
    assert log.items_failed == 2
    assert [e["item_id"] for e in log.item_errors] == ["p8", "p9"]
    assert team.last_synced_at is not None


def test_roster_sync_is_idempotent(session, team, tokens) -> None:
    api = SimpleNamespace(get_team_players=lambda token, team_id: _roster())

    sync_roster(session, team_id=team.id, api=api, tokens=tokens)
    second = sync_roster(session, team_id=team.id, api=api, tokens=tokens)

    assert second.created == 0
    assert second.updated == 8
    assert len(session.scalars(select(Player)).all()) == 8


def test_manual_players_are_left_alone(session, team, tokens) -> None:
    session.add(Player(team_id=team.id, first_name="Walk", last_name="On"))
    session.commit()
    api = SimpleNamespace(get_team_players=lambda token, team_id: _roster()[:1])

    result = sync_roster(session, team_id=team.id, api=api, tokens=tokens)

    assert result.created == 1
    assert len(session.scalars(select(Player)).all()) == 2


def test_rate_limit_fails_the_run_and_the_log(session, team, tokens) -> None:
    def get_team_players(token: str, presto_team_id: str) -> dict:
        raise ProviderRateLimited("HTTP 429 for GET /teams/t100/players", status=429)

    with pytest.raises(ProviderRateLimited):
        sync_roster(
            session,
            team_id=team.id,
            api=SimpleNamespace(get_team_players=get_team_players),
            tokens=tokens,
        )

    log = session.scalars(select(SyncLog)).one()
    assert log.status == SyncStatusEnum.FAILED
    assert "429" in log.error_message


def test_missing_provider_team_id_writes_failed_log(session, team, tokens) -> None:
    team.presto_team_id = None
    session.commit()

    with pytest.raises(NotConfiguredError):
        sync_roster(session, team_id=team.id, api=SimpleNamespace(), tokens=tokens)

    assert tokens.calls == 0
    log = session.scalars(select(SyncLog)).one()
    assert log.status == SyncStatusEnum.FAILED
    assert "team id" in log.error_message


def test_map_player_falls_back_to_nested_names(team) -> None:
    external_id, values = map_player(
        {"playerId": 42, "name": {"first": "Ana", "last": "Ruiz"}, "bats": "Both"},
        team=team,
        now=None,
    )

    assert external_id == "42"
    assert values["first_name"] == "Ana"
    assert values["bats"] == "S"
    assert values["position"] == "OF"
