from __future__ import annotations

from datetime import UTC, date, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import select

from presto_sync.db.enums import GameResultEnum, GameStatusEnum, HomeAwayEnum, SourceSystemEnum
from presto_sync.db.models.core.game import Game
from presto_sync.ingestion.providers.base.errors import ProviderNotFound
from presto_sync.ingestion.providers.presto.sync.live_stats import (
    LiveSnapshot,
    apply_live_update,
    resolve_home_team_id,
    sync_live_stats,
)

TODAY = date(2025, 3, 1)
NOW = datetime(2025, 3, 1, 20, 0, tzinfo=UTC)


def _game(team, external_id: str, **overrides) -> Game:
    values = {
        "team_id": team.id,
        "opponent": "McNeese",
        "game_date": TODAY,
        "home_away": HomeAwayEnum.HOME,
        "game_status": GameStatusEnum.SCHEDULED,
        "external_id": external_id,
        "source_system": SourceSystemEnum.PRESTO,
    }
    values.update(overrides)
    return Game(**values)


def test_not_started_games_are_skipped(session, team, tokens) -> None:
    session.add_all(
        [
            _game(team, "e1"),
            _game(team, "e2", presto_home_team_id="t300", home_away=HomeAwayEnum.AWAY),
            _game(team, "e3", game_status=GameStatusEnum.COMPLETED),
            _game(team, "e4", game_date=date(2025, 3, 2)),
        ]
    )
    session.commit()
    live_calls: list[tuple[str, str]] = []

    def get_event(token: str, event_id: str) -> dict:
        return {"data": {"homeTeam": {"id": "t100", "name": "Lamar"}}}

    def get_event_live_stats(token: str, event_id: str, home_team_id: str) -> dict:
        live_calls.append((event_id, home_team_id))
        if event_id == "e2":
            raise ProviderNotFound("HTTP 404 for GET /events/e2/livestats", status=404)
        return {"data": {"status": -2, "homeScore": 3, "awayScore": 1}}

    api = SimpleNamespace(get_event=get_event, get_event_live_stats=get_event_live_stats)

    result = sync_live_stats(session, team_id=team.id, api=api, tokens=tokens, today=TODAY)

    assert sorted(live_calls) == [("e1", "t100"), ("e2", "t300")]
    assert result.updated == 1
    assert result.skipped == 1
    assert result.errors == []
    assert result.summary["not_started"] == 1
    assert result.summary["games_checked"] == 2
    assert result.summary["date"] == "2025-03-01"

    game = session.scalars(select(Game).where(Game.external_id == "e1")).one()
    assert game.game_status == GameStatusEnum.IN_PROGRESS
    assert (game.team_score, game.opponent_score) == (3, 1)
    assert game.result == GameResultEnum.WIN
    assert game.presto_home_team_id == "t100"


def test_away_game_reads_scores_from_visitor_side(team) -> None:
    game = _game(team, "e5", home_away=HomeAwayEnum.AWAY)

    apply_live_update(
        game,
        LiveSnapshot(home_team_id="t300", payload={"homeScore": 6, "awayScore": 2}),
        presto_team_id="t100",
        now=NOW,
    )

    assert game.game_status == GameStatusEnum.IN_PROGRESS
    assert (game.team_score, game.opponent_score) == (2, 6)
    assert game.game_summary == "L, 2-6"


@pytest.mark.parametrize(
    "home_team_id, expected",
    [("t100", (4, 1)), ("t300", (1, 4))],
)
def test_neutral_site_side_comes_from_home_team_id(team, home_team_id, expected) -> None:
    game = _game(team, "e6", home_away=HomeAwayEnum.NEUTRAL, presto_home_team_id=home_team_id)

    apply_live_update(
        game,
        LiveSnapshot(home_team_id=home_team_id, payload={"homeScore": 4, "awayScore": 1}),
        presto_team_id="t100",
        now=NOW,
    )

    assert (game.team_score, game.opponent_score) == expected


def test_final_status_from_feed_completes_the_game(team) -> None:
    game = _game(team, "e7")

    apply_live_update(
        game,
        LiveSnapshot(home_team_id="t100", payload={"status": "Final"}),
        presto_team_id="t100",
        now=NOW,
    )

    assert game.game_status == GameStatusEnum.COMPLETED
    assert game.team_score is None


def test_home_team_id_resolution() -> None:
    assert resolve_home_team_id({"data": {"homeTeam": {"teamId": 55}}}) == "55"
    assert resolve_home_team_id({"homeTeamId": "t1"}) == "t1"
    assert resolve_home_team_id("nope") is None
