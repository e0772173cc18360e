from __future__ import annotations

from datetime import UTC, date, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import select

from presto_sync.db.enums import GameResultEnum, GameStatusEnum, HomeAwayEnum
from presto_sync.db.models.core.game import Game
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.sync.schedule import map_event, sync_schedule

NOW = datetime(2025, 3, 2, 12, 0, tzinfo=UTC)

HOME_WIN = {
    "id": "e1",
    "date": "2025-03-01T18:30:00-06:00",
    "statusCode": 0,
    "homeTeam": {"id": "t100", "name": "Lamar"},
    "awayTeam": {"id": "t900", "name": "McNeese"},
    "result": {"homeScore": 7, "awayScore": 3},
    "venue": {"name": "Vincent-Beck Stadium"},
    "record": {"wins": 9, "losses": 2},
}

AWAY_LOSS = {
    "id": "e2",
    "date": "03/04/2025",
    "time": "6:00 PM",
    "status": "Final",
    "homeTeam": {"id": "t300", "name": "Rice"},
    "awayTeam": {"id": "t100", "name": "Lamar"},
    "homeScore": "5",
    "awayScore": "4",
}

TBA_EVENT = {
    "id": "e3",
    "date": "TBA",
    "status": -1,
    "opponent": "Houston",
    "homeAway": "away",
}


def test_home_event_maps_scores_from_home_perspective(team) -> None:
    external_id, values = map_event(HOME_WIN, team=team, presto_team_id="t100", now=NOW)

    assert external_id == "e1"
    assert values["opponent"] == "McNeese"
    assert values["home_away"] == HomeAwayEnum.HOME
    assert (values["team_score"], values["opponent_score"]) == (7, 3)
    assert values["result"] == GameResultEnum.WIN
    assert values["game_status"] == GameStatusEnum.COMPLETED
    assert values["game_date"] == date(2025, 3, 1)
    assert values["game_time"] == "18:30"
    assert values["game_summary"] == "W, 7-3"
    assert values["running_record"] == "9-2"
    assert values["presto_home_team_id"] == "t100"
    assert values["season"] == "s2025"


def test_away_event_flips_scores(team) -> None:
    _, values = map_event(AWAY_LOSS, team=team, presto_team_id="t100", now=NOW)

    assert values["opponent"] == "Rice"
    assert values["home_away"] == HomeAwayEnum.AWAY
    assert (values["team_score"], values["opponent_score"]) == (4, 5)
    assert values["result"] == GameResultEnum.LOSS
    assert values["game_date"] == date(2025, 3, 4)
    assert values["game_time"] == "6:00 PM"
    assert values["presto_home_team_id"] == "t300"


def test_tba_event_has_no_date_or_time(team) -> None:
    _, values = map_event(TBA_EVENT, team=team, presto_team_id="t100", now=NOW)

    assert values["game_date"] is None
    assert values["game_time"] is None
    assert values["game_status"] == GameStatusEnum.SCHEDULED
    assert values["home_away"] == HomeAwayEnum.AWAY
    assert values["result"] is None
    assert values["presto_home_team_id"] is None


def test_neutral_site_overrides_home_flag(team) -> None:
    _, values = map_event(
        {**HOME_WIN, "neutralSite": True}, team=team, presto_team_id="t100", now=NOW
    )

    assert values["home_away"] == HomeAwayEnum.NEUTRAL
    assert values["presto_home_team_id"] == "t100"


def test_side_falls_back_to_team_name(team) -> None:
    event = {
        **HOME_WIN,
        "homeTeam": {"id": "other", "name": "Lamar Cardinals"},
        "awayTeam": {"id": "t900", "name": "McNeese"},
    }

    _, values = map_event(event, team=team, presto_team_id="t100", now=NOW)

    assert values["home_away"] == HomeAwayEnum.HOME


def test_unparseable_date_is_a_mapping_error(team) -> None:
    with pytest.raises(ProviderMappingError):
        map_event({**TBA_EVENT, "date": "next tuesday"}, team=team, presto_team_id="t100", now=NOW)


def test_schedule_sync_upserts_games(session, team, tokens) -> None:
    events = [HOME_WIN, AWAY_LOSS, TBA_EVENT, {"opponent": "No Id"}]
    api = SimpleNamespace(get_team_events=lambda token, team_id: {"data": events})

    result = sync_schedule(session, team_id=team.id, api=api, tokens=tokens)

    assert result.created == 3
    assert len(result.errors) == 1
    assert result.errors[0].name == "No Id"
    assert result.summary == {"events_seen": 4}

    games = {g.external_id: g for g in session.scalars(select(Game)).all()}
    assert sorted(games) == ["e1", "e2", "e3"]
    assert games["e3"].opponent == "Houston"
    assert games["e1"].location == "Vincent-Beck Stadium"

    rerun = sync_schedule(session, team_id=team.id, api=api, tokens=tokens)
    assert rerun.created == 0
    assert rerun.updated == 3


def test_resync_clears_date_and_scores_when_event_becomes_tba(session, team, tokens) -> None:
    dated = {**AWAY_LOSS, "id": "e9", "date": "04/01/2025", "time": "6:00 PM"}
    tba = {**dated, "date": "TBA", "time": None, "status": -1, "homeScore": None, "awayScore": None}
    payload = {"events": [dated]}
    api = SimpleNamespace(get_team_events=lambda token, team_id: {"data": payload["events"]})

    first = sync_schedule(session, team_id=team.id, api=api, tokens=tokens)
    game = session.scalars(select(Game).where(Game.external_id == "e9")).one()
    assert first.created == 1
    assert game.game_date == date(2025, 4, 1)
    assert game.game_time == "6:00 PM"
    assert game.result == GameResultEnum.LOSS

    payload["events"] = [tba]
    second = sync_schedule(session, team_id=team.id, api=api, tokens=tokens)
    session.refresh(game)

    assert (second.created, second.updated) == (0, 1)
    assert game.game_date is None
    assert game.game_time is None
    assert game.team_score is None
    assert game.opponent_score is None
    assert game.result is None
    assert game.game_status == GameStatusEnum.SCHEDULED
