from __future__ import annotations

from datetime import date
from types import SimpleNamespace

from sqlalchemy import select

from presto_sync.db.enums import SourceSystemEnum
from presto_sync.db.models.core.player import Player
from presto_sync.db.models.media.news_release import NewsRelease
from presto_sync.db.models.media.player_video import PlayerVideo
from presto_sync.db.models.stats.player_career_stats import PlayerCareerStats
from presto_sync.db.models.stats.player_season_stats import PlayerSeasonStats
from presto_sync.ingestion.providers.base.errors import ProviderNotFound
from presto_sync.ingestion.providers.presto.sync.career_stats import (
    sync_career_stats,
    sync_historical_stats,
)
from presto_sync.ingestion.providers.presto.sync.media import (
    choose_photo,
    sync_player_photos,
    sync_player_videos,
)
from presto_sync.ingestion.providers.presto.sync.player_details import (
    map_player_details,
    sync_player_details,
)
from presto_sync.ingestion.providers.presto.sync.press_releases import sync_press_releases
from presto_sync.ingestion.providers.presto.sync.team_record import sync_team_record


def _not_found(path: str) -> ProviderNotFound:
    return ProviderNotFound(f"HTTP 404 for GET {path}", status=404)


def _players(session, team) -> dict[str, Player]:
    players = {}
    for external_id, first, last in (("p1", "Sam", "Diaz"), ("p2", "Ty", "Cole")):
        player = Player(
            team_id=team.id,
            first_name=first,
            last_name=last,
            external_id=external_id,
            source_system=SourceSystemEnum.PRESTO,
        )
        session.add(player)
        players[external_id] = player
    session.commit()
    return players


def test_team_record_and_stats_land_on_the_team(session, team, tokens) -> None:
    criteria_seen: list[dict | None] = []

    def get_team_record(token, presto_team_id, criteria):
        criteria_seen.append(criteria)
        return {"data": {"overall": {"wins": "18", "losses": 7}, "conference": {"wins": 6}}}

    def get_team_stats(token, presto_team_id, criteria):
        return {"data": {"hitting": {"avg": ".281"}, "pitching": {"era": "3.90"}}}

    api = SimpleNamespace(get_team_record=get_team_record, get_team_stats=get_team_stats)

    result = sync_team_record(session, team_id=team.id, api=api, tokens=tokens)

    assert criteria_seen == [{"season": "s2025"}]
    assert (team.wins, team.losses, team.ties) == (18, 7, 0)
    assert (team.conference_wins, team.conference_losses) == (6, 0)
    assert team.team_batting_stats == {"avg": ".281"}
    assert team.team_fielding_stats is None
    assert team.stats_last_synced_at is not None
    assert result.updated == 1
    assert result.summary == {
        "record": "18-7",
        "team_stats": ["team_batting_stats", "team_pitching_stats"],
    }


def test_team_stats_404_is_noted_not_fatal(session, team, tokens) -> None:
    def get_team_stats(token, presto_team_id, criteria):
        raise _not_found("/stats/teams/t100/stats")

    api = SimpleNamespace(
        get_team_record=lambda token, presto_team_id, criteria: [{"wins": 2, "losses": 1}],
        get_team_stats=get_team_stats,
    )

    result = sync_team_record(session, team_id=team.id, api=api, tokens=tokens)

    assert result.summary["team_stats"] == "not available"
    assert team.record == "2-1"
    assert team.stats_last_synced_at is None


def test_player_details_fill_bio_columns(session, team, tokens) -> None:
    players = _players(session, team)

    def get_player(token, player_id):
        if player_id == "p2":
            return {"data": {"id": "p2"}}
        return {
            "data": {
                "id": "p1",
                "hometown": "Beaumont, Texas",
                "bio": {"highSchool": "West Brook", "birthDate": "2004-05-06", "text": "Leadoff."},
            }
        }

    result = sync_player_details(
        session, team_id=team.id, api=SimpleNamespace(get_player=get_player), tokens=tokens
    )

    assert (result.updated, result.skipped) == (1, 1)
    p1 = players["p1"]
    assert p1.hometown == "Beaumont, Texas"
    assert p1.high_school == "West Brook"
    assert p1.birth_date == date(2004, 5, 6)
    assert p1.bio == "Leadoff."
    assert players["p2"].hometown is None


def test_bio_object_without_text_is_not_stored_as_bio() -> None:
    assert map_player_details({"bio": {"major": "Kinesiology"}}) == {"major": "Kinesiology"}


def test_photo_choice_prefers_headshots() -> None:
    photos = [
        {"url": "https://img.test/action.jpg", "type": "Action"},
        {"url": "https://img.test/head.jpg", "type": "Headshot 2025"},
        {"src": "https://img.test/other.jpg"},
    ]

    assert choose_photo(photos) == "https://img.test/head.jpg"
    assert choose_photo([{"type": "headshot"}]) is None


def test_player_photos_sync(session, team, tokens) -> None:
    players = _players(session, team)

    def get_player_photos(token, player_id):
        if player_id == "p2":
            raise _not_found(f"/player/{player_id}/photos")
        return {"data": {"photos": [{"url": "https://img.test/p1.jpg", "type": "roster"}]}}

    result = sync_player_photos(
        session,
        team_id=team.id,
        api=SimpleNamespace(get_player_photos=get_player_photos),
        tokens=tokens,
    )

    assert (result.updated, result.skipped) == (1, 1)
    assert players["p1"].photo_url == "https://img.test/p1.jpg"


def test_player_videos_upsert_per_player(session, team, tokens) -> None:
    _players(session, team)

    def get_player_videos(token, player_id):
        if player_id == "p2":
            return []
        return [
            {"id": "v1", "title": "Walk-off", "url": "https://v.test/1", "duration": "95"},
            {"title": "No id", "videoUrl": "https://v.test/2"},
            {"id": "v3", "title": "Broken"},
        ]

    api = SimpleNamespace(get_player_videos=get_player_videos)

    result = sync_player_videos(session, team_id=team.id, api=api, tokens=tokens)

    assert result.created == 2
    assert [e.item_id for e in result.errors] == ["v3"]
    videos = {v.external_id: v for v in session.scalars(select(PlayerVideo)).all()}
    assert sorted(videos) == ["https://v.test/2", "v1"]
    assert videos["v1"].duration == 95

    again = sync_player_videos(session, team_id=team.id, api=api, tokens=tokens)
    assert (again.created, again.updated) == (0, 2)


def test_press_releases_link_local_players(session, team, tokens) -> None:
    players = _players(session, team)
    releases = [
        {
            "id": "r1",
            "title": "Diaz named player of the week",
            "publishDate": "2025-03-03T15:00:00Z",
            "author": {"name": "Media Relations"},
            "players": [{"id": "p77"}, {"id": "p1"}],
        },
        {"id": "r2", "headline": "Series preview"},
        {"id": "r3"},
    ]
    api = SimpleNamespace(get_team_releases=lambda token, presto_team_id: releases)

    result = sync_press_releases(session, team_id=team.id, api=api, tokens=tokens)

    assert result.created == 2
    assert [e.item_id for e in result.errors] == ["r3"]
    rows = {r.external_id: r for r in session.scalars(select(NewsRelease)).all()}
    assert rows["r1"].player_id == players["p1"].id
    assert rows["r1"].author == "Media Relations"
    assert rows["r2"].title == "Series preview"
    assert rows["r2"].player_id is None

    again = sync_press_releases(session, team_id=team.id, api=api, tokens=tokens)
    assert (again.created, again.updated) == (0, 2)
    assert len(again.errors) == 1


CAREER = {
    "p1": [
        {"seasonId": "s2024", "seasonName": "2024", "stats": {"hitting": {"ab": 100, "h": 30}}},
        {"seasonId": "s2025", "seasonName": "2025", "stats": {"hitting": {"ab": 50, "h": 20}}},
    ],
    "p2": [],
}


def _career_api() -> SimpleNamespace:
    def get_player_career_by_season(token, player_id):
        return {"data": CAREER[player_id]}

    return SimpleNamespace(get_player_career_by_season=get_player_career_by_season)


def test_historical_stats_write_one_row_per_season(session, team, tokens) -> None:
    _players(session, team)

    result = sync_historical_stats(session, team_id=team.id, api=_career_api(), tokens=tokens)

    assert result.created == 2
    rows = {r.external_id: r for r in session.scalars(select(PlayerSeasonStats)).all()}
    assert sorted(rows) == ["p1-s2024", "p1-s2025"]
    assert rows["p1-s2024"].season == "2024"
    assert rows["p1-s2024"].batting_average == 0.3

    rows["p1-s2025"].split_stats = {"home": {"ab": 20, "h": 9}}
    session.commit()

    again = sync_historical_stats(session, team_id=team.id, api=_career_api(), tokens=tokens)
    assert (again.created, again.updated) == (0, 2)
    session.refresh(rows["p1-s2025"])
    assert rows["p1-s2025"].split_stats == {"home": {"ab": 20, "h": 9}}


def test_career_totals_are_recomputed_from_counts(session, team, tokens) -> None:
    players = _players(session, team)

    result = sync_career_stats(session, team_id=team.id, api=_career_api(), tokens=tokens)

    assert (result.created, result.skipped) == (1, 1)
    career = session.scalars(select(PlayerCareerStats)).one()
    assert career.external_id == "p1-career"
    assert career.player_id == players["p1"].id
    assert career.seasons_played == 2
    assert (career.career_hits, career.career_at_bats) == (50, 150)
    assert career.career_batting_average == 0.333

    again = sync_career_stats(session, team_id=team.id, api=_career_api(), tokens=tokens)
    assert (again.created, again.updated, again.skipped) == (0, 1, 1)
