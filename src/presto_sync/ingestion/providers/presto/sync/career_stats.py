"""Per-season history and career totals, both from `/stats/player/{id}/career/season`."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.db.enums import SourceSystemEnum, SyncTypeEnum
from presto_sync.db.models.core.player import Player
from presto_sync.db.repos.core.player_repo import PlayerRepository
from presto_sync.db.repos.stats.player_career_stats_repo import PlayerCareerStatsRepository
from presto_sync.db.repos.stats.player_season_stats_repo import PlayerSeasonStatsRepository
from presto_sync.ingestion.dates import utcnow
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, as_items
from presto_sync.ingestion.providers.presto.mapping import SEASON_ID, FieldChain, to_str
from presto_sync.ingestion.providers.presto.stats import aggregate_career

from .common import (
    Outcome,
    SyncResult,
    for_each_fetched,
    outcome_of,
    process_items,
    resolve_presto_config,
    sync_run,
)
from .season_stats import map_season_values, upsert_season_row

ApiItem = dict[str, Any]

SEASON_LABEL = FieldChain.of("seasonName", "season.name", "seasonLabel", "year")


def describe_player_row(player: Player) -> tuple[str | None, str | None]:
    return player.external_id, player.full_name


def describe_season_entry(entry: ApiItem) -> tuple[str | None, str | None]:
    return to_str(SEASON_ID.resolve(entry)), to_str(SEASON_LABEL.resolve(entry))


def career_external_id(player_external_id: str) -> str:
    return f"{player_external_id}-career"


def _season_id(entry: ApiItem) -> str:
    value = SEASON_ID.resolve(entry)
    if isinstance(value, dict):
        value = value.get("id")
    season_id = to_str(value)
    if season_id is None:
        raise ProviderMappingError("Career entry has no season", context={"keys": sorted(entry)})
    return season_id


def _fetch_career(
    api: PrestoApiClient, tokens: TokenManager, team_id: int
) -> Callable[[Player], list[ApiItem]]:
    def fetch(player: Player) -> list[ApiItem]:
        external_id = str(player.external_id)
        payload = tokens.call(
            team_id, lambda token: api.get_player_career_by_season(token, external_id)
        )
        return as_items(payload)

    return fetch


def sync_historical_stats(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """One PlayerSeasonStats row per season listed in each player's career."""
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.HISTORICAL_STATS, user_id=user_id
    )

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.HISTORICAL_STATS,
        user_id=user_id,
        endpoint="/stats/player/{player_id}/career/season",
        params={"team_id": cfg.presto_team_id},
    ) as run:
        players = PlayerRepository(session).list_synced(team_id)
        repo = PlayerSeasonStatsRepository(session)
        now = utcnow()
        players_processed = 0

        for player, entries in for_each_fetched(
            players,
            result=run.result,
            entity_type="player",
            describe=describe_player_row,
            fetch=_fetch_career(api, tokens, team_id),
        ):

            def apply(entry: ApiItem, _: Any, player: Player = player) -> Outcome:
                season_id = _season_id(entry)
                return upsert_season_row(
                    repo,
                    player=player,
                    season_id=season_id,
                    item=entry,
                    split_stats=None,
                    season_label=to_str(SEASON_LABEL.resolve(entry), max_len=50),
                    now=now,
                )

            process_items(
                session,
                entries,
                result=run.result,
                entity_type="player_season_stats",
                describe=describe_season_entry,
                apply=apply,
            )
            players_processed += 1

        run.result.summary = {
            "players_checked": len(players),
            "players_processed": players_processed,
        }

    return run.result


def sync_career_stats(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """Career totals per player; rates are recomputed from summed counts."""
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.CAREER_STATS, user_id=user_id
    )

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.CAREER_STATS,
        user_id=user_id,
        endpoint="/stats/player/{player_id}/career/season",
        params={"team_id": cfg.presto_team_id},
    ) as run:
        players = PlayerRepository(session).list_synced(team_id)
        repo = PlayerCareerStatsRepository(session)
        now = utcnow()

        def apply(player: Player, entries: list[ApiItem]) -> Outcome:
            if not entries:
                return Outcome.SKIPPED
            values = aggregate_career(map_season_values(entry) for entry in entries)
            values.update(
                {
                    "player_id": player.id,
                    "source_system": SourceSystemEnum.PRESTO,
                    "last_synced_at": now,
                }
            )
            _, created = repo.upsert_by_external_id(
                team_id, career_external_id(str(player.external_id)), values
            )
            return outcome_of(created)

        process_items(
            session,
            players,
            result=run.result,
            entity_type="player_career_stats",
            describe=describe_player_row,
            apply=apply,
            fetch=_fetch_career(api, tokens, team_id),
        )
        run.result.summary = {"players_checked": len(players)}

    return run.result
