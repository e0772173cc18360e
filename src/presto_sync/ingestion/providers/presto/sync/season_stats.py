from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.core.sanitize import sanitize_error
from presto_sync.db.enums import SourceSystemEnum, SyncTypeEnum
from presto_sync.db.models.core.player import Player
from presto_sync.db.repos.core.player_repo import PlayerRepository
from presto_sync.db.repos.stats.player_season_stats_repo import PlayerSeasonStatsRepository
from presto_sync.ingestion.dates import utcnow
from presto_sync.ingestion.providers.base.errors import ProviderError, ProviderMappingError
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, as_items
from presto_sync.ingestion.providers.presto.mapping import (
    SEASON_COUNT_FIELDS,
    SEASON_RATE_FIELDS,
    STAT_PLAYER_ID,
    STAT_PLAYER_NAME,
    extract_embedded_splits,
    to_float,
    to_int,
    to_str,
)
from presto_sync.ingestion.providers.presto.stats import fill_season_rates

from .common import (
    Outcome,
    SyncResult,
    outcome_of,
    process_items,
    resolve_presto_config,
    sync_run,
)

logger = logging.getLogger(__name__)

ApiItem = dict[str, Any]

# split name -> extra query criteria on top of the season
SPLIT_CALLS: dict[str, dict[str, str]] = {
    "home": {"location": "home"},
    "away": {"location": "away"},
    "conference": {"conference": "true"},
}


def map_season_values(item: Mapping[str, Any]) -> dict[str, Any]:
    """Counting and rate columns for one player-season stat object.

    Rates the provider leaves out are computed from the counts.
    """
    values: dict[str, Any] = {}
    for column, chain in SEASON_COUNT_FIELDS.items():
        values[column] = to_int(chain.resolve(item))
    for column, chain in SEASON_RATE_FIELDS.items():
        values[column] = to_float(chain.resolve(item))
    if values["innings_pitched"] is None:
        values["innings_pitched"] = 0.0
    return fill_season_rates(values)


def season_stats_external_id(player_external_id: str, season_id: str) -> str:
    return f"{player_external_id}-{season_id}"


def describe_stat_row(item: ApiItem) -> tuple[str | None, str | None]:
    return to_str(STAT_PLAYER_ID.resolve(item)), to_str(STAT_PLAYER_NAME.resolve(item))


def _stat_block(item: Mapping[str, Any]) -> dict[str, Any]:
    stats = item.get("stats")
    return dict(stats) if isinstance(stats, Mapping) else dict(item)


def fetch_split_rows(
    *,
    team_id: int,
    presto_team_id: str,
    season_id: str,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> tuple[dict[str, dict[str, dict[str, Any]]], dict[str, str]]:
    """Run the split calls; returns ({split: {player id: stats}}, {split: error}).

    A failing split call is reported, never raised.
    """
    splits: dict[str, dict[str, dict[str, Any]]] = {}
    errors: dict[str, str] = {}
    for split, extra in SPLIT_CALLS.items():
        criteria = {"season": season_id, **extra}
        try:
            payload = tokens.call(
                team_id,
                lambda token, c=criteria: api.get_team_player_stats(token, presto_team_id, c),
            )
            rows = as_items(payload)
        except ProviderError as e:
            message = sanitize_error(e) or e.__class__.__name__
            logger.warning("Split %s unavailable for team %s: %s", split, team_id, message)
            errors[split] = message
            continue

        by_player: dict[str, dict[str, Any]] = {}
        for row in rows:
            player_id = to_str(STAT_PLAYER_ID.resolve(row))
            if player_id is not None:
                by_player[player_id] = _stat_block(row)
        splits[split] = by_player
    return splits, errors


def upsert_season_row(
    repo: PlayerSeasonStatsRepository,
    *,
    player: Player,
    season_id: str,
    item: Mapping[str, Any],
    split_stats: dict[str, Any] | None,
    season_label: str | None,
    now: datetime,
) -> Outcome:
    values = map_season_values(item)
    values.update(
        {
            "player_id": player.id,
            "season": season_label or season_id,
            "presto_season_id": season_id,
            "raw_stats": dict(item),
            "source_system": SourceSystemEnum.PRESTO,
            "last_synced_at": now,
        }
    )
    # None leaves split_stats to whichever sync wrote them.
    if split_stats is not None:
        values["split_stats"] = split_stats or None
    _, created = repo.upsert_by_external_id(
        player.team_id,
        season_stats_external_id(str(player.external_id), season_id),
        values,
    )
    return outcome_of(created)


def sync_season_stats(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """Current-season totals per player, with situational and split stats."""
    cfg = resolve_presto_config(
        session,
        team_id=team_id,
        sync_type=SyncTypeEnum.SEASON_STATS,
        user_id=user_id,
        require_season=True,
    )
    presto_team_id = cfg.presto_team_id
    season_id = str(cfg.presto_season_id)

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.SEASON_STATS,
        user_id=user_id,
        endpoint=f"/stats/teams/{presto_team_id}/players",
        params={"season": season_id},
    ) as run:
        payload = tokens.call(
            team_id,
            lambda token: api.get_team_player_stats(token, presto_team_id, {"season": season_id}),
        )
        rows = as_items(payload)
        splits, split_errors = fetch_split_rows(
            team_id=team_id,
            presto_team_id=presto_team_id,
            season_id=season_id,
            api=api,
            tokens=tokens,
        )

        players = PlayerRepository(session).by_external_id(team_id)
        repo = PlayerSeasonStatsRepository(session)
        now = utcnow()

        def apply(item: ApiItem, _: Any) -> Outcome:
            player_id = to_str(STAT_PLAYER_ID.resolve(item))
            if player_id is None:
                raise ProviderMappingError(
                    "Stat row has no player id", context={"keys": sorted(item)}
                )
            player = players.get(player_id)
            if player is None:
                return Outcome.SKIPPED

            split_stats = extract_embedded_splits(item)
            for split, by_player in splits.items():
                if player_id in by_player:
                    split_stats[split] = by_player[player_id]

            return upsert_season_row(
                repo,
                player=player,
                season_id=season_id,
                item=item,
                split_stats=split_stats,
                season_label=None,
                now=now,
            )

        process_items(
            session,
            rows,
            result=run.result,
            entity_type="player_season_stats",
            describe=describe_stat_row,
            apply=apply,
        )
        summary: dict[str, Any] = {
            "season_id": season_id,
            "rows_seen": len(rows),
            "splits_merged": sorted(splits),
        }
        if split_errors:
            summary["split_errors"] = split_errors
        run.result.summary = summary

    return run.result
