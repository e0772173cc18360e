from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.db.enums import SourceSystemEnum, SyncTypeEnum
from presto_sync.db.models.core.game import Game
from presto_sync.db.models.core.player import Player
from presto_sync.db.repos.core.game_repo import GameRepository
from presto_sync.db.repos.core.player_repo import PlayerRepository
from presto_sync.db.repos.stats.game_statistic_repo import GameStatisticRepository
from presto_sync.ingestion.dates import utcnow
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.boxscore import PlayerStatLine, parse_box_score
from presto_sync.ingestion.providers.presto.client import PrestoApiClient
from presto_sync.ingestion.providers.presto.mapping import (
    GAME_FIELDING_FIELDS,
    GAME_HITTING_FIELDS,
    GAME_PITCHING_FIELDS,
    GAME_PITCHING_FLAGS,
    to_flag,
    to_float,
    to_int,
)

from .common import (
    Outcome,
    SyncResult,
    for_each_fetched,
    outcome_of,
    process_items,
    record_error,
    resolve_presto_config,
    sync_run,
)


def map_stat_line(line: PlayerStatLine) -> dict[str, Any]:
    """GameStatistic column values for one box-score line; absent counts are 0."""
    values: dict[str, Any] = {}
    for column, chain in GAME_HITTING_FIELDS.items():
        values[column] = to_int(chain.resolve(line.hitting))
    for column, chain in GAME_FIELDING_FIELDS.items():
        values[column] = to_int(chain.resolve(line.fielding))

    pitching: Mapping[str, Any] = line.pitching
    for column, chain in GAME_PITCHING_FIELDS.items():
        if column == "innings_pitched":
            values[column] = to_float(chain.resolve(pitching), default=0.0)
        else:
            values[column] = to_int(chain.resolve(pitching))
    for column, chain in GAME_PITCHING_FLAGS.items():
        values[column] = to_flag(chain.resolve(pitching))

    if line.position:
        values["position_played"] = line.position.strip().upper()[:10]
    return values


def game_stat_external_id(game: Game, line: PlayerStatLine) -> str:
    return f"{game.external_id}-{line.player_id}"


def describe_line(line: PlayerStatLine) -> tuple[str | None, str | None]:
    return line.player_id, line.name


def upsert_box_score(
    session: Session,
    *,
    game: Game,
    lines: list[PlayerStatLine],
    players: Mapping[str, Player],
    result: SyncResult,
    now: datetime,
) -> SyncResult:
    """Upsert one GameStatistic per line whose player is on the local roster.

    Lines for players we do not know (usually the opponent) are skipped.
    """
    repo = GameStatisticRepository(session)

    def apply(line: PlayerStatLine, _: Any) -> Outcome:
        player = players.get(line.player_id)
        if player is None:
            return Outcome.SKIPPED
        values = map_stat_line(line)
        values.update(
            {
                "game_id": game.id,
                "player_id": player.id,
                "source_system": SourceSystemEnum.PRESTO,
                "last_synced_at": now,
            }
        )
        _, created = repo.upsert_by_external_id(
            game.team_id, game_stat_external_id(game, line), values
        )
        return outcome_of(created)

    return process_items(
        session,
        lines,
        result=result,
        entity_type="game_statistic",
        describe=describe_line,
        apply=apply,
    )


def describe_game(game: Game) -> tuple[str | None, str | None]:
    return game.external_id, game.opponent


def sync_stats(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """Pull box scores for every completed, synced game and upsert per-player lines."""
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.STATS, user_id=user_id
    )

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.STATS,
        user_id=user_id,
        endpoint="/events/{event_id}/stats",
        params={"team_id": cfg.presto_team_id},
    ) as run:
        games = GameRepository(session).completed_synced(team_id)
        players = PlayerRepository(session).by_external_id(team_id)
        now = utcnow()
        games_processed = 0

        def fetch(game: Game) -> Any:
            event_id = str(game.external_id)
            return tokens.call(team_id, lambda token: api.get_event_stats(token, event_id))

        for game, payload in for_each_fetched(
            games, result=run.result, entity_type="game", describe=describe_game, fetch=fetch
        ):
            try:
                lines = parse_box_score(payload)
            except ProviderMappingError as e:
                record_error(
                    run.result,
                    item_id=game.external_id,
                    entity_type="game",
                    name=game.opponent,
                    exc=e,
                )
                continue
            upsert_box_score(
                session, game=game, lines=lines, players=players, result=run.result, now=now
            )
            games_processed += 1

        run.result.summary = {"games_checked": len(games), "games_processed": games_processed}

    return run.result
