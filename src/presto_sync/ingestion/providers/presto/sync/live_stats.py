from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.db.enums import GameStatusEnum, HomeAwayEnum, SyncTypeEnum
from presto_sync.db.models.core.game import Game
from presto_sync.db.repos.core.game_repo import GameRepository
from presto_sync.db.repos.core.player_repo import PlayerRepository
from presto_sync.ingestion.dates import local_today, utcnow
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.boxscore import parse_box_score
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, unwrap_data
from presto_sync.ingestion.providers.presto.mapping import (
    EVENT_FIELDS,
    LIVE_FIELDS,
    TEAM_REF_FIELDS,
    determine_result,
    format_game_summary,
    is_empty,
    map_event_status,
    resolve_all,
    to_int,
    to_str,
)

from .common import (
    Outcome,
    SyncResult,
    for_each_fetched,
    process_items,
    record_error,
    resolve_presto_config,
    sync_run,
)
from .game_stats import describe_game, upsert_box_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveSnapshot:
    home_team_id: str
    payload: Any


def resolve_home_team_id(event_payload: Any) -> str | None:
    data = unwrap_data(event_payload)
    if not isinstance(data, Mapping):
        return None
    home = EVENT_FIELDS["home_team"].resolve(data)
    if isinstance(home, Mapping):
        return to_str(TEAM_REF_FIELDS["id"].resolve(home))
    return to_str(data.get("homeTeamId"))


def _is_home(game: Game, presto_team_id: str) -> bool:
    if game.home_away == HomeAwayEnum.NEUTRAL:
        return game.presto_home_team_id == presto_team_id
    return game.home_away == HomeAwayEnum.HOME


def apply_live_update(
    game: Game, snapshot: LiveSnapshot, *, presto_team_id: str, now: datetime
) -> Outcome:
    """Update status, score and result in place from a live payload."""
    data = unwrap_data(snapshot.payload)
    raw = resolve_all(data if isinstance(data, Mapping) else {}, LIVE_FIELDS)

    game.presto_home_team_id = snapshot.home_team_id
    if not is_empty(raw["status"]):
        game.game_status = map_event_status(raw["status"])
    elif game.game_status == GameStatusEnum.SCHEDULED:
        game.game_status = GameStatusEnum.IN_PROGRESS

    home_score = to_int(raw["home_score"], default=None)
    away_score = to_int(raw["away_score"], default=None)
    if home_score is not None and away_score is not None:
        if _is_home(game, presto_team_id):
            game.team_score, game.opponent_score = home_score, away_score
        else:
            game.team_score, game.opponent_score = away_score, home_score
        game.result = determine_result(game.team_score, game.opponent_score)
        game.game_summary = format_game_summary(
            game.result, game.team_score, game.opponent_score
        )

    game.last_synced_at = now
    return Outcome.UPDATED


def sync_live_stats(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
    today: date | None = None,
) -> SyncResult:
    """Refresh today's unfinished games from the live stats feed.

    A 404 from the feed means the game has not started; the game is skipped.
    """
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.LIVE_STATS, user_id=user_id
    )
    presto_team_id = cfg.presto_team_id
    day = today or local_today()

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.LIVE_STATS,
        user_id=user_id,
        endpoint="/events/{event_id}/livestats",
        params={"date": day.isoformat()},
    ) as run:
        games = GameRepository(session).live_candidates(team_id, day)
        players = PlayerRepository(session).by_external_id(team_id)
        stats = SyncResult()
        now = utcnow()

        def fetch(game: Game) -> LiveSnapshot:
            event_id = str(game.external_id)
            home_id = game.presto_home_team_id
            if not home_id:
                event = tokens.call(team_id, lambda token: api.get_event(token, event_id))
                home_id = resolve_home_team_id(event)
            if not home_id:
                raise ProviderMappingError(
                    "Could not resolve the home team for event", context={"event_id": event_id}
                )
            home = home_id
            payload = tokens.call(
                team_id, lambda token: api.get_event_live_stats(token, event_id, home)
            )
            return LiveSnapshot(home_team_id=home, payload=payload)

        skipped_before = run.result.skipped
        for game, snapshot in for_each_fetched(
            games, result=run.result, entity_type="game", describe=describe_game, fetch=fetch
        ):
            failed_before = run.result.failed
            process_items(
                session,
                [game],
                result=run.result,
                entity_type="game",
                describe=describe_game,
                apply=lambda g, _, s=snapshot: apply_live_update(
                    g, s, presto_team_id=presto_team_id, now=now
                ),
            )
            if run.result.failed > failed_before:
                continue

            try:
                lines = parse_box_score(snapshot.payload)
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
                session, game=game, lines=lines, players=players, result=stats, now=now
            )

        run.result.errors.extend(stats.errors)
        run.result.summary = {
            "date": day.isoformat(),
            "games_checked": len(games),
            "not_started": run.result.skipped - skipped_before,
            "stats_created": stats.created,
            "stats_updated": stats.updated,
        }

    return run.result
