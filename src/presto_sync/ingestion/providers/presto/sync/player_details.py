from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.db.enums import SyncTypeEnum
from presto_sync.db.models.core.player import Player
from presto_sync.db.repos.core.player_repo import PlayerRepository
from presto_sync.ingestion.dates import parse_date, utcnow
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, unwrap_data
from presto_sync.ingestion.providers.presto.mapping import (
    PLAYER_DETAIL_FIELDS,
    resolve_all,
    to_str,
)

from .common import Outcome, SyncResult, process_items, resolve_presto_config, sync_run

_TEXT_LIMITS = {"hometown": 200, "high_school": 200, "previous_school": 200, "major": 200}


def map_player_details(payload: Any) -> dict[str, Any]:
    """Bio columns present in a `/player/{id}` payload; absent fields are omitted."""
    data = unwrap_data(payload)
    if not isinstance(data, Mapping):
        return {}
    raw = resolve_all(data, PLAYER_DETAIL_FIELDS)

    values: dict[str, Any] = {}
    for column, limit in _TEXT_LIMITS.items():
        text = to_str(raw[column], max_len=limit)
        if text is not None:
            values[column] = text

    birth_date = parse_date(raw["birth_date"])
    if birth_date is not None:
        values["birth_date"] = birth_date

    # "bio" may resolve to the nested bio object itself.
    if not isinstance(raw["bio"], Mapping):
        bio = to_str(raw["bio"])
        if bio is not None:
            values["bio"] = bio
    return values


def describe_player_row(player: Player) -> tuple[str | None, str | None]:
    return player.external_id, player.full_name


def sync_player_details(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """Enrich synced players with bio details from `/player/{id}`."""
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.PLAYER_DETAILS, user_id=user_id
    )

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.PLAYER_DETAILS,
        user_id=user_id,
        endpoint="/player/{player_id}",
        params={"team_id": cfg.presto_team_id},
    ) as run:
        repo = PlayerRepository(session)
        players = repo.list_synced(team_id)
        now = utcnow()

        def fetch(player: Player) -> Any:
            external_id = str(player.external_id)
            return tokens.call(team_id, lambda token: api.get_player(token, external_id))

        def apply(player: Player, payload: Any) -> Outcome:
            values = map_player_details(payload)
            if not values:
                return Outcome.SKIPPED
            values["last_synced_at"] = now
            repo.patch(player, values)
            return Outcome.UPDATED

        process_items(
            session,
            players,
            result=run.result,
            entity_type="player",
            describe=describe_player_row,
            apply=apply,
            fetch=fetch,
        )
        run.result.summary = {"players_checked": len(players)}

    return run.result
