from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.db.enums import PlayerStatusEnum, SourceSystemEnum, SyncTypeEnum
from presto_sync.db.models.core.team import Team
from presto_sync.db.repos.core.player_repo import PlayerRepository
from presto_sync.ingestion.dates import utcnow
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, as_items
from presto_sync.ingestion.providers.presto.mapping import (
    PLAYER_FIELDS,
    map_class_year,
    map_hand,
    map_position,
    parse_height,
    parse_weight,
    resolve_all,
    split_bats_throws,
    to_str,
)

from .common import (
    Outcome,
    SyncResult,
    outcome_of,
    process_items,
    resolve_presto_config,
    sync_run,
)

ApiItem = dict[str, Any]


def describe_player(item: ApiItem) -> tuple[str | None, str | None]:
    raw = resolve_all(item, PLAYER_FIELDS)
    name = " ".join(p for p in (to_str(raw["first_name"]), to_str(raw["last_name"])) if p)
    return to_str(raw["external_id"]), name or None


def map_player(item: ApiItem, *, team: Team, now: datetime) -> tuple[str, dict[str, Any]]:
    """Map a roster entry to (external_id, Player column values)."""
    raw = resolve_all(item, PLAYER_FIELDS)

    external_id = to_str(raw["external_id"])
    if external_id is None:
        raise ProviderMappingError("Roster entry has no player id", context={"keys": sorted(item)})

    first_name = to_str(raw["first_name"], max_len=100)
    last_name = to_str(raw["last_name"], max_len=100)
    if first_name is None or last_name is None:
        raise ProviderMappingError(
            "Roster entry is missing a first or last name", context={"player_id": external_id}
        )

    class_year, is_redshirt = map_class_year(raw["class_year"])

    bats, throws = map_hand(raw["bats"]), map_hand(raw["throws"])
    if bats is None and throws is None:
        bats, throws = split_bats_throws(raw["bats_throws"])

    values: dict[str, Any] = {
        "first_name": first_name,
        "last_name": last_name,
        "position": map_position(raw["position"]),
        "jersey_number": to_str(raw["jersey_number"], max_len=10),
        "class_year": class_year,
        "is_redshirt": is_redshirt,
        "height": parse_height(raw["height"]),
        "weight": parse_weight(raw["weight"]),
        "bats": bats,
        "throws": throws,
        "school": to_str(raw["school"], max_len=200) or team.school or team.name,
        "status": PlayerStatusEnum.ACTIVE,
        "source_system": SourceSystemEnum.PRESTO,
        "last_synced_at": now,
    }
    return external_id, values


def sync_roster(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """Upsert the team's roster from `/teams/{id}/players`."""
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.ROSTER, user_id=user_id
    )
    presto_team_id = cfg.presto_team_id

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.ROSTER,
        user_id=user_id,
        endpoint=f"/teams/{presto_team_id}/players",
        params={"team_id": presto_team_id},
    ) as run:
        payload = tokens.call(team_id, lambda token: api.get_team_players(token, presto_team_id))
        players = as_items(payload)
        repo = PlayerRepository(session)
        now = utcnow()

        def apply(item: ApiItem, _: Any) -> Outcome:
            external_id, values = map_player(item, team=cfg.team, now=now)
            _, created = repo.upsert_by_external_id(
                team_id, external_id, values, on_create={"created_by": user_id}
            )
            return outcome_of(created)

        process_items(
            session,
            players,
            result=run.result,
            entity_type="player",
            describe=describe_player,
            apply=apply,
        )
        run.result.summary = {"players_seen": len(players)}

    return run.result
