from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.db.enums import SourceSystemEnum, SyncTypeEnum
from presto_sync.db.models.core.player import Player
from presto_sync.db.repos.core.player_repo import PlayerRepository
from presto_sync.db.repos.media.news_release_repo import NewsReleaseRepository
from presto_sync.ingestion.dates import parse_datetime, utcnow
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, as_items
from presto_sync.ingestion.providers.presto.mapping import (
    RELEASE_FIELDS,
    STAT_PLAYER_ID,
    resolve_all,
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


def referenced_player_ids(item: ApiItem, raw: Mapping[str, Any]) -> list[str]:
    ids: list[str] = []
    direct = to_str(raw["player_id"])
    if direct is not None:
        ids.append(direct)
    players = item.get("players")
    if isinstance(players, list):
        for ref in players:
            ref_id = to_str(STAT_PLAYER_ID.resolve(ref) if isinstance(ref, Mapping) else ref)
            if ref_id is not None and ref_id not in ids:
                ids.append(ref_id)
    return ids


def map_release(
    item: ApiItem, *, players: Mapping[str, Player], now: datetime
) -> tuple[str, dict[str, Any]]:
    raw = resolve_all(item, RELEASE_FIELDS)
    external_id = to_str(raw["external_id"])
    if external_id is None:
        raise ProviderMappingError("Release has no id", context={"keys": sorted(item)})
    title = to_str(raw["title"], max_len=500)
    if title is None:
        raise ProviderMappingError("Release has no title", context={"release_id": external_id})

    # First referenced player that is on the local roster.
    player_id = next(
        (players[pid].id for pid in referenced_player_ids(item, raw) if pid in players), None
    )
    author = raw["author"]
    if isinstance(author, Mapping):
        author = author.get("name")

    values: dict[str, Any] = {
        "title": title,
        "content": to_str(raw["content"]),
        "summary": to_str(raw["summary"]),
        "author": to_str(author, max_len=200),
        "publish_date": parse_datetime(raw["publish_date"]),
        "category": to_str(raw["category"], max_len=100),
        "image_url": to_str(raw["image_url"], max_len=1000),
        "source_url": to_str(raw["source_url"], max_len=1000),
        "player_id": player_id,
        "source_system": SourceSystemEnum.PRESTO,
        "last_synced_at": now,
    }
    return external_id, values


def describe_release(item: ApiItem) -> tuple[str | None, str | None]:
    raw = resolve_all(item, RELEASE_FIELDS)
    return to_str(raw["external_id"]), to_str(raw["title"])


def sync_press_releases(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """Upsert team news from `/teams/{id}/releases`."""
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.PRESS_RELEASES, user_id=user_id
    )
    presto_team_id = cfg.presto_team_id

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.PRESS_RELEASES,
        user_id=user_id,
        endpoint=f"/teams/{presto_team_id}/releases",
        params={"team_id": presto_team_id},
    ) as run:
        payload = tokens.call(team_id, lambda token: api.get_team_releases(token, presto_team_id))
        releases = as_items(payload)
        players = PlayerRepository(session).by_external_id(team_id)
        repo = NewsReleaseRepository(session)
        now = utcnow()

        def apply(item: ApiItem, _: Any) -> Outcome:
            external_id, values = map_release(item, players=players, now=now)
            _, created = repo.upsert_by_external_id(team_id, external_id, values)
            return outcome_of(created)

        process_items(
            session,
            releases,
            result=run.result,
            entity_type="news_release",
            describe=describe_release,
            apply=apply,
        )
        run.result.summary = {"releases_seen": len(releases)}

    return run.result
