"""Player photos and videos."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.db.enums import SourceSystemEnum, SyncTypeEnum
from presto_sync.db.models.core.player import Player
from presto_sync.db.repos.core.player_repo import PlayerRepository
from presto_sync.db.repos.media.player_video_repo import PlayerVideoRepository
from presto_sync.ingestion.dates import parse_datetime, utcnow
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, as_items
from presto_sync.ingestion.providers.presto.mapping import (
    PHOTO_FIELDS,
    PHOTO_PRIORITY,
    VIDEO_FIELDS,
    resolve_all,
    to_int,
    to_str,
)

from .common import (
    Outcome,
    SyncResult,
    for_each_fetched,
    outcome_of,
    process_items,
    resolve_presto_config,
    sync_run,
)

ApiItem = dict[str, Any]


def _photo_rank(kind: Any) -> int:
    text = (to_str(kind) or "").lower()
    for rank, wanted in enumerate(PHOTO_PRIORITY):
        if wanted in text:
            return rank
    return len(PHOTO_PRIORITY)


def choose_photo(photos: Iterable[ApiItem]) -> str | None:
    """Best photo url: headshot, then profile, roster, action, then anything."""
    best: tuple[int, str] | None = None
    for photo in photos:
        raw = resolve_all(photo, PHOTO_FIELDS)
        url = to_str(raw["url"])
        if url is None:
            continue
        rank = _photo_rank(raw["kind"])
        if best is None or rank < best[0]:
            best = (rank, url)
    return best[1] if best is not None else None


def describe_player_row(player: Player) -> tuple[str | None, str | None]:
    return player.external_id, player.full_name


def sync_player_photos(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.PLAYER_PHOTOS, user_id=user_id
    )

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.PLAYER_PHOTOS,
        user_id=user_id,
        endpoint="/player/{player_id}/photos",
        params={"team_id": cfg.presto_team_id},
    ) as run:
        repo = PlayerRepository(session)
        players = repo.list_synced(team_id)
        now = utcnow()

        def fetch(player: Player) -> list[ApiItem]:
            external_id = str(player.external_id)
            payload = tokens.call(
                team_id, lambda token: api.get_player_photos(token, external_id)
            )
            return as_items(payload)

        def apply(player: Player, photos: list[ApiItem]) -> Outcome:
            url = choose_photo(photos)
            if url is None:
                return Outcome.SKIPPED
            repo.patch(player, {"photo_url": url[:500], "last_synced_at": now})
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


def map_video(item: ApiItem, *, player: Player, now: datetime) -> tuple[str, dict[str, Any]]:
    raw = resolve_all(item, VIDEO_FIELDS)
    url = to_str(raw["url"], max_len=1000)
    if url is None:
        raise ProviderMappingError("Video has no url", context={"keys": sorted(item)})
    # Fall back to the url so id-less videos still upsert idempotently.
    external_id = to_str(raw["external_id"]) or url

    values: dict[str, Any] = {
        "player_id": player.id,
        "title": to_str(raw["title"], max_len=300),
        "description": to_str(raw["description"]),
        "url": url,
        "thumbnail_url": to_str(raw["thumbnail_url"], max_len=1000),
        "embed_url": to_str(raw["embed_url"], max_len=1000),
        "duration": to_int(raw["duration"], default=None),
        "video_type": to_str(raw["video_type"], max_len=50),
        "provider": to_str(raw["provider"], max_len=50),
        "provider_video_id": to_str(raw["provider_video_id"], max_len=200),
        "published_at": parse_datetime(raw["published_at"]),
        "view_count": to_int(raw["view_count"], default=None),
        "source_system": SourceSystemEnum.PRESTO,
        "last_synced_at": now,
    }
    return external_id[:200], values


def describe_video(item: ApiItem) -> tuple[str | None, str | None]:
    raw = resolve_all(item, VIDEO_FIELDS)
    return to_str(raw["external_id"]), to_str(raw["title"])


def sync_player_videos(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.PLAYER_VIDEOS, user_id=user_id
    )

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.PLAYER_VIDEOS,
        user_id=user_id,
        endpoint="/player/{player_id}/videos",
        params={"team_id": cfg.presto_team_id},
    ) as run:
        players = PlayerRepository(session).list_synced(team_id)
        repo = PlayerVideoRepository(session)
        now = utcnow()

        def fetch(player: Player) -> list[ApiItem]:
            external_id = str(player.external_id)
            payload = tokens.call(
                team_id, lambda token: api.get_player_videos(token, external_id)
            )
            return as_items(payload)

        for player, videos in for_each_fetched(
            players,
            result=run.result,
            entity_type="player",
            describe=describe_player_row,
            fetch=fetch,
        ):

            def apply(item: ApiItem, _: Any, player: Player = player) -> Outcome:
                external_id, values = map_video(item, player=player, now=now)
                _, created = repo.upsert_by_external_id(team_id, external_id, values)
                return outcome_of(created)

            process_items(
                session,
                videos,
                result=run.result,
                entity_type="player_video",
                describe=describe_video,
                apply=apply,
            )

        run.result.summary = {"players_checked": len(players)}

    return run.result
