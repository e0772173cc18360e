from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.db.enums import SyncTypeEnum
from presto_sync.db.models.core.team import Team
from presto_sync.db.repos.core.team_repo import TeamRepository
from presto_sync.ingestion.dates import utcnow
from presto_sync.ingestion.providers.base.errors import ProviderNotFound
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, unwrap_data
from presto_sync.ingestion.providers.presto.mapping import (
    TEAM_RECORD_FIELDS,
    TEAM_STATS_FIELDS,
    resolve_all,
    to_int,
)

from .common import SyncResult, resolve_presto_config, sync_run

logger = logging.getLogger(__name__)


def _first_mapping(payload: Any) -> Mapping[str, Any]:
    data = unwrap_data(payload)
    if isinstance(data, list):
        data = next((row for row in data if isinstance(row, Mapping)), None)
    return data if isinstance(data, Mapping) else {}


def map_team_record(payload: Any) -> dict[str, int]:
    """Overall and conference W-L-T; missing numbers are 0."""
    raw = resolve_all(_first_mapping(payload), TEAM_RECORD_FIELDS)
    return {column: to_int(value) or 0 for column, value in raw.items()}


def map_team_stats(payload: Any) -> dict[str, dict[str, Any] | None]:
    raw = resolve_all(_first_mapping(payload), TEAM_STATS_FIELDS)
    return {
        column: dict(value) if isinstance(value, Mapping) else None
        for column, value in raw.items()
    }


def sync_team_record(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """Refresh the denormalized record and aggregate team stats on the team row."""
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.TEAM_RECORD, user_id=user_id
    )
    presto_team_id = cfg.presto_team_id
    criteria = {"season": cfg.presto_season_id} if cfg.presto_season_id else None

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.TEAM_RECORD,
        user_id=user_id,
        endpoint=f"/stats/teams/{presto_team_id}/record",
        params=criteria,
    ) as run:
        team: Team = cfg.team
        repo = TeamRepository(session)

        record_payload = tokens.call(
            team_id, lambda token: api.get_team_record(token, presto_team_id, criteria)
        )
        record = map_team_record(record_payload)
        repo.patch(team, record)

        summary: dict[str, Any] = {"record": team.record}
        try:
            stats_payload = tokens.call(
                team_id, lambda token: api.get_team_stats(token, presto_team_id, criteria)
            )
        except ProviderNotFound:
            logger.info("No aggregate team stats for team %s", team_id)
            summary["team_stats"] = "not available"
        else:
            stats = map_team_stats(stats_payload)
            repo.patch(team, stats)
            team.stats_last_synced_at = utcnow()
            summary["team_stats"] = sorted(k for k, v in stats.items() if v is not None)

        run.result.updated = 1
        run.result.summary = summary

    return run.result
