from __future__ import annotations

from sqlalchemy.orm import Session

from presto_sync.db.models.stats.player_season_stats import PlayerSeasonStats
from presto_sync.db.repos.base import ExternalIdRepository


class PlayerSeasonStatsRepository(ExternalIdRepository[PlayerSeasonStats]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=PlayerSeasonStats)
