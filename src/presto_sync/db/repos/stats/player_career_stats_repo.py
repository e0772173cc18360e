from __future__ import annotations

from sqlalchemy.orm import Session

from presto_sync.db.models.stats.player_career_stats import PlayerCareerStats
from presto_sync.db.repos.base import ExternalIdRepository


class PlayerCareerStatsRepository(ExternalIdRepository[PlayerCareerStats]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=PlayerCareerStats)
