from __future__ import annotations

from sqlalchemy.orm import Session

from presto_sync.db.models.stats.game_statistic import GameStatistic
from presto_sync.db.repos.base import ExternalIdRepository


class GameStatisticRepository(ExternalIdRepository[GameStatistic]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=GameStatistic)
