from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from presto_sync.db.enums import GameStatusEnum, SourceSystemEnum
from presto_sync.db.models.core.game import Game
from presto_sync.db.repos.base import ExternalIdRepository


class GameRepository(ExternalIdRepository[Game]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Game)

    def completed_synced(self, team_id: int) -> list[Game]:
        return self.all_where(
            Game.team_id == team_id,
            Game.source_system == SourceSystemEnum.PRESTO,
            Game.external_id.is_not(None),
            Game.game_status == GameStatusEnum.COMPLETED,
        )

    def live_candidates(self, team_id: int, day: date) -> list[Game]:
        """Synced games on `day` that are not final yet."""
        return self.all_where(
            Game.team_id == team_id,
            Game.source_system == SourceSystemEnum.PRESTO,
            Game.external_id.is_not(None),
            Game.game_date == day,
            Game.game_status.not_in([GameStatusEnum.COMPLETED, GameStatusEnum.CANCELLED]),
        )
