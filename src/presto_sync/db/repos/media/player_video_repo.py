from __future__ import annotations

from sqlalchemy.orm import Session

from presto_sync.db.models.media.player_video import PlayerVideo
from presto_sync.db.repos.base import ExternalIdRepository


class PlayerVideoRepository(ExternalIdRepository[PlayerVideo]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=PlayerVideo)
