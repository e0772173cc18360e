from __future__ import annotations

from sqlalchemy.orm import Session

from presto_sync.db.models.core.player import Player
from presto_sync.db.repos.base import ExternalIdRepository


class PlayerRepository(ExternalIdRepository[Player]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Player)

    def by_external_id(self, team_id: int) -> dict[str, Player]:
        """Synced roster of a team keyed by provider player id."""
        return {p.external_id: p for p in self.list_synced(team_id) if p.external_id}
