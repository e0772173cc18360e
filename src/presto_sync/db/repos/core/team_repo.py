from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from presto_sync.db.enums import ProviderEnum
from presto_sync.db.models.core.team import Team
from presto_sync.db.models.integration.integration_credential import IntegrationCredential
from presto_sync.db.repos.base import BaseRepository


class TeamRepository(BaseRepository[Team]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Team)

    def with_active_credentials(self, provider: ProviderEnum) -> list[Team]:
        stmt = (
            select(Team)
            .join(IntegrationCredential, IntegrationCredential.team_id == Team.id)
            .where(
                IntegrationCredential.provider == provider,
                IntegrationCredential.is_active.is_(True),
            )
            .order_by(Team.id)
        )
        return list(self.session.execute(stmt).scalars().all())
