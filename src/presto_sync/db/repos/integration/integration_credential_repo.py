from __future__ import annotations

from sqlalchemy.orm import Session

from presto_sync.db.enums import ProviderEnum
from presto_sync.db.models.integration.integration_credential import IntegrationCredential
from presto_sync.db.repos.base import BaseRepository


class IntegrationCredentialRepository(BaseRepository[IntegrationCredential]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=IntegrationCredential)

    def find_for_team(self, team_id: int, provider: ProviderEnum) -> IntegrationCredential | None:
        return self.first_where(
            IntegrationCredential.team_id == team_id,
            IntegrationCredential.provider == provider,
        )

    def find_active(self, team_id: int, provider: ProviderEnum) -> IntegrationCredential | None:
        return self.first_where(
            IntegrationCredential.team_id == team_id,
            IntegrationCredential.provider == provider,
            IntegrationCredential.is_active.is_(True),
        )
