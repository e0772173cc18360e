from __future__ import annotations

from sqlalchemy.orm import Session

from presto_sync.db.models.media.news_release import NewsRelease
from presto_sync.db.repos.base import ExternalIdRepository


class NewsReleaseRepository(ExternalIdRepository[NewsRelease]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=NewsRelease)
