from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import Base, TimestampMixin, enum_type
from presto_sync.db.enums import SourceSystemEnum


class NewsRelease(Base, TimestampMixin):
    __tablename__ = "news_releases"

    id: Mapped[int] = mapped_column(primary_key=True)

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    # Optional link when the release is about a synced player.
    player_id: Mapped[int | None] = mapped_column(
        ForeignKey("players.id", ondelete="SET NULL"), nullable=True
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    author: Mapped[str | None] = mapped_column(String(200), nullable=True)
    publish_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    external_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source_system: Mapped[SourceSystemEnum] = mapped_column(
        enum_type(SourceSystemEnum, "source_system_enum"),
        nullable=False,
        default=SourceSystemEnum.MANUAL,
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    player: Mapped[Player | None] = relationship()

    __table_args__ = (
        UniqueConstraint("team_id", "external_id", name="uq_news_releases_team_external_id"),
        Index("ix_news_releases_team_publish_date", "team_id", "publish_date"),
    )


from presto_sync.db.models.core.player import Player  # noqa: E402
