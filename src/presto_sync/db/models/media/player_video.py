from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import Base, TimestampMixin, enum_type
from presto_sync.db.enums import SourceSystemEnum


class PlayerVideo(Base, TimestampMixin):
    __tablename__ = "player_videos"

    id: Mapped[int] = mapped_column(primary_key=True)

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str | None] = mapped_column(String(300), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    embed_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # seconds
    video_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    provider: Mapped[str | None] = mapped_column(String(50), nullable=True)  # youtube, hudl, ...
    provider_video_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    view_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    external_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source_system: Mapped[SourceSystemEnum] = mapped_column(
        enum_type(SourceSystemEnum, "source_system_enum"),
        nullable=False,
        default=SourceSystemEnum.MANUAL,
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    player: Mapped[Player] = relationship()

    __table_args__ = (
        UniqueConstraint("team_id", "external_id", name="uq_player_videos_team_external_id"),
    )


from presto_sync.db.models.core.player import Player  # noqa: E402
