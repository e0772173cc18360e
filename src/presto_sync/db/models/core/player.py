from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import Base, TimestampMixin, enum_type
from presto_sync.db.enums import PlayerStatusEnum, SourceSystemEnum


class Player(Base, TimestampMixin):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True)

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[str | None] = mapped_column(String(10), nullable=True)
    jersey_number: Mapped[str | None] = mapped_column(String(10), nullable=True)
    class_year: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_redshirt: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    height: Mapped[str | None] = mapped_column(String(10), nullable=True)
    weight: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bats: Mapped[str | None] = mapped_column(String(1), nullable=True)
    throws: Mapped[str | None] = mapped_column(String(1), nullable=True)
    school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[PlayerStatusEnum] = mapped_column(
        enum_type(PlayerStatusEnum, "player_status_enum"),
        nullable=False,
        default=PlayerStatusEnum.ACTIVE,
    )

    # Bio detail enrichment.
    hometown: Mapped[str | None] = mapped_column(String(200), nullable=True)
    high_school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    previous_school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    major: Mapped[str | None] = mapped_column(String(200), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    external_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    source_system: Mapped[SourceSystemEnum] = mapped_column(
        enum_type(SourceSystemEnum, "source_system_enum"),
        nullable=False,
        default=SourceSystemEnum.MANUAL,
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    team: Mapped[Team] = relationship(back_populates="players")

    __table_args__ = (
        UniqueConstraint("team_id", "external_id", name="uq_players_team_external_id"),
        Index("ix_players_team_last_name", "team_id", "last_name"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


from presto_sync.db.models.core.team import Team  # noqa: E402
