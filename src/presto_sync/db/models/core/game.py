from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import Base, JsonType, TimestampMixin, enum_type
from presto_sync.db.enums import GameResultEnum, GameStatusEnum, HomeAwayEnum, SourceSystemEnum


class Game(Base, TimestampMixin):
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(primary_key=True)

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )

    opponent: Mapped[str] = mapped_column(String(200), nullable=False)
    # Null for TBA events.
    game_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    game_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    home_away: Mapped[HomeAwayEnum] = mapped_column(
        enum_type(HomeAwayEnum, "home_away_enum"), nullable=False
    )

    team_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    opponent_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    result: Mapped[GameResultEnum | None] = mapped_column(
        enum_type(GameResultEnum, "game_result_enum"), nullable=True
    )
    game_status: Mapped[GameStatusEnum] = mapped_column(
        enum_type(GameStatusEnum, "game_status_enum"),
        nullable=False,
        default=GameStatusEnum.SCHEDULED,
    )

    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    season: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    game_summary: Mapped[str | None] = mapped_column(String(100), nullable=True)
    running_record: Mapped[str | None] = mapped_column(String(20), nullable=True)
    running_conference_record: Mapped[str | None] = mapped_column(String(20), nullable=True)
    team_stats: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    opponent_stats: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)

    # Resolved from event details; required by the live stats endpoint.
    presto_home_team_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

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

    team: Mapped[Team] = relationship(back_populates="games")
    statistics: Mapped[list[GameStatistic]] = relationship(
        back_populates="game",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("team_id", "external_id", name="uq_games_team_external_id"),
        Index("ix_games_team_date", "team_id", "game_date"),
        Index("ix_games_team_status", "team_id", "game_status"),
    )


from presto_sync.db.models.core.team import Team  # noqa: E402
from presto_sync.db.models.stats.game_statistic import GameStatistic  # noqa: E402
