from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import (
    Base,
    StatCount,
    StatFlag,
    TimestampMixin,
    enum_type,
    innings_column,
)
from presto_sync.db.enums import SourceSystemEnum


class GameStatistic(Base, TimestampMixin):
    __tablename__ = "game_statistics"

    id: Mapped[int] = mapped_column(primary_key=True)

    game_id: Mapped[int] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )

    position_played: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Batting
    at_bats: Mapped[StatCount]
    runs: Mapped[StatCount]
    hits: Mapped[StatCount]
    doubles: Mapped[StatCount]
    triples: Mapped[StatCount]
    home_runs: Mapped[StatCount]
    rbi: Mapped[StatCount]
    walks: Mapped[StatCount]
    strikeouts_batting: Mapped[StatCount]
    stolen_bases: Mapped[StatCount]
    caught_stealing: Mapped[StatCount]
    hit_by_pitch: Mapped[StatCount]
    sacrifice_flies: Mapped[StatCount]
    sacrifice_bunts: Mapped[StatCount]

    # Pitching
    innings_pitched: Mapped[float] = innings_column()
    hits_allowed: Mapped[StatCount]
    runs_allowed: Mapped[StatCount]
    earned_runs: Mapped[StatCount]
    walks_allowed: Mapped[StatCount]
    strikeouts_pitching: Mapped[StatCount]
    home_runs_allowed: Mapped[StatCount]
    batters_faced: Mapped[StatCount]
    pitches_thrown: Mapped[StatCount]
    strikes_thrown: Mapped[StatCount]
    win: Mapped[StatFlag]
    loss: Mapped[StatFlag]
    save: Mapped[StatFlag]
    hold: Mapped[StatFlag]

    # Fielding
    putouts: Mapped[StatCount]
    assists: Mapped[StatCount]
    errors: Mapped[StatCount]

    external_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source_system: Mapped[SourceSystemEnum] = mapped_column(
        enum_type(SourceSystemEnum, "source_system_enum"),
        nullable=False,
        default=SourceSystemEnum.MANUAL,
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    game: Mapped[Game] = relationship(back_populates="statistics")
    player: Mapped[Player] = relationship()

    __table_args__ = (
        UniqueConstraint("team_id", "external_id", name="uq_game_statistics_team_external_id"),
        Index("ix_game_statistics_game_player", "game_id", "player_id"),
    )


from presto_sync.db.models.core.game import Game  # noqa: E402
from presto_sync.db.models.core.player import Player  # noqa: E402
