from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import (
    Base,
    JsonType,
    StatCount,
    TimestampMixin,
    enum_type,
    innings_column,
    rate_column,
)
from presto_sync.db.enums import SourceSystemEnum


class PlayerSeasonStats(Base, TimestampMixin):
    __tablename__ = "player_season_stats"

    id: Mapped[int] = mapped_column(primary_key=True)

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    season: Mapped[str | None] = mapped_column(String(50), nullable=True)
    presto_season_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Batting
    games_played: Mapped[StatCount]
    games_started: Mapped[StatCount]
    at_bats: Mapped[StatCount]
    runs: Mapped[StatCount]
    hits: Mapped[StatCount]
    doubles: Mapped[StatCount]
    triples: Mapped[StatCount]
    home_runs: Mapped[StatCount]
    rbi: Mapped[StatCount]
    walks: Mapped[StatCount]
    strikeouts: Mapped[StatCount]
    stolen_bases: Mapped[StatCount]
    caught_stealing: Mapped[StatCount]
    hit_by_pitch: Mapped[StatCount]
    sacrifice_flies: Mapped[StatCount]
    sacrifice_bunts: Mapped[StatCount]
    batting_average: Mapped[float | None] = rate_column(4, 3)
    on_base_percentage: Mapped[float | None] = rate_column(4, 3)
    slugging_percentage: Mapped[float | None] = rate_column(4, 3)
    ops: Mapped[float | None] = rate_column(5, 3)

    # Pitching
    pitching_appearances: Mapped[StatCount]
    pitching_starts: Mapped[StatCount]
    innings_pitched: Mapped[float] = innings_column()
    pitching_wins: Mapped[StatCount]
    pitching_losses: Mapped[StatCount]
    saves: Mapped[StatCount]
    holds: Mapped[StatCount]
    hits_allowed: Mapped[StatCount]
    runs_allowed: Mapped[StatCount]
    earned_runs: Mapped[StatCount]
    walks_allowed: Mapped[StatCount]
    strikeouts_pitching: Mapped[StatCount]
    home_runs_allowed: Mapped[StatCount]
    era: Mapped[float | None] = rate_column(6, 2)
    whip: Mapped[float | None] = rate_column(5, 2)

    # Fielding
    fielding_games: Mapped[StatCount]
    putouts: Mapped[StatCount]
    assists: Mapped[StatCount]
    errors: Mapped[StatCount]
    fielding_percentage: Mapped[float | None] = rate_column(4, 3)

    raw_stats: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    split_stats: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)

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
        UniqueConstraint(
            "team_id", "external_id", name="uq_player_season_stats_team_external_id"
        ),
        Index("ix_player_season_stats_player_season", "player_id", "season"),
    )


from presto_sync.db.models.core.player import Player  # noqa: E402
