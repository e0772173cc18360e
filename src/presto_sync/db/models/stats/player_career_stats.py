from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import (
    Base,
    StatCount,
    TimestampMixin,
    enum_type,
    innings_column,
    rate_column,
)
from presto_sync.db.enums import SourceSystemEnum


class PlayerCareerStats(Base, TimestampMixin):
    __tablename__ = "player_career_stats"

    id: Mapped[int] = mapped_column(primary_key=True)

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )

    seasons_played: Mapped[StatCount]
    career_games: Mapped[StatCount]
    career_at_bats: Mapped[StatCount]
    career_runs: Mapped[StatCount]
    career_hits: Mapped[StatCount]
    career_doubles: Mapped[StatCount]
    career_triples: Mapped[StatCount]
    career_home_runs: Mapped[StatCount]
    career_rbi: Mapped[StatCount]
    career_walks: Mapped[StatCount]
    career_strikeouts: Mapped[StatCount]
    career_stolen_bases: Mapped[StatCount]
    career_hit_by_pitch: Mapped[StatCount]
    career_sacrifice_flies: Mapped[StatCount]
    career_batting_average: Mapped[float | None] = rate_column(4, 3)
    career_obp: Mapped[float | None] = rate_column(4, 3)
    career_slg: Mapped[float | None] = rate_column(4, 3)
    career_ops: Mapped[float | None] = rate_column(5, 3)

    career_pitching_appearances: Mapped[StatCount]
    career_innings_pitched: Mapped[float] = innings_column(6)
    career_wins: Mapped[StatCount]
    career_losses: Mapped[StatCount]
    career_saves: Mapped[StatCount]
    career_hits_allowed: Mapped[StatCount]
    career_walks_allowed: Mapped[StatCount]
    career_earned_runs: Mapped[StatCount]
    career_strikeouts_pitching: Mapped[StatCount]
    career_era: Mapped[float | None] = rate_column(6, 2)
    career_whip: Mapped[float | None] = rate_column(5, 2)

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
            "team_id", "external_id", name="uq_player_career_stats_team_external_id"
        ),
    )


from presto_sync.db.models.core.player import Player  # noqa: E402
