from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import Base, JsonType, TimestampMixin


class Team(Base, TimestampMixin):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    school: Mapped[str | None] = mapped_column(String(200), nullable=True)

    presto_team_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    presto_season_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Denormalized record, refreshed by the team record sync.
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    ties: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    conference_wins: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    conference_losses: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    conference_ties: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    team_batting_stats: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    team_pitching_stats: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    team_fielding_stats: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    stats_last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    players: Mapped[list[Player]] = relationship(back_populates="team")
    games: Mapped[list[Game]] = relationship(back_populates="team")
    credentials: Mapped[list[IntegrationCredential]] = relationship(
        back_populates="team",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("ix_teams_presto_team_id", "presto_team_id"),)

    @property
    def record(self) -> str:
        if self.ties:
            return f"{self.wins}-{self.losses}-{self.ties}"
        return f"{self.wins}-{self.losses}"


from presto_sync.db.models.core.game import Game  # noqa: E402
from presto_sync.db.models.core.player import Player  # noqa: E402
from presto_sync.db.models.integration.integration_credential import (  # noqa: E402
    IntegrationCredential,
)
