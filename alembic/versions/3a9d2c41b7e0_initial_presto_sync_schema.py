"""Initial presto sync schema

Revision ID: 3a9d2c41b7e0
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3a9d2c41b7e0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS: dict[str, tuple[str, ...]] = {
    "provider_enum": ("presto", "hudl", "synergy"),
    "source_system_enum": ("presto", "manual", "other"),
    "credential_type_enum": ("basic", "api_key", "oauth2"),
    "game_status_enum": ("scheduled", "in_progress", "completed", "postponed", "cancelled"),
    "home_away_enum": ("home", "away", "neutral"),
    "game_result_enum": ("W", "L", "T"),
    "player_status_enum": ("active", "inactive"),
    "sync_type_enum": (
        "roster",
        "schedule",
        "stats",
        "team_record",
        "season_stats",
        "career_stats",
        "full",
        "player_details",
        "player_photos",
        "press_releases",
        "historical_stats",
        "player_videos",
        "live_stats",
    ),
    "sync_status_enum": ("started", "completed", "partial", "failed"),
}

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def _sync_columns(external_id_length: int = 100) -> list[sa.Column]:
    return [
        sa.Column("external_id", sa.String(length=external_id_length), nullable=True),
        sa.Column("source_system", _enum("source_system_enum"), nullable=False),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _count(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), server_default=sa.text("0"), nullable=False)


def _flag(name: str) -> sa.Column:
    return sa.Column(name, sa.Boolean(), server_default=sa.false(), nullable=False)


def _rate(name: str, precision: int, scale: int) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision, scale), nullable=True)


def _innings(name: str, precision: int = 5) -> sa.Column:
    return sa.Column(
        name, sa.Numeric(precision, 1), server_default=sa.text("0"), nullable=False
    )


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("school", sa.String(length=200), nullable=True),
        sa.Column("presto_team_id", sa.String(length=100), nullable=True),
        sa.Column("presto_season_id", sa.String(length=100), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        _count("wins"),
        _count("losses"),
        _count("ties"),
        _count("conference_wins"),
        _count("conference_losses"),
        _count("conference_ties"),
        sa.Column("team_batting_stats", JSON, nullable=True),
        sa.Column("team_pitching_stats", JSON, nullable=True),
        sa.Column("team_fielding_stats", JSON, nullable=True),
        sa.Column("stats_last_synced_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_teams_presto_team_id", "teams", ["presto_team_id"])

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("position", sa.String(length=10), nullable=True),
        sa.Column("jersey_number", sa.String(length=10), nullable=True),
        sa.Column("class_year", sa.String(length=10), nullable=True),
        _flag("is_redshirt"),
        sa.Column("height", sa.String(length=10), nullable=True),
        sa.Column("weight", sa.Integer(), nullable=True),
        sa.Column("bats", sa.String(length=1), nullable=True),
        sa.Column("throws", sa.String(length=1), nullable=True),
        sa.Column("school", sa.String(length=200), nullable=True),
        sa.Column("status", _enum("player_status_enum"), nullable=False),
        sa.Column("hometown", sa.String(length=200), nullable=True),
        sa.Column("high_school", sa.String(length=200), nullable=True),
        sa.Column("previous_school", sa.String(length=200), nullable=True),
        sa.Column("major", sa.String(length=200), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.String(length=500), nullable=True),
        *_sync_columns(),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("team_id", "external_id", name="uq_players_team_external_id"),
    )
    op.create_index("ix_players_team_last_name", "players", ["team_id", "last_name"])

    op.create_table(
        "games",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("opponent", sa.String(length=200), nullable=False),
        sa.Column("game_date", sa.Date(), nullable=True),
        sa.Column("game_time", sa.String(length=20), nullable=True),
        sa.Column("home_away", _enum("home_away_enum"), nullable=False),
        sa.Column("team_score", sa.Integer(), nullable=True),
        sa.Column("opponent_score", sa.Integer(), nullable=True),
        sa.Column("result", _enum("game_result_enum"), nullable=True),
        sa.Column("game_status", _enum("game_status_enum"), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("season", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("game_summary", sa.String(length=100), nullable=True),
        sa.Column("running_record", sa.String(length=20), nullable=True),
        sa.Column("running_conference_record", sa.String(length=20), nullable=True),
        sa.Column("team_stats", JSON, nullable=True),
        sa.Column("opponent_stats", JSON, nullable=True),
        sa.Column("presto_home_team_id", sa.String(length=100), nullable=True),
        *_sync_columns(),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("team_id", "external_id", name="uq_games_team_external_id"),
    )
    op.create_index("ix_games_team_date", "games", ["team_id", "game_date"])
    op.create_index("ix_games_team_status", "games", ["team_id", "game_status"])

    op.create_table(
        "game_statistics",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("position_played", sa.String(length=10), nullable=True),
        *[
            _count(name)
            for name in (
                "at_bats",
                "runs",
                "hits",
                "doubles",
                "triples",
                "home_runs",
                "rbi",
                "walks",
                "strikeouts_batting",
                "stolen_bases",
                "caught_stealing",
                "hit_by_pitch",
                "sacrifice_flies",
                "sacrifice_bunts",
            )
        ],
        _innings("innings_pitched"),
        *[
            _count(name)
            for name in (
                "hits_allowed",
                "runs_allowed",
                "earned_runs",
                "walks_allowed",
                "strikeouts_pitching",
                "home_runs_allowed",
                "batters_faced",
                "pitches_thrown",
                "strikes_thrown",
            )
        ],
        *[_flag(name) for name in ("win", "loss", "save", "hold")],
        *[_count(name) for name in ("putouts", "assists", "errors")],
        *_sync_columns(200),
        *_timestamps(),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "team_id", "external_id", name="uq_game_statistics_team_external_id"
        ),
    )
    op.create_index(
        "ix_game_statistics_game_player", "game_statistics", ["game_id", "player_id"]
    )

    op.create_table(
        "player_season_stats",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("season", sa.String(length=50), nullable=True),
        sa.Column("presto_season_id", sa.String(length=100), nullable=True),
        *[
            _count(name)
            for name in (
                "games_played",
                "games_started",
                "at_bats",
                "runs",
                "hits",
                "doubles",
                "triples",
                "home_runs",
                "rbi",
                "walks",
                "strikeouts",
                "stolen_bases",
                "caught_stealing",
                "hit_by_pitch",
                "sacrifice_flies",
                "sacrifice_bunts",
            )
        ],
        _rate("batting_average", 4, 3),
        _rate("on_base_percentage", 4, 3),
        _rate("slugging_percentage", 4, 3),
        _rate("ops", 5, 3),
        _count("pitching_appearances"),
        _count("pitching_starts"),
        _innings("innings_pitched"),
        *[
            _count(name)
            for name in (
                "pitching_wins",
                "pitching_losses",
                "saves",
                "holds",
                "hits_allowed",
                "runs_allowed",
                "earned_runs",
                "walks_allowed",
                "strikeouts_pitching",
                "home_runs_allowed",
            )
        ],
        _rate("era", 6, 2),
        _rate("whip", 5, 2),
        *[_count(name) for name in ("fielding_games", "putouts", "assists", "errors")],
        _rate("fielding_percentage", 4, 3),
        sa.Column("raw_stats", JSON, nullable=True),
        sa.Column("split_stats", JSON, nullable=True),
        *_sync_columns(200),
        *_timestamps(),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "team_id", "external_id", name="uq_player_season_stats_team_external_id"
        ),
    )
    op.create_index(
        "ix_player_season_stats_player_season",
        "player_season_stats",
        ["player_id", "season"],
    )

    op.create_table(
        "player_career_stats",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        *[
            _count(name)
            for name in (
                "seasons_played",
                "career_games",
                "career_at_bats",
                "career_runs",
                "career_hits",
                "career_doubles",
                "career_triples",
                "career_home_runs",
                "career_rbi",
                "career_walks",
                "career_strikeouts",
                "career_stolen_bases",
                "career_hit_by_pitch",
                "career_sacrifice_flies",
            )
        ],
        _rate("career_batting_average", 4, 3),
        _rate("career_obp", 4, 3),
        _rate("career_slg", 4, 3),
        _rate("career_ops", 5, 3),
        _count("career_pitching_appearances"),
        _innings("career_innings_pitched", 6),
        *[
            _count(name)
            for name in (
                "career_wins",
                "career_losses",
                "career_saves",
                "career_hits_allowed",
                "career_walks_allowed",
                "career_earned_runs",
                "career_strikeouts_pitching",
            )
        ],
        _rate("career_era", 6, 2),
        _rate("career_whip", 5, 2),
        *_sync_columns(200),
        *_timestamps(),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("player_id"),
        sa.UniqueConstraint(
            "team_id", "external_id", name="uq_player_career_stats_team_external_id"
        ),
    )

    op.create_table(
        "player_videos",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(length=1000), nullable=False),
        sa.Column("thumbnail_url", sa.String(length=1000), nullable=True),
        sa.Column("embed_url", sa.String(length=1000), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("video_type", sa.String(length=50), nullable=True),
        sa.Column("provider", sa.String(length=50), nullable=True),
        sa.Column("provider_video_id", sa.String(length=200), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=True),
        *_sync_columns(200),
        *_timestamps(),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("team_id", "external_id", name="uq_player_videos_team_external_id"),
    )
    op.create_index("ix_player_videos_player_id", "player_videos", ["player_id"])

    op.create_table(
        "news_releases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("author", sa.String(length=200), nullable=True),
        sa.Column("publish_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("image_url", sa.String(length=1000), nullable=True),
        sa.Column("source_url", sa.String(length=1000), nullable=True),
        *_sync_columns(200),
        *_timestamps(),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("team_id", "external_id", name="uq_news_releases_team_external_id"),
    )
    op.create_index(
        "ix_news_releases_team_publish_date", "news_releases", ["team_id", "publish_date"]
    )

    op.create_table(
        "integration_credentials",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("provider", _enum("provider_enum"), nullable=False),
        sa.Column("credential_type", _enum("credential_type_enum"), nullable=False),
        sa.Column("credentials_encrypted", sa.Text(), nullable=True),
        sa.Column("access_token_encrypted", sa.Text(), nullable=True),
        sa.Column("refresh_token_encrypted", sa.Text(), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refresh_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_refreshed_at", sa.DateTime(timezone=True), nullable=True),
        _count("refresh_error_count"),
        sa.Column("last_refresh_error", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("config", JSON, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "team_id", "provider", name="uq_integration_credentials_team_provider"
        ),
    )
    op.create_index(
        "ix_integration_credentials_provider_active",
        "integration_credentials",
        ["provider", "is_active"],
    )
    op.create_index(
        "ix_integration_credentials_token_expires_at",
        "integration_credentials",
        ["token_expires_at"],
    )

    op.create_table(
        "sync_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("sync_type", _enum("sync_type_enum"), nullable=False),
        sa.Column("source_system", _enum("source_system_enum"), nullable=False),
        sa.Column("api_endpoint", sa.String(length=500), nullable=True),
        sa.Column("status", _enum("sync_status_enum"), nullable=False),
        sa.Column("initiated_by", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("request_params", JSON, nullable=True),
        sa.Column("items_created", sa.Integer(), nullable=False),
        sa.Column("items_updated", sa.Integer(), nullable=False),
        sa.Column("items_skipped", sa.Integer(), nullable=False),
        sa.Column("items_failed", sa.Integer(), nullable=False),
        sa.Column("response_summary", JSON, nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("item_errors", JSON, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_sync_logs_team_type_started", "sync_logs", ["team_id", "sync_type", "started_at"]
    )
    op.create_index("ix_sync_logs_status", "sync_logs", ["status"])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "sync_logs",
        "integration_credentials",
        "news_releases",
        "player_videos",
        "player_career_stats",
        "player_season_stats",
        "game_statistics",
        "games",
        "players",
        "teams",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).drop(bind, checkfirst=True)
