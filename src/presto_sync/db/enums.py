from __future__ import annotations

from enum import StrEnum


class ProviderEnum(StrEnum):
    PRESTO = "presto"
    HUDL = "hudl"
    SYNERGY = "synergy"


class SourceSystemEnum(StrEnum):
    PRESTO = "presto"
    MANUAL = "manual"
    OTHER = "other"


class CredentialTypeEnum(StrEnum):
    BASIC = "basic"
    API_KEY = "api_key"
    OAUTH2 = "oauth2"


class GameStatusEnum(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


class HomeAwayEnum(StrEnum):
    HOME = "home"
    AWAY = "away"
    NEUTRAL = "neutral"


class GameResultEnum(StrEnum):
    WIN = "W"
    LOSS = "L"
    TIE = "T"


class PlayerStatusEnum(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class SyncTypeEnum(StrEnum):
    ROSTER = "roster"
    SCHEDULE = "schedule"
    STATS = "stats"
    TEAM_RECORD = "team_record"
    SEASON_STATS = "season_stats"
    CAREER_STATS = "career_stats"
    FULL = "full"
    PLAYER_DETAILS = "player_details"
    PLAYER_PHOTOS = "player_photos"
    PRESS_RELEASES = "press_releases"
    HISTORICAL_STATS = "historical_stats"
    PLAYER_VIDEOS = "player_videos"
    LIVE_STATS = "live_stats"


class SyncStatusEnum(StrEnum):
    STARTED = "started"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
