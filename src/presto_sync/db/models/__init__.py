from presto_sync.db.models.core.game import Game
from presto_sync.db.models.core.player import Player
from presto_sync.db.models.core.team import Team
from presto_sync.db.models.integration.integration_credential import IntegrationCredential
from presto_sync.db.models.integration.sync_log import SyncLog
from presto_sync.db.models.media.news_release import NewsRelease
from presto_sync.db.models.media.player_video import PlayerVideo
from presto_sync.db.models.stats.game_statistic import GameStatistic
from presto_sync.db.models.stats.player_career_stats import PlayerCareerStats
from presto_sync.db.models.stats.player_season_stats import PlayerSeasonStats

__all__ = [
    "Game",
    "GameStatistic",
    "IntegrationCredential",
    "NewsRelease",
    "Player",
    "PlayerCareerStats",
    "PlayerSeasonStats",
    "PlayerVideo",
    "SyncLog",
    "Team",
]
