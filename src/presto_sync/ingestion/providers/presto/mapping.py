"""Provider field tables and enumeration lookups.

Every canonical field is read through a FieldChain: an ordered list of
accessor paths (dotted for nested objects) where the first non-empty value
wins. Keeping the tables here lets them be audited and tested without any
HTTP plumbing.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from presto_sync.db.enums import GameResultEnum, GameStatusEnum

Json = dict[str, Any]


def get_path(item: Any, path: str) -> Any:
    current = item
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


@dataclass(frozen=True)
class FieldChain:
    """Ordered accessors for one canonical field; first non-empty wins."""

    paths: tuple[str, ...]

    @classmethod
    def of(cls, *paths: str) -> FieldChain:
        return cls(paths=paths)

    def resolve(self, item: Any) -> Any:
        for path in self.paths:
            value = get_path(item, path)
            if not is_empty(value):
                return value
        return None


def resolve_all(item: Any, table: Mapping[str, FieldChain]) -> dict[str, Any]:
    return {field: chain.resolve(item) for field, chain in table.items()}


# -----------------------------
# Coercion
# -----------------------------


def to_int(value: Any, default: int | None = 0) -> int | None:
    if is_empty(value):
        return default
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float | None = None) -> float | None:
    if is_empty(value):
        return default
    text = str(value).strip()
    if text.startswith("."):
        text = "0" + text
    try:
        return float(text)
    except ValueError:
        return default


def to_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return False


def to_str(value: Any, *, max_len: int | None = None) -> str | None:
    if is_empty(value):
        return None
    text = str(value).strip()
    if max_len is not None:
        text = text[:max_len]
    return text


# -----------------------------
# Enumerations
# -----------------------------

POSITION_MAP: dict[str, str] = {
    "P": "P",
    "RHP": "P",
    "LHP": "P",
    "C": "C",
    "1B": "1B",
    "2B": "2B",
    "3B": "3B",
    "SS": "SS",
    "LF": "LF",
    "CF": "CF",
    "RF": "RF",
    "OF": "OF",
    "DH": "DH",
    "INF": "SS",
    "IF": "SS",
    "UT": "OF",
    "UTL": "OF",
    "PH": "DH",
    "PR": "OF",
}
DEFAULT_POSITION = "OF"


def map_position(value: Any) -> str:
    if is_empty(value):
        return DEFAULT_POSITION
    # "RHP/1B" -> primary position first
    primary = re.split(r"[/,\s]+", str(value).strip().upper())[0]
    return POSITION_MAP.get(primary, DEFAULT_POSITION)


CLASS_MAP: dict[str, str] = {
    "FR": "FR",
    "FRESHMAN": "FR",
    "SO": "SO",
    "SOPHOMORE": "SO",
    "JR": "JR",
    "JUNIOR": "JR",
    "SR": "SR",
    "SENIOR": "SR",
    "GR": "GR",
    "GRAD": "GR",
    "GRADUATE": "GR",
}

_REDSHIRT_PREFIX = re.compile(r"^(?:REDSHIRT|RS|R)[\s\-]*", re.I)


def map_class_year(value: Any) -> tuple[str | None, bool]:
    """Return (class_year, is_redshirt) from "Jr.", "RS-FR", "R-So.", "Redshirt Junior"."""
    if is_empty(value):
        return None, False
    text = str(value).strip().upper().replace(".", "")
    redshirt = False
    m = _REDSHIRT_PREFIX.match(text)
    if m and text[m.end():] in CLASS_MAP:
        redshirt = True
        text = text[m.end():]
    return CLASS_MAP.get(text), redshirt


_HEIGHT = re.compile(r"(\d+)['\-\s]+(\d+)")


def parse_height(value: Any) -> str | None:
    """Normalize "6-2", "6'2\"", "6 2" (and total inches such as 74) to "6-2"."""
    if is_empty(value):
        return None
    text = str(value).strip()
    m = _HEIGHT.search(text)
    if m:
        return f"{int(m.group(1))}-{int(m.group(2))}"
    if text.isdigit() and int(text) >= 48:
        inches = int(text)
        return f"{inches // 12}-{inches % 12}"
    return text[:10]


def parse_weight(value: Any) -> int | None:
    if is_empty(value):
        return None
    m = re.search(r"\d+", str(value))
    return int(m.group(0)) if m else None


def map_hand(value: Any) -> str | None:
    if is_empty(value):
        return None
    first = str(value).strip().upper()[0]
    if first == "B":
        return "S"
    return first if first in {"L", "R", "S"} else None


def split_bats_throws(value: Any) -> tuple[str | None, str | None]:
    """Split a combined "R/R" or "L-R" bats/throws value."""
    if is_empty(value):
        return None, None
    parts = re.split(r"[/\-]", str(value).strip())
    if len(parts) != 2:
        return None, None
    return map_hand(parts[0]), map_hand(parts[1])


EVENT_STATUS_MAP: dict[str, GameStatusEnum] = {
    "SCHEDULED": GameStatusEnum.SCHEDULED,
    "PRE": GameStatusEnum.SCHEDULED,
    "PREGAME": GameStatusEnum.SCHEDULED,
    "IN_PROGRESS": GameStatusEnum.IN_PROGRESS,
    "INPROGRESS": GameStatusEnum.IN_PROGRESS,
    "LIVE": GameStatusEnum.IN_PROGRESS,
    "FINAL": GameStatusEnum.COMPLETED,
    "COMPLETED": GameStatusEnum.COMPLETED,
    "COMPLETE": GameStatusEnum.COMPLETED,
    "CANCELLED": GameStatusEnum.CANCELLED,
    "CANCELED": GameStatusEnum.CANCELLED,
    "POSTPONED": GameStatusEnum.POSTPONED,
}


def map_event_status(value: Any) -> GameStatusEnum:
    """Translate provider event status.

    Numeric codes: -1 is scheduled, any other negative is in progress and
    anything >= 0 is final.
    """
    if is_empty(value):
        return GameStatusEnum.SCHEDULED
    code: int | None = None
    if isinstance(value, bool):
        code = None
    elif isinstance(value, (int, float)):
        code = int(value)
    elif isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
        code = int(value.strip())
    if code is not None:
        if code == -1:
            return GameStatusEnum.SCHEDULED
        if code < 0:
            return GameStatusEnum.IN_PROGRESS
        return GameStatusEnum.COMPLETED
    key = re.sub(r"[\s\-]+", "_", str(value).strip().upper())
    return EVENT_STATUS_MAP.get(key, GameStatusEnum.SCHEDULED)


def determine_result(team_score: int | None, opponent_score: int | None) -> GameResultEnum | None:
    if team_score is None or opponent_score is None:
        return None
    if team_score > opponent_score:
        return GameResultEnum.WIN
    if team_score < opponent_score:
        return GameResultEnum.LOSS
    return GameResultEnum.TIE


def format_game_summary(
    result: GameResultEnum | None, team_score: int | None, opponent_score: int | None
) -> str | None:
    if result is None or team_score is None or opponent_score is None:
        return None
    return f"{result.value}, {team_score}-{opponent_score}"


# -----------------------------
# Field tables
# -----------------------------

PLAYER_FIELDS: dict[str, FieldChain] = {
    "external_id": FieldChain.of("id", "playerId", "player_id"),
    "first_name": FieldChain.of("firstName", "first_name", "name.first"),
    "last_name": FieldChain.of("lastName", "last_name", "name.last"),
    "position": FieldChain.of("position", "positionAbbrev", "pos", "primaryPosition"),
    "jersey_number": FieldChain.of("jerseyNumber", "jersey_number", "uniform", "number"),
    "class_year": FieldChain.of("classYear", "class_year", "year", "academicYear"),
    "height": FieldChain.of("height", "heightDisplay"),
    "weight": FieldChain.of("weight",),
    "bats": FieldChain.of("bats", "batHand"),
    "throws": FieldChain.of("throws", "throwHand"),
    "bats_throws": FieldChain.of("batsThrows", "bt", "b_t"),
    "school": FieldChain.of("school",),
}

PLAYER_DETAIL_FIELDS: dict[str, FieldChain] = {
    "hometown": FieldChain.of("hometown", "homeTown", "home_town", "bio.hometown"),
    "high_school": FieldChain.of("highSchool", "high_school", "bio.highSchool"),
    "previous_school": FieldChain.of(
        "previousSchool", "previous_school", "lastSchool", "bio.previousSchool"
    ),
    "major": FieldChain.of("major", "bio.major"),
    "birth_date": FieldChain.of("birthDate", "birth_date", "dob", "bio.birthDate"),
    "bio": FieldChain.of("bio.text", "biography", "bioText", "bio"),
}

EVENT_FIELDS: dict[str, FieldChain] = {
    "external_id": FieldChain.of("id", "eventId", "event_id"),
    "date": FieldChain.of("date", "eventDate", "startDate", "start.date", "startDateTime"),
    "time": FieldChain.of("time", "startTime", "start.time"),
    "status": FieldChain.of("status", "statusCode", "eventStatus", "state"),
    "location": FieldChain.of("location", "venue.name", "venue", "site"),
    "season": FieldChain.of("season.id", "seasonId", "season"),
    "home_team": FieldChain.of("homeTeam", "teams.home", "home"),
    "away_team": FieldChain.of("awayTeam", "teams.away", "away"),
    "opponent": FieldChain.of("opponent.name", "opponentName", "opponent"),
    "home_away": FieldChain.of("homeAway", "home_away", "locationType"),
    "neutral": FieldChain.of("neutral", "neutralSite", "isNeutral"),
    "score": FieldChain.of("result", "score"),
    "running_record": FieldChain.of("runningRecord", "record", "teamRecord"),
    "running_conference_record": FieldChain.of(
        "runningConferenceRecord", "conferenceRecord", "confRecord"
    ),
    "team_stats": FieldChain.of("teamStats", "stats.team"),
    "opponent_stats": FieldChain.of("opponentStats", "stats.opponent"),
}

TEAM_REF_FIELDS: dict[str, FieldChain] = {
    "id": FieldChain.of("id", "teamId"),
    "name": FieldChain.of("name", "displayName", "shortName"),
}

# Home-perspective score keys first; team/opponent keys apply either way.
HOME_SCORE = FieldChain.of("homeScore", "home_score", "home.score")
AWAY_SCORE = FieldChain.of("awayScore", "away_score", "away.score")
TEAM_SCORE = FieldChain.of("teamScore", "team_score")
OPPONENT_SCORE = FieldChain.of("opponentScore", "opponent_score")

LIVE_FIELDS: dict[str, FieldChain] = {
    "status": FieldChain.of("status", "statusCode", "gameStatus", "event.status"),
    "home_score": FieldChain.of("homeScore", "home.score", "score.home", "teams.home.score"),
    "away_score": FieldChain.of("awayScore", "away.score", "score.away", "teams.away.score"),
}

TEAM_RECORD_FIELDS: dict[str, FieldChain] = {
    "wins": FieldChain.of("overall.wins", "wins", "overallWins", "record.wins"),
    "losses": FieldChain.of("overall.losses", "losses", "overallLosses", "record.losses"),
    "ties": FieldChain.of("overall.ties", "ties", "overallTies", "record.ties"),
    "conference_wins": FieldChain.of("conference.wins", "conferenceWins", "confWins"),
    "conference_losses": FieldChain.of("conference.losses", "conferenceLosses", "confLosses"),
    "conference_ties": FieldChain.of("conference.ties", "conferenceTies", "confTies"),
}

TEAM_STATS_FIELDS: dict[str, FieldChain] = {
    "team_batting_stats": FieldChain.of("hitting", "batting", "stats.hitting", "stats.batting"),
    "team_pitching_stats": FieldChain.of("pitching", "stats.pitching"),
    "team_fielding_stats": FieldChain.of("fielding", "stats.fielding"),
}

PHOTO_FIELDS: dict[str, FieldChain] = {
    "url": FieldChain.of("url", "src", "imageUrl", "original.url", "sizes.large", "href"),
    "kind": FieldChain.of("type", "category", "photoType", "tag", "title"),
}

# Lower index wins.
PHOTO_PRIORITY: tuple[str, ...] = ("headshot", "profile", "roster", "action")

VIDEO_FIELDS: dict[str, FieldChain] = {
    "external_id": FieldChain.of("id", "videoId"),
    "title": FieldChain.of("title", "name"),
    "description": FieldChain.of("description", "caption"),
    "url": FieldChain.of("url", "videoUrl", "link", "src"),
    "thumbnail_url": FieldChain.of("thumbnailUrl", "thumbnail", "thumbnail.url", "poster"),
    "embed_url": FieldChain.of("embedUrl", "embed", "embed_url"),
    "duration": FieldChain.of("duration", "durationSeconds", "length"),
    "video_type": FieldChain.of("type", "videoType", "category"),
    "provider": FieldChain.of("provider", "source", "host"),
    "provider_video_id": FieldChain.of("providerVideoId", "providerId", "externalId"),
    "published_at": FieldChain.of("publishedAt", "publishDate", "date", "createdAt"),
    "view_count": FieldChain.of("viewCount", "views"),
}

RELEASE_FIELDS: dict[str, FieldChain] = {
    "external_id": FieldChain.of("id", "releaseId", "storyId"),
    "title": FieldChain.of("title", "headline"),
    "content": FieldChain.of("content", "body", "text"),
    "summary": FieldChain.of("summary", "teaser", "excerpt"),
    "author": FieldChain.of("author", "byline", "author.name"),
    "publish_date": FieldChain.of("publishDate", "date", "publishedAt", "releaseDate"),
    "category": FieldChain.of("category", "type"),
    "image_url": FieldChain.of("imageUrl", "image.url", "image", "photo.url"),
    "source_url": FieldChain.of("url", "link", "permalink"),
    "player_id": FieldChain.of("playerId", "player.id", "player_id"),
}


# -----------------------------
# Stat tables
# -----------------------------


def stat_chain(group: str, *names: str) -> FieldChain:
    """Accept nested `stats.<group>.<name>`, `<group>.<name>`, then flat names."""
    paths: list[str] = []
    for name in names:
        paths.extend((f"stats.{group}.{name}", f"{group}.{name}"))
    for name in names:
        paths.extend((f"stats.{name}", name))
    return FieldChain(paths=tuple(paths))


# Box-score attribute names (XML or normalized JSON), per sub-object.
GAME_HITTING_FIELDS: dict[str, FieldChain] = {
    "at_bats": FieldChain.of("ab", "atBats"),
    "runs": FieldChain.of("r", "runs"),
    "hits": FieldChain.of("h", "hits"),
    "doubles": FieldChain.of("double", "doubles", "2b"),
    "triples": FieldChain.of("triple", "triples", "3b"),
    "home_runs": FieldChain.of("hr", "homeRuns"),
    "rbi": FieldChain.of("rbi",),
    "walks": FieldChain.of("bb", "walks"),
    "strikeouts_batting": FieldChain.of("so", "k", "strikeouts"),
    "stolen_bases": FieldChain.of("sb", "stolenBases"),
    "caught_stealing": FieldChain.of("cs", "caughtStealing"),
    "hit_by_pitch": FieldChain.of("hbp", "hitByPitch"),
    "sacrifice_flies": FieldChain.of("sf", "sacFlies"),
    "sacrifice_bunts": FieldChain.of("sh", "sac", "sacBunts"),
}

GAME_PITCHING_FIELDS: dict[str, FieldChain] = {
    "innings_pitched": FieldChain.of("ip", "inningsPitched"),
    "hits_allowed": FieldChain.of("h", "hitsAllowed"),
    "runs_allowed": FieldChain.of("r", "runsAllowed"),
    "earned_runs": FieldChain.of("er", "earnedRuns"),
    "walks_allowed": FieldChain.of("bb", "walksAllowed"),
    "strikeouts_pitching": FieldChain.of("so", "k", "strikeoutsPitching"),
    "home_runs_allowed": FieldChain.of("hr", "homeRunsAllowed"),
    "batters_faced": FieldChain.of("bf", "battersFaced"),
    "pitches_thrown": FieldChain.of("pitches", "pc", "pitchCount"),
    "strikes_thrown": FieldChain.of("strikes", "st"),
}

GAME_PITCHING_FLAGS: dict[str, FieldChain] = {
    "win": FieldChain.of("win", "w"),
    "loss": FieldChain.of("loss", "l"),
    "save": FieldChain.of("save", "sv"),
    "hold": FieldChain.of("hold", "hld"),
}

GAME_FIELDING_FIELDS: dict[str, FieldChain] = {
    "putouts": FieldChain.of("po", "putouts"),
    "assists": FieldChain.of("a", "assists"),
    "errors": FieldChain.of("e", "errors"),
}

# Flat JSON stat rows use distinct pitching keys; rename them to the
# box-score attribute names before the pitching table applies.
FLAT_PITCHING_KEYS: dict[str, FieldChain] = {
    "ip": FieldChain.of("ip", "inningsPitched"),
    "h": FieldChain.of("ha", "hitsAllowed"),
    "r": FieldChain.of("ra", "runsAllowed"),
    "er": FieldChain.of("er", "earnedRuns"),
    "bb": FieldChain.of("bbp", "walksAllowed"),
    "so": FieldChain.of("kp", "strikeoutsPitching"),
    "hr": FieldChain.of("hra", "homeRunsAllowed"),
    "bf": FieldChain.of("bf", "battersFaced"),
    "pitches": FieldChain.of("pc", "pitchCount"),
    "strikes": FieldChain.of("st", "strikes"),
    "win": FieldChain.of("w", "win"),
    "loss": FieldChain.of("l", "loss"),
    "save": FieldChain.of("sv", "save"),
    "hold": FieldChain.of("hld", "hold"),
}

SEASON_COUNT_FIELDS: dict[str, FieldChain] = {
    "games_played": stat_chain("hitting", "gp", "g", "gamesPlayed"),
    "games_started": stat_chain("hitting", "gs", "gamesStarted"),
    "at_bats": stat_chain("hitting", "ab", "atBats"),
    "runs": stat_chain("hitting", "r", "runs"),
    "hits": stat_chain("hitting", "h", "hits"),
    "doubles": stat_chain("hitting", "double", "doubles", "2b"),
    "triples": stat_chain("hitting", "triple", "triples", "3b"),
    "home_runs": stat_chain("hitting", "hr", "homeRuns"),
    "rbi": stat_chain("hitting", "rbi"),
    "walks": stat_chain("hitting", "bb", "walks"),
    "strikeouts": stat_chain("hitting", "so", "k", "strikeouts"),
    "stolen_bases": stat_chain("hitting", "sb", "stolenBases"),
    "caught_stealing": stat_chain("hitting", "cs", "caughtStealing"),
    "hit_by_pitch": stat_chain("hitting", "hbp", "hitByPitch"),
    "sacrifice_flies": stat_chain("hitting", "sf", "sacFlies"),
    "sacrifice_bunts": stat_chain("hitting", "sh", "sac", "sacBunts"),
    "pitching_appearances": stat_chain("pitching", "app", "appearances", "gp"),
    "pitching_starts": stat_chain("pitching", "gs", "starts"),
    "pitching_wins": stat_chain("pitching", "w", "win", "wins"),
    "pitching_losses": stat_chain("pitching", "l", "loss", "losses"),
    "saves": stat_chain("pitching", "sv", "save", "saves"),
    "holds": stat_chain("pitching", "hld", "hold", "holds"),
    "hits_allowed": stat_chain("pitching", "h", "ha", "hitsAllowed"),
    "runs_allowed": stat_chain("pitching", "r", "ra", "runsAllowed"),
    "earned_runs": stat_chain("pitching", "er", "earnedRuns"),
    "walks_allowed": stat_chain("pitching", "bb", "bbp", "walksAllowed"),
    "strikeouts_pitching": stat_chain("pitching", "so", "k", "kp", "strikeoutsPitching"),
    "home_runs_allowed": stat_chain("pitching", "hr", "hra", "homeRunsAllowed"),
    "fielding_games": stat_chain("fielding", "g", "gp", "games"),
    "putouts": stat_chain("fielding", "po", "putouts"),
    "assists": stat_chain("fielding", "a", "assists"),
    "errors": stat_chain("fielding", "e", "errors"),
}

SEASON_RATE_FIELDS: dict[str, FieldChain] = {
    "innings_pitched": stat_chain("pitching", "ip", "inningsPitched"),
    "batting_average": stat_chain("hitting", "avg", "battingAverage"),
    "on_base_percentage": stat_chain("hitting", "obp", "obPct", "onBasePercentage"),
    "slugging_percentage": stat_chain("hitting", "slg", "slgPct", "sluggingPercentage"),
    "ops": stat_chain("hitting", "ops"),
    "era": stat_chain("pitching", "era"),
    "whip": stat_chain("pitching", "whip"),
    "fielding_percentage": stat_chain("fielding", "fpct", "fldPct", "fieldingPercentage"),
}

# Rows of team-wide and per-player stat listings.
STAT_PLAYER_ID = FieldChain.of("playerId", "player.id", "player_id", "id")
STAT_PLAYER_NAME = FieldChain.of("name", "player.name", "fullName", "displayName")

SEASON_ID = FieldChain.of("seasonId", "season.id", "season", "year")

SPLITS_CONTAINER = FieldChain.of("splits", "stats.splits", "situational", "stats.situational")

# canonical split key -> provider spellings
SPLIT_KEYS: dict[str, tuple[str, ...]] = {
    "vs_lhp": ("vs_lhp", "vsLHP", "vsLeft", "vsLeftHanded", "vsL"),
    "vs_rhp": ("vs_rhp", "vsRHP", "vsRight", "vsRightHanded", "vsR"),
    "risp": ("risp", "RISP", "runnersInScoringPosition", "scoringPosition"),
    "two_outs": ("two_outs", "twoOuts", "with2Outs", "twoOut"),
    "bases_loaded": ("bases_loaded", "basesLoaded"),
    "bases_empty": ("bases_empty", "basesEmpty"),
    "leadoff": ("leadoff", "leadOff", "leadingOff"),
    "with_runners": ("with_runners", "withRunners", "runnersOn"),
}


def extract_embedded_splits(item: Any) -> dict[str, Any]:
    container = SPLITS_CONTAINER.resolve(item)
    if not isinstance(container, Mapping):
        return {}
    splits: dict[str, Any] = {}
    for canonical, spellings in SPLIT_KEYS.items():
        for key in spellings:
            value = container.get(key)
            if isinstance(value, Mapping) and value:
                splits[canonical] = dict(value)
                break
    return splits
