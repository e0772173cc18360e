from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.core.text import name_contains
from presto_sync.db.enums import HomeAwayEnum, SourceSystemEnum, SyncTypeEnum
from presto_sync.db.models.core.team import Team
from presto_sync.db.repos.core.game_repo import GameRepository
from presto_sync.ingestion.dates import is_tba, parse_event_date, parse_event_time, utcnow
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, as_items
from presto_sync.ingestion.providers.presto.mapping import (
    AWAY_SCORE,
    EVENT_FIELDS,
    HOME_SCORE,
    OPPONENT_SCORE,
    TEAM_REF_FIELDS,
    TEAM_SCORE,
    FieldChain,
    determine_result,
    format_game_summary,
    map_event_status,
    resolve_all,
    to_flag,
    to_int,
    to_str,
)

from .common import (
    Outcome,
    SyncResult,
    outcome_of,
    process_items,
    resolve_presto_config,
    sync_run,
)

ApiItem = dict[str, Any]


def _first_score(source: Any, *chains: FieldChain) -> int | None:
    for chain in chains:
        value = to_int(chain.resolve(source), default=None)
        if value is not None:
            return value
    return None


def _record_text(value: Any) -> str | None:
    """"12-4" as given, or built from {"wins", "losses", "ties"}."""
    if isinstance(value, Mapping):
        wins, losses = to_int(value.get("wins"), None), to_int(value.get("losses"), None)
        if wins is None or losses is None:
            return None
        ties = to_int(value.get("ties"), 0) or 0
        return f"{wins}-{losses}" + (f"-{ties}" if ties else "")
    return to_str(value, max_len=20)


def resolve_sides(
    raw: Mapping[str, Any], *, team: Team, presto_team_id: str
) -> tuple[bool, str, str | None]:
    """Return (is_home, opponent name, provider home team id) for an event."""
    home, away = raw["home_team"], raw["away_team"]
    if isinstance(home, Mapping) and isinstance(away, Mapping):
        home_ref = resolve_all(home, TEAM_REF_FIELDS)
        away_ref = resolve_all(away, TEAM_REF_FIELDS)
        home_id, away_id = to_str(home_ref["id"]), to_str(away_ref["id"])

        if home_id == presto_team_id:
            is_home = True
        elif away_id == presto_team_id:
            is_home = False
        else:
            is_home = name_contains(to_str(home_ref["name"]), team.name)

        opponent_ref = away_ref if is_home else home_ref
        opponent = to_str(opponent_ref["name"], max_len=200) or "TBD"
        return is_home, opponent, home_id

    opponent = to_str(raw["opponent"], max_len=200) or "TBD"
    is_home = str(raw["home_away"] or "").strip().lower() == "home"
    return is_home, opponent, presto_team_id if is_home else None


def map_event(
    item: ApiItem, *, team: Team, presto_team_id: str, now: datetime
) -> tuple[str, dict[str, Any]]:
    """Map a schedule event to (external_id, Game column values)."""
    raw = resolve_all(item, EVENT_FIELDS)

    external_id = to_str(raw["external_id"])
    if external_id is None:
        raise ProviderMappingError("Event has no id", context={"keys": sorted(item)})

    is_home, opponent, home_team_id = resolve_sides(raw, team=team, presto_team_id=presto_team_id)
    home_away = HomeAwayEnum.HOME if is_home else HomeAwayEnum.AWAY
    if to_flag(raw["neutral"]):
        home_away = HomeAwayEnum.NEUTRAL

    score_source = raw["score"] if isinstance(raw["score"], Mapping) else item
    if is_home:
        team_score = _first_score(score_source, HOME_SCORE, TEAM_SCORE)
        opponent_score = _first_score(score_source, AWAY_SCORE, OPPONENT_SCORE)
    else:
        team_score = _first_score(score_source, AWAY_SCORE, TEAM_SCORE)
        opponent_score = _first_score(score_source, HOME_SCORE, OPPONENT_SCORE)
    result = determine_result(team_score, opponent_score)

    if to_flag(item.get("tba")) or is_tba(raw["date"]):
        game_date, game_time = None, None
    else:
        try:
            game_date = parse_event_date(raw["date"])
        except ValueError as e:
            raise ProviderMappingError(
                "Unparseable event date", context={"event_id": external_id, "date": raw["date"]}
            ) from e
        game_time = parse_event_time(raw["time"], date_value=raw["date"])

    team_stats = raw["team_stats"] if isinstance(raw["team_stats"], Mapping) else None
    opponent_stats = raw["opponent_stats"] if isinstance(raw["opponent_stats"], Mapping) else None

    values: dict[str, Any] = {
        "opponent": opponent,
        "game_date": game_date,
        "game_time": game_time,
        "home_away": home_away,
        "team_score": team_score,
        "opponent_score": opponent_score,
        "result": result,
        "game_status": map_event_status(raw["status"]),
        "location": to_str(
            raw["location"] if not isinstance(raw["location"], Mapping) else None, max_len=200
        ),
        "season": to_str(raw["season"], max_len=50) or team.presto_season_id,
        "game_summary": format_game_summary(result, team_score, opponent_score),
        "running_record": _record_text(raw["running_record"]),
        "running_conference_record": _record_text(raw["running_conference_record"]),
        "team_stats": dict(team_stats) if team_stats else None,
        "opponent_stats": dict(opponent_stats) if opponent_stats else None,
        "presto_home_team_id": home_team_id,
        "source_system": SourceSystemEnum.PRESTO,
        "last_synced_at": now,
    }
    return external_id, values


def describe_event(item: ApiItem) -> tuple[str | None, str | None]:
    raw = resolve_all(item, EVENT_FIELDS)
    opponent = raw["opponent"] if not isinstance(raw["opponent"], Mapping) else None
    return to_str(raw["external_id"]), to_str(opponent)


def sync_schedule(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    """Upsert the team's games from `/teams/{id}/events`."""
    cfg = resolve_presto_config(
        session, team_id=team_id, sync_type=SyncTypeEnum.SCHEDULE, user_id=user_id
    )
    presto_team_id = cfg.presto_team_id

    with sync_run(
        session,
        team=cfg.team,
        sync_type=SyncTypeEnum.SCHEDULE,
        user_id=user_id,
        endpoint=f"/teams/{presto_team_id}/events",
        params={"team_id": presto_team_id},
    ) as run:
        payload = tokens.call(team_id, lambda token: api.get_team_events(token, presto_team_id))
        events = as_items(payload)
        repo = GameRepository(session)
        now = utcnow()

        def apply(item: ApiItem, _: Any) -> Outcome:
            external_id, values = map_event(
                item, team=cfg.team, presto_team_id=presto_team_id, now=now
            )
            _, created = repo.upsert_by_external_id(
                team_id, external_id, values, on_create={"created_by": user_id}
            )
            return outcome_of(created)

        process_items(
            session,
            events,
            result=run.result,
            entity_type="game",
            describe=describe_event,
            apply=apply,
        )
        run.result.summary = {"events_seen": len(events)}

    return run.result
