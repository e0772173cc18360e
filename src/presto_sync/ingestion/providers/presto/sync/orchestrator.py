from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.core.sanitize import sanitize_error
from presto_sync.db.enums import ProviderEnum, SyncTypeEnum
from presto_sync.db.repos.core.team_repo import TeamRepository
from presto_sync.db.repos.integration.sync_log_repo import SyncLogRepository
from presto_sync.ingestion.providers.base.errors import (
    NotConfiguredError,
    SyncAlreadyRunningError,
)
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient

from .career_stats import sync_career_stats, sync_historical_stats
from .common import SyncResult
from .game_stats import sync_stats
from .live_stats import sync_live_stats
from .media import sync_player_photos, sync_player_videos
from .player_details import sync_player_details
from .press_releases import sync_press_releases
from .roster import sync_roster
from .schedule import sync_schedule
from .season_stats import sync_season_stats
from .team_record import sync_team_record

logger = logging.getLogger(__name__)

SyncFunction = Callable[..., SyncResult]

STEP_FUNCTIONS: dict[str, SyncFunction] = {
    "roster": sync_roster,
    "player_details": sync_player_details,
    "schedule": sync_schedule,
    "team_record": sync_team_record,
    "stats": sync_stats,
    "season_stats": sync_season_stats,
    "historical_stats": sync_historical_stats,
    "career_stats": sync_career_stats,
    "player_photos": sync_player_photos,
    "player_videos": sync_player_videos,
    "press_releases": sync_press_releases,
    "live_stats": sync_live_stats,
}

# Roster first: every later step keys off synced players and games.
DEFAULT_STEPS: tuple[str, ...] = (
    "roster",
    "player_details",
    "schedule",
    "team_record",
    "stats",
    "season_stats",
    "historical_stats",
    "career_stats",
    "player_photos",
    "player_videos",
    "press_releases",
)


class TeamSyncGuard:
    """Process-local guard: at most one sync per team at a time.

    Not a distributed lock; separate processes do not see each other.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running: set[int] = set()

    def is_running(self, team_id: int) -> bool:
        with self._lock:
            return team_id in self._running

    @contextmanager
    def hold(self, team_id: int) -> Iterator[None]:
        with self._lock:
            if team_id in self._running:
                raise SyncAlreadyRunningError(f"A sync is already running for team {team_id}")
            self._running.add(team_id)
        try:
            yield
        finally:
            with self._lock:
                self._running.discard(team_id)


default_guard = TeamSyncGuard()


@dataclass(frozen=True)
class FullSyncResult:
    results: dict[str, SyncResult]
    errors: list[dict[str, str]]
    created: int
    updated: int
    skipped: int
    failed: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "results": {name: r.as_dict() for name, r in self.results.items()},
            "errors": list(self.errors),
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
        }


def run_step(
    session: Session,
    name: str,
    *,
    team_id: int,
    user_id: int | None,
    api: PrestoApiClient,
    tokens: TokenManager,
) -> SyncResult:
    try:
        fn = STEP_FUNCTIONS[name]
    except KeyError:
        raise ValueError(f"Unknown sync step: {name!r}") from None
    return fn(session, team_id=team_id, user_id=user_id, api=api, tokens=tokens)


def sync_all(
    session: Session,
    *,
    team_id: int,
    user_id: int | None = None,
    api: PrestoApiClient,
    tokens: TokenManager,
    steps: Sequence[str] = DEFAULT_STEPS,
    guard: TeamSyncGuard = default_guard,
) -> FullSyncResult:
    """Run each step in order; a failing step is recorded and the next one runs."""
    unknown = [name for name in steps if name not in STEP_FUNCTIONS]
    if unknown:
        raise ValueError(f"Unknown sync steps: {', '.join(unknown)}")

    if TeamRepository(session).get(team_id) is None:
        raise NotConfiguredError(f"Team {team_id} does not exist")

    with guard.hold(team_id):
        logs = SyncLogRepository(session)
        log = logs.start(
            team_id=team_id,
            sync_type=SyncTypeEnum.FULL,
            initiated_by=user_id,
            params={"steps": list(steps)},
        )
        session.commit()

        results: dict[str, SyncResult] = {}
        errors: list[dict[str, str]] = []
        for name in steps:
            try:
                results[name] = run_step(
                    session, name, team_id=team_id, user_id=user_id, api=api, tokens=tokens
                )
            except Exception as e:
                session.rollback()
                message = sanitize_error(e) or e.__class__.__name__
                logger.error("Full sync step %s failed for team %s: %s", name, team_id, message)
                errors.append({"type": name, "error": message})

        created = sum(r.created for r in results.values())
        updated = sum(r.updated for r in results.values())
        skipped = sum(r.skipped for r in results.values())
        failed = sum(r.failed for r in results.values()) + len(errors)

        item_errors = [
            {"type": name, **err.as_dict()} for name, r in results.items() for err in r.errors
        ]
        logs.complete(
            log,
            created=created,
            updated=updated,
            skipped=skipped,
            failed=failed,
            summary={
                "steps": {
                    name: {"created": r.created, "updated": r.updated, "failed": r.failed}
                    for name, r in results.items()
                },
                "step_errors": errors,
            },
            item_errors=item_errors,
        )
        session.commit()

    logger.info(
        "Full sync for team %s: created=%d updated=%d skipped=%d failed=%d (%d step errors)",
        team_id,
        created,
        updated,
        skipped,
        failed,
        len(errors),
    )
    return FullSyncResult(
        results=results,
        errors=errors,
        created=created,
        updated=updated,
        skipped=skipped,
        failed=failed,
    )


@dataclass
class ActiveTeamsReport:
    results: dict[int, Any] = field(default_factory=dict)
    failures: dict[int, str] = field(default_factory=dict)


def _for_active_teams(
    session: Session, run: Callable[[int], Any], *, label: str
) -> ActiveTeamsReport:
    report = ActiveTeamsReport()
    team_ids = [t.id for t in TeamRepository(session).with_active_credentials(ProviderEnum.PRESTO)]
    logger.info("%s for %d active teams", label, len(team_ids))
    for team_id in team_ids:
        try:
            report.results[team_id] = run(team_id)
        except Exception as e:
            session.rollback()
            message = sanitize_error(e) or e.__class__.__name__
            logger.error("%s failed for team %s: %s", label, team_id, message)
            report.failures[team_id] = message
    return report


def sync_active_teams(
    session: Session,
    *,
    api: PrestoApiClient,
    tokens: TokenManager,
    steps: Sequence[str] = DEFAULT_STEPS,
    guard: TeamSyncGuard = default_guard,
) -> ActiveTeamsReport:
    """Full sync for every team with an active PrestoSports credential."""
    return _for_active_teams(
        session,
        lambda team_id: sync_all(
            session, team_id=team_id, api=api, tokens=tokens, steps=steps, guard=guard
        ),
        label="Full sync",
    )


def sync_live_for_active_teams(
    session: Session,
    *,
    api: PrestoApiClient,
    tokens: TokenManager,
    guard: TeamSyncGuard = default_guard,
) -> ActiveTeamsReport:
    """Live stats for every team with an active PrestoSports credential."""

    def run(team_id: int) -> SyncResult:
        with guard.hold(team_id):
            return sync_live_stats(session, team_id=team_id, api=api, tokens=tokens)

    return _for_active_teams(session, run, label="Live stats sync")
