from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from presto_sync.core.sanitize import sanitize_error
from presto_sync.db.enums import ProviderEnum, SyncTypeEnum
from presto_sync.db.models.core.team import Team
from presto_sync.db.models.integration.sync_log import SyncLog
from presto_sync.db.repos.core.team_repo import TeamRepository
from presto_sync.db.repos.integration.integration_credential_repo import (
    IntegrationCredentialRepository,
)
from presto_sync.db.repos.integration.sync_log_repo import SyncLogRepository
from presto_sync.ingestion.dates import utcnow
from presto_sync.ingestion.providers.base.errors import (
    AuthenticationFailedError,
    NotConfiguredError,
    ProviderBotChallenge,
    ProviderNotFound,
    ProviderRateLimited,
)

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

# Failures that make every remaining item pointless; they end the run.
ABORTS_BATCH: tuple[type[BaseException], ...] = (
    NotConfiguredError,
    AuthenticationFailedError,
    ProviderRateLimited,
    ProviderBotChallenge,
)


class Outcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


def outcome_of(created: bool) -> Outcome:
    return Outcome.CREATED if created else Outcome.UPDATED


@dataclass(frozen=True)
class ItemError:
    item_id: str | None
    entity_type: str
    name: str | None
    error: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "entity_type": self.entity_type,
            "name": self.name,
            "error": self.error,
        }


@dataclass
class SyncResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[ItemError] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def count(self, outcome: Outcome) -> None:
        if outcome is Outcome.CREATED:
            self.created += 1
        elif outcome is Outcome.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1

    def merge(self, other: SyncResult) -> None:
        self.created += other.created
        self.updated += other.updated
        self.skipped += other.skipped
        self.errors.extend(other.errors)

    def as_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": [e.as_dict() for e in self.errors],
            "summary": dict(self.summary),
        }


@dataclass(frozen=True)
class PrestoConfig:
    team: Team
    presto_team_id: str
    presto_season_id: str | None


def resolve_presto_config(
    session: Session,
    *,
    team_id: int,
    sync_type: SyncTypeEnum,
    user_id: int | None = None,
    require_season: bool = False,
) -> PrestoConfig:
    """Provider ids for a team, from the team row or the credential config.

    Raises NotConfiguredError when they are missing; a failed SyncLog row is
    written first whenever the team exists.
    """
    team = TeamRepository(session).get(team_id)
    if team is None:
        raise NotConfiguredError(f"Team {team_id} does not exist")

    presto_team_id = team.presto_team_id
    presto_season_id = team.presto_season_id
    if not presto_team_id or not presto_season_id:
        credential = IntegrationCredentialRepository(session).find_for_team(
            team_id, ProviderEnum.PRESTO
        )
        config = (credential.config or {}) if credential is not None else {}
        presto_team_id = presto_team_id or _as_id(config.get("team_id"))
        presto_season_id = presto_season_id or _as_id(config.get("season_id"))

    missing = []
    if not presto_team_id:
        missing.append("team id")
    if require_season and not presto_season_id:
        missing.append("season id")
    if missing:
        error = NotConfiguredError(
            f"PrestoSports {' and '.join(missing)} not configured for team {team_id}"
        )
        logs = SyncLogRepository(session)
        log = logs.start(team_id=team_id, sync_type=sync_type, initiated_by=user_id)
        logs.fail(log, error)
        session.commit()
        raise error

    assert presto_team_id is not None
    return PrestoConfig(team=team, presto_team_id=presto_team_id, presto_season_id=presto_season_id)


def _as_id(value: Any) -> str | None:
    if value in (None, ""):
        return None
    return str(value)


@dataclass
class SyncRun:
    log: SyncLog
    result: SyncResult


@contextmanager
def sync_run(
    session: Session,
    *,
    team: Team,
    sync_type: SyncTypeEnum,
    user_id: int | None = None,
    endpoint: str | None = None,
    params: dict[str, Any] | None = None,
) -> Iterator[SyncRun]:
    """SyncLog bookkeeping around one synchronizer invocation.

    The STARTED row is committed before any upstream call. On success the team's
    `last_synced_at` is bumped and the row completed; on any exception pending
    work is rolled back, the row marked FAILED, and the exception re-raised.
    """
    logs = SyncLogRepository(session)
    log = logs.start(
        team_id=team.id,
        sync_type=sync_type,
        initiated_by=user_id,
        endpoint=endpoint,
        params=params,
    )
    session.commit()

    run = SyncRun(log=log, result=SyncResult())
    try:
        yield run
    except Exception as e:
        session.rollback()
        logs.fail(log, e, item_errors=[err.as_dict() for err in run.result.errors])
        session.commit()
        logger.error("%s sync failed for team %s: %s", sync_type, team.id, sanitize_error(e))
        raise

    result = run.result
    team.last_synced_at = utcnow()
    logs.complete(
        log,
        created=result.created,
        updated=result.updated,
        skipped=result.skipped,
        failed=result.failed,
        summary=result.summary or None,
        item_errors=[err.as_dict() for err in result.errors],
    )
    session.commit()
    logger.info(
        "%s sync for team %s: created=%d updated=%d skipped=%d failed=%d",
        sync_type,
        team.id,
        result.created,
        result.updated,
        result.skipped,
        result.failed,
    )


def process_items(
    session: Session,
    items: Iterable[ItemT],
    *,
    result: SyncResult,
    entity_type: str,
    describe: Callable[[ItemT], tuple[str | None, str | None]],
    apply: Callable[[ItemT, Any], Outcome],
    fetch: Callable[[ItemT], Any] | None = None,
) -> SyncResult:
    """Fold `items` into `result`, one SAVEPOINT per item.

    `fetch` (upstream calls) runs outside the savepoint; a 404 there counts as
    a skip. `apply` (database writes) runs inside it. Any other exception
    becomes an ItemError and the fold moves on, except ABORTS_BATCH failures.
    """
    pairs: Iterable[tuple[ItemT, Any]]
    if fetch is not None:
        pairs = for_each_fetched(
            items, result=result, entity_type=entity_type, describe=describe, fetch=fetch
        )
    else:
        pairs = ((item, None) for item in items)

    for item, payload in pairs:
        item_id, name = describe(item)
        try:
            with session.begin_nested():
                outcome = apply(item, payload)
        except ABORTS_BATCH:
            raise
        except Exception as e:
            _record(result, item_id, entity_type, name, e)
            continue

        result.count(outcome)

    return result


def _record(
    result: SyncResult,
    item_id: str | None,
    entity_type: str,
    name: str | None,
    exc: BaseException,
) -> None:
    message = sanitize_error(exc) or exc.__class__.__name__
    logger.warning("Failed to sync %s %s (%s): %s", entity_type, item_id, name, message)
    result.errors.append(
        ItemError(item_id=item_id, entity_type=entity_type, name=name, error=message)
    )


def record_error(
    result: SyncResult,
    *,
    item_id: str | None,
    entity_type: str,
    name: str | None,
    exc: BaseException,
) -> None:
    _record(result, item_id, entity_type, name, exc)


def for_each_fetched(
    items: Iterable[ItemT],
    *,
    result: SyncResult,
    entity_type: str,
    describe: Callable[[ItemT], tuple[str | None, str | None]],
    fetch: Callable[[ItemT], Any],
) -> Iterator[tuple[ItemT, Any]]:
    """Yield (item, payload) for each item whose upstream fetch succeeded.

    404s count as skips; other failures become ItemErrors, except ABORTS_BATCH.
    """
    for item in items:
        try:
            payload = fetch(item)
        except ProviderNotFound:
            result.skipped += 1
            continue
        except ABORTS_BATCH:
            raise
        except Exception as e:
            item_id, name = describe(item)
            _record(result, item_id, entity_type, name, e)
            continue
        yield item, payload
