from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from presto_sync.core.sanitize import sanitize_endpoint, sanitize_error, sanitize_params
from presto_sync.db.enums import SourceSystemEnum, SyncStatusEnum, SyncTypeEnum
from presto_sync.db.models.integration.sync_log import SyncLog
from presto_sync.db.repos.base import BaseRepository
from presto_sync.ingestion.dates import ensure_utc, utcnow

SUCCESS_STATUSES = (SyncStatusEnum.COMPLETED, SyncStatusEnum.PARTIAL)


class SyncLogFinalizedError(RuntimeError):
    """Attempted to finalize a SyncLog row that is no longer STARTED."""


def status_for_counts(*, created: int, updated: int, failed: int) -> SyncStatusEnum:
    if failed > 0 and (created > 0 or updated > 0):
        return SyncStatusEnum.PARTIAL
    if failed > 0:
        return SyncStatusEnum.FAILED
    return SyncStatusEnum.COMPLETED


class SyncLogRepository(BaseRepository[SyncLog]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=SyncLog)

    def start(
        self,
        *,
        team_id: int,
        sync_type: SyncTypeEnum,
        initiated_by: int | None = None,
        endpoint: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> SyncLog:
        return self.add(
            SyncLog(
                team_id=team_id,
                sync_type=sync_type,
                source_system=SourceSystemEnum.PRESTO,
                api_endpoint=sanitize_endpoint(endpoint),
                status=SyncStatusEnum.STARTED,
                initiated_by=initiated_by,
                started_at=utcnow(),
                request_params=sanitize_params(params),
            )
        )

    def complete(
        self,
        log: SyncLog,
        *,
        created: int = 0,
        updated: int = 0,
        skipped: int = 0,
        failed: int = 0,
        summary: Mapping[str, Any] | None = None,
        item_errors: Sequence[Mapping[str, Any]] | None = None,
    ) -> SyncLog:
        self._ensure_open(log)
        completed_at = utcnow()
        log.status = status_for_counts(created=created, updated=updated, failed=failed)
        log.completed_at = completed_at
        log.duration_ms = _duration_ms(log.started_at, completed_at)
        log.items_created = created
        log.items_updated = updated
        log.items_skipped = skipped
        log.items_failed = failed
        log.response_summary = dict(summary) if summary else None
        log.item_errors = _sanitize_item_errors(item_errors)
        self.session.flush()
        return log

    def fail(
        self,
        log: SyncLog,
        error: BaseException | str,
        *,
        item_errors: Sequence[Mapping[str, Any]] | None = None,
    ) -> SyncLog:
        self._ensure_open(log)
        completed_at = utcnow()
        log.status = SyncStatusEnum.FAILED
        log.completed_at = completed_at
        log.duration_ms = _duration_ms(log.started_at, completed_at)
        log.error_message = sanitize_error(error)
        log.item_errors = _sanitize_item_errors(item_errors)
        self.session.flush()
        return log

    def history(
        self,
        team_id: int,
        *,
        sync_type: SyncTypeEnum | None = None,
        status: SyncStatusEnum | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[SyncLog], int]:
        predicates = [SyncLog.team_id == team_id]
        if sync_type is not None:
            predicates.append(SyncLog.sync_type == sync_type)
        if status is not None:
            predicates.append(SyncLog.status == status)

        rows_stmt = (
            select(SyncLog)
            .where(*predicates)
            .order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(SyncLog).where(*predicates)
        rows = list(self.session.execute(rows_stmt).scalars().all())
        total = int(self.session.execute(count_stmt).scalar_one())
        return rows, total

    def last_successful(self, team_id: int, sync_type: SyncTypeEnum) -> SyncLog | None:
        stmt = (
            select(SyncLog)
            .where(
                SyncLog.team_id == team_id,
                SyncLog.sync_type == sync_type,
                SyncLog.status.in_(SUCCESS_STATUSES),
            )
            .order_by(SyncLog.completed_at.desc(), SyncLog.id.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    @staticmethod
    def _ensure_open(log: SyncLog) -> None:
        if log.status != SyncStatusEnum.STARTED:
            raise SyncLogFinalizedError(
                f"SyncLog {log.id} already finalized with status {log.status}"
            )


def _duration_ms(started_at: datetime, completed_at: datetime) -> int:
    started = ensure_utc(started_at)
    assert started is not None
    return max(0, int((completed_at - started).total_seconds() * 1000))


def _sanitize_item_errors(
    item_errors: Sequence[Mapping[str, Any]] | None,
) -> list[dict[str, Any]] | None:
    if not item_errors:
        return None
    return [{**e, "error": sanitize_error(e.get("error"))} for e in item_errors]
