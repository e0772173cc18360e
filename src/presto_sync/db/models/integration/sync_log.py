from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from presto_sync.db.base import Base, JsonType, TimestampMixin, enum_type
from presto_sync.db.enums import SourceSystemEnum, SyncStatusEnum, SyncTypeEnum


class SyncLog(Base, TimestampMixin):
    """Audit row for one sync invocation.

    Written with status STARTED before any upstream call and finalized exactly
    once (COMPLETED, PARTIAL or FAILED).
    """

    __tablename__ = "sync_logs"

    id: Mapped[int] = mapped_column(primary_key=True)

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    sync_type: Mapped[SyncTypeEnum] = mapped_column(
        enum_type(SyncTypeEnum, "sync_type_enum"), nullable=False
    )
    source_system: Mapped[SourceSystemEnum] = mapped_column(
        enum_type(SourceSystemEnum, "source_system_enum"),
        nullable=False,
        default=SourceSystemEnum.PRESTO,
    )
    api_endpoint: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[SyncStatusEnum] = mapped_column(
        enum_type(SyncStatusEnum, "sync_status_enum"),
        nullable=False,
        default=SyncStatusEnum.STARTED,
    )
    # User id from the calling layer; None for scheduled runs.
    initiated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    request_params: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)

    items_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_updated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_skipped: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    response_summary: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    item_errors: Mapped[list[dict[str, Any]] | None] = mapped_column(JsonType, nullable=True)

    __table_args__ = (
        Index("ix_sync_logs_team_type_started", "team_id", "sync_type", "started_at"),
        Index("ix_sync_logs_status", "status"),
    )
