from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from sqlalchemy.orm import Session

from presto_sync.core.config import settings
from presto_sync.db import DatabaseConfig, create_db_engine, create_session_factory
from presto_sync.ingestion.providers.presto.provider import PrestoProvider, build_presto_provider
from presto_sync.ingestion.providers.presto.sync.common import SyncResult


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Context-managed DB session for CLI commands.
    Ensures proper close and rolls back on exception.
    """
    engine = create_db_engine(
        DatabaseConfig(database_url=settings.database_url, echo=settings.db_echo)
    )
    SessionLocal = create_session_factory(engine)
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def provider_scope(session: Session) -> Iterator[PrestoProvider]:
    provider = build_presto_provider(session)
    try:
        yield provider
    finally:
        provider.close()


def echo_result(label: str, result: SyncResult) -> None:
    typer.echo(
        " ".join(
            [
                f"{label}:",
                f"created={result.created}",
                f"updated={result.updated}",
                f"skipped={result.skipped}",
                f"failed={result.failed}",
            ]
        )
    )
    for error in result.errors:
        typer.echo(f"  ! {error.entity_type} {error.item_id} ({error.name}): {error.error}")
