from __future__ import annotations

import typer

from presto_sync.cli.common import session_scope
from presto_sync.db.enums import SyncStatusEnum, SyncTypeEnum
from presto_sync.db.repos.integration.sync_log_repo import SyncLogRepository

app = typer.Typer(help="Inspect sync history.")


@app.command("history")
def history_cmd(
    team_id: int = typer.Option(..., "--team-id"),
    sync_type: SyncTypeEnum | None = typer.Option(None, "--sync-type"),
    status: SyncStatusEnum | None = typer.Option(None, "--status"),
    limit: int = typer.Option(20, "--limit"),
    offset: int = typer.Option(0, "--offset"),
) -> None:
    """Most recent sync runs first."""
    with session_scope() as session:
        rows, total = SyncLogRepository(session).history(
            team_id, sync_type=sync_type, status=status, limit=limit, offset=offset
        )
        for log in rows:
            typer.echo(
                "\t".join(
                    [
                        str(log.id),
                        log.started_at.isoformat(),
                        str(log.sync_type),
                        str(log.status),
                        f"created={log.items_created}",
                        f"updated={log.items_updated}",
                        f"skipped={log.items_skipped}",
                        f"failed={log.items_failed}",
                        log.error_message or "",
                    ]
                )
            )
    typer.echo(f"{len(rows)} of {total} runs")
