from __future__ import annotations

import typer

from presto_sync.cli.credentials import app as credentials_app
from presto_sync.cli.logs import app as logs_app
from presto_sync.cli.sync import app as sync_app
from presto_sync.cli.teams import app as teams_app
from presto_sync.core.logging import configure_logging

app = typer.Typer(no_args_is_help=True)
app.add_typer(teams_app, name="teams")
app.add_typer(credentials_app, name="credentials")
app.add_typer(sync_app, name="sync")
app.add_typer(logs_app, name="logs")


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Overrides LOG_LEVEL."),
) -> None:
    configure_logging(log_level)
