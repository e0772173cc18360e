from __future__ import annotations

import typer

from presto_sync.cli.common import session_scope
from presto_sync.db.models.core.team import Team
from presto_sync.db.repos.core.team_repo import TeamRepository

app = typer.Typer(help="Local teams.")


@app.command("add")
def add_team_cmd(
    name: str = typer.Option(..., "--name"),
    school: str | None = typer.Option(None, "--school"),
    presto_team_id: str | None = typer.Option(None, "--presto-team-id"),
    presto_season_id: str | None = typer.Option(None, "--presto-season-id"),
) -> None:
    with session_scope() as session:
        team = TeamRepository(session).add(
            Team(
                name=name,
                school=school,
                presto_team_id=presto_team_id,
                presto_season_id=presto_season_id,
            )
        )
        typer.echo(f"Created team {team.id}: {team.name}")


@app.command("list")
def list_teams_cmd() -> None:
    with session_scope() as session:
        for team in TeamRepository(session).all_where():
            typer.echo(
                "\t".join(
                    [
                        str(team.id),
                        team.name,
                        team.presto_team_id or "-",
                        team.presto_season_id or "-",
                        team.record,
                    ]
                )
            )
