from __future__ import annotations

import typer

from presto_sync.cli.common import provider_scope, session_scope
from presto_sync.core.crypto import default_cipher
from presto_sync.ingestion.providers.presto.credentials import (
    configure_presto_credentials,
    disconnect_presto,
    list_presto_seasons,
    list_presto_teams,
    test_presto_connection,
    update_presto_settings,
)

app = typer.Typer(help="Manage a team's PrestoSports connection.")

TEAM_ID = typer.Option(..., "--team-id", help="Local team id.")


@app.command("configure")
def configure_cmd(
    team_id: int = TEAM_ID,
    username: str = typer.Option(..., "--username"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
    presto_team_id: str | None = typer.Option(None, "--presto-team-id"),
    presto_season_id: str | None = typer.Option(None, "--presto-season-id"),
) -> None:
    """Store encrypted credentials (and optionally provider ids) for a team."""
    with session_scope() as session:
        configure_presto_credentials(
            session,
            team_id=team_id,
            username=username,
            password=password,
            cipher=default_cipher(),
            presto_team_id=presto_team_id,
            presto_season_id=presto_season_id,
        )
    typer.echo(f"Configured PrestoSports for team {team_id}")


@app.command("settings")
def settings_cmd(
    team_id: int = TEAM_ID,
    presto_team_id: str | None = typer.Option(None, "--presto-team-id"),
    presto_season_id: str | None = typer.Option(None, "--presto-season-id"),
) -> None:
    with session_scope() as session:
        team = update_presto_settings(
            session,
            team_id=team_id,
            presto_team_id=presto_team_id,
            presto_season_id=presto_season_id,
        )
        typer.echo(
            f"team {team_id}: presto_team_id={team.presto_team_id} "
            f"presto_season_id={team.presto_season_id}"
        )


@app.command("disconnect")
def disconnect_cmd(team_id: int = TEAM_ID) -> None:
    with session_scope() as session:
        removed = disconnect_presto(session, team_id=team_id)
    typer.echo("Disconnected" if removed else "No PrestoSports credential to remove")


@app.command("test")
def test_cmd(team_id: int = TEAM_ID) -> None:
    """Authenticate with the stored credentials."""
    with session_scope() as session, provider_scope(session) as provider:
        result = test_presto_connection(
            session, team_id=team_id, api=provider.api, tokens=provider.tokens
        )
    typer.echo(f"{'OK' if result.ok else 'FAILED'}: {result.message}")
    if not result.ok:
        raise typer.Exit(code=1)


@app.command("seasons")
def seasons_cmd(team_id: int = TEAM_ID) -> None:
    with session_scope() as session, provider_scope(session) as provider:
        seasons = list_presto_seasons(
            session, team_id=team_id, api=provider.api, tokens=provider.tokens
        )
    for season in seasons:
        typer.echo(f"{season.get('seasonId') or season.get('id')}\t{season.get('name', '')}")


@app.command("teams")
def teams_cmd(
    team_id: int = TEAM_ID,
    season_id: str | None = typer.Option(None, "--season-id"),
) -> None:
    with session_scope() as session, provider_scope(session) as provider:
        teams = list_presto_teams(
            session,
            team_id=team_id,
            api=provider.api,
            tokens=provider.tokens,
            season_id=season_id,
        )
    for team in teams:
        typer.echo(f"{team.get('teamId') or team.get('id')}\t{team.get('name', '')}")
