from __future__ import annotations

import typer

from presto_sync.cli.common import echo_result, provider_scope, session_scope
from presto_sync.ingestion.providers.presto.sync.orchestrator import (
    default_guard,
    run_step,
    sync_active_teams,
    sync_all,
    sync_live_for_active_teams,
)

app = typer.Typer(help="Pull PrestoSports data into the local DB.")

TEAM_ID = typer.Option(..., "--team-id", help="Local team id.")
USER_ID = typer.Option(None, "--user-id", help="User recorded as the initiator.")


def _run(step: str, team_id: int, user_id: int | None) -> None:
    with session_scope() as session, provider_scope(session) as provider:
        with default_guard.hold(team_id):
            result = run_step(
                session,
                step,
                team_id=team_id,
                user_id=user_id,
                api=provider.api,
                tokens=provider.tokens,
            )
    echo_result(f"Synced {step} for team {team_id}", result)


@app.command("roster")
def sync_roster_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    """Upsert players from the team roster."""
    _run("roster", team_id, user_id)


@app.command("schedule")
def sync_schedule_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    """Upsert games from the team schedule."""
    _run("schedule", team_id, user_id)


@app.command("stats")
def sync_stats_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    """Upsert per-game box scores for completed games."""
    _run("stats", team_id, user_id)


@app.command("team-record")
def sync_team_record_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    _run("team_record", team_id, user_id)


@app.command("season-stats")
def sync_season_stats_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    _run("season_stats", team_id, user_id)


@app.command("historical-stats")
def sync_historical_stats_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    _run("historical_stats", team_id, user_id)


@app.command("career-stats")
def sync_career_stats_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    _run("career_stats", team_id, user_id)


@app.command("player-details")
def sync_player_details_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    _run("player_details", team_id, user_id)


@app.command("photos")
def sync_photos_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    _run("player_photos", team_id, user_id)


@app.command("videos")
def sync_videos_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    _run("player_videos", team_id, user_id)


@app.command("press-releases")
def sync_press_releases_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    _run("press_releases", team_id, user_id)


@app.command("live-stats")
def sync_live_stats_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    """Refresh scores and box scores for today's unfinished games."""
    _run("live_stats", team_id, user_id)


@app.command("all")
def sync_all_cmd(team_id: int = TEAM_ID, user_id: int | None = USER_ID) -> None:
    """Run every sync step in order; failing steps are reported, not fatal."""
    with session_scope() as session, provider_scope(session) as provider:
        result = sync_all(
            session,
            team_id=team_id,
            user_id=user_id,
            api=provider.api,
            tokens=provider.tokens,
        )

    for name, step in result.results.items():
        echo_result(f"  {name}", step)
    for error in result.errors:
        typer.echo(f"  ! step {error['type']} failed: {error['error']}")
    typer.echo(
        " ".join(
            [
                f"Full sync for team {team_id}:",
                f"created={result.created}",
                f"updated={result.updated}",
                f"skipped={result.skipped}",
                f"failed={result.failed}",
            ]
        )
    )


@app.command("active-teams")
def sync_active_teams_cmd() -> None:
    """Full sync for every team with an active PrestoSports credential."""
    with session_scope() as session, provider_scope(session) as provider:
        report = sync_active_teams(session, api=provider.api, tokens=provider.tokens)

    for team_id, result in report.results.items():
        typer.echo(
            f"team {team_id}: created={result.created} updated={result.updated} "
            f"failed={result.failed}"
        )
    for team_id, message in report.failures.items():
        typer.echo(f"team {team_id}: FAILED {message}")


@app.command("live-active-teams")
def sync_live_active_teams_cmd() -> None:
    """Live stats for every team with an active PrestoSports credential."""
    with session_scope() as session, provider_scope(session) as provider:
        report = sync_live_for_active_teams(session, api=provider.api, tokens=provider.tokens)

    for team_id, result in report.results.items():
        echo_result(f"team {team_id}", result)
    for team_id, message in report.failures.items():
        typer.echo(f"team {team_id}: FAILED {message}")
