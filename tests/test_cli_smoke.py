from __future__ import annotations

import sqlalchemy as sa
from typer.testing import CliRunner

import presto_sync.db.models  # noqa: F401
from presto_sync.cli.app import app
from presto_sync.core.config import settings
from presto_sync.db.base import Base


def test_cli_help_smoke() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    # Basic sanity checks that the command groups are registered.
    for group in ("teams", "credentials", "sync", "logs"):
        assert group in result.stdout


def test_sync_help_lists_steps() -> None:
    result = CliRunner().invoke(app, ["sync", "--help"])
    assert result.exit_code == 0
    assert "season-stats" in result.stdout
    assert "live-active-teams" in result.stdout


def test_teams_add_then_list(tmp_path, monkeypatch) -> None:
    url = f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"
    engine = sa.create_engine(url)
    Base.metadata.create_all(engine)
    engine.dispose()
    monkeypatch.setattr(settings, "database_url", url)

    runner = CliRunner()
    added = runner.invoke(
        app, ["teams", "add", "--name", "Lamar Cardinals", "--presto-team-id", "t100"]
    )
    listed = runner.invoke(app, ["teams", "list"])

    assert added.exit_code == 0, added.output
    assert "Created team 1" in added.stdout
    assert listed.exit_code == 0, listed.output
    assert "Lamar Cardinals\tt100\t-\t0-0" in listed.stdout
