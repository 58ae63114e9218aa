"""Tests for the upgrade CLI command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from kizuna.cli import cli


@pytest.mark.usefixtures("_isolated_workspace")
class TestUpgradeCommand:
    def test_upgrade_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["upgrade", "--help"])
        assert result.exit_code == 0
        assert "--check" in result.output
        assert "--stamp" in result.output

    def test_check_untracked_database(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "upgrade", "--check"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["current"] is None
        assert data["pending_count"] >= 1

    def test_apply_stamps_and_backs_up(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "upgrade"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["applied_count"] >= 1
        assert data["backup_path"] is not None
        assert Path(data["backup_path"]).parent == tmp_path / ".kizuna" / "backups"

        again = cli_runner.invoke(cli, ["--json", "upgrade"])
        assert json.loads(again.output)["data"]["message"] == "Database is already up to date"

    def test_stamp(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "upgrade", "--stamp"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"]["stamped"] is True

        check = cli_runner.invoke(cli, ["--json", "upgrade", "--check"])
        assert json.loads(check.output)["data"]["pending_count"] == 0
