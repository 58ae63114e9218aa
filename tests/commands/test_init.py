"""Tests for the init CLI command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from kizuna.cli import cli


@pytest.mark.usefixtures("_isolated_workspace")
class TestInitCommand:
    def test_init_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["init", "--help"])
        assert result.exit_code == 0
        assert "PATH" in result.output

    def test_init_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["init", "--examples"])
        assert result.exit_code == 0
        assert "kizuna init /srv/agency" in result.output

    def test_init_current_dir(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "init"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["files_created"] == ["kizuna.toml"]
        assert (tmp_path / "kizuna.toml").is_file()
        assert (tmp_path / ".kizuna" / "kizuna.db").is_file()

    def test_init_target_dir(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "init", "agency"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "agency" / "kizuna.toml").is_file()

    def test_init_is_idempotent(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["init"])
        result = cli_runner.invoke(cli, ["--json", "init"])
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["files_created"] == []

    def test_init_then_up_to_date(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["init"])
        result = cli_runner.invoke(cli, ["--json", "upgrade", "--check"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"]["pending_count"] == 0
