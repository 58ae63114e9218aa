"""Tests for the provider CLI group."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from kizuna.cli import cli


def _json(runner: CliRunner, *args: str) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def _create(runner: CliRunner, name: str = "Hotel Sakura", *extra: str) -> dict[str, Any]:
    return _json(runner, "provider", "create", name, "--type", "hotel", *extra)["data"]


@pytest.mark.usefixtures("_isolated_workspace")
class TestProviderCommands:
    def test_create_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["provider", "create", "--help"])
        assert result.exit_code == 0
        assert "--type" in result.output
        assert "--max-guests" in result.output
        assert "--data" in result.output

    def test_create(self, cli_runner: CliRunner) -> None:
        data = _create(cli_runner, "Hotel Sakura", "--city", "Kyoto", "--max-guests", "40")
        assert data["id"].startswith("prv_")
        assert data["status"] == "pending"
        assert data["address"]["city"] == "Kyoto"
        assert data["capacity"]["max_guests"] == 40

    def test_create_requires_type(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["provider", "create", "Hotel Sakura"])
        assert result.exit_code == 1
        assert "INVALID_INPUT" in result.output

    def test_create_with_data(self, cli_runner: CliRunner) -> None:
        payload = json.dumps({"type": "transport", "contact": {"email": "desk@cabs.jp"}})
        data = _json(cli_runner, "provider", "create", "Kyoto Cabs", "--data", payload)["data"]
        assert data["type"] == "transport"
        assert data["contact"]["email"] == "desk@cabs.jp"

    def test_create_invalid_data_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["provider", "create", "X", "--data", "{nope"])
        assert result.exit_code == 2
        assert "Invalid JSON" in result.output

    def test_create_duplicate_name(self, cli_runner: CliRunner) -> None:
        _create(cli_runner, "Hotel Sakura")
        result = cli_runner.invoke(cli, ["provider", "create", "hotel sakura", "--type", "hotel"])
        assert result.exit_code == 1
        assert "CONFLICT" in result.output

    def test_create_as_agent_forbidden(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--role", "agent", "provider", "create", "Hotel Sakura", "--type", "hotel"]
        )
        assert result.exit_code == 1
        assert "FORBIDDEN" in result.output

    def test_update(self, cli_runner: CliRunner) -> None:
        provider_id = _create(cli_runner)["id"]
        data = _json(
            cli_runner, "provider", "update", provider_id, "--status", "active", "--verified"
        )["data"]
        assert data["status"] == "active"
        assert data["is_verified"] is True
        assert data["fields_changed"] == ["is_verified", "status"]

    def test_rate(self, cli_runner: CliRunner) -> None:
        provider_id = _create(cli_runner)["id"]
        _json(cli_runner, "provider", "rate", provider_id, "5")
        data = _json(cli_runner, "provider", "rate", provider_id, "4")["data"]
        assert data["rating"]["count"] == 2
        assert data["rating"]["average"] == 4.5

    def test_rate_out_of_range(self, cli_runner: CliRunner) -> None:
        provider_id = _create(cli_runner)["id"]
        result = cli_runner.invoke(cli, ["provider", "rate", provider_id, "6"])
        assert result.exit_code == 1
        assert "INVALID_INPUT" in result.output

    def test_list_and_get(self, cli_runner: CliRunner) -> None:
        first = _create(cli_runner, "Hotel Sakura")
        _json(cli_runner, "provider", "create", "Kyoto Cabs", "--type", "transport")
        listed = _json(cli_runner, "provider", "list", "--type", "hotel")["data"]
        assert listed["total"] == 1
        assert listed["items"][0]["id"] == first["id"]
        assert _json(cli_runner, "provider", "get", first["id"])["data"]["name"] == "Hotel Sakura"

    def test_delete_blocked_by_active_journey(self, cli_runner: CliRunner) -> None:
        provider_id = _create(cli_runner)["id"]
        _json(
            cli_runner,
            "journey",
            "create",
            "Kyoto Temples",
            "--description",
            "Five temples",
            "--price",
            "450",
            "--days",
            "3",
            "--provider",
            provider_id,
            "--status",
            "active",
        )
        result = cli_runner.invoke(cli, ["provider", "delete", provider_id])
        assert result.exit_code == 1
        assert "CONFLICT" in result.output

    def test_delete_and_restore(self, cli_runner: CliRunner) -> None:
        provider_id = _create(cli_runner)["id"]
        assert _json(cli_runner, "provider", "delete", provider_id)["data"]["deleted"] is True
        listed = _json(cli_runner, "provider", "list", "--include-deleted")["data"]
        assert listed["total"] == 1
        restored = _json(cli_runner, "provider", "restore", provider_id)["data"]
        assert restored["id"] == provider_id

    def test_stats(self, cli_runner: CliRunner) -> None:
        _create(cli_runner, "Hotel Sakura")
        _json(cli_runner, "provider", "create", "Kyoto Cabs", "--type", "transport")
        data = _json(cli_runner, "provider", "stats")["data"]
        assert data["total"] == 2
        assert data["by_type"] == {"hotel": 1, "transport": 1}
