"""Tests for KizunaSettings — unified settings with TOML source."""

from datetime import timedelta
from pathlib import Path

import click
import pytest
from pydantic import ValidationError

from kizuna.config.settings import KizunaSettings


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = KizunaSettings.from_cli(workspace_root=tmp_path)
        assert settings.workspace_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.actor is None
        assert settings.role == "admin"
        assert settings.database.filename == "kizuna.db"
        assert settings.security.max_login_attempts == 5
        assert settings.stats.recent_days == 7
        assert settings.booking.default_payment_method == "credit_card"
        assert settings.lock_duration == timedelta(hours=2)

    def test_frozen(self, tmp_path: Path) -> None:
        settings = KizunaSettings.from_cli(workspace_root=tmp_path)
        with pytest.raises(ValidationError):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_sparse_override(self, tmp_path: Path) -> None:
        (tmp_path / "kizuna.toml").write_text("[security]\nlock_hours = 0.5\n")
        settings = KizunaSettings.from_cli(workspace_root=tmp_path)
        assert settings.lock_duration == timedelta(minutes=30)
        assert settings.security.max_login_attempts == 5

    def test_workspace_root_from_config_location(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "kizuna.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = KizunaSettings.from_cli()
        assert settings.workspace_root == tmp_path.resolve()

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "travel.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text("[stats]\nrecent_days = 30\n")
        settings = KizunaSettings.from_cli(config_path=str(custom), workspace_root=tmp_path)
        assert settings.stats.recent_days == 30
        assert settings.config_path == custom

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "kizuna.toml").write_text("[stats\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            KizunaSettings.from_cli(workspace_root=tmp_path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / "kizuna.toml").write_text("[security]\nmax_login_attempts = 0\n")
        with pytest.raises(ValidationError):
            KizunaSettings.from_cli(workspace_root=tmp_path)


class TestPrecedence:
    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "kizuna.toml").write_text('role = "agent"\n')
        monkeypatch.setenv("KIZUNA_ROLE", "manager")
        assert KizunaSettings.from_cli(workspace_root=tmp_path).role == "manager"

    def test_flag_beats_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KIZUNA_ROLE", "manager")
        settings = KizunaSettings.from_cli(workspace_root=tmp_path, role="guide")
        assert settings.role == "guide"

    def test_none_flag_falls_through(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KIZUNA_ACTOR", "usr_0123456789ab")
        settings = KizunaSettings.from_cli(workspace_root=tmp_path, actor=None)
        assert settings.actor == "usr_0123456789ab"

    def test_nested_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KIZUNA_STATS__RECENT_DAYS", "14")
        assert KizunaSettings.from_cli(workspace_root=tmp_path).stats.recent_days == 14
