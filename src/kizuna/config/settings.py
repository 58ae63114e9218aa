"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``KIZUNA_*`` prefix (nested sections via ``__``)
  3. TOML file    — ``kizuna.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the ``find_config`` walk-up discovery from
:mod:`kizuna.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from kizuna.config.discovery import find_config, read_config
from kizuna.config.models import BookingConfig, DatabaseConfig, SecurityConfig, StatsConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``kizuna.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = read_config(toml_path)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class KizunaSettings(BaseSettings):
    """Unified settings for kizuna.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object. The CLI stores
    it on its AppContext; tests build it with :meth:`from_cli`.

    Attributes:
        workspace_root: Directory holding ``.kizuna/`` (parent of
            ``kizuna.toml``, or CWD if no config found).
        config_path: The TOML file in effect, or None.
        actor: Calling principal's user ID for CLI invocations.
        role: Calling principal's role for CLI invocations.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "KIZUNA_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path (derived from config location, not TOML) ---
    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    actor: str | None = None
    role: str = "admin"

    # --- TOML sections ---
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)
    booking: BookingConfig = Field(default_factory=BookingConfig)

    @property
    def lock_duration(self) -> timedelta:
        return timedelta(hours=self.security.lock_hours)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> KizunaSettings:
        """Construct settings from a CLI invocation.

        Discovers ``kizuna.toml`` via walk-up (or explicit *config_path*),
        resolves *workspace_root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides. Flags passed
        as None are dropped so env vars and TOML can still supply them.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(workspace_root)

        resolved_root = workspace_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        flags = {k: v for k, v in cli_flags.items() if v is not None}

        _tls.toml_path = toml_path
        try:
            return cls(
                workspace_root=resolved_root,
                config_path=toml_path,
                **flags,
            )
        finally:
            _tls.toml_path = None
