"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Store initialization, the calling
Actor, and centralized result emission (stdout/stderr routing + exit
codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from pydantic import ValidationError

from kizuna.domain.roles import Actor
from kizuna.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from kizuna.config.settings import KizunaSettings
    from kizuna.infrastructure.store import Store
    from kizuna.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The store is lazily
    initialized on first use so ``--help`` and ``--version`` never
    trigger database access.
    """

    def __init__(self, settings: KizunaSettings) -> None:
        self.settings = settings
        self._store: Store | None = None

        from kizuna.config.logging import bind_actor, configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        bind_actor(settings.actor, settings.role)

        # Enable telemetry context var when verbose
        if settings.verbose:
            from kizuna.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> Store:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from kizuna.infrastructure.store import Store
            from kizuna.plugins import PluginManager

            plugins = PluginManager()
            local_dir = self.settings.workspace_root / ".kizuna" / "plugins"
            plugins.discover_and_load(local_dir=local_dir)
            self._store = Store(self.settings, plugins=plugins)
        return self._store

    @property
    def actor(self) -> Actor:
        """The calling principal from ``--actor`` / ``--role`` (or KIZUNA_ACTOR/ROLE)."""
        try:
            return Actor(id=self.settings.actor, role=self.settings.role)
        except ValidationError as exc:
            raise click.UsageError(f"Invalid role: {self.settings.role!r}") from exc

    def close(self) -> None:
        from kizuna.config.logging import unbind_actor

        unbind_actor()
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
