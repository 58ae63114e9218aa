"""Root CLI group for kizuna with global flags and command registration."""

from __future__ import annotations

import click

from kizuna import __version__
from kizuna.commands import register_commands
from kizuna.commands._context import AppContext
from kizuna.config.settings import KizunaSettings
from kizuna.domain.roles import Role


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="kizuna")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--actor", "actor_id", default=None, help="Calling user ID (or KIZUNA_ACTOR).")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=None,
    help="Calling role (or KIZUNA_ROLE; default admin).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    actor_id: str | None,
    role: str | None,
) -> None:
    """kizuna — travel back-office console."""
    ctx.ensure_object(dict)
    # Unset flags pass None so env vars and kizuna.toml can still supply them.
    settings = KizunaSettings.from_cli(
        config_path=config_path,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
        actor=actor_id,
        role=role,
    )
    ctx.obj = AppContext(settings)
    ctx.call_on_close(ctx.obj.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
