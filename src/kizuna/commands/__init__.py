"""Subcommand modules for kizuna.

Provides register_commands() which uses deferred imports to keep
``kizuna --help`` fast as the codebase grows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    4 groups (have subcommands) + 3 standalone commands.
    """
    # --- Groups ---
    from kizuna.commands.booking import booking
    from kizuna.commands.journey import journey
    from kizuna.commands.provider import provider
    from kizuna.commands.user import user

    cli.add_command(user)
    cli.add_command(provider)
    cli.add_command(journey)
    cli.add_command(booking)

    # --- Standalone commands ---
    from kizuna.commands.init_cmd import init_cmd
    from kizuna.commands.stats import stats
    from kizuna.commands.upgrade import upgrade

    cli.add_command(init_cmd)
    cli.add_command(upgrade)
    cli.add_command(stats)
