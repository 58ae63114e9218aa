"""Command: database schema migration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kizuna.commands._base import KizunaCommand

if TYPE_CHECKING:
    from kizuna.commands._context import AppContext


@click.command(
    cls=KizunaCommand,
    examples="""\
  kizuna upgrade
  kizuna upgrade --check
  kizuna upgrade --stamp
  kizuna --json upgrade --check""",
)
@click.option(
    "--check", "check_only", is_flag=True, help="Show pending migrations without applying."
)
@click.option(
    "--stamp", "stamp_only", is_flag=True, help="Mark the database current without migrating."
)
@click.pass_obj
def upgrade(app: AppContext, check_only: bool, stamp_only: bool) -> None:
    """Run pending database migrations."""
    from kizuna.services.upgrade import UpgradeService

    svc = UpgradeService(app.store)
    if check_only:
        app.emit(svc.check_pending())
    elif stamp_only:
        app.emit(svc.stamp_current())
    else:
        app.emit(svc.apply())
