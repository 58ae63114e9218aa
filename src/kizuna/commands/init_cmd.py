"""Command: workspace initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from kizuna.commands._base import KizunaCommand

if TYPE_CHECKING:
    from kizuna.commands._context import AppContext

_INIT_EXAMPLES = """\
  kizuna init
  kizuna init /srv/agency
  kizuna --json init /tmp/kizuna-test"""


@click.command("init", cls=KizunaCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.pass_obj
def init_cmd(app: AppContext, path: str) -> None:
    """Initialize a kizuna workspace (config file + database)."""
    from kizuna.services.init import InitService

    app.emit(InitService.init_workspace(Path(path).resolve(), database=app.settings.database))
