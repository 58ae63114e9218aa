"""Command: combined provider/journey/booking statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kizuna.commands._base import KizunaCommand

if TYPE_CHECKING:
    from kizuna.commands._context import AppContext


@click.command(
    cls=KizunaCommand,
    examples="""\
  kizuna --role manager stats
  kizuna --json stats""",
)
@click.pass_obj
def stats(app: AppContext) -> None:
    """Show statistics for providers, journeys, and bookings (manager+)."""
    from kizuna.services.aggregation import AggregationService

    app.emit(AggregationService(app.store).overview(actor=app.actor))
