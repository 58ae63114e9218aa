"""Command group: journeys, guide assignment, and guide updates."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import click

from kizuna.commands._base import KizunaGroup, data_option, merge_fields, with_list_options
from kizuna.domain.lifecycle import JOURNEY_GUIDE_STATUSES
from kizuna.domain.types import GuideNoteType
from kizuna.services.conflicts import ConflictService
from kizuna.services.journey import JourneyService

if TYPE_CHECKING:
    from kizuna.commands._context import AppContext

_JOURNEY_EXAMPLES = """\
  kizuna --role manager journey create "Kyoto Temples" --description "Five temples" \\
      --price 450 --days 3 --nights 2 --start 2027-04-01 --status active
  kizuna --role agent journey assign-guide jrn_3f9a0c1d2e4b usr_0a1b2c3d4e5f
  kizuna --actor usr_0a1b2c3d4e5f --role guide journey status jrn_3f9a0c1d2e4b in_progress
  kizuna journey list --status active"""

_DATE = click.DateTime(formats=["%Y-%m-%d"])


def _duration(days: int | None, nights: int | None) -> dict[str, int] | None:
    if days is None:
        return None
    return {"days": days, "nights": nights or 0}


def _schedule(start: datetime | None, end: datetime | None) -> dict[str, Any] | None:
    if start is None and end is None:
        return None
    return {
        "start_date": start.date() if start else None,
        "end_date": end.date() if end else None,
    }


@click.group(cls=KizunaGroup, examples=_JOURNEY_EXAMPLES)
@click.pass_obj
def journey(app: AppContext) -> None:
    """Create and run journeys."""


@journey.command(
    examples="""\
  kizuna journey create "Kyoto Temples" --description "Five temples" --price 450 --days 3
  kizuna journey create "Alps Trek" --description "Hut to hut" --price 1200 --days 7 \\
      --nights 6 --category adventure --guide usr_0a1b2c3d4e5f --start 2027-07-10
  kizuna journey create "Custom" --data @journey.json"""
)
@click.argument("name")
@click.option("--description", default=None, help="Long description (required).")
@click.option("--short-description", default=None, help="One-line summary.")
@click.option("--price", "base_price", type=float, default=None, help="Base price per person.")
@click.option("--currency", default=None, help="Currency code (default USD).")
@click.option("--days", type=int, default=None, help="Duration in days (required).")
@click.option("--nights", type=int, default=None, help="Duration in nights.")
@click.option("--category", default=None, help="Journey category.")
@click.option("--type", "journey_type", default=None, help="Journey type (default guided).")
@click.option("--min", "min_participants", type=int, default=None, help="Minimum group size.")
@click.option("--max", "max_participants", type=int, default=None, help="Maximum group size.")
@click.option("--start", type=_DATE, default=None, help="Start date (YYYY-MM-DD).")
@click.option("--end", type=_DATE, default=None, help="End date (YYYY-MM-DD).")
@click.option("--guide", "guide_id", default=None, help="Guide user ID.")
@click.option("--provider", "provider_id", default=None, help="Provider ID.")
@click.option(
    "--status",
    type=click.Choice(["draft", "active"]),
    default=None,
    help="Initial status (default draft).",
)
@data_option
@click.pass_obj
def create(
    app: AppContext,
    name: str,
    description: str | None,
    short_description: str | None,
    base_price: float | None,
    currency: str | None,
    days: int | None,
    nights: int | None,
    category: str | None,
    journey_type: str | None,
    min_participants: int | None,
    max_participants: int | None,
    start: datetime | None,
    end: datetime | None,
    guide_id: str | None,
    provider_id: str | None,
    status: str | None,
    data: str | None,
) -> None:
    """Create a journey (manager+)."""
    fields = merge_fields(
        data,
        name=name,
        description=description,
        short_description=short_description,
        base_price=base_price,
        currency=currency,
        duration=_duration(days, nights),
        category=category,
        type=journey_type,
        min_participants=min_participants,
        max_participants=max_participants,
        schedule=_schedule(start, end),
        guide_id=guide_id,
        provider_id=provider_id,
        status=status,
    )
    app.emit(JourneyService(app.store).create(fields, actor=app.actor))


@journey.command(
    examples="""\
  kizuna journey update jrn_3f9a0c1d2e4b --price 480
  kizuna journey update jrn_3f9a0c1d2e4b --start 2027-05-02 --end 2027-05-05
  kizuna journey update jrn_3f9a0c1d2e4b --data '{"guide_id": null}'"""
)
@click.argument("journey_id")
@click.option("--name", default=None, help="New name.")
@click.option("--description", default=None, help="New description.")
@click.option("--price", "base_price", type=float, default=None, help="New base price.")
@click.option("--category", default=None, help="New category.")
@click.option("--status", default=None, help="New status (any journey status).")
@click.option("--max", "max_participants", type=int, default=None, help="Maximum group size.")
@click.option("--start", type=_DATE, default=None, help="Start date (YYYY-MM-DD).")
@click.option("--end", type=_DATE, default=None, help="End date (YYYY-MM-DD).")
@click.option("--guide", "guide_id", default=None, help="Guide user ID.")
@click.option("--provider", "provider_id", default=None, help="Provider ID.")
@data_option
@click.pass_obj
def update(
    app: AppContext,
    journey_id: str,
    name: str | None,
    description: str | None,
    base_price: float | None,
    category: str | None,
    status: str | None,
    max_participants: int | None,
    start: datetime | None,
    end: datetime | None,
    guide_id: str | None,
    provider_id: str | None,
    data: str | None,
) -> None:
    """Update journey fields (manager+)."""
    fields = merge_fields(
        data,
        name=name,
        description=description,
        base_price=base_price,
        category=category,
        status=status,
        max_participants=max_participants,
        schedule=_schedule(start, end),
        guide_id=guide_id,
        provider_id=provider_id,
    )
    app.emit(JourneyService(app.store).update(journey_id, fields, actor=app.actor))


@journey.command(
    "assign-guide",
    examples="""\
  kizuna --role agent journey assign-guide jrn_3f9a0c1d2e4b usr_0a1b2c3d4e5f
  kizuna journey assign-guide jrn_3f9a0c1d2e4b usr_0a1b2c3d4e5f --notes "Speaks Japanese\"""",
)
@click.argument("journey_id")
@click.argument("guide_id")
@click.option("--notes", default=None, help="Assignment notes.")
@click.pass_obj
def assign_guide(app: AppContext, journey_id: str, guide_id: str, notes: str | None) -> None:
    """Assign a guide (agent+); refused if the guide already leads a journey that day."""
    app.emit(
        JourneyService(app.store).assign_guide(journey_id, guide_id, actor=app.actor, notes=notes)
    )


@journey.command(
    "status",
    examples="""\
  kizuna --actor usr_0a1b2c3d4e5f --role guide journey status jrn_3f9a0c1d2e4b in_progress
  kizuna journey status jrn_3f9a0c1d2e4b completed --notes "All guests returned\"""",
)
@click.argument("journey_id")
@click.argument("status", type=click.Choice(sorted(JOURNEY_GUIDE_STATUSES)))
@click.option("--notes", default=None, help="Note appended to the guide log.")
@click.pass_obj
def status_cmd(app: AppContext, journey_id: str, status: str, notes: str | None) -> None:
    """Move a journey between active, in_progress, completed, and cancelled."""
    app.emit(
        JourneyService(app.store).update_status(journey_id, status, actor=app.actor, notes=notes)
    )


@journey.command(
    examples="""\
  kizuna --actor usr_0a1b2c3d4e5f --role guide journey note jrn_3f9a0c1d2e4b "Bus late 20m" \\
      --type logistics""",
)
@click.argument("journey_id")
@click.argument("content")
@click.option(
    "--type",
    "note_type",
    type=click.Choice([t.value for t in GuideNoteType]),
    default=GuideNoteType.GENERAL.value,
    help="Note classification.",
)
@click.pass_obj
def note(app: AppContext, journey_id: str, content: str, note_type: str) -> None:
    """Add a guide note (assigned guide only)."""
    app.emit(
        JourneyService(app.store).add_notes(
            journey_id, content, actor=app.actor, note_type=note_type
        )
    )


@journey.command(
    examples="""\
  kizuna --actor usr_9f8e7d6c5b4a --role customer journey review jrn_3f9a0c1d2e4b 5 \\
      --comment "Wonderful\"""",
)
@click.argument("journey_id")
@click.argument("rating", type=int)
@click.option("--comment", default=None, help="Review text.")
@click.pass_obj
def review(app: AppContext, journey_id: str, rating: int, comment: str | None) -> None:
    """Add a 1-5 review."""
    app.emit(
        JourneyService(app.store).add_review(journey_id, rating, actor=app.actor, comment=comment)
    )


@journey.command(
    examples="""\
  kizuna --role agent journey capacity jrn_3f9a0c1d2e4b 4
  kizuna --role agent journey capacity jrn_3f9a0c1d2e4b -- -2
  kizuna --role agent journey capacity jrn_3f9a0c1d2e4b --recompute""",
)
@click.argument("journey_id")
@click.argument("delta", type=int, required=False, default=0)
@click.option(
    "--recompute", is_flag=True, help="Recount from active bookings instead of adding DELTA."
)
@click.pass_obj
def capacity(app: AppContext, journey_id: str, delta: int, recompute: bool) -> None:
    """Adjust booked capacity (agent+)."""
    if recompute:
        app.emit(ConflictService(app.store).recompute_capacity(journey_id, actor=app.actor))
    else:
        app.emit(JourneyService(app.store).update_capacity(journey_id, delta, actor=app.actor))


@journey.command(
    examples="""\
  kizuna journey get jrn_3f9a0c1d2e4b
  kizuna -v journey get jrn_3f9a0c1d2e4b""",
)
@click.argument("journey_id")
@click.option("--include-deleted", is_flag=True, help="Also find soft-deleted journeys.")
@click.pass_obj
def get(app: AppContext, journey_id: str, include_deleted: bool) -> None:
    """Show one journey."""
    app.emit(JourneyService(app.store).get(journey_id, include_deleted=include_deleted))


@journey.command(
    "list",
    examples="""\
  kizuna journey list --status active
  kizuna journey list --guide usr_0a1b2c3d4e5f""",
)
@click.option("--status", default=None, help="Filter by status.")
@click.option("--category", default=None, help="Filter by category.")
@click.option("--guide", "guide_id", default=None, help="Filter by guide.")
@click.option("--provider", "provider_id", default=None, help="Filter by provider.")
@with_list_options
@click.pass_obj
def list_cmd(
    app: AppContext,
    status: str | None,
    category: str | None,
    guide_id: str | None,
    provider_id: str | None,
    include_deleted: bool,
    limit: int | None,
    offset: int,
) -> None:
    """List journeys, newest first."""
    app.emit(
        JourneyService(app.store).list_items(
            status=status,
            category=category,
            guide_id=guide_id,
            provider_id=provider_id,
            include_deleted=include_deleted,
            limit=limit,
            offset=offset,
        )
    )


@journey.command(
    examples="""\
  kizuna --role manager journey delete jrn_3f9a0c1d2e4b""",
)
@click.argument("journey_id")
@click.pass_obj
def delete(app: AppContext, journey_id: str) -> None:
    """Soft-delete a journey with no active bookings (manager+)."""
    app.emit(JourneyService(app.store).delete(journey_id, actor=app.actor))


@journey.command(
    examples="""\
  kizuna --role manager journey restore jrn_3f9a0c1d2e4b""",
)
@click.argument("journey_id")
@click.pass_obj
def restore(app: AppContext, journey_id: str) -> None:
    """Restore a soft-deleted journey (manager+)."""
    app.emit(JourneyService(app.store).restore(journey_id, actor=app.actor))


@journey.command(
    "stats",
    examples="""\
  kizuna --role manager journey stats""",
)
@click.pass_obj
def stats_cmd(app: AppContext) -> None:
    """Journey statistics (manager+)."""
    app.emit(JourneyService(app.store).stats(actor=app.actor))
