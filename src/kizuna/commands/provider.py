"""Command group: providers (hotels, transport, activities, ...)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from kizuna.commands._base import KizunaGroup, data_option, merge_fields, with_list_options
from kizuna.services.provider import ProviderService

if TYPE_CHECKING:
    from kizuna.commands._context import AppContext

_PROVIDER_EXAMPLES = """\
  kizuna --role manager provider create "Hotel Sakura" --type hotel --city Kyoto
  kizuna provider list --type hotel
  kizuna provider rate prv_3f9a0c1d2e4b 5
  kizuna --role manager provider stats"""


def _place(city: str | None, country: str | None) -> dict[str, Any] | None:
    if city is None and country is None:
        return None
    return {"city": city, "country": country}


@click.group(cls=KizunaGroup, examples=_PROVIDER_EXAMPLES)
@click.pass_obj
def provider(app: AppContext) -> None:
    """Create and manage providers."""


@provider.command(
    examples="""\
  kizuna provider create "Hotel Sakura" --type hotel
  kizuna provider create "Kyoto Cabs" --type transport --status active --max-guests 40
  kizuna provider create "Ryokan Hana" --type hotel --data '{"contact": {"email": "a@b.jp"}}'"""
)
@click.argument("name")
@click.option("--type", "provider_type", default=None, help="Provider type (required).")
@click.option("--legal-name", default=None, help="Registered legal name.")
@click.option("--description", default=None, help="Free-text description.")
@click.option("--status", default=None, help="Initial status (default pending).")
@click.option("--rating", type=float, default=None, help="Initial average rating (0-5).")
@click.option("--verified/--unverified", "is_verified", default=None, help="Verification flag.")
@click.option("--max-guests", type=int, default=None, help="Guest capacity.")
@click.option("--city", default=None, help="Address city.")
@click.option("--country", default=None, help="Address country.")
@data_option
@click.pass_obj
def create(
    app: AppContext,
    name: str,
    provider_type: str | None,
    legal_name: str | None,
    description: str | None,
    status: str | None,
    rating: float | None,
    is_verified: bool | None,
    max_guests: int | None,
    city: str | None,
    country: str | None,
    data: str | None,
) -> None:
    """Create a provider (manager+)."""
    fields = merge_fields(
        data,
        name=name,
        type=provider_type,
        legal_name=legal_name,
        description=description,
        status=status,
        rating=rating,
        is_verified=is_verified,
        max_guests=max_guests,
        address=_place(city, country),
    )
    app.emit(ProviderService(app.store).create(fields, actor=app.actor))


@provider.command(
    examples="""\
  kizuna provider update prv_3f9a0c1d2e4b --status active
  kizuna provider update prv_3f9a0c1d2e4b --name "Hotel Sakura Annex" --rating 4.5"""
)
@click.argument("provider_id")
@click.option("--name", default=None, help="New name.")
@click.option("--type", "provider_type", default=None, help="New provider type.")
@click.option("--description", default=None, help="New description.")
@click.option("--status", default=None, help="New status.")
@click.option("--rating", type=float, default=None, help="Override average rating (0-5).")
@click.option("--verified/--unverified", "is_verified", default=None, help="Verification flag.")
@click.option("--max-guests", type=int, default=None, help="Guest capacity.")
@data_option
@click.pass_obj
def update(
    app: AppContext,
    provider_id: str,
    name: str | None,
    provider_type: str | None,
    description: str | None,
    status: str | None,
    rating: float | None,
    is_verified: bool | None,
    max_guests: int | None,
    data: str | None,
) -> None:
    """Update provider fields (manager+)."""
    fields = merge_fields(
        data,
        name=name,
        type=provider_type,
        description=description,
        status=status,
        rating=rating,
        is_verified=is_verified,
        max_guests=max_guests,
    )
    app.emit(ProviderService(app.store).update(provider_id, fields, actor=app.actor))


@provider.command(
    examples="""\
  kizuna provider rate prv_3f9a0c1d2e4b 4""",
)
@click.argument("provider_id")
@click.argument("value", type=int)
@click.pass_obj
def rate(app: AppContext, provider_id: str, value: int) -> None:
    """Add a 1-5 star rating."""
    app.emit(ProviderService(app.store).add_rating(provider_id, value, actor=app.actor))


@provider.command(
    examples="""\
  kizuna provider get prv_3f9a0c1d2e4b""",
)
@click.argument("provider_id")
@click.option("--include-deleted", is_flag=True, help="Also find soft-deleted providers.")
@click.pass_obj
def get(app: AppContext, provider_id: str, include_deleted: bool) -> None:
    """Show one provider."""
    app.emit(ProviderService(app.store).get(provider_id, include_deleted=include_deleted))


@provider.command(
    "list",
    examples="""\
  kizuna provider list
  kizuna provider list --type hotel --status active""",
)
@click.option("--type", "provider_type", default=None, help="Filter by type.")
@click.option("--status", default=None, help="Filter by status.")
@with_list_options
@click.pass_obj
def list_cmd(
    app: AppContext,
    provider_type: str | None,
    status: str | None,
    include_deleted: bool,
    limit: int | None,
    offset: int,
) -> None:
    """List providers, newest first."""
    app.emit(
        ProviderService(app.store).list_items(
            type=provider_type,
            status=status,
            include_deleted=include_deleted,
            limit=limit,
            offset=offset,
        )
    )


@provider.command(
    examples="""\
  kizuna --role manager provider delete prv_3f9a0c1d2e4b""",
)
@click.argument("provider_id")
@click.pass_obj
def delete(app: AppContext, provider_id: str) -> None:
    """Soft-delete a provider with no active journeys (manager+)."""
    app.emit(ProviderService(app.store).delete(provider_id, actor=app.actor))


@provider.command(
    examples="""\
  kizuna --role manager provider restore prv_3f9a0c1d2e4b""",
)
@click.argument("provider_id")
@click.pass_obj
def restore(app: AppContext, provider_id: str) -> None:
    """Restore a soft-deleted provider (manager+)."""
    app.emit(ProviderService(app.store).restore(provider_id, actor=app.actor))


@provider.command(
    "stats",
    examples="""\
  kizuna --role manager provider stats""",
)
@click.pass_obj
def stats_cmd(app: AppContext) -> None:
    """Provider statistics (manager+)."""
    app.emit(ProviderService(app.store).stats(actor=app.actor))
