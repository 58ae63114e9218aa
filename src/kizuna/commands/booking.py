"""Command group: bookings — customer self-service and staff operations."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import click

from kizuna.commands._base import (
    KizunaGroup,
    data_option,
    load_json,
    merge_fields,
    with_list_options,
)
from kizuna.domain.lifecycle import BOOKING_STAFF_STATUSES
from kizuna.domain.types import PaymentMethod
from kizuna.services.booking import BookingService

if TYPE_CHECKING:
    from kizuna.commands._context import AppContext

_BOOKING_EXAMPLES = """\
  kizuna --actor usr_9f8e7d6c5b4a --role customer booking create jrn_3f9a0c1d2e4b \\
      --travel-date 2027-04-01 --participants 2
  kizuna --role agent booking create jrn_3f9a0c1d2e4b --for usr_9f8e7d6c5b4a \\
      --travel-date 2027-04-01
  kizuna --role agent booking status bkg_1a2b3c4d5e6f confirmed
  kizuna --actor usr_9f8e7d6c5b4a --role customer booking cancel bkg_1a2b3c4d5e6f"""

_DATETIME = click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"])


def _passengers(raw: str | None) -> list[dict[str, Any]] | None:
    """``--passengers`` accepts a JSON list (or @FILE) of passenger objects."""
    if raw is None:
        return None
    value = load_json(raw, param_hint="--passengers")
    if not isinstance(value, list):
        raise click.BadParameter("Expected a JSON list", param_hint="--passengers")
    return value


@click.group(cls=KizunaGroup, examples=_BOOKING_EXAMPLES)
@click.pass_obj
def booking(app: AppContext) -> None:
    """Create and manage bookings."""


@booking.command(
    examples="""\
  kizuna --actor usr_9f8e7d6c5b4a --role customer booking create jrn_3f9a0c1d2e4b \\
      --travel-date 2027-04-01 --participants 2
  kizuna --role agent booking create jrn_3f9a0c1d2e4b --for usr_9f8e7d6c5b4a \\
      --travel-date 2027-04-01 --passengers @party.json --discount 50"""
)
@click.argument("journey_id")
@click.option("--travel-date", type=_DATETIME, default=None, help="Travel date (required).")
@click.option("--return-date", type=_DATETIME, default=None, help="Return date.")
@click.option("--participants", type=int, default=None, help="Party size.")
@click.option("--passengers", default=None, help="Passenger list as JSON, or @FILE.")
@click.option("--discount", type=float, default=None, help="Discount amount.")
@click.option("--tax", type=float, default=None, help="Tax amount.")
@click.option("--total", "total_price", type=float, default=None, help="Explicit total price.")
@click.option(
    "--payment-method",
    type=click.Choice([m.value for m in PaymentMethod]),
    default=None,
    help="Payment method (default from config).",
)
@click.option("--email", "contact_email", default=None, help="Contact email.")
@click.option("--phone", "contact_phone", default=None, help="Contact phone.")
@click.option("--requests", "special_requests", default=None, help="Special requests.")
@click.option(
    "--for", "customer_id", default=None, help="Book on behalf of this customer (agent+)."
)
@data_option
@click.pass_obj
def create(
    app: AppContext,
    journey_id: str,
    travel_date: datetime | None,
    return_date: datetime | None,
    participants: int | None,
    passengers: str | None,
    discount: float | None,
    tax: float | None,
    total_price: float | None,
    payment_method: str | None,
    contact_email: str | None,
    contact_phone: str | None,
    special_requests: str | None,
    customer_id: str | None,
    data: str | None,
) -> None:
    """Book a journey for yourself, or for a customer with --for."""
    fields = merge_fields(
        data,
        journey_id=journey_id,
        travel_date=travel_date,
        return_date=return_date,
        participants=participants,
        passengers=_passengers(passengers),
        discount=discount,
        tax=tax,
        total_price=total_price,
        payment_method=payment_method,
        contact_email=contact_email,
        contact_phone=contact_phone,
        special_requests=special_requests,
        customer_id=customer_id,
    )
    svc = BookingService(app.store)
    if customer_id is not None:
        app.emit(svc.create_for_customer(fields, actor=app.actor))
    else:
        app.emit(svc.create(fields, actor=app.actor))


@booking.command(
    examples="""\
  kizuna --actor usr_9f8e7d6c5b4a --role customer booking update bkg_1a2b3c4d5e6f \\
      --participants 3
  kizuna --role agent booking update bkg_1a2b3c4d5e6f --staff --status confirmed --discount 20"""
)
@click.argument("booking_id")
@click.option("--travel-date", type=_DATETIME, default=None, help="New travel date.")
@click.option("--return-date", type=_DATETIME, default=None, help="New return date.")
@click.option("--participants", type=int, default=None, help="New party size.")
@click.option("--passengers", default=None, help="Replacement passenger list (JSON or @FILE).")
@click.option("--email", "contact_email", default=None, help="Contact email.")
@click.option("--phone", "contact_phone", default=None, help="Contact phone.")
@click.option("--requests", "special_requests", default=None, help="Special requests.")
@click.option("--staff", is_flag=True, help="Staff edit (agent+): no status lock.")
@click.option("--status", default=None, help="Status (staff only).")
@click.option("--payment-status", default=None, help="Payment status (staff only).")
@click.option("--discount", type=float, default=None, help="Discount (staff only).")
@click.option("--tax", type=float, default=None, help="Tax (staff only).")
@click.option("--notes", default=None, help="Internal notes (staff only).")
@data_option
@click.pass_obj
def update(
    app: AppContext,
    booking_id: str,
    travel_date: datetime | None,
    return_date: datetime | None,
    participants: int | None,
    passengers: str | None,
    contact_email: str | None,
    contact_phone: str | None,
    special_requests: str | None,
    staff: bool,
    status: str | None,
    payment_status: str | None,
    discount: float | None,
    tax: float | None,
    notes: str | None,
    data: str | None,
) -> None:
    """Edit a booking: your own (pending only), or any with --staff."""
    # Without --staff, staff-only keys reach the customer patch model, which rejects them.
    fields = merge_fields(
        data,
        travel_date=travel_date,
        return_date=return_date,
        participants=participants,
        passengers=_passengers(passengers),
        contact_email=contact_email,
        contact_phone=contact_phone,
        special_requests=special_requests,
        status=status,
        payment_status=payment_status,
        discount=discount,
        tax=tax,
        notes=notes,
    )
    svc = BookingService(app.store)
    if staff:
        app.emit(svc.update_staff(booking_id, fields, actor=app.actor))
    else:
        app.emit(svc.update_mine(booking_id, fields, actor=app.actor))


@booking.command(
    "status",
    examples="""\
  kizuna --role agent booking status bkg_1a2b3c4d5e6f confirmed
  kizuna --actor usr_0a1b2c3d4e5f --role guide booking status bkg_1a2b3c4d5e6f completed""",
)
@click.argument("booking_id")
@click.argument("status", type=click.Choice(sorted(BOOKING_STAFF_STATUSES)))
@click.option("--notes", default=None, help="Internal notes.")
@click.pass_obj
def status_cmd(app: AppContext, booking_id: str, status: str, notes: str | None) -> None:
    """Set a booking status (agent+ or the booking's guide)."""
    app.emit(
        BookingService(app.store).update_status(booking_id, status, actor=app.actor, notes=notes)
    )


@booking.command(
    examples="""\
  kizuna --actor usr_9f8e7d6c5b4a --role customer booking cancel bkg_1a2b3c4d5e6f \\
      --reason "Change of plans\"""",
)
@click.argument("booking_id")
@click.option("--reason", default=None, help="Cancellation reason.")
@click.pass_obj
def cancel(app: AppContext, booking_id: str, reason: str | None) -> None:
    """Cancel your own booking."""
    app.emit(BookingService(app.store).cancel_mine(booking_id, actor=app.actor, reason=reason))


@booking.command(
    examples="""\
  kizuna --role agent booking pay bkg_1a2b3c4d5e6f credit_card --transaction txn_8812""",
)
@click.argument("booking_id")
@click.argument("method", type=click.Choice([m.value for m in PaymentMethod]))
@click.option("--transaction", "transaction_id", default=None, help="Processor transaction ID.")
@click.pass_obj
def pay(app: AppContext, booking_id: str, method: str, transaction_id: str | None) -> None:
    """Record a payment (agent+)."""
    app.emit(
        BookingService(app.store).record_payment(
            booking_id, method, transaction_id, actor=app.actor
        )
    )


@booking.command(
    examples="""\
  kizuna booking get bkg_1a2b3c4d5e6f""",
)
@click.argument("booking_id")
@click.option("--include-deleted", is_flag=True, help="Also find soft-deleted bookings.")
@click.pass_obj
def get(app: AppContext, booking_id: str, include_deleted: bool) -> None:
    """Show one booking."""
    app.emit(BookingService(app.store).get(booking_id, include_deleted=include_deleted))


@booking.command(
    "list",
    examples="""\
  kizuna booking list --status pending
  kizuna booking list --journey jrn_3f9a0c1d2e4b""",
)
@click.option("--status", default=None, help="Filter by status.")
@click.option("--customer", "customer_id", default=None, help="Filter by customer.")
@click.option("--journey", "journey_id", default=None, help="Filter by journey.")
@with_list_options
@click.pass_obj
def list_cmd(
    app: AppContext,
    status: str | None,
    customer_id: str | None,
    journey_id: str | None,
    include_deleted: bool,
    limit: int | None,
    offset: int,
) -> None:
    """List bookings, newest first."""
    app.emit(
        BookingService(app.store).list_items(
            status=status,
            customer_id=customer_id,
            journey_id=journey_id,
            include_deleted=include_deleted,
            limit=limit,
            offset=offset,
        )
    )


@booking.command(
    examples="""\
  kizuna --role manager booking delete bkg_1a2b3c4d5e6f""",
)
@click.argument("booking_id")
@click.pass_obj
def delete(app: AppContext, booking_id: str) -> None:
    """Soft-delete a booking (manager+)."""
    app.emit(BookingService(app.store).delete(booking_id, actor=app.actor))


@booking.command(
    examples="""\
  kizuna --role manager booking restore bkg_1a2b3c4d5e6f""",
)
@click.argument("booking_id")
@click.pass_obj
def restore(app: AppContext, booking_id: str) -> None:
    """Restore a soft-deleted booking (manager+)."""
    app.emit(BookingService(app.store).restore(booking_id, actor=app.actor))


@booking.command(
    "stats",
    examples="""\
  kizuna --role manager booking stats""",
)
@click.pass_obj
def stats_cmd(app: AppContext) -> None:
    """Booking statistics (manager+)."""
    app.emit(BookingService(app.store).stats(actor=app.actor))
