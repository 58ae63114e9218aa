"""BookingService — reservations, customer edits, staff overrides, and payment.

Two status entry points exist on purpose:
- Customers go through :meth:`BookingService.cancel_mine`, which follows
  the customer transition map.
- Staff and the booking's guide use :meth:`BookingService.update_status`,
  which only checks membership in the staff status set.

Customers may edit their own booking until it is confirmed. Any change to
participants, discount, or tax reprices the booking from the journey's
current base price.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from kizuna.domain.entities import Booking, Journey, Passenger, User
from kizuna.domain.ids import generate_id
from kizuna.domain.lifecycle import (
    BOOKING_CUSTOMER_TRANSITIONS,
    BOOKING_STAFF_STATUSES,
    CUSTOMER_CANCEL_BLOCKED,
    CUSTOMER_LOCKED_STATUSES,
    BookingStatus,
    JourneyStatus,
    PaymentStatus,
    is_valid_transition,
)
from kizuna.domain.patches import BookingDraft, MyBookingPatch, StaffBookingPatch
from kizuna.domain.roles import Actor, Role
from kizuna.domain.types import PaymentMethod, is_member
from kizuna.services._helpers import clamp_limit, drop_none
from kizuna.services.aggregation import AggregationService
from kizuna.services.base import BaseService, Rejected, guarded
from kizuna.services.conflicts import ConflictService
from kizuna.services.result import ErrorCode, ServiceResult
from kizuna.services.telemetry import traced

logger = logging.getLogger(__name__)

# Patch keys that change the price components.
_PRICE_KEYS = frozenset({"participants", "passengers", "discount", "tax"})


def _aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class BookingService(BaseService):
    """Create, edit, cancel, pay for, and soft-delete bookings."""

    entity = "booking"

    @property
    def _conflicts(self) -> ConflictService:
        return ConflictService(self._store, clock=self._clock)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _bookable_journey(self, op: str, journey_id: str | None) -> Journey:
        """An active, non-deleted journey or NOT_FOUND."""
        if not journey_id:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "journey_id is required")
        self._check_id(op, journey_id, "journey")
        row = self._store.journeys.get(journey_id)
        if row is None or row["status"] != JourneyStatus.ACTIVE:
            raise Rejected(
                op, ErrorCode.NOT_FOUND, f"Journey not found or not available: {journey_id}"
            )
        return Journey.from_row(row)

    def _pricing_journey(self, op: str, booking: Booking) -> Journey:
        """The booking's journey, even if it was deleted since booking."""
        return self._load(
            op, self._store.journeys, Journey, booking.journey_id, include_deleted=True
        )

    def _check_future(self, op: str, travel_date: datetime | None) -> datetime:
        if travel_date is None:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "travel_date is required")
        travel_date = _aware(travel_date)
        if travel_date <= self._now():
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Travel date must be in the future")
        return travel_date

    @staticmethod
    def _check_dates(op: str, booking: Booking) -> None:
        if booking.return_date is not None and booking.return_date < booking.travel_date:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Return date is before the travel date")

    @staticmethod
    def _check_party(op: str, participants: int, passengers: list[Passenger]) -> None:
        if passengers and len(passengers) != participants:
            raise Rejected(
                op,
                ErrorCode.INVALID_INPUT,
                "Number of passengers must match participants",
                participants=participants,
                passengers=len(passengers),
            )

    @staticmethod
    def _check_payment_method(op: str, method: str | None) -> None:
        if method is not None and not is_member(PaymentMethod, method):
            raise Rejected(
                op,
                ErrorCode.INVALID_INPUT,
                f"Invalid payment method: {method!r}",
                allowed=[m.value for m in PaymentMethod],
            )

    def _require_owner(self, op: str, booking: Booking, actor: Actor) -> None:
        if actor.id is None or booking.customer_id != actor.id:
            raise Rejected(op, ErrorCode.FORBIDDEN, "Booking belongs to another customer")

    def _overbooking_warnings(self, journey: Journey) -> list[str]:
        booked = self._conflicts.booked_participants(journey.id)
        limit = journey.capacity.max_participants
        if booked > limit:
            return [f"Journey {journey.id} is overbooked: {booked}/{limit}"]
        return []

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _build(self, op: str, draft: BookingDraft, customer_id: str) -> tuple[Booking, Journey]:
        journey = self._bookable_journey(op, draft.journey_id)
        travel_date = self._check_future(op, draft.travel_date)

        passengers = list(draft.passengers)
        participants = draft.participants
        if participants is None:
            participants = len(passengers) or 1
        self._check_party(op, participants, passengers)

        method = draft.payment_method or self._store.settings.booking.default_payment_method
        self._check_payment_method(op, method)

        booking = Booking(
            id=generate_id("booking"),
            customer_id=customer_id,
            journey_id=journey.id,
            guide_id=journey.guide_id,
            travel_date=travel_date,
            return_date=_aware(draft.return_date) if draft.return_date else None,
            participants=participants,
            passengers=passengers,
            discount=draft.discount,
            tax=draft.tax,
            payment_method=method,
            contact_email=draft.contact_email,
            contact_phone=draft.contact_phone,
            special_requests=draft.special_requests,
        )
        self._check_dates(op, booking)
        if draft.total_price is not None:
            booking.base_price = journey.pricing.base_price
            booking.total_price = round(draft.total_price, 2)
        else:
            self._conflicts.reprice(op, booking, journey)
        return booking, journey

    def _create(
        self, op: str, draft: BookingDraft, customer_id: str, actor: Actor
    ) -> ServiceResult:
        booking, journey = self._build(op, draft, customer_id)
        self._persist(self._store.bookings, booking, actor)
        warnings = self._overbooking_warnings(journey)
        warnings += self._dispatch_event("post_create", booking, actor)
        logger.info(
            "Created booking %s on %s for %s (%d pax)",
            booking.id,
            journey.id,
            customer_id,
            booking.participants,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data=booking.to_view(),
            warnings=warnings,
        )

    @traced
    @guarded
    def create(self, fields: BookingDraft | Mapping[str, Any], *, actor: Actor) -> ServiceResult:
        """Book a journey for the calling customer."""
        op = "booking.create"
        if actor.id is None:
            raise Rejected(op, ErrorCode.FORBIDDEN, "Bookings require an identified customer")
        draft = self._coerce(op, BookingDraft, fields)
        if draft.customer_id is not None and draft.customer_id != actor.id:
            raise Rejected(
                op, ErrorCode.FORBIDDEN, "Use create_for_customer to book for someone else"
            )
        return self._create(op, draft, actor.id, actor)

    @traced
    @guarded
    def create_for_customer(
        self, fields: BookingDraft | Mapping[str, Any], *, actor: Actor
    ) -> ServiceResult:
        """Agent-side booking on behalf of an existing customer."""
        op = "booking.create_for_customer"
        self._authorize(op, actor, Role.AGENT)
        draft = self._coerce(op, BookingDraft, fields)
        if not draft.customer_id:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "customer_id is required")
        customer = self._load(op, self._store.users, User, draft.customer_id)
        return self._create(op, draft, customer.id, actor)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def _apply(self, op: str, booking: Booking, changes: dict[str, Any]) -> None:
        """Apply patch *changes* field by field, then reprice if needed."""
        if "travel_date" in changes:
            booking.travel_date = self._check_future(op, changes["travel_date"])
        if "status" in changes:
            status = changes["status"]
            if not is_member(BookingStatus, status):
                raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid status: {status!r}")
            booking.status = BookingStatus(status)
            if booking.status == BookingStatus.CANCELLED and booking.cancellation_date is None:
                booking.cancellation_date = self._now()
        if "payment_status" in changes:
            value = changes["payment_status"]
            if not is_member(PaymentStatus, value):
                raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid payment status: {value!r}")
            booking.payment_status = PaymentStatus(value)
        if "payment_method" in changes:
            self._check_payment_method(op, changes["payment_method"])
            booking.payment_method = changes["payment_method"]

        for key in ("discount", "tax"):
            if key in changes:
                setattr(booking, key, changes[key] or 0.0)
        if "return_date" in changes:
            value = changes["return_date"]
            booking.return_date = _aware(value) if value else None
        if "passengers" in changes:
            booking.passengers = list(changes["passengers"] or [])
            if "participants" not in changes and booking.passengers:
                booking.participants = len(booking.passengers)
        if changes.get("participants") is not None:
            booking.participants = changes["participants"]
        for key in ("contact_email", "contact_phone", "special_requests", "notes"):
            if key in changes:
                setattr(booking, key, changes[key])

        self._check_dates(op, booking)
        self._check_party(op, booking.participants, booking.passengers)
        if _PRICE_KEYS & changes.keys():
            self._conflicts.reprice(op, booking, self._pricing_journey(op, booking))

    @traced
    @guarded
    def update_mine(
        self,
        booking_id: str,
        patch: MyBookingPatch | Mapping[str, Any],
        *,
        actor: Actor,
    ) -> ServiceResult:
        """Customer edit of their own booking while it is still pending."""
        op = "booking.update_mine"
        changes = self._coerce(op, MyBookingPatch, patch).changes()
        booking = self._load(op, self._store.bookings, Booking, booking_id)
        self._require_owner(op, booking, actor)
        if booking.status in CUSTOMER_LOCKED_STATUSES:
            raise Rejected(
                op,
                ErrorCode.INVALID_STATE,
                f"Cannot modify a {booking.status} booking",
                status=str(booking.status),
            )

        self._apply(op, booking, changes)
        self._persist(self._store.bookings, booking, actor)
        warnings = self._dispatch_event(
            "post_update", booking, actor, fields_changed=sorted(changes)
        )
        logger.info("Customer updated booking %s: %s", booking.id, sorted(changes))
        data = {**booking.to_view(), "fields_changed": sorted(changes)}
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    @guarded
    def update_staff(
        self,
        booking_id: str,
        patch: StaffBookingPatch | Mapping[str, Any],
        *,
        actor: Actor,
    ) -> ServiceResult:
        """Staff edit of any booking field, regardless of status."""
        op = "booking.update_staff"
        self._authorize(op, actor, Role.AGENT)
        changes = self._coerce(op, StaffBookingPatch, patch).changes()
        booking = self._load(op, self._store.bookings, Booking, booking_id)

        self._apply(op, booking, changes)
        self._persist(self._store.bookings, booking, actor)
        warnings = self._dispatch_event(
            "post_update", booking, actor, fields_changed=sorted(changes)
        )
        logger.info("Staff updated booking %s: %s", booking.id, sorted(changes))
        data = {**booking.to_view(), "fields_changed": sorted(changes)}
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @traced
    @guarded
    def update_status(
        self,
        booking_id: str,
        status: str,
        *,
        actor: Actor,
        notes: str | None = None,
    ) -> ServiceResult:
        """Staff/guide status override; the customer transition map does not apply."""
        op = "booking.update_status"
        if status not in BOOKING_STAFF_STATUSES:
            raise Rejected(
                op,
                ErrorCode.INVALID_INPUT,
                f"Invalid status: {status!r}",
                allowed=sorted(BOOKING_STAFF_STATUSES),
            )
        self._authorize(op, actor, Role.GUIDE, Role.AGENT)
        booking = self._load(op, self._store.bookings, Booking, booking_id)
        if not actor.is_staff and booking.guide_id != actor.id:
            raise Rejected(op, ErrorCode.FORBIDDEN, "Booking is not assigned to this guide")

        previous = booking.status
        booking.status = BookingStatus(status)
        if booking.status == BookingStatus.CANCELLED and booking.cancellation_date is None:
            booking.cancellation_date = self._now()
        if notes is not None:
            booking.notes = notes

        self._persist(self._store.bookings, booking, actor)
        warnings = self._dispatch_event(
            "post_status_change",
            booking,
            actor,
            old_status=str(previous),
            new_status=status,
        )
        logger.info("Booking %s status %s -> %s", booking.id, previous, status)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": booking.id, "previous_status": str(previous), "status": status},
            warnings=warnings,
        )

    @traced
    @guarded
    def cancel_mine(
        self, booking_id: str, *, actor: Actor, reason: str | None = None
    ) -> ServiceResult:
        """Customer cancellation, following the customer transition map."""
        op = "booking.cancel_mine"
        booking = self._load(op, self._store.bookings, Booking, booking_id)
        self._require_owner(op, booking, actor)
        if booking.status in CUSTOMER_CANCEL_BLOCKED or not is_valid_transition(
            booking.status, BookingStatus.CANCELLED, BOOKING_CUSTOMER_TRANSITIONS
        ):
            raise Rejected(
                op,
                ErrorCode.INVALID_STATE,
                f"Cannot cancel a {booking.status} booking",
                status=str(booking.status),
            )

        previous = booking.status
        booking.cancel(reason, self._now())
        self._persist(self._store.bookings, booking, actor)
        warnings = self._dispatch_event(
            "post_status_change",
            booking,
            actor,
            old_status=str(previous),
            new_status=str(booking.status),
        )
        logger.info("Customer cancelled booking %s", booking.id)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": booking.id,
                "status": str(booking.status),
                "cancellation_reason": booking.cancellation_reason,
                "cancellation_date": booking.to_view()["cancellation_date"],
            },
            warnings=warnings,
        )

    @traced
    @guarded
    def record_payment(
        self,
        booking_id: str,
        method: str,
        transaction_id: str | None = None,
        *,
        actor: Actor,
    ) -> ServiceResult:
        """Mark a booking paid."""
        op = "booking.record_payment"
        self._authorize(op, actor, Role.AGENT)
        self._check_payment_method(op, method)
        booking = self._load(op, self._store.bookings, Booking, booking_id)
        if booking.status == BookingStatus.CANCELLED:
            raise Rejected(
                op, ErrorCode.INVALID_STATE, "Cannot record payment on a cancelled booking"
            )

        booking.payment_status = PaymentStatus.PAID
        booking.payment_method = method
        booking.payment_date = self._now()
        booking.transaction_id = transaction_id
        self._persist(self._store.bookings, booking, actor)
        warnings = self._dispatch_event(
            "post_update",
            booking,
            actor,
            fields_changed=["payment_date", "payment_method", "payment_status", "transaction_id"],
        )
        logger.info("Recorded %s payment for booking %s", method, booking.id)
        view = booking.to_view()
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": booking.id,
                "payment_status": view["payment_status"],
                "payment_method": method,
                "payment_date": view["payment_date"],
                "transaction_id": transaction_id,
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    @traced
    @guarded
    def delete(self, booking_id: str, *, actor: Actor) -> ServiceResult:
        op = "booking.delete"
        self._authorize(op, actor, Role.MANAGER)
        booking = self._load(op, self._store.bookings, Booking, booking_id)
        warnings = self._soft_delete(op, self._store.bookings, booking, actor)
        logger.info("Deleted booking %s", booking.id)
        return ServiceResult(
            ok=True, op=op, data={"id": booking.id, "deleted": True}, warnings=warnings
        )

    @traced
    @guarded
    def restore(self, booking_id: str, *, actor: Actor) -> ServiceResult:
        op = "booking.restore"
        self._authorize(op, actor, Role.MANAGER)
        booking = self._load(op, self._store.bookings, Booking, booking_id, include_deleted=True)
        warnings = self._restore(op, self._store.bookings, booking, actor)
        return ServiceResult(ok=True, op=op, data=booking.to_view(), warnings=warnings)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    @guarded
    def get(self, booking_id: str, *, include_deleted: bool = False) -> ServiceResult:
        op = "booking.get"
        booking = self._load(
            op, self._store.bookings, Booking, booking_id, include_deleted=include_deleted
        )
        return ServiceResult(ok=True, op=op, data=booking.to_view())

    @traced
    @guarded
    def list_items(
        self,
        *,
        status: str | None = None,
        customer_id: str | None = None,
        journey_id: str | None = None,
        include_deleted: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> ServiceResult:
        op = "booking.list_items"
        filters = drop_none(
            {"status": status, "customer_id": customer_id, "journey_id": journey_id}
        )
        rows = self._store.bookings.find(
            filters, include_deleted=include_deleted, limit=clamp_limit(limit), offset=offset
        )
        items = [Booking.from_row(r).to_view() for r in rows]
        total = self._store.bookings.count(filters, include_deleted=include_deleted)
        return ServiceResult(
            ok=True, op=op, data={"count": len(items), "total": total, "items": items}
        )

    @traced
    @guarded
    def stats(self, *, actor: Actor) -> ServiceResult:
        op = "booking.stats"
        self._authorize(op, actor, Role.MANAGER)
        data = AggregationService(self._store, clock=self._clock).booking_stats()
        return ServiceResult(ok=True, op=op, data=data)
