"""ConflictService — cross-entity checks and derived-value recomputation.

The query helpers return plain values and are called by the entity
services while they validate a mutation. They run before that
mutation's write, so a concurrent writer can slip in between check and
save; the deployment model is a single writer.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from kizuna.domain.entities import Booking, Journey
from kizuna.domain.lifecycle import ACTIVE_BOOKING_STATUSES, JourneyStatus
from kizuna.domain.roles import Actor, Role
from kizuna.services.base import BaseService, Rejected, guarded
from kizuna.services.result import ErrorCode, ServiceResult
from kizuna.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class ConflictService(BaseService):
    """Guide double-booking, dependent-entity counts, capacity and price derivation."""

    entity = "conflict"

    # ------------------------------------------------------------------
    # Query helpers (plain values)
    # ------------------------------------------------------------------

    def guide_conflicts(
        self,
        guide_id: str,
        start_date: date | None,
        *,
        exclude_journey_id: str | None = None,
    ) -> list[str]:
        """IDs of other non-deleted journeys led by *guide_id* on *start_date*.

        A journey without a scheduled start date never conflicts.
        """
        if start_date is None:
            return []
        with trace_span("guide_conflicts"):
            return self._store.journeys.guide_journey_ids_on(
                guide_id, start_date.isoformat(), exclude_id=exclude_journey_id
            )

    def active_bookings_for_journey(self, journey_id: str) -> int:
        """Non-deleted bookings on *journey_id* that are pending, confirmed, or in progress."""
        with trace_span("active_bookings_for_journey"):
            return self._store.bookings.count(
                {"journey_id": journey_id, "status__in": ACTIVE_BOOKING_STATUSES}
            )

    def active_journeys_for_provider(self, provider_id: str) -> int:
        """Non-deleted journeys with status ``active`` that use *provider_id*."""
        with trace_span("active_journeys_for_provider"):
            return self._store.journeys.count(
                {"provider_id": provider_id, "status": JourneyStatus.ACTIVE}
            )

    def booked_participants(self, journey_id: str) -> int:
        """Participant total across the journey's active bookings."""
        return int(
            self._store.bookings.total(
                "participants",
                {"journey_id": journey_id, "status__in": ACTIVE_BOOKING_STATUSES},
            )
        )

    @staticmethod
    def reprice(op: str, booking: Booking, journey: Journey) -> None:
        """Recompute *booking*'s total from *journey*'s live base price."""
        try:
            booking.reprice(journey.pricing.base_price)
        except ValueError as exc:
            raise Rejected(op, ErrorCode.INVALID_INPUT, str(exc)) from exc

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @traced
    @guarded
    def recompute_capacity(self, journey_id: str, *, actor: Actor) -> ServiceResult:
        """Set ``capacity.current_bookings`` from the journey's active bookings.

        Overbooking is reported as a warning, never rejected.
        """
        op = "conflict.recompute_capacity"
        self._authorize(op, actor, Role.AGENT)
        journey = self._load(op, self._store.journeys, Journey, journey_id)

        previous = journey.capacity.current_bookings
        journey.capacity.current_bookings = self.booked_participants(journey.id)
        self._persist(self._store.journeys, journey, actor)

        warnings = self._dispatch_event(
            "post_update", journey, actor, fields_changed=["current_bookings"]
        )
        if journey.is_overbooked:
            warnings.append(
                f"Journey {journey.id} is overbooked: "
                f"{journey.capacity.current_bookings}/{journey.capacity.max_participants}"
            )
        logger.info(
            "Recomputed capacity for %s: %d -> %d",
            journey.id,
            previous,
            journey.capacity.current_bookings,
        )
        data: dict[str, Any] = {
            "id": journey.id,
            "previous": previous,
            "current_bookings": journey.capacity.current_bookings,
            "max_participants": journey.capacity.max_participants,
            "remaining_spots": journey.remaining_spots,
        }
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
