"""JourneyService — trips, guide assignment, guide status updates, and reviews.

Guide rules:
- A referenced guide must be a non-deleted user with role ``guide``.
- A guide may not lead two non-deleted journeys that start on the same
  date; the journey being edited is excluded from the scan.
- Guides may move a journey they lead between ``active``,
  ``in_progress``, ``completed``, and ``cancelled``.

A journey is only deletable when no pending/confirmed/in-progress
booking references it.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from kizuna.domain.entities import (
    Journey,
    JourneyCapacity,
    Pricing,
    Provider,
    Schedule,
    User,
)
from kizuna.domain.ids import generate_id, validate_id
from kizuna.domain.lifecycle import JOURNEY_CREATE_STATUSES, JOURNEY_GUIDE_STATUSES, JourneyStatus
from kizuna.domain.patches import JourneyDraft, JourneyPatch
from kizuna.domain.roles import Actor, Role
from kizuna.domain.types import Currency, GuideNoteType, JourneyCategory, JourneyType, is_member
from kizuna.services._helpers import clamp_limit, drop_none
from kizuna.services.aggregation import AggregationService
from kizuna.services.base import BaseService, Rejected, guarded
from kizuna.services.conflicts import ConflictService
from kizuna.services.result import ErrorCode, ServiceResult
from kizuna.services.telemetry import traced

logger = logging.getLogger(__name__)

_REQUIRED_ON_CREATE: tuple[str, ...] = ("name", "description", "base_price", "duration")


def _blank(value: Any) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return value is None


class JourneyService(BaseService):
    """Manage journeys and their guide assignments."""

    entity = "journey"

    @property
    def _conflicts(self) -> ConflictService:
        return ConflictService(self._store, clock=self._clock)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _require_guide(self, op: str, guide_id: str) -> User:
        """The guide must exist, be non-deleted, and have role ``guide``."""
        if not validate_id(guide_id, "user"):
            raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid user ID: {guide_id!r}")
        row = self._store.users.get(guide_id)
        if row is None or row["role"] != Role.GUIDE:
            raise Rejected(op, ErrorCode.NOT_FOUND, f"Guide not found: {guide_id}")
        return User.from_row(row)

    def _require_provider(self, op: str, provider_id: str) -> Provider:
        if not validate_id(provider_id, "provider"):
            raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid provider ID: {provider_id!r}")
        row = self._store.providers.get(provider_id)
        if row is None:
            raise Rejected(op, ErrorCode.NOT_FOUND, f"Provider not found: {provider_id}")
        return Provider.from_row(row)

    def _check_guide_free(self, op: str, journey: Journey) -> None:
        if journey.guide_id is None:
            return
        clashes = self._conflicts.guide_conflicts(
            journey.guide_id, journey.schedule.start_date, exclude_journey_id=journey.id
        )
        if clashes:
            raise Rejected(
                op,
                ErrorCode.CONFLICT,
                "Guide is already assigned to another journey on this date",
                guide_id=journey.guide_id,
                conflicting_journeys=clashes,
            )

    @staticmethod
    def _check_enums(op: str, values: Mapping[str, Any]) -> None:
        checks: tuple[tuple[str, Any], ...] = (
            ("category", JourneyCategory),
            ("type", JourneyType),
            ("currency", Currency),
        )
        for key, enum_cls in checks:
            value = values.get(key)
            if value is not None and not is_member(enum_cls, value):
                raise Rejected(
                    op,
                    ErrorCode.INVALID_INPUT,
                    f"Invalid {key}: {value!r}",
                    allowed=[m.value for m in enum_cls],
                )

    @staticmethod
    def _check_price(op: str, price: float | None) -> None:
        if price is None or not math.isfinite(price) or price <= 0:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Price must be greater than 0")

    @staticmethod
    def _check_shape(op: str, journey: Journey) -> None:
        cap = journey.capacity
        if cap.max_participants < cap.min_participants:
            raise Rejected(
                op,
                ErrorCode.INVALID_INPUT,
                "max_participants cannot be less than min_participants",
            )
        start, end = journey.schedule.start_date, journey.schedule.end_date
        if start and end and end < start:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Schedule ends before it starts")

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    @traced
    @guarded
    def create(self, fields: JourneyDraft | Mapping[str, Any], *, actor: Actor) -> ServiceResult:
        """Create a journey (status ``draft`` unless ``active`` is requested)."""
        op = "journey.create"
        self._authorize(op, actor, Role.MANAGER)
        draft = self._coerce(op, JourneyDraft, fields)

        missing = [name for name in _REQUIRED_ON_CREATE if _blank(getattr(draft, name))]
        if missing:
            raise Rejected(
                op,
                ErrorCode.INVALID_INPUT,
                f"Missing required fields: {', '.join(missing)}",
                missing=missing,
            )
        self._check_price(op, draft.base_price)
        self._check_enums(op, draft.changes() | {"type": draft.type, "currency": draft.currency})
        status = draft.status or JourneyStatus.DRAFT
        if status not in JOURNEY_CREATE_STATUSES:
            raise Rejected(
                op,
                ErrorCode.INVALID_INPUT,
                f"New journeys must be draft or active, not {status!r}",
            )
        if draft.guide_id is not None:
            self._require_guide(op, draft.guide_id)
        if draft.provider_id is not None:
            self._require_provider(op, draft.provider_id)

        journey = Journey(
            id=generate_id("journey"),
            name=(draft.name or "").strip(),
            description=draft.description or "",
            short_description=draft.short_description,
            category=draft.category,
            type=draft.type,
            duration=draft.duration,
            destinations=list(draft.destinations),
            pricing=Pricing(base_price=draft.base_price or 0.0, currency=draft.currency),
            capacity=JourneyCapacity(
                min_participants=draft.min_participants,
                max_participants=draft.max_participants,
            ),
            schedule=draft.schedule or Schedule(),
            guide_id=draft.guide_id,
            provider_id=draft.provider_id,
            status=status,
            itinerary=list(draft.itinerary),
        )
        self._check_shape(op, journey)
        self._check_guide_free(op, journey)

        self._persist(self._store.journeys, journey, actor)
        warnings = self._dispatch_event("post_create", journey, actor)
        logger.info("Created journey %s (%s)", journey.id, journey.name)
        return ServiceResult(ok=True, op=op, data=journey.to_view(), warnings=warnings)

    @traced
    @guarded
    def update(
        self,
        journey_id: str,
        patch: JourneyPatch | Mapping[str, Any],
        *,
        actor: Actor,
    ) -> ServiceResult:
        """Apply a partial update, re-checking guide, price, and schedule rules."""
        op = "journey.update"
        self._authorize(op, actor, Role.MANAGER)
        changes = self._coerce(op, JourneyPatch, patch).changes()
        journey = self._load(op, self._store.journeys, Journey, journey_id)

        self._check_enums(op, changes)
        for key in ("name", "description"):
            if key in changes and not (changes[key] or "").strip():
                raise Rejected(op, ErrorCode.INVALID_INPUT, f"{key} cannot be empty")
        if "base_price" in changes:
            self._check_price(op, changes["base_price"])
        if "duration" in changes and changes["duration"] is None:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "duration cannot be cleared")
        if changes.get("status") is not None and not is_member(JourneyStatus, changes["status"]):
            raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid status: {changes['status']!r}")
        if changes.get("guide_id") is not None:
            self._require_guide(op, changes["guide_id"])
        if changes.get("provider_id") is not None:
            self._require_provider(op, changes["provider_id"])

        for key, value in changes.items():
            if key == "base_price":
                journey.pricing.base_price = value
            elif key == "currency":
                journey.pricing.currency = value or "USD"
            elif key in ("min_participants", "max_participants"):
                if value is not None:
                    setattr(journey.capacity, key, value)
            elif key == "schedule":
                journey.schedule = value or Schedule()
            elif key in ("destinations", "itinerary"):
                setattr(journey, key, list(value or []))
            elif key == "status":
                if value is not None:
                    journey.status = JourneyStatus(value)
            elif key == "type":
                journey.type = value or "guided"
            elif key in ("name", "description"):
                setattr(journey, key, value.strip())
            else:
                setattr(journey, key, value)

        self._check_shape(op, journey)
        if {"guide_id", "schedule"} & changes.keys():
            self._check_guide_free(op, journey)

        self._persist(self._store.journeys, journey, actor)
        warnings = self._dispatch_event(
            "post_update", journey, actor, fields_changed=sorted(changes)
        )
        logger.info("Updated journey %s: %s", journey.id, sorted(changes))
        data = {**journey.to_view(), "fields_changed": sorted(changes)}
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Guide workflow
    # ------------------------------------------------------------------

    @traced
    @guarded
    def assign_guide(
        self,
        journey_id: str,
        guide_id: str,
        *,
        actor: Actor,
        notes: str | None = None,
    ) -> ServiceResult:
        """Assign *guide_id*, refusing a second journey on the same start date."""
        op = "journey.assign_guide"
        self._authorize(op, actor, Role.AGENT)
        journey = self._load(op, self._store.journeys, Journey, journey_id)
        self._require_guide(op, guide_id)

        previous = journey.guide_id
        journey.guide_id = guide_id
        self._check_guide_free(op, journey)
        if notes is not None:
            journey.assignment_notes = notes

        self._persist(self._store.journeys, journey, actor)
        fields_changed = ["guide_id"] if notes is None else ["assignment_notes", "guide_id"]
        warnings = self._dispatch_event(
            "post_update", journey, actor, fields_changed=fields_changed
        )
        logger.info("Assigned guide %s to journey %s", guide_id, journey.id)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": journey.id,
                "guide_id": guide_id,
                "previous_guide_id": previous,
                "assignment_notes": journey.assignment_notes,
            },
            warnings=warnings,
        )

    @traced
    @guarded
    def update_status(
        self,
        journey_id: str,
        status: str,
        *,
        actor: Actor,
        notes: str | None = None,
    ) -> ServiceResult:
        """Guide/staff status change within the guide-visible statuses."""
        op = "journey.update_status"
        if status not in JOURNEY_GUIDE_STATUSES:
            raise Rejected(
                op,
                ErrorCode.INVALID_INPUT,
                f"Invalid status: {status!r}",
                allowed=sorted(JOURNEY_GUIDE_STATUSES),
            )
        self._authorize(op, actor, Role.GUIDE, Role.AGENT)
        journey = self._load(op, self._store.journeys, Journey, journey_id)
        if not actor.is_staff and journey.guide_id != actor.id:
            raise Rejected(op, ErrorCode.FORBIDDEN, "Journey is not assigned to this guide")

        previous = journey.status
        journey.status = JourneyStatus(status)
        if notes:
            journey.add_guide_note(
                notes, guide_id=actor.id, note_type=GuideNoteType.STATUS, now=self._now()
            )

        self._persist(self._store.journeys, journey, actor)
        warnings = self._dispatch_event(
            "post_status_change",
            journey,
            actor,
            old_status=str(previous),
            new_status=status,
        )
        logger.info("Journey %s status %s -> %s", journey.id, previous, status)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": journey.id, "previous_status": str(previous), "status": status},
            warnings=warnings,
        )

    @traced
    @guarded
    def add_notes(
        self,
        journey_id: str,
        content: str,
        *,
        actor: Actor,
        note_type: str = GuideNoteType.GENERAL,
    ) -> ServiceResult:
        """Append a note from the journey's assigned guide."""
        op = "journey.add_notes"
        self._authorize(op, actor, Role.GUIDE)
        if not (content or "").strip():
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Note content is required")
        if not is_member(GuideNoteType, note_type):
            raise Rejected(op, ErrorCode.INVALID_INPUT, f"Invalid note type: {note_type!r}")
        journey = self._load(op, self._store.journeys, Journey, journey_id)
        if journey.guide_id != actor.id:
            raise Rejected(op, ErrorCode.FORBIDDEN, "Journey is not assigned to this guide")

        note = journey.add_guide_note(
            content.strip(), guide_id=actor.id, note_type=note_type, now=self._now()
        )
        self._persist(self._store.journeys, journey, actor)
        warnings = self._dispatch_event(
            "post_update", journey, actor, fields_changed=["guide_notes"]
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": journey.id,
                "note": note.model_dump(mode="json"),
                "note_count": len(journey.guide_notes),
            },
            warnings=warnings,
        )

    @traced
    @guarded
    def add_review(
        self,
        journey_id: str,
        rating: int,
        *,
        actor: Actor,
        comment: str | None = None,
    ) -> ServiceResult:
        """Add a 1–5 review; the journey's average is rounded to one decimal."""
        op = "journey.add_review"
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise Rejected(op, ErrorCode.INVALID_INPUT, "Rating must be an integer between 1 and 5")
        journey = self._load(op, self._store.journeys, Journey, journey_id)
        journey.add_review(rating, user_id=actor.id, comment=comment, now=self._now())
        self._persist(self._store.journeys, journey, actor)
        warnings = self._dispatch_event(
            "post_update", journey, actor, fields_changed=["reviews"]
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": journey.id,
                "average_rating": journey.average_rating,
                "review_count": len(journey.reviews),
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    @traced
    @guarded
    def update_capacity(self, journey_id: str, delta: int, *, actor: Actor) -> ServiceResult:
        """Shift booked capacity by *delta* (floored at 0, no upper bound)."""
        op = "journey.update_capacity"
        self._authorize(op, actor, Role.AGENT)
        journey = self._load(op, self._store.journeys, Journey, journey_id)
        journey.update_capacity(delta)
        self._persist(self._store.journeys, journey, actor)

        warnings = self._dispatch_event(
            "post_update", journey, actor, fields_changed=["current_bookings"]
        )
        if journey.is_overbooked:
            warnings.append(
                f"Journey {journey.id} is overbooked: "
                f"{journey.capacity.current_bookings}/{journey.capacity.max_participants}"
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": journey.id,
                "current_bookings": journey.capacity.current_bookings,
                "remaining_spots": journey.remaining_spots,
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    @traced
    @guarded
    def delete(self, journey_id: str, *, actor: Actor) -> ServiceResult:
        """Soft-delete, unless an active booking still references the journey."""
        op = "journey.delete"
        self._authorize(op, actor, Role.MANAGER)
        journey = self._load(op, self._store.journeys, Journey, journey_id)

        active = self._conflicts.active_bookings_for_journey(journey.id)
        if active:
            raise Rejected(
                op,
                ErrorCode.CONFLICT,
                f"Journey has {active} active bookings",
                active_bookings=active,
            )
        warnings = self._soft_delete(op, self._store.journeys, journey, actor)
        logger.info("Deleted journey %s", journey.id)
        return ServiceResult(
            ok=True, op=op, data={"id": journey.id, "deleted": True}, warnings=warnings
        )

    @traced
    @guarded
    def restore(self, journey_id: str, *, actor: Actor) -> ServiceResult:
        op = "journey.restore"
        self._authorize(op, actor, Role.MANAGER)
        journey = self._load(op, self._store.journeys, Journey, journey_id, include_deleted=True)
        warnings = self._restore(op, self._store.journeys, journey, actor)
        return ServiceResult(ok=True, op=op, data=journey.to_view(), warnings=warnings)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    @guarded
    def get(self, journey_id: str, *, include_deleted: bool = False) -> ServiceResult:
        op = "journey.get"
        journey = self._load(
            op, self._store.journeys, Journey, journey_id, include_deleted=include_deleted
        )
        return ServiceResult(ok=True, op=op, data=journey.to_view())

    @traced
    @guarded
    def list_items(
        self,
        *,
        status: str | None = None,
        category: str | None = None,
        guide_id: str | None = None,
        provider_id: str | None = None,
        include_deleted: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> ServiceResult:
        op = "journey.list_items"
        filters = drop_none(
            {
                "status": status,
                "category": category,
                "guide_id": guide_id,
                "provider_id": provider_id,
            }
        )
        rows = self._store.journeys.find(
            filters, include_deleted=include_deleted, limit=clamp_limit(limit), offset=offset
        )
        items = [Journey.from_row(r).to_view() for r in rows]
        total = self._store.journeys.count(filters, include_deleted=include_deleted)
        return ServiceResult(
            ok=True, op=op, data={"count": len(items), "total": total, "items": items}
        )

    @traced
    @guarded
    def stats(self, *, actor: Actor) -> ServiceResult:
        op = "journey.stats"
        self._authorize(op, actor, Role.MANAGER)
        data = AggregationService(self._store, clock=self._clock).journey_stats()
        return ServiceResult(ok=True, op=op, data=data)
