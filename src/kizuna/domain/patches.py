"""Typed drafts (create input) and patches (partial update input).

Every field a caller may set is declared explicitly; unknown keys are
rejected (``extra="forbid"``) so callers cannot write arbitrary columns.
NaN and infinity are rejected for every float field.
Enum-valued fields are plain strings here because the services own
those rules and report violations as INVALID_INPUT.

A patch distinguishes "not given" from "set to None" through
``model_fields_set``; :meth:`Patch.changes` returns only the given fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from kizuna.domain.entities import (
    Address,
    Destination,
    Duration,
    ItineraryDay,
    Passenger,
    ProviderContact,
    Schedule,
)


class Patch(BaseModel):
    """Base for drafts and patches."""

    model_config = {"extra": "forbid", "frozen": True, "allow_inf_nan": False}

    def changes(self) -> dict[str, Any]:
        """Explicitly provided fields, in declaration order."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if name in self.model_fields_set
        }


# --- Users ---


class UserDraft(Patch):
    email: str | None = None
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    role: str = "customer"
    status: str | None = None


# --- Providers ---


class ProviderDraft(Patch):
    name: str | None = None
    legal_name: str | None = None
    description: str | None = None
    type: str | None = None
    status: str | None = None
    rating: float | None = None
    is_verified: bool = False
    address: Address | None = None
    contact: ProviderContact | None = None
    max_guests: int | None = Field(default=None, ge=0)


class ProviderPatch(Patch):
    name: str | None = None
    legal_name: str | None = None
    description: str | None = None
    type: str | None = None
    status: str | None = None
    rating: float | None = None
    is_verified: bool | None = None
    address: Address | None = None
    contact: ProviderContact | None = None
    max_guests: int | None = Field(default=None, ge=0)


# --- Journeys ---


class JourneyDraft(Patch):
    name: str | None = None
    description: str | None = None
    short_description: str | None = None
    category: str | None = None
    type: str = "guided"
    base_price: float | None = None
    currency: str = "USD"
    duration: Duration | None = None
    destinations: list[Destination] = Field(default_factory=list)
    min_participants: int = Field(default=1, ge=1)
    max_participants: int = Field(default=20, ge=1)
    schedule: Schedule | None = None
    guide_id: str | None = None
    provider_id: str | None = None
    status: str | None = None
    itinerary: list[ItineraryDay] = Field(default_factory=list)


class JourneyPatch(Patch):
    name: str | None = None
    description: str | None = None
    short_description: str | None = None
    category: str | None = None
    type: str | None = None
    base_price: float | None = None
    currency: str | None = None
    duration: Duration | None = None
    destinations: list[Destination] | None = None
    min_participants: int | None = Field(default=None, ge=1)
    max_participants: int | None = Field(default=None, ge=1)
    schedule: Schedule | None = None
    guide_id: str | None = None
    provider_id: str | None = None
    status: str | None = None
    itinerary: list[ItineraryDay] | None = None


# --- Bookings ---


class BookingDraft(Patch):
    journey_id: str | None = None
    customer_id: str | None = None
    travel_date: datetime | None = None
    return_date: datetime | None = None
    participants: int | None = Field(default=None, ge=1)
    passengers: list[Passenger] = Field(default_factory=list)
    discount: float = Field(default=0.0, ge=0)
    tax: float = Field(default=0.0, ge=0)
    total_price: float | None = Field(default=None, ge=0)
    payment_method: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    special_requests: str | None = None


class MyBookingPatch(Patch):
    """Fields a customer may change on their own booking."""

    travel_date: datetime | None = None
    return_date: datetime | None = None
    participants: int | None = Field(default=None, ge=1)
    passengers: list[Passenger] | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    special_requests: str | None = None


class StaffBookingPatch(MyBookingPatch):
    """Customer fields plus the ones only staff may touch."""

    status: str | None = None
    payment_status: str | None = None
    payment_method: str | None = None
    discount: float | None = Field(default=None, ge=0)
    tax: float | None = Field(default=None, ge=0)
    notes: str | None = None
