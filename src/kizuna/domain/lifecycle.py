"""Status enums and transition rules for providers, journeys, bookings, and users.

Two kinds of rules live here:
- Transition maps: enforced on customer-facing booking operations.
- Allowed-status sets: the only check applied to staff/guide status
  updates, which deliberately bypass the transition maps.
"""

from __future__ import annotations

from enum import StrEnum

# --- Status enums ---


class ProviderStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    ARCHIVED = "archived"


class JourneyStatus(StrEnum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"
    SUSPENDED = "suspended"


class BookingStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class UserStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING = "pending"


# --- Transition maps ---

BOOKING_CUSTOMER_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["confirmed", "cancelled"],
    "confirmed": ["in_progress", "cancelled"],
    "in_progress": ["completed", "cancelled"],
    "completed": [],
    "cancelled": [],
    "no_show": [],
}

# --- Allowed-status sets ---

JOURNEY_CREATE_STATUSES: frozenset[str] = frozenset({"draft", "active"})

JOURNEY_GUIDE_STATUSES: frozenset[str] = frozenset(
    {"active", "in_progress", "completed", "cancelled"}
)

BOOKING_STAFF_STATUSES: frozenset[str] = frozenset(
    {"pending", "confirmed", "in_progress", "completed", "cancelled"}
)

# Bookings in these states still hold a claim on their journey.
ACTIVE_BOOKING_STATUSES: frozenset[str] = frozenset({"pending", "confirmed", "in_progress"})

# Customers cannot edit date/participants once a booking reaches these.
CUSTOMER_LOCKED_STATUSES: frozenset[str] = frozenset({"confirmed", "completed", "cancelled"})

# Customers cannot cancel once a booking reaches these.
CUSTOMER_CANCEL_BLOCKED: frozenset[str] = frozenset({"completed", "cancelled"})

# Bookings counted as earned revenue.
REVENUE_BOOKING_STATUSES: frozenset[str] = frozenset({"confirmed", "completed"})


def is_valid_transition(current: str, target: str, transitions: dict[str, list[str]]) -> bool:
    """Check whether transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed
