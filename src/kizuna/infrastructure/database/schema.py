"""SQLAlchemy Core table definitions for the kizuna database.

Every entity table carries the same block of audit/soft-delete columns
(see :func:`_meta_columns`). Nested value objects are stored in JSON
columns; fields that are filtered, counted, or summed get real columns.
Timestamps are ISO-8601 UTC strings with fixed microsecond precision so
string comparison matches chronological order.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    REAL,
    Boolean,
    Column,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()


def _meta_columns() -> list[Column]:
    """Fresh copies of the shared audit columns (a Column belongs to one Table)."""
    return [
        Column("created_at", Text, nullable=False),
        Column("updated_at", Text, nullable=False),
        Column("created_by", Text),
        Column("updated_by", Text),
        Column("version", Integer, nullable=False, default=0, server_default="0"),
        Column("is_active", Boolean, nullable=False, default=True, server_default="1"),
        Column("is_deleted", Boolean, nullable=False, default=False, server_default="0"),
        Column("deleted_at", Text),
        Column("deleted_by", Text),
        Column("login_attempts", Integer, nullable=False, default=0, server_default="0"),
        Column("lock_until", Text),
        Column("last_login", Text),
    ]


users = Table(
    "users",
    metadata,
    Column("id", Text, primary_key=True),
    Column("email", Text, nullable=False, unique=True),
    Column("first_name", Text),
    Column("last_name", Text),
    Column("phone", Text),
    Column("role", Text, nullable=False),
    Column("status", Text, nullable=False),
    *_meta_columns(),
)

providers = Table(
    "providers",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("legal_name", Text),
    Column("description", Text),
    Column("type", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("is_verified", Boolean, default=False, server_default="0"),
    Column("rating_average", REAL, default=0.0, server_default="0.0"),
    Column("rating_count", Integer, default=0, server_default="0"),
    Column("rating_breakdown", JSON),
    Column("address", JSON),
    Column("contact", JSON),
    Column("max_guests", Integer),
    Column("current_bookings", Integer, default=0, server_default="0"),
    *_meta_columns(),
)

journeys = Table(
    "journeys",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("short_description", Text),
    Column("category", Text),
    Column("type", Text, nullable=False),
    Column("duration_days", Integer, nullable=False),
    Column("duration_nights", Integer, default=0, server_default="0"),
    Column("destinations", JSON),
    Column("base_price", REAL, nullable=False),
    Column("currency", Text, nullable=False),
    Column("min_participants", Integer, default=1, server_default="1"),
    Column("max_participants", Integer, default=20, server_default="20"),
    Column("current_bookings", Integer, default=0, server_default="0"),
    Column("start_date", Text),  # YYYY-MM-DD
    Column("end_date", Text),
    Column("guide_id", Text),
    Column("provider_id", Text),
    Column("status", Text, nullable=False),
    Column("itinerary", JSON),
    Column("assignment_notes", Text),
    Column("guide_notes", JSON),
    Column("reviews", JSON),
    *_meta_columns(),
)

bookings = Table(
    "bookings",
    metadata,
    Column("id", Text, primary_key=True),
    Column("customer_id", Text),
    Column("journey_id", Text, nullable=False),
    Column("guide_id", Text),
    Column("travel_date", Text, nullable=False),
    Column("return_date", Text),
    Column("participants", Integer, nullable=False),
    Column("passengers", JSON),
    Column("base_price", REAL, default=0.0, server_default="0.0"),
    Column("discount", REAL, default=0.0, server_default="0.0"),
    Column("tax", REAL, default=0.0, server_default="0.0"),
    Column("total_price", REAL, default=0.0, server_default="0.0"),
    Column("payment_status", Text, nullable=False),
    Column("payment_method", Text),
    Column("payment_date", Text),
    Column("transaction_id", Text),
    Column("status", Text, nullable=False),
    Column("contact_email", Text),
    Column("contact_phone", Text),
    Column("special_requests", Text),
    Column("notes", Text),
    Column("cancellation_reason", Text),
    Column("cancellation_date", Text),
    *_meta_columns(),
)

# --- Indexes for the default (non-deleted) scope and conflict scans ---

Index("ix_users_role", users.c.role)
Index("ix_providers_type", providers.c.type)
Index("ix_providers_is_deleted", providers.c.is_deleted)
Index("ix_journeys_guide_start", journeys.c.guide_id, journeys.c.start_date)
Index("ix_journeys_provider_status", journeys.c.provider_id, journeys.c.status)
Index("ix_journeys_is_deleted", journeys.c.is_deleted)
Index("ix_bookings_journey_status", bookings.c.journey_id, bookings.c.status)
Index("ix_bookings_customer", bookings.c.customer_id)
Index("ix_bookings_is_deleted", bookings.c.is_deleted)
