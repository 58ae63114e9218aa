"""Baseline schema — users, providers, journeys, bookings.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-12

Fresh databases created by ``kizuna init`` are stamped at this revision
without running it; it is applied by ``kizuna upgrade`` on an empty
database.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def _meta_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
        sa.Column("created_by", sa.Text),
        sa.Column("updated_by", sa.Text),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("deleted_at", sa.Text),
        sa.Column("deleted_by", sa.Text),
        sa.Column("login_attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("lock_until", sa.Text),
        sa.Column("last_login", sa.Text),
    ]


def upgrade() -> None:
    # users
    op.create_table(
        "users",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("email", sa.Text, nullable=False, unique=True),
        sa.Column("first_name", sa.Text),
        sa.Column("last_name", sa.Text),
        sa.Column("phone", sa.Text),
        sa.Column("role", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False),
        *_meta_columns(),
    )
    op.create_index("ix_users_role", "users", ["role"])

    # providers
    op.create_table(
        "providers",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("legal_name", sa.Text),
        sa.Column("description", sa.Text),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False),
        sa.Column("is_verified", sa.Boolean, server_default="0"),
        sa.Column("rating_average", sa.REAL, server_default="0.0"),
        sa.Column("rating_count", sa.Integer, server_default="0"),
        sa.Column("rating_breakdown", sa.JSON),
        sa.Column("address", sa.JSON),
        sa.Column("contact", sa.JSON),
        sa.Column("max_guests", sa.Integer),
        sa.Column("current_bookings", sa.Integer, server_default="0"),
        *_meta_columns(),
    )
    op.create_index("ix_providers_type", "providers", ["type"])
    op.create_index("ix_providers_is_deleted", "providers", ["is_deleted"])

    # journeys
    op.create_table(
        "journeys",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("short_description", sa.Text),
        sa.Column("category", sa.Text),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("duration_days", sa.Integer, nullable=False),
        sa.Column("duration_nights", sa.Integer, server_default="0"),
        sa.Column("destinations", sa.JSON),
        sa.Column("base_price", sa.REAL, nullable=False),
        sa.Column("currency", sa.Text, nullable=False),
        sa.Column("min_participants", sa.Integer, server_default="1"),
        sa.Column("max_participants", sa.Integer, server_default="20"),
        sa.Column("current_bookings", sa.Integer, server_default="0"),
        sa.Column("start_date", sa.Text),
        sa.Column("end_date", sa.Text),
        sa.Column("guide_id", sa.Text),
        sa.Column("provider_id", sa.Text),
        sa.Column("status", sa.Text, nullable=False),
        sa.Column("itinerary", sa.JSON),
        sa.Column("assignment_notes", sa.Text),
        sa.Column("guide_notes", sa.JSON),
        sa.Column("reviews", sa.JSON),
        *_meta_columns(),
    )
    op.create_index("ix_journeys_guide_start", "journeys", ["guide_id", "start_date"])
    op.create_index("ix_journeys_provider_status", "journeys", ["provider_id", "status"])
    op.create_index("ix_journeys_is_deleted", "journeys", ["is_deleted"])

    # bookings
    op.create_table(
        "bookings",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("customer_id", sa.Text),
        sa.Column("journey_id", sa.Text, nullable=False),
        sa.Column("guide_id", sa.Text),
        sa.Column("travel_date", sa.Text, nullable=False),
        sa.Column("return_date", sa.Text),
        sa.Column("participants", sa.Integer, nullable=False),
        sa.Column("passengers", sa.JSON),
        sa.Column("base_price", sa.REAL, server_default="0.0"),
        sa.Column("discount", sa.REAL, server_default="0.0"),
        sa.Column("tax", sa.REAL, server_default="0.0"),
        sa.Column("total_price", sa.REAL, server_default="0.0"),
        sa.Column("payment_status", sa.Text, nullable=False),
        sa.Column("payment_method", sa.Text),
        sa.Column("payment_date", sa.Text),
        sa.Column("transaction_id", sa.Text),
        sa.Column("status", sa.Text, nullable=False),
        sa.Column("contact_email", sa.Text),
        sa.Column("contact_phone", sa.Text),
        sa.Column("special_requests", sa.Text),
        sa.Column("notes", sa.Text),
        sa.Column("cancellation_reason", sa.Text),
        sa.Column("cancellation_date", sa.Text),
        *_meta_columns(),
    )
    op.create_index("ix_bookings_journey_status", "bookings", ["journey_id", "status"])
    op.create_index("ix_bookings_customer", "bookings", ["customer_id"])
    op.create_index("ix_bookings_is_deleted", "bookings", ["is_deleted"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("journeys")
    op.drop_table("providers")
    op.drop_table("users")
