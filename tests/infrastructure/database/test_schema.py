"""Tests for the table definitions."""

from kizuna.domain.meta import META_COLUMNS
from kizuna.infrastructure.database.schema import bookings, journeys, metadata, providers, users


def test_every_table_carries_meta_columns() -> None:
    for table in (users, providers, journeys, bookings):
        assert set(META_COLUMNS) <= set(table.c.keys()), table.name


def test_meta_columns_are_not_shared() -> None:
    assert users.c.created_at is not providers.c.created_at


def test_registered_tables() -> None:
    assert set(metadata.tables) >= {"users", "providers", "journeys", "bookings"}
