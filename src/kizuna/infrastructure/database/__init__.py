"""SQLite database engine and schema via SQLAlchemy Core."""

from kizuna.infrastructure.database.engine import create_db_engine, database_url, init_database
from kizuna.infrastructure.database.schema import bookings, journeys, metadata, providers, users

__all__ = [
    "bookings",
    "create_db_engine",
    "database_url",
    "init_database",
    "journeys",
    "metadata",
    "providers",
    "users",
]
