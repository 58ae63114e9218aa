"""Database engine setup for SQLite with WAL mode.

The DB is stored at ``{workspace_root}/.kizuna/kizuna.db`` unless a
``[database] url`` override is configured.

SQLAlchemy Core (not ORM) is used: each service call is a short
load → validate → mutate → save sequence with no need for an identity map.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from kizuna.infrastructure.database.schema import metadata

DATA_DIRNAME = ".kizuna"
DEFAULT_DB_FILENAME = "kizuna.db"


def database_url(workspace_root: Path, filename: str = DEFAULT_DB_FILENAME) -> str:
    """SQLite URL for the database file under *workspace_root*."""
    return f"sqlite:///{workspace_root / DATA_DIRNAME / filename}"


def create_db_engine(url: str) -> Engine:
    """Create an engine.

    SQLite connections get WAL mode, foreign keys, and a Unicode-aware
    ``casefold()`` SQL function for case-insensitive lookups.
    """
    engine = create_engine(url, echo=False)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)

    return engine


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def init_database(
    workspace_root: Path,
    *,
    url: str | None = None,
    filename: str | None = None,
) -> Engine:
    """Initialize the kizuna database and create all tables.

    Creates ``{workspace_root}/.kizuna/`` when the default file location
    is used. Idempotent — safe to call on an existing database.

    Returns the engine ready for use.
    """
    if url is None:
        (workspace_root / DATA_DIRNAME).mkdir(parents=True, exist_ok=True)
        url = database_url(workspace_root, filename or DEFAULT_DB_FILENAME)

    engine = create_db_engine(url)
    metadata.create_all(engine)
    return engine
