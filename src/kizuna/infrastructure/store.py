"""Store — the persistence handle injected into every service.

Owns the database engine and one repository per entity. Constructed once
per process (CLI startup, test fixture) from :class:`KizunaSettings` and
passed to each :class:`~kizuna.services.base.BaseService`; there is no
module-level singleton. An optional :class:`PluginManager` rides along
so services can fire lifecycle hooks.

Each repository ``save`` is its own transaction. Operations that read
other entities for a check (guide conflicts, dependent bookings) do so
before the write, outside that transaction.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from kizuna.infrastructure.database.engine import database_url, init_database
from kizuna.infrastructure.repositories import (
    BookingRepository,
    JourneyRepository,
    ProviderRepository,
    UserRepository,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from kizuna.config.settings import KizunaSettings
    from kizuna.plugins import PluginManager

logger = logging.getLogger(__name__)


class Store:
    """Repository bundle over a single SQLAlchemy engine."""

    def __init__(self, settings: KizunaSettings, *, plugins: PluginManager | None = None) -> None:
        self._settings = settings
        self.plugins = plugins
        db = settings.database
        self._url = db.url or database_url(self.root, db.filename)
        self._engine: Engine = init_database(self.root, url=db.url, filename=db.filename)
        self.users = UserRepository(self._engine)
        self.providers = ProviderRepository(self._engine)
        self.journeys = JourneyRepository(self._engine)
        self.bookings = BookingRepository(self._engine)
        logger.debug("Store opened at %s", self._url)

    @property
    def root(self) -> Path:
        """The workspace root directory."""
        return self._settings.workspace_root

    @property
    def url(self) -> str:
        """Database URL (used by Alembic)."""
        return self._url

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> KizunaSettings:
        return self._settings

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()
