"""Shared pytest fixtures and test helpers for kizuna tests."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from kizuna.config.settings import KizunaSettings
from kizuna.domain.roles import Actor, Role
from kizuna.infrastructure.database.engine import init_database
from kizuna.infrastructure.store import Store

# Pinned "now" for service tests; travel dates are a month later.
NOW = datetime(2027, 3, 1, 9, 0, tzinfo=UTC)
TRAVEL = datetime(2027, 4, 1, 8, 0, tzinfo=UTC)

ADMIN = Actor(id="usr_00000000ad01", role=Role.ADMIN)
MANAGER = Actor(id="usr_00000000aa02", role=Role.MANAGER)
AGENT = Actor(id="usr_00000000a003", role=Role.AGENT)

_KIZUNA_ENV = ("KIZUNA_CONFIG", "KIZUNA_ACTOR", "KIZUNA_ROLE", "KIZUNA_JSON_OUTPUT")


def fixed_clock() -> datetime:
    return NOW


def as_customer(user: dict[str, Any]) -> Actor:
    return Actor(id=user["id"], role=Role.CUSTOMER)


def as_guide(user: dict[str, Any]) -> Actor:
    return Actor(id=user["id"], role=Role.GUIDE)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's KIZUNA_* variables out of the tests."""
    for name in _KIZUNA_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def settings(tmp_path: Path) -> KizunaSettings:
    return KizunaSettings.from_cli(workspace_root=tmp_path)


@pytest.fixture
def store(settings: KizunaSettings) -> Generator[Store]:
    """Store over a fresh database in the temp workspace."""
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated workspace.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Seed data (used across service test modules)
# ---------------------------------------------------------------------------


class Seed:
    """Creates entities through the services, asserting success."""

    def __init__(self, store: Store, clock: Callable[[], datetime] = fixed_clock) -> None:
        self.store = store
        self.clock = clock
        self._n = itertools.count(1)

    def user(self, role: str = Role.CUSTOMER, **fields: Any) -> dict[str, Any]:
        from kizuna.services.users import UserService

        n = next(self._n)
        data = {"email": f"{role}{n}@example.com", "first_name": f"{role.title()} {n}"}
        data.update(role=role, **fields)
        result = UserService(self.store, clock=self.clock).register(data, actor=ADMIN)
        assert result.ok, result.error
        return result.data

    def customer(self, **fields: Any) -> dict[str, Any]:
        return self.user(Role.CUSTOMER, **fields)

    def guide(self, **fields: Any) -> dict[str, Any]:
        return self.user(Role.GUIDE, **fields)

    def provider(self, **fields: Any) -> dict[str, Any]:
        from kizuna.services.provider import ProviderService

        data: dict[str, Any] = {"name": f"Provider {next(self._n)}", "type": "hotel"}
        data.update(fields)
        result = ProviderService(self.store, clock=self.clock).create(data, actor=MANAGER)
        assert result.ok, result.error
        return result.data

    def journey(self, **fields: Any) -> dict[str, Any]:
        from kizuna.services.journey import JourneyService

        data: dict[str, Any] = {
            "name": f"Journey {next(self._n)}",
            "description": "Temples, gardens, and a tea ceremony",
            "base_price": 100.0,
            "duration": {"days": 3, "nights": 2},
            "status": "active",
            "schedule": {"start_date": "2027-04-01", "end_date": "2027-04-03"},
        }
        data.update(fields)
        result = JourneyService(self.store, clock=self.clock).create(data, actor=MANAGER)
        assert result.ok, result.error
        return result.data

    def booking(
        self, journey: dict[str, Any], customer: dict[str, Any], **fields: Any
    ) -> dict[str, Any]:
        from kizuna.services.booking import BookingService

        data: dict[str, Any] = {"journey_id": journey["id"], "travel_date": TRAVEL}
        data.update(fields)
        result = BookingService(self.store, clock=self.clock).create(
            data, actor=as_customer(customer)
        )
        assert result.ok, result.error
        return result.data


@pytest.fixture
def seed(store: Store) -> Seed:
    return Seed(store)
