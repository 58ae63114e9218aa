"""Entity-specific repositories: table binding plus the queries services need."""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import Engine

from kizuna.infrastructure.database.schema import bookings, journeys, providers, users
from kizuna.infrastructure.repositories.base import EntityRepository


class UserRepository(EntityRepository):
    def __init__(self, engine: Engine) -> None:
        super().__init__(engine, users)

    def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Look up a user by email, case-insensitively, deleted users included."""
        rows = self.find({"email__iexact": email}, include_deleted=True, limit=1)
        return rows[0] if rows else None


class ProviderRepository(EntityRepository):
    def __init__(self, engine: Engine) -> None:
        super().__init__(engine, providers)

    def name_taken(self, name: str, *, exclude_id: str | None = None) -> bool:
        """True if a non-deleted provider already uses *name* (any case)."""
        filters: dict[str, Any] = {"name__iexact": name}
        if exclude_id is not None:
            filters["id__ne"] = exclude_id
        return self.exists(filters)


class JourneyRepository(EntityRepository):
    def __init__(self, engine: Engine) -> None:
        super().__init__(engine, journeys)

    def guide_journey_ids_on(
        self,
        guide_id: str,
        start_date: str,
        *,
        exclude_id: str | None = None,
    ) -> list[str]:
        """IDs of non-deleted journeys led by *guide_id* starting on *start_date*."""
        filters: dict[str, Any] = {"guide_id": guide_id, "start_date": start_date}
        if exclude_id is not None:
            filters["id__ne"] = exclude_id
        return [str(v) for v in self.values("id", filters)]


class BookingRepository(EntityRepository):
    def __init__(self, engine: Engine) -> None:
        super().__init__(engine, bookings)
