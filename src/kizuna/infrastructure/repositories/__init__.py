"""Per-entity repositories over the SQLAlchemy Core tables."""

from kizuna.infrastructure.repositories.base import EntityRepository
from kizuna.infrastructure.repositories.entities import (
    BookingRepository,
    JourneyRepository,
    ProviderRepository,
    UserRepository,
)

__all__ = [
    "BookingRepository",
    "EntityRepository",
    "JourneyRepository",
    "ProviderRepository",
    "UserRepository",
]
