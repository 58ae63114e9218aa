"""AggregationService — read-only statistics over non-deleted entities.

Every figure except ``deleted`` is computed in the default soft-delete
scope. ``recent`` counts entities created within the configured window
(``[stats] recent_days``, default 7).
"""

from __future__ import annotations

from typing import Any

from kizuna.domain.lifecycle import REVENUE_BOOKING_STATUSES
from kizuna.domain.roles import Actor, Role
from kizuna.infrastructure.repositories import EntityRepository
from kizuna.services._helpers import floor_buckets, recent_cutoff
from kizuna.services.base import BaseService, guarded
from kizuna.services.result import ServiceResult
from kizuna.services.telemetry import trace_span, traced


class AggregationService(BaseService):
    """Counts, group-bys, and sums for the provider/journey/booking stats views."""

    entity = "stats"

    def _common(self, repo: EntityRepository) -> dict[str, Any]:
        cutoff = recent_cutoff(self._now(), self._store.settings.stats.recent_days)
        return {
            "total": repo.count(),
            "deleted": repo.count({"is_deleted": True}, include_deleted=True),
            "recent": repo.count({"created_at__gte": cutoff}),
        }

    def provider_stats(self) -> dict[str, Any]:
        repo = self._store.providers
        with trace_span("provider_stats"):
            return {
                **self._common(repo),
                "by_type": repo.count_by("type"),
                "by_rating": floor_buckets(repo.values("rating_average")),
                "average_rating": round(
                    repo.average("rating_average", {"rating_average__gt": 0}), 2
                ),
            }

    def journey_stats(self) -> dict[str, Any]:
        repo = self._store.journeys
        with trace_span("journey_stats"):
            return {
                **self._common(repo),
                "by_status": repo.count_by("status"),
                "by_category": repo.count_by("category"),
                "total_value": round(repo.total("base_price"), 2),
            }

    def booking_stats(self) -> dict[str, Any]:
        repo = self._store.bookings
        with trace_span("booking_stats"):
            return {
                **self._common(repo),
                "by_status": repo.count_by("status"),
                "total_revenue": round(
                    repo.total("total_price", {"status__in": REVENUE_BOOKING_STATUSES}), 2
                ),
            }

    @traced
    @guarded
    def overview(self, *, actor: Actor) -> ServiceResult:
        """All three stats blocks in one result."""
        op = "stats.overview"
        self._authorize(op, actor, Role.MANAGER)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "providers": self.provider_stats(),
                "journeys": self.journey_stats(),
                "bookings": self.booking_stats(),
            },
        )
