"""Tests for ConflictService — guide clashes, dependent counts, capacity recompute."""

from __future__ import annotations

from datetime import date

import pytest

from kizuna.infrastructure.store import Store
from kizuna.services.booking import BookingService
from kizuna.services.conflicts import ConflictService
from kizuna.services.journey import JourneyService
from tests.conftest import AGENT, MANAGER, Seed, as_customer, fixed_clock


@pytest.fixture
def svc(store: Store) -> ConflictService:
    return ConflictService(store, clock=fixed_clock)


class TestQueries:
    def test_guide_conflicts(self, svc: ConflictService, seed: Seed) -> None:
        guide = seed.guide()
        journey = seed.journey(guide_id=guide["id"])
        assert svc.guide_conflicts(guide["id"], date(2027, 4, 1)) == [journey["id"]]
        assert svc.guide_conflicts(guide["id"], date(2027, 4, 2)) == []
        assert svc.guide_conflicts(
            guide["id"], date(2027, 4, 1), exclude_journey_id=journey["id"]
        ) == []

    def test_no_start_date(self, svc: ConflictService, seed: Seed) -> None:
        guide = seed.guide()
        seed.journey(guide_id=guide["id"])
        assert svc.guide_conflicts(guide["id"], None) == []

    def test_active_bookings_ignores_cancelled(
        self, svc: ConflictService, seed: Seed, store: Store
    ) -> None:
        journey = seed.journey()
        customer = seed.customer()
        seed.booking(journey, customer)
        cancelled = seed.booking(journey, customer)
        BookingService(store, clock=fixed_clock).cancel_mine(
            cancelled["id"], actor=as_customer(customer)
        )
        assert svc.active_bookings_for_journey(journey["id"]) == 1

    def test_active_journeys_for_provider(self, svc: ConflictService, seed: Seed) -> None:
        provider = seed.provider()
        seed.journey(provider_id=provider["id"])
        seed.journey(provider_id=provider["id"], status="draft")
        assert svc.active_journeys_for_provider(provider["id"]) == 1

    def test_booked_participants(self, svc: ConflictService, seed: Seed) -> None:
        journey = seed.journey()
        seed.booking(journey, seed.customer(), participants=3)
        seed.booking(journey, seed.customer(), participants=2)
        assert svc.booked_participants(journey["id"]) == 5


class TestRecomputeCapacity:
    def test_sets_current_bookings(self, svc: ConflictService, seed: Seed) -> None:
        journey = seed.journey(max_participants=10)
        seed.booking(journey, seed.customer(), participants=3)
        result = svc.recompute_capacity(journey["id"], actor=AGENT)
        assert result.ok
        assert result.op == "conflict.recompute_capacity"
        assert result.data == {
            "id": journey["id"],
            "previous": 0,
            "current_bookings": 3,
            "max_participants": 10,
            "remaining_spots": 7,
        }
        assert result.warnings == []

    def test_overbooked_warning(self, svc: ConflictService, seed: Seed) -> None:
        journey = seed.journey(max_participants=2)
        seed.booking(journey, seed.customer(), participants=3)
        result = svc.recompute_capacity(journey["id"], actor=AGENT)
        assert result.ok
        assert "overbooked" in result.warnings[0]

    def test_corrects_manual_drift(self, svc: ConflictService, seed: Seed, store: Store) -> None:
        journey = seed.journey()
        JourneyService(store, clock=fixed_clock).update_capacity(journey["id"], 9, actor=AGENT)
        result = svc.recompute_capacity(journey["id"], actor=AGENT)
        assert result.data["previous"] == 9
        assert result.data["current_bookings"] == 0

    def test_requires_staff(self, svc: ConflictService, seed: Seed) -> None:
        journey = seed.journey()
        result = svc.recompute_capacity(journey["id"], actor=as_customer(seed.customer()))
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"

    def test_deleted_journey(self, svc: ConflictService, seed: Seed, store: Store) -> None:
        journey = seed.journey()
        JourneyService(store, clock=fixed_clock).delete(journey["id"], actor=MANAGER)
        result = svc.recompute_capacity(journey["id"], actor=AGENT)
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
