"""Tests for BookingService — creation, customer/staff edits, status, payment."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest

from kizuna.domain.roles import Actor, Role
from kizuna.infrastructure.store import Store
from kizuna.services.booking import BookingService
from kizuna.services.journey import JourneyService
from tests.conftest import (
    AGENT,
    MANAGER,
    NOW,
    TRAVEL,
    Seed,
    as_customer,
    as_guide,
    fixed_clock,
)


def _passenger(first: str = "Aiko", last: str = "Sato") -> dict[str, Any]:
    return {"first_name": first, "last_name": last, "date_of_birth": "1990-05-02"}


@pytest.fixture
def svc(store: Store) -> BookingService:
    return BookingService(store, clock=fixed_clock)


class TestCreate:
    def test_prices_from_journey(self, svc: BookingService, seed: Seed) -> None:
        journey = seed.journey(base_price=100.0)
        customer = seed.customer()
        result = svc.create(
            {
                "journey_id": journey["id"],
                "travel_date": TRAVEL,
                "participants": 2,
                "discount": 20.0,
                "tax": 8.5,
            },
            actor=as_customer(customer),
        )
        assert result.ok
        data = result.data
        assert data["id"].startswith("bkg_")
        assert data["customer_id"] == customer["id"]
        assert data["base_price"] == 100.0
        assert data["total_price"] == 188.5
        assert data["status"] == "pending"
        assert data["payment_status"] == "pending"
        assert data["payment_method"] == "credit_card"

    def test_copies_journey_guide(self, svc: BookingService, seed: Seed) -> None:
        guide = seed.guide()
        journey = seed.journey(guide_id=guide["id"])
        booking = seed.booking(journey, seed.customer())
        assert booking["guide_id"] == guide["id"]

    def test_participants_from_passengers(self, seed: Seed) -> None:
        booking = seed.booking(
            seed.journey(), seed.customer(), passengers=[_passenger(), _passenger("Ken")]
        )
        assert booking["participants"] == 2
        assert booking["total_price"] == 200.0

    def test_explicit_total_kept(self, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer(), total_price=90.0)
        assert booking["total_price"] == 90.0
        assert booking["base_price"] == 100.0

    def test_journey_must_be_active(self, svc: BookingService, seed: Seed) -> None:
        journey = seed.journey(status="draft")
        result = svc.create(
            {"journey_id": journey["id"], "travel_date": TRAVEL},
            actor=as_customer(seed.customer()),
        )
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_one_second_ahead_accepted(self, svc: BookingService, seed: Seed) -> None:
        result = svc.create(
            {"journey_id": seed.journey()["id"], "travel_date": NOW + timedelta(seconds=1)},
            actor=as_customer(seed.customer()),
        )
        assert result.ok

    @pytest.mark.parametrize(
        "overrides",
        [
            {"travel_date": NOW},
            {"travel_date": None},
            {"participants": 3, "passengers": [_passenger()]},
            {"participants": 0},
            {"return_date": TRAVEL - timedelta(days=1)},
            {"payment_method": "barter"},
            {"discount": 1000.0},
            {"tax": float("inf")},
            {"total_price": float("nan")},
            {"passengers": [{"first_name": "Aiko"}]},
        ],
    )
    def test_invalid(self, svc: BookingService, seed: Seed, overrides: dict) -> None:
        journey = seed.journey()
        fields = {"journey_id": journey["id"], "travel_date": TRAVEL, **overrides}
        result = svc.create(fields, actor=as_customer(seed.customer()))
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"

    def test_naive_travel_date_is_utc(self, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer(), travel_date="2027-04-01T08:00:00")
        assert booking["travel_date"] == "2027-04-01T08:00:00Z"

    def test_anonymous_forbidden(self, svc: BookingService, seed: Seed) -> None:
        journey = seed.journey()
        result = svc.create(
            {"journey_id": journey["id"], "travel_date": TRAVEL}, actor=Actor(role=Role.CUSTOMER)
        )
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"

    def test_booking_for_someone_else_forbidden(self, svc: BookingService, seed: Seed) -> None:
        journey = seed.journey()
        other = seed.customer()
        result = svc.create(
            {"journey_id": journey["id"], "travel_date": TRAVEL, "customer_id": other["id"]},
            actor=as_customer(seed.customer()),
        )
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"

    def test_overbooking_warns(self, svc: BookingService, seed: Seed) -> None:
        journey = seed.journey(max_participants=2)
        seed.booking(journey, seed.customer(), participants=2)
        result = svc.create(
            {"journey_id": journey["id"], "travel_date": TRAVEL},
            actor=as_customer(seed.customer()),
        )
        assert result.ok
        assert result.warnings == [f"Journey {journey['id']} is overbooked: 3/2"]

    def test_for_customer(self, svc: BookingService, seed: Seed) -> None:
        journey = seed.journey()
        customer = seed.customer()
        result = svc.create_for_customer(
            {"journey_id": journey["id"], "travel_date": TRAVEL, "customer_id": customer["id"]},
            actor=AGENT,
        )
        assert result.ok
        assert result.op == "booking.create_for_customer"
        assert result.data["customer_id"] == customer["id"]
        assert result.data["meta"]["created_by"] == AGENT.id

    def test_for_customer_requires_agent(self, svc: BookingService, seed: Seed) -> None:
        customer = seed.customer()
        result = svc.create_for_customer(
            {
                "journey_id": seed.journey()["id"],
                "travel_date": TRAVEL,
                "customer_id": customer["id"],
            },
            actor=as_customer(customer),
        )
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"

    def test_for_unknown_customer(self, svc: BookingService, seed: Seed) -> None:
        result = svc.create_for_customer(
            {
                "journey_id": seed.journey()["id"],
                "travel_date": TRAVEL,
                "customer_id": "usr_000000000000",
            },
            actor=AGENT,
        )
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestUpdateMine:
    def test_reprices_at_live_price(self, svc: BookingService, seed: Seed, store: Store) -> None:
        journey = seed.journey(base_price=100.0)
        customer = seed.customer()
        booking = seed.booking(journey, customer)
        JourneyService(store, clock=fixed_clock).update(
            journey["id"], {"base_price": 150.0}, actor=MANAGER
        )
        result = svc.update_mine(booking["id"], {"participants": 2}, actor=as_customer(customer))
        assert result.ok
        assert result.data["base_price"] == 150.0
        assert result.data["total_price"] == 300.0
        assert result.data["fields_changed"] == ["participants"]

    def test_contact_change_keeps_price(self, svc: BookingService, seed: Seed) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer, total_price=90.0)
        result = svc.update_mine(
            booking["id"], {"contact_phone": "+81 75 000"}, actor=as_customer(customer)
        )
        assert result.data["total_price"] == 90.0

    def test_passengers_set_participants(self, svc: BookingService, seed: Seed) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer)
        result = svc.update_mine(
            booking["id"],
            {"passengers": [_passenger(), _passenger("Ken"), _passenger("Yui")]},
            actor=as_customer(customer),
        )
        assert result.data["participants"] == 3
        assert result.data["total_price"] == 300.0

    def test_other_customer_forbidden(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        result = svc.update_mine(
            booking["id"], {"participants": 2}, actor=as_customer(seed.customer())
        )
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"

    def test_locked_once_confirmed(self, svc: BookingService, seed: Seed) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer)
        svc.update_status(booking["id"], "confirmed", actor=AGENT)
        result = svc.update_mine(booking["id"], {"participants": 2}, actor=as_customer(customer))
        assert result.error is not None
        assert result.error.code == "INVALID_STATE"

    def test_staff_fields_rejected(self, svc: BookingService, seed: Seed) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer)
        result = svc.update_mine(booking["id"], {"discount": 50.0}, actor=as_customer(customer))
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"

    @pytest.mark.parametrize(
        ("offset", "ok"), [(timedelta(seconds=1), True), (timedelta(0), False)]
    )
    def test_travel_date_must_be_ahead(
        self, svc: BookingService, seed: Seed, offset: timedelta, ok: bool
    ) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer)
        result = svc.update_mine(
            booking["id"], {"travel_date": NOW + offset}, actor=as_customer(customer)
        )
        assert result.ok is ok
        if not ok:
            assert result.error.code == "INVALID_INPUT"


class TestUpdateStaff:
    def test_discount_reprices(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer(), participants=2)
        result = svc.update_staff(booking["id"], {"discount": 25.0, "notes": "VIP"}, actor=AGENT)
        assert result.data["total_price"] == 175.0
        assert result.data["notes"] == "VIP"

    def test_edits_confirmed_booking(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        svc.update_status(booking["id"], "confirmed", actor=AGENT)
        assert svc.update_staff(booking["id"], {"participants": 3}, actor=AGENT).ok

    def test_reprice_after_journey_deleted(
        self, svc: BookingService, seed: Seed, store: Store
    ) -> None:
        journey = seed.journey()
        booking = seed.booking(journey, seed.customer())
        svc.update_status(booking["id"], "completed", actor=AGENT)
        assert JourneyService(store, clock=fixed_clock).delete(journey["id"], actor=MANAGER).ok
        result = svc.update_staff(booking["id"], {"tax": 10.0}, actor=AGENT)
        assert result.ok
        assert result.data["total_price"] == 110.0

    def test_invalid_status(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        result = svc.update_staff(booking["id"], {"status": "lost"}, actor=AGENT)
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"

    def test_customer_forbidden(self, svc: BookingService, seed: Seed) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer)
        result = svc.update_staff(booking["id"], {"notes": "x"}, actor=as_customer(customer))
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"


class TestStatus:
    def test_staff_bypass_transitions(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        svc.update_status(booking["id"], "completed", actor=AGENT)
        result = svc.update_status(booking["id"], "pending", actor=AGENT)
        assert result.ok
        assert result.data["previous_status"] == "completed"

    def test_staff_cancel_stamps_date(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        svc.update_status(booking["id"], "cancelled", actor=AGENT, notes="No payment")
        data = svc.get(booking["id"]).data
        assert data["cancellation_date"] == "2027-03-01T09:00:00Z"
        assert data["notes"] == "No payment"

    def test_no_show_not_settable(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        result = svc.update_status(booking["id"], "no_show", actor=AGENT)
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"

    def test_assigned_guide(self, svc: BookingService, seed: Seed) -> None:
        guide = seed.guide()
        booking = seed.booking(seed.journey(guide_id=guide["id"]), seed.customer())
        assert svc.update_status(booking["id"], "in_progress", actor=as_guide(guide)).ok
        other = as_guide(seed.guide())
        result = svc.update_status(booking["id"], "completed", actor=other)
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"


class TestCancelMine:
    def test_cancel(self, svc: BookingService, seed: Seed) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer)
        result = svc.cancel_mine(booking["id"], actor=as_customer(customer), reason="Sick")
        assert result.ok
        assert result.data["status"] == "cancelled"
        assert result.data["cancellation_reason"] == "Sick"
        assert result.data["cancellation_date"] == "2027-03-01T09:00:00Z"

    def test_confirmed_can_cancel(self, svc: BookingService, seed: Seed) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer)
        svc.update_status(booking["id"], "confirmed", actor=AGENT)
        assert svc.cancel_mine(booking["id"], actor=as_customer(customer)).ok

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_terminal_blocked(self, svc: BookingService, seed: Seed, status: str) -> None:
        customer = seed.customer()
        booking = seed.booking(seed.journey(), customer)
        svc.update_status(booking["id"], status, actor=AGENT)
        result = svc.cancel_mine(booking["id"], actor=as_customer(customer))
        assert result.error is not None
        assert result.error.code == "INVALID_STATE"

    def test_not_owner(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        result = svc.cancel_mine(booking["id"], actor=as_customer(seed.customer()))
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"


class TestPayment:
    def test_record(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        result = svc.record_payment(booking["id"], "paypal", "tx-991", actor=AGENT)
        assert result.data == {
            "id": booking["id"],
            "payment_status": "paid",
            "payment_method": "paypal",
            "payment_date": "2027-03-01T09:00:00Z",
            "transaction_id": "tx-991",
        }

    def test_cancelled_booking(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        svc.update_status(booking["id"], "cancelled", actor=AGENT)
        result = svc.record_payment(booking["id"], "cash", actor=AGENT)
        assert result.error is not None
        assert result.error.code == "INVALID_STATE"

    def test_bad_method(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        result = svc.record_payment(booking["id"], "shells", actor=AGENT)
        assert result.error is not None
        assert result.error.code == "INVALID_INPUT"


class TestDeleteAndReads:
    def test_delete_restore(self, svc: BookingService, seed: Seed) -> None:
        booking = seed.booking(seed.journey(), seed.customer())
        forbidden = svc.delete(booking["id"], actor=AGENT)
        assert forbidden.error is not None
        assert forbidden.error.code == "FORBIDDEN"
        assert svc.delete(booking["id"], actor=MANAGER).ok
        assert svc.get(booking["id"]).error.code == "NOT_FOUND"  # type: ignore[union-attr]
        assert svc.restore(booking["id"], actor=MANAGER).data["status"] == "pending"

    def test_list_by_customer(self, svc: BookingService, seed: Seed) -> None:
        journey = seed.journey()
        mine = seed.customer()
        seed.booking(journey, mine)
        seed.booking(journey, mine)
        seed.booking(journey, seed.customer())
        result = svc.list_items(customer_id=mine["id"])
        assert result.data["total"] == 2
        assert {item["customer_id"] for item in result.data["items"]} == {mine["id"]}

    def test_stats_revenue(self, svc: BookingService, seed: Seed) -> None:
        journey = seed.journey()
        confirmed = seed.booking(journey, seed.customer())
        completed = seed.booking(journey, seed.customer(), participants=2)
        seed.booking(journey, seed.customer())
        svc.update_status(confirmed["id"], "confirmed", actor=AGENT)
        svc.update_status(completed["id"], "completed", actor=AGENT)
        data = svc.stats(actor=MANAGER).data
        assert data["total"] == 3
        assert data["by_status"] == {"completed": 1, "confirmed": 1, "pending": 1}
        assert data["total_revenue"] == 300.0
