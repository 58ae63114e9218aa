"""Tests for drafts and patches."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from kizuna.domain.patches import JourneyPatch, MyBookingPatch, ProviderDraft, StaffBookingPatch


class TestChanges:
    def test_only_given_fields(self) -> None:
        patch = JourneyPatch(name="Alps Trek", base_price=1200.0)
        assert patch.changes() == {"name": "Alps Trek", "base_price": 1200.0}

    def test_explicit_none_is_a_change(self) -> None:
        patch = JourneyPatch.model_validate({"guide_id": None})
        assert patch.changes() == {"guide_id": None}

    def test_empty_patch(self) -> None:
        assert MyBookingPatch().changes() == {}

    def test_defaults_are_not_changes(self) -> None:
        draft = ProviderDraft(name="Hotel Sakura")
        assert "is_verified" not in draft.changes()
        assert draft.is_verified is False


class TestValidation:
    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JourneyPatch.model_validate({"current_bookings": 4})

    def test_customer_patch_rejects_staff_fields(self) -> None:
        with pytest.raises(ValidationError):
            MyBookingPatch.model_validate({"status": "confirmed"})

    def test_staff_patch_accepts_status(self) -> None:
        patch = StaffBookingPatch.model_validate({"status": "confirmed", "participants": 2})
        assert patch.changes() == {"participants": 2, "status": "confirmed"}

    def test_negative_discount_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StaffBookingPatch(discount=-5.0)

    def test_frozen(self) -> None:
        patch = JourneyPatch(name="x")
        with pytest.raises(ValidationError):
            patch.name = "y"  # type: ignore[misc]
