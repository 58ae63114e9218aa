"""Tests for the Rich renderers."""

from __future__ import annotations

import re

from kizuna.output.renderers import render_quiet, render_result
from kizuna.services.result import ServiceResult


def _journey_view(**overrides: object) -> dict:
    view: dict = {
        "id": "jrn_0123456789ab",
        "name": "Kyoto Temples",
        "status": "active",
        "schedule": {"start_date": "2027-04-01", "end_date": None},
        "guide_id": None,
        "pricing": {"base_price": 450.0, "currency": "USD"},
        "remaining_spots": 12,
        "meta": {"version": 3, "updated_at": "2027-03-01T09:00:00Z"},
    }
    view.update(overrides)
    return view


class TestQuiet:
    def test_list_prints_ids(self) -> None:
        result = ServiceResult(
            ok=True,
            op="journey.list_items",
            data={"items": [{"id": "jrn_a"}, {"id": "jrn_b"}], "count": 2},
        )
        assert render_quiet(result) == "jrn_a\njrn_b"

    def test_no_id(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="stats.overview")) == "OK: stats.overview"

    def test_error(self) -> None:
        result = ServiceResult.failure(
            "journey.delete", "CONFLICT", "Journey has 2 active bookings"
        )
        assert render_quiet(result) == "ERROR: journey.delete — Journey has 2 active bookings"


class TestMutation:
    def test_fields(self) -> None:
        result = ServiceResult(
            ok=True,
            op="booking.update_staff",
            data={
                "id": "bkg_0123456789ab",
                "status": "confirmed",
                "total_price": 188.5,
                "fields_changed": ["discount", "tax"],
                "notes": "hidden",
            },
        )
        out = render_result(result)
        first = out.splitlines()[0]
        assert first.startswith("OK")
        assert "booking.update_staff" in first
        assert re.search(r"id:\s+bkg_0123456789ab", out)
        assert re.search(r"total_price:\s+188.5", out)
        assert re.search(r"fields_changed:\s+discount, tax", out)
        assert "notes" not in out


class TestQueries:
    def test_get_panel(self) -> None:
        out = render_result(ServiceResult(ok=True, op="journey.get", data=_journey_view()))
        assert "jrn_0123456789ab — Kyoto Temples" in out
        assert "remaining_spots: 12" in out
        assert "version" not in out

    def test_get_verbose_shows_meta(self) -> None:
        result = ServiceResult(ok=True, op="journey.get", data=_journey_view())
        assert "version: 3" in render_result(result, verbose=True)

    def test_list_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="journey.list_items",
            data={"items": [_journey_view()], "count": 1, "total": 4},
        )
        out = render_result(result)
        assert "Kyoto Temples" in out
        assert "2027-04-01" in out
        assert "Base Price" in out
        assert "1 of 4 items" in out

    def test_stats(self) -> None:
        result = ServiceResult(
            ok=True,
            op="booking.stats",
            data={"total": 3, "by_status": {"pending": 2, "confirmed": 1}, "total_revenue": 90.0},
        )
        out = render_result(result)
        assert re.search(r"total:\s+3", out)
        assert "by_status" in out
        assert "pending" in out

    def test_overview_sections(self) -> None:
        result = ServiceResult(
            ok=True,
            op="stats.overview",
            data={"providers": {"total": 1}, "journeys": {"total": 2}, "bookings": {"total": 0}},
        )
        out = render_result(result)
        for section in ("providers", "journeys", "bookings"):
            assert section in out


class TestError:
    def test_code_shown(self) -> None:
        result = ServiceResult.failure(
            "booking.cancel_mine", "INVALID_STATE", "Cannot cancel", status="completed"
        )
        out = render_result(result)
        assert out.startswith("ERROR")
        assert "booking.cancel_mine [INVALID_STATE]" in out
        assert "Cannot cancel" in out
        assert "status: completed" not in out

    def test_verbose_detail(self) -> None:
        result = ServiceResult.failure(
            "booking.cancel_mine", "INVALID_STATE", "Cannot cancel", status="completed"
        )
        assert "status: completed" in render_result(result, verbose=True)


class TestUpgrade:
    def test_check(self) -> None:
        result = ServiceResult(
            ok=True,
            op="upgrade.check_pending",
            data={
                "pending_count": 1,
                "pending": [{"revision": "001_baseline", "description": "Baseline"}],
                "current": None,
                "head": "001_baseline",
            },
        )
        out = render_result(result, verbose=True)
        assert re.search(r"pending_count:\s+1", out)
        assert "001_baseline: Baseline" in out


def test_telemetry_tree_in_verbose_mode() -> None:
    result = ServiceResult(
        ok=True,
        op="journey.assign_guide",
        data={"id": "jrn_0123456789ab", "guide_id": "usr_0123456789ab"},
        meta={
            "telemetry": {
                "name": "JourneyService.assign_guide",
                "duration_ms": 3.2,
                "children": [{"name": "guide_conflicts", "duration_ms": 0.4}],
            }
        },
    )
    out = render_result(result, verbose=True)
    assert "JourneyService.assign_guide" in out
    assert "guide_conflicts" in out
