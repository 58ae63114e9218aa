"""Tests for ServiceResult, ServiceError, and HTTP status mapping."""

import pytest
from pydantic import ValidationError

from kizuna.services.result import ErrorCode, ServiceError, ServiceResult, http_status_for


class TestServiceResult:
    def test_success_defaults(self) -> None:
        result = ServiceResult(ok=True, op="provider.create")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_failure_shorthand(self) -> None:
        result = ServiceResult.failure(
            "booking.create", ErrorCode.NOT_FOUND, "Journey not found", journey_id="jrn_x"
        )
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.detail == {"journey_id": "jrn_x"}

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="x")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_error_frozen(self) -> None:
        error = ServiceError(code="CONFLICT", message="dup")
        with pytest.raises(ValidationError):
            error.code = "OTHER"  # type: ignore[misc]

    def test_json_round_trip(self) -> None:
        result = ServiceResult(ok=True, op="x", data={"id": "prv_1"}, warnings=["w"])
        assert ServiceResult.model_validate_json(result.model_dump_json()) == result


@pytest.mark.parametrize(
    ("code", "status"),
    [
        (ErrorCode.INVALID_INPUT, 400),
        (ErrorCode.INVALID_STATE, 400),
        (ErrorCode.FORBIDDEN, 403),
        (ErrorCode.NOT_FOUND, 404),
        (ErrorCode.CONFLICT, 409),
        (ErrorCode.STORAGE_ERROR, 500),
        ("SOMETHING_ELSE", 500),
    ],
)
def test_http_status_for(code: str, status: int) -> None:
    assert http_status_for(code) == status
