"""Tests for ServiceResult and ServiceError."""

import pytest
from pydantic import ValidationError

from ringside.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success(self) -> None:
        result = ServiceResult.success("employ", {"id": 1})
        assert result.ok
        assert result.op == "employ"
        assert result.data == {"id": 1}
        assert result.error is None
        assert result.warnings == []

    def test_success_without_data(self) -> None:
        assert ServiceResult.success("drain").data == {}

    def test_failure(self) -> None:
        result = ServiceResult.failure("suspend", "VALIDATION_FAILED", "nope", {"id": 3})
        assert not result.ok
        assert result.error == ServiceError(
            code="VALIDATION_FAILED", message="nope", detail={"id": 3}
        )

    def test_frozen(self) -> None:
        result = ServiceResult.success("add")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_json_round_trip_shape(self) -> None:
        dumped = ServiceResult.failure("add", "NOT_FOUND", "missing").model_dump()
        assert dumped["error"] == {"code": "NOT_FOUND", "message": "missing", "detail": {}}
        assert dumped["meta"] is None
