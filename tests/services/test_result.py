"""Tests for ServiceResult and ServiceError."""

import json

import pytest
from pydantic import ValidationError

from xtaskctl.domain.errors import ExecutionError, UnsupportedVariantError
from xtaskctl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_defaults(self) -> None:
        result = ServiceResult(ok=True, op="check all")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_json_serialization(self) -> None:
        result = ServiceResult(
            ok=True,
            op="check lint",
            data={"executed": [{"step": "check lint", "scope": "workspace"}], "skipped": []},
            meta={"duration_ms": 42},
        )
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["data"]["executed"][0]["scope"] == "workspace"
        assert parsed["meta"]["duration_ms"] == 42

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="build")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]


class TestServiceError:
    def test_from_execution_error(self) -> None:
        exc = ExecutionError("Formatting check failed", detail={"command": "cargo"})
        error = ServiceError.from_exception(exc)
        assert error.code == "EXECUTION_FAILED"
        assert error.message == "Formatting check failed"
        assert error.detail == {"command": "cargo"}

    def test_from_unsupported_variant(self) -> None:
        error = ServiceError.from_exception(UnsupportedVariantError("frontend", "Target"))
        assert error.code == "UNSUPPORTED_VARIANT"
        assert error.detail == {"variant": "frontend", "vocabulary": "Target"}
