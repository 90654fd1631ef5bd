"""Tests for output mode selection."""

import json

from xtaskctl.output.formatters import OutputSettings, format_result
from xtaskctl.services.result import ServiceError, ServiceResult

RESULT = ServiceResult(
    ok=True,
    op="check lint",
    data={"executed": [{"step": "check lint", "scope": "workspace"}], "skipped": []},
)


class TestFormatResult:
    def test_default_is_rich(self) -> None:
        output = format_result(RESULT)
        assert output.startswith("OK  check lint")

    def test_json(self) -> None:
        parsed = json.loads(format_result(RESULT, settings=OutputSettings(json_output=True)))
        assert parsed["op"] == "check lint"
        assert parsed["data"]["executed"][0]["scope"] == "workspace"

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(RESULT, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["ok"] is True

    def test_quiet(self) -> None:
        assert format_result(RESULT, settings=OutputSettings(quiet=True)) == "OK: check lint"

    def test_quiet_error(self) -> None:
        failed = ServiceResult(
            ok=False,
            op="fix format",
            error=ServiceError(code="EXECUTION_FAILED", message="Formatting failed"),
        )
        output = format_result(failed, settings=OutputSettings(quiet=True))
        assert output == "ERROR: fix format - Formatting failed"
