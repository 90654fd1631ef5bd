"""Tests for the Rich result renderer."""

from xtaskctl.output.renderers import render_quiet, render_result
from xtaskctl.services.result import ServiceError, ServiceResult


def _report(**data) -> dict:
    return {"executed": [], "skipped": [], **data}


class TestRenderResult:
    def test_success_with_steps(self) -> None:
        result = ServiceResult(
            ok=True,
            op="fix all",
            data=_report(
                executed=[{"step": "fix audit", "scope": "global"}],
                skipped=[{"step": "fix format", "scope": "workspace", "reason": "declined"}],
            ),
        )
        lines = render_result(result).splitlines()
        assert lines[0] == "OK  fix all"
        assert lines[1] == "  ran fix audit  global"
        assert lines[2] == "  skipped fix format  workspace  (declined)"

    def test_error_hides_detail_unless_verbose(self) -> None:
        result = ServiceResult(
            ok=False,
            op="test unit",
            data=_report(),
            error=ServiceError(
                code="EXECUTION_FAILED",
                message="Unit tests failed",
                detail={"returncode": 101},
            ),
        )
        assert render_result(result) == "ERROR  test unit - Unit tests failed"
        verbose = render_result(result, verbose=True)
        assert "returncode: 101" in verbose

    def test_extra_data_fields(self) -> None:
        result = ServiceResult(ok=True, op="release", data=_report(version="1.2.0"))
        assert "  version: 1.2.0" in render_result(result).splitlines()

    def test_telemetry_tree_when_verbose(self) -> None:
        result = ServiceResult(
            ok=False,
            op="check all",
            data=_report(),
            error=ServiceError(code="EXECUTION_FAILED", message="Lint failed"),
            meta={
                "telemetry": {
                    "name": "TaskService.run",
                    "duration_ms": 1500.0,
                    "failed": True,
                    "children": [
                        {
                            "name": "check lint:workspace",
                            "duration_ms": 20.5,
                            "failed": True,
                            "annotations": {"program": "cargo"},
                        }
                    ],
                }
            },
        )
        output = render_result(result, verbose=True)
        assert "TaskService.run  failed" in output
        assert "check lint:workspace  failed  (program=cargo)" in output
        assert "meta:" not in render_result(result)

    def test_quiet(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="build")) == "OK: build"
