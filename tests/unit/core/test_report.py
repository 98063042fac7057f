"""Unit tests for run summaries and exit codes."""

from devstrap.core.report import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    exit_code,
    format_failure,
    summarize,
    summary_to_dict,
)
from devstrap.models.action import (
    ExecutionResult,
    Outcome,
    create_install_action,
    create_skip_action,
)
from devstrap.models.specs import Category, Operation, PackageSpec


def _result(name: str, outcome: Outcome, cause: str | None = None) -> ExecutionResult:
    spec = PackageSpec(name=name, source="apt", manager="apt")
    if outcome == Outcome.ALREADY_SATISFIED:
        action = create_skip_action(Category.PACKAGES, Operation.INSTALL_PACKAGE, spec)
    else:
        action = create_install_action(Category.PACKAGES, Operation.INSTALL_PACKAGE, spec)
    return ExecutionResult(action, outcome, cause=cause)


class TestSummarize:
    """Tests for summarize() and exit_code()."""

    def test_counts(self) -> None:
        summary = summarize(
            [
                _result("git", Outcome.ALREADY_SATISFIED),
                _result("ripgrep", Outcome.FAILED, "exit status 100"),
                _result("fd-find", Outcome.SUCCEEDED),
                _result("bat", Outcome.WARNED, "conflict"),
            ]
        )
        assert (summary.succeeded, summary.already_satisfied, summary.failed, summary.warned) == (
            1,
            1,
            1,
            1,
        )
        assert summary.total == 4
        assert [r.action.identifier for r in summary.failures] == ["ripgrep"]
        assert [r.action.identifier for r in summary.warnings] == ["bat"]

    def test_empty(self) -> None:
        summary = summarize([])
        assert summary.total == 0
        assert exit_code(summary) == EXIT_SUCCESS

    def test_warnings_do_not_fail(self) -> None:
        summary = summarize([_result("bat", Outcome.WARNED, "conflict")])
        assert summary.ok
        assert exit_code(summary) == EXIT_SUCCESS

    def test_any_failure_fails(self) -> None:
        summary = summarize(
            [_result("git", Outcome.SUCCEEDED), _result("ripgrep", Outcome.FAILED)]
        )
        assert exit_code(summary) == EXIT_FAILURE


class TestFormatting:
    """Tests for failure lines and JSON output."""

    def test_format_failure(self) -> None:
        result = _result("ripgrep", Outcome.FAILED, "exit status 100")
        assert format_failure(result) == "install ripgrep: exit status 100"

    def test_format_failure_without_cause(self) -> None:
        assert format_failure(_result("ripgrep", Outcome.FAILED)) == "install ripgrep: unknown cause"

    def test_summary_to_dict(self) -> None:
        results = [
            _result("git", Outcome.ALREADY_SATISFIED),
            _result("ripgrep", Outcome.FAILED, "exit status 100"),
        ]
        data = summary_to_dict(summarize(results), results, dry_run=True)

        assert data["dry_run"] is True
        assert data["exit_code"] == EXIT_FAILURE
        assert data["summary"] == {
            "succeeded": 0,
            "already_satisfied": 1,
            "failed": 1,
            "warned": 0,
            "total": 2,
        }
        assert data["failures"] == ["install ripgrep: exit status 100"]
        assert data["results"][1] == {
            "kind": "install",
            "category": "packages",
            "operation": "install",
            "target": "ripgrep",
            "reason": None,
            "outcome": "failed",
            "message": None,
            "cause": "exit status 100",
        }
