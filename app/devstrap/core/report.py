"""Run summary and exit-code mapping."""

from collections.abc import Iterable
from dataclasses import dataclass

from devstrap.models.action import ExecutionResult, Outcome

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class Summary:
    """Counts of execution outcomes.

    Attributes:
        succeeded: Actions carried out (or described, in dry-run mode).
        already_satisfied: Skipped actions.
        failed: Actions that failed.
        warned: Conflicts and degraded steps needing attention.
        failures: Failed results, in execution order.
        warnings: Warned results, in execution order.
    """

    succeeded: int
    already_satisfied: int
    failed: int
    warned: int
    failures: tuple[ExecutionResult, ...] = ()
    warnings: tuple[ExecutionResult, ...] = ()

    @property
    def total(self) -> int:
        return self.succeeded + self.already_satisfied + self.failed + self.warned

    @property
    def ok(self) -> bool:
        """Whether the run had no failures (warnings are allowed)."""
        return self.failed == 0


def summarize(results: Iterable[ExecutionResult]) -> Summary:
    """Aggregate execution results into a summary."""
    counts = dict.fromkeys(Outcome, 0)
    failures: list[ExecutionResult] = []
    warnings: list[ExecutionResult] = []
    for result in results:
        counts[result.outcome] += 1
        if result.failed:
            failures.append(result)
        elif result.warned:
            warnings.append(result)
    return Summary(
        succeeded=counts[Outcome.SUCCEEDED],
        already_satisfied=counts[Outcome.ALREADY_SATISFIED],
        failed=counts[Outcome.FAILED],
        warned=counts[Outcome.WARNED],
        failures=tuple(failures),
        warnings=tuple(warnings),
    )


def exit_code(summary: Summary) -> int:
    """Map a summary to the process exit code."""
    return EXIT_SUCCESS if summary.ok else EXIT_FAILURE


def format_failure(result: ExecutionResult) -> str:
    """Render a failed or warned result as ``<operation> <target>: <cause>``."""
    action = result.action
    return f"{action.operation.value} {action.identifier}: {result.cause or 'unknown cause'}"


def _result_to_dict(result: ExecutionResult) -> dict[str, str | None]:
    return {
        **result.action.to_dict(),
        "outcome": result.outcome.value,
        "message": result.message,
        "cause": result.cause,
    }


def summary_to_dict(
    summary: Summary,
    results: Iterable[ExecutionResult] = (),
    *,
    dry_run: bool = False,
) -> dict[str, object]:
    """Convert a summary and its results to a JSON-serializable dict."""
    return {
        "dry_run": dry_run,
        "exit_code": exit_code(summary),
        "summary": {
            "succeeded": summary.succeeded,
            "already_satisfied": summary.already_satisfied,
            "failed": summary.failed,
            "warned": summary.warned,
            "total": summary.total,
        },
        "results": [_result_to_dict(r) for r in results],
        "failures": [format_failure(r) for r in summary.failures],
        "warnings": [format_failure(r) for r in summary.warnings],
    }
