"""Unit tests for shared display helpers."""

import pytest
from devstrap.cli.display import (
    create_plan_table,
    create_results_table,
    print_plan_summary,
    print_summary,
)
from devstrap.core.report import summarize
from devstrap.models.action import (
    ExecutionResult,
    Outcome,
    PlannedAction,
    create_install_action,
    create_reconcile_action,
    create_skip_action,
)
from devstrap.models.specs import Category, EnvVarSpec, Operation, PackageSpec


@pytest.fixture
def actions() -> list[PlannedAction]:
    return [
        create_skip_action(
            Category.PACKAGES,
            Operation.INSTALL_PACKAGE,
            PackageSpec(name="git", source="apt", manager="apt"),
        ),
        create_install_action(
            Category.PACKAGES,
            Operation.INSTALL_PACKAGE,
            PackageSpec(name="ripgrep", source="apt", manager="apt"),
        ),
        create_reconcile_action(
            Category.ENVIRONMENT, Operation.SET_ENV, EnvVarSpec("EDITOR", "nvim"), "set to 'vim'"
        ),
    ]


class TestTables:
    """Tests for plan and result tables."""

    def test_plan_table(self, actions: list[PlannedAction]) -> None:
        table = create_plan_table(actions)
        assert table.title == "Plan"
        assert table.row_count == 3
        assert [c.header for c in table.columns] == ["Action", "Category", "Target", "Reason"]

    def test_plan_table_dry_run(self, actions: list[PlannedAction]) -> None:
        assert create_plan_table(actions, dry_run=True).title == "Plan (Dry Run)"

    def test_results_table(self, actions: list[PlannedAction]) -> None:
        results = [
            ExecutionResult(actions[0], Outcome.ALREADY_SATISFIED),
            ExecutionResult(actions[1], Outcome.FAILED, cause="exit status 100"),
        ]
        table = create_results_table(results)
        assert table.title == "Results"
        assert table.row_count == 2


class TestSummaries:
    """Tests for summary printers."""

    def test_plan_summary(
        self, actions: list[PlannedAction], capsys: pytest.CaptureFixture[str]
    ) -> None:
        print_plan_summary(actions)
        out = capsys.readouterr().out
        assert "1 to install" in out
        assert "1 already satisfied" in out
        assert "1 to reconcile" in out

    def test_run_summary_lists_failures(
        self, actions: list[PlannedAction], capsys: pytest.CaptureFixture[str]
    ) -> None:
        summary = summarize([ExecutionResult(actions[1], Outcome.FAILED, cause="exit status 100")])
        print_summary(summary)
        out = capsys.readouterr().out
        assert "Failed actions:" in out
        assert "install ripgrep: exit status 100" in out

    def test_run_summary_warnings(
        self, actions: list[PlannedAction], capsys: pytest.CaptureFixture[str]
    ) -> None:
        summary = summarize([ExecutionResult(actions[2], Outcome.WARNED, cause="set to 'vim'")])
        print_summary(summary)
        captured = capsys.readouterr()
        assert "set-env EDITOR: set to 'vim'" in captured.err
        assert "Machine matches the manifest." not in captured.out

    def test_run_summary_clean(
        self, actions: list[PlannedAction], capsys: pytest.CaptureFixture[str]
    ) -> None:
        print_summary(summarize([ExecutionResult(actions[0], Outcome.ALREADY_SATISFIED)]))
        assert "Machine matches the manifest." in capsys.readouterr().out

    def test_dry_run_summary(
        self, actions: list[PlannedAction], capsys: pytest.CaptureFixture[str]
    ) -> None:
        print_summary(summarize([ExecutionResult(actions[1], Outcome.SUCCEEDED)]), dry_run=True)
        out = capsys.readouterr().out
        assert "1 would run" in out
        assert "Machine matches the manifest." not in out
