"""Shared Rich display functions for plans and results.

Provides reusable table builders and summary printers for displaying
planned actions and execution results across CLI commands (plan, apply).
"""

from rich.table import Table

from devstrap.core.report import Summary, format_failure
from devstrap.models.action import ActionKind, ExecutionResult, Outcome, PlannedAction
from devstrap.utils.formatting import console, print_success, print_warning

_KIND_STYLES: dict[ActionKind, tuple[str, str]] = {
    ActionKind.SKIP: ("skip", "=skip"),
    ActionKind.INSTALL: ("install", "+install"),
    ActionKind.RECONCILE: ("reconcile", "!reconcile"),
}

_OUTCOME_STYLES: dict[Outcome, tuple[str, str]] = {
    Outcome.SUCCEEDED: ("success", "OK"),
    Outcome.ALREADY_SATISFIED: ("skip", "SKIP"),
    Outcome.WARNED: ("warning", "WARN"),
    Outcome.FAILED: ("error", "FAIL"),
}


def create_plan_table(actions: list[PlannedAction], dry_run: bool = False) -> Table:
    """Create a Rich table displaying a plan.

    Args:
        actions: Planned actions in execution order.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table configured for plan display.
    """
    title = "Plan (Dry Run)" if dry_run else "Plan"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Action", width=11)
    table.add_column("Category", width=11)
    table.add_column("Target", no_wrap=True)
    table.add_column("Reason")

    for action in actions:
        style, text = _KIND_STYLES[action.kind]
        detail = action.reason or ""
        if action.is_install:
            detail = f"{action.operation.value} {detail}".strip()
        table.add_row(
            f"[{style}]{text}[/{style}]",
            action.category.value,
            f"[{style}]{action.identifier}[/{style}]",
            f"[muted]{detail}[/muted]",
        )

    return table


def create_results_table(results: list[ExecutionResult]) -> Table:
    """Create a Rich table displaying execution results.

    Args:
        results: Results in execution order.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=6, justify="center")
    table.add_column("Operation", width=15)
    table.add_column("Target", no_wrap=True)
    table.add_column("Message")

    for result in results:
        style, status = _OUTCOME_STYLES[result.outcome]
        message = result.cause or result.message or ""
        table.add_row(
            f"[{style}]{status}[/{style}]",
            result.action.operation.value,
            result.action.identifier,
            f"[muted]{message}[/muted]",
        )

    return table


def print_plan_summary(actions: list[PlannedAction]) -> None:
    """Print counts of planned installs, skips and conflicts."""
    install_count = sum(1 for a in actions if a.is_install)
    skip_count = sum(1 for a in actions if a.is_skip)
    reconcile_count = sum(1 for a in actions if a.is_reconcile)

    parts: list[str] = []
    if install_count:
        parts.append(f"[install]{install_count} to install[/install]")
    if skip_count:
        parts.append(f"[skip]{skip_count} already satisfied[/skip]")
    if reconcile_count:
        parts.append(f"[reconcile]{reconcile_count} to reconcile[/reconcile]")

    if parts:
        console.print(f"\nSummary: {', '.join(parts)}")


def print_summary(summary: Summary, dry_run: bool = False) -> None:
    """Print the run summary and the list of failed actions.

    Failures are rendered as ``<operation> <target>: <cause>`` so they can
    be retried by hand.

    Args:
        summary: Aggregated results.
        dry_run: Whether the run only described its commands.
    """
    verb = "would run" if dry_run else "succeeded"
    console.print(
        f"\n[success]{summary.succeeded} {verb}[/success], "
        f"[skip]{summary.already_satisfied} already satisfied[/skip], "
        f"[warning]{summary.warned} warned[/warning], "
        f"[error]{summary.failed} failed[/error]"
    )

    for result in summary.warnings:
        print_warning(format_failure(result))

    if summary.failures:
        console.print("\n[error]Failed actions:[/error]")
        for result in summary.failures:
            console.print(f"  [error]-[/error] {format_failure(result)}")
    elif summary.warned == 0 and not dry_run:
        print_success("Machine matches the manifest.")
