"""Apply command implementation.

Installs whatever the manifest declares and the machine lacks. Conflicts
are reported, never resolved automatically.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from devstrap.cli.display import (
    create_plan_table,
    create_results_table,
    print_plan_summary,
    print_summary,
)
from devstrap.cli.pipeline import prepare_run, skipped_categories
from devstrap.core.errors import PrerequisiteError
from devstrap.core.executor import ActionExecutor, ExecutionOptions
from devstrap.core.report import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    exit_code,
    summarize,
    summary_to_dict,
)
from devstrap.models.action import ExecutionResult, Outcome
from devstrap.utils.formatting import (
    console,
    print_error,
    print_info,
    print_step,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Apply the manifest to this machine.",
    invoke_without_command=True,
)


def _confirm_actions(action_count: int) -> bool:
    """Prompt user to confirm action execution.

    Args:
        action_count: Number of install actions to be executed.

    Returns:
        True if user confirms, False otherwise.
    """
    return typer.confirm(
        f"\nProceed with {action_count} action(s)?",
        default=False,
    )


def _print_progress(result: ExecutionResult) -> None:
    """Print one line per executed install as it completes."""
    if result.outcome == Outcome.SUCCEEDED:
        console.print(f"[success]OK[/success] {result.message or result.action.identifier}")
    elif result.outcome == Outcome.FAILED:
        console.print(f"[error]FAIL[/error] {result.action.identifier}: {result.cause}")


@app.callback(invoke_without_command=True)
def apply_manifest(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show the commands that would run without running them.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompts and proceed.",
        ),
    ] = False,
    manifest: Annotated[
        Path | None,
        typer.Option(
            "--manifest",
            "-m",
            help="Manifest file (default: the detected platform's manifest).",
        ),
    ] = None,
    skip_packages: Annotated[
        bool,
        typer.Option("--skip-packages", help="Leave out sources and packages."),
    ] = False,
    skip_runtimes: Annotated[
        bool,
        typer.Option("--skip-runtimes", help="Leave out language runtimes."),
    ] = False,
    skip_dotfiles: Annotated[
        bool,
        typer.Option("--skip-dotfiles", help="Leave out dotfiles."),
    ] = False,
    optional: Annotated[
        bool | None,
        typer.Option(
            "--optional/--no-optional",
            help="Include the manifest's optional section.",
        ),
    ] = None,
    output_json: Annotated[
        bool,
        typer.Option("--json", help="Print the results as JSON."),
    ] = False,
) -> None:
    """Apply the manifest to this machine.

    Probes the host, installs what is missing in a fixed order (sources,
    packages, runtimes, environment, dotfiles) and reports every action.
    A failed action does not stop the run; the exit code is 1 if any
    action failed.

    Examples:
        devstrap apply --dry-run          # Preview commands
        devstrap apply --yes              # Apply without confirmation
        devstrap apply --skip-dotfiles    # Leave chezmoi alone
    """
    # Skip if a subcommand is being invoked
    if ctx.invoked_subcommand is not None:
        return

    interactive = not (yes or output_json)
    setup = prepare_run(
        manifest,
        skip=skipped_categories(skip_packages, skip_runtimes, skip_dotfiles),
        include_optional=optional,
        interactive=interactive,
        announce=not output_json,
    )
    actions = list(setup.actions)
    pending = [a for a in actions if a.is_install]

    if not output_json:
        if actions:
            console.print(create_plan_table(actions, dry_run))
            print_plan_summary(actions)
        else:
            print_success("The manifest declares nothing to provision.")

    if pending and output_json and not (yes or dry_run):
        print_error("--json cannot prompt for confirmation; add --yes or --dry-run.")
        raise typer.Exit(code=EXIT_FAILURE)

    # Confirm unless --yes, --dry-run or nothing to install
    if pending and interactive and not dry_run and not _confirm_actions(len(pending)):
        print_info("Aborted.")
        raise typer.Exit(code=EXIT_SUCCESS)

    executor = ActionExecutor(
        setup.adapters,
        setup.context,
        on_result=None if output_json else _print_progress,
    )

    if pending and not output_json:
        print_step("Dry run" if dry_run else "Executing actions")

    interrupted = False
    try:
        results = executor.execute(actions, ExecutionOptions(dry_run=dry_run))
    except PrerequisiteError as e:
        print_error(str(e))
        raise typer.Exit(code=EXIT_FAILURE) from e
    except KeyboardInterrupt:
        interrupted = True
        results = executor.results
        print_warning(f"Interrupted after {len(results)} of {len(actions)} action(s).")

    summary = summarize(results)

    if output_json:
        console.print_json(json.dumps(summary_to_dict(summary, results, dry_run=dry_run)))
    else:
        if results:
            console.print()
            console.print(create_results_table(results))
        print_summary(summary, dry_run)
        if dry_run:
            print_info("\nDry-run mode: No changes were made.")

    code = EXIT_INTERRUPTED if interrupted else exit_code(summary)
    if code != EXIT_SUCCESS:
        raise typer.Exit(code=code)
