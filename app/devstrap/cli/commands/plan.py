"""Plan command implementation.

Shows what ``apply`` would do without running anything.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from devstrap.cli.display import create_plan_table, print_plan_summary
from devstrap.cli.pipeline import prepare_run, skipped_categories
from devstrap.utils.formatting import console, print_success

app = typer.Typer(
    help="Show the provisioning plan.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def show_plan(
    ctx: typer.Context,
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
        typer.Option("--json", help="Print the plan as JSON."),
    ] = False,
) -> None:
    """Show the plan for the current machine.

    Probes the host and lists every manifest entry as already satisfied,
    to install, or to reconcile. Nothing is changed.

    Examples:
        devstrap plan
        devstrap plan --manifest ./windows.packages.json --optional
    """
    if ctx.invoked_subcommand is not None:
        return

    setup = prepare_run(
        manifest,
        skip=skipped_categories(skip_packages, skip_runtimes, skip_dotfiles),
        include_optional=optional,
        announce=not output_json,
    )
    actions = list(setup.actions)

    if output_json:
        data = {
            "manifest": str(setup.manifest_path),
            "package_manager": setup.manifest.package_manager,
            "actions": [a.to_dict() for a in actions],
        }
        console.print_json(json.dumps(data))
        return

    if not actions:
        print_success("The manifest declares nothing to provision.")
        return

    console.print(create_plan_table(actions))
    print_plan_summary(actions)

    if not any(a.is_install or a.is_reconcile for a in actions):
        print_success("Machine matches the manifest. Nothing to do.")
