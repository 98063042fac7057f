"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from devstrap import __version__
from devstrap.cli.commands import apply, config, detect, plan
from devstrap.core.log import configure_logging

# Create main Typer app
app = typer.Typer(
    name="devstrap",
    help="Declarative, idempotent developer-machine provisioning.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"devstrap version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log every command as it runs.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log errors.",
        ),
    ] = False,
) -> None:
    """devstrap - Declarative developer-machine provisioning.

    Describe the tools, runtimes, environment variables and dotfiles a
    machine should have in a JSON manifest; devstrap installs whatever is
    missing and leaves everything else alone.
    """
    configure_logging(verbose=verbose, quiet=quiet)
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(plan.app, name="plan")
app.add_typer(apply.app, name="apply")
app.add_typer(detect.app, name="detect")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
