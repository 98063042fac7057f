"""Settings commands.

Shows and initializes ~/.config/devstrap/config.toml.
"""

from pathlib import Path
from typing import Annotated, get_args

import typer
from rich.table import Table

from devstrap.cli.pipeline import load_cli_settings
from devstrap.core.config import PlatformName, Settings, save_settings
from devstrap.core.errors import SettingsError
from devstrap.core.paths import get_settings_path
from devstrap.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize settings.",
    no_args_is_help=True,
)


def _display(value: object) -> str:
    return "[muted]not set[/muted]" if value is None else str(value)


@app.command()
def show() -> None:
    """Show the effective settings."""
    settings = load_cli_settings()
    path = get_settings_path()

    table = Table(
        title="Settings",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Key", no_wrap=True)
    table.add_column("Value")
    table.add_row("manifest_dir", _display(settings.manifest_dir))
    table.add_row("platform", _display(settings.platform))
    table.add_row("include_optional", _display(settings.include_optional))
    console.print(table)

    console.print(f"\n[dim]Manifest directory in use: {settings.effective_manifest_dir}[/dim]")
    if not path.exists():
        console.print(f"[dim]{path} does not exist; defaults are in effect.[/dim]")


@app.command()
def init(
    manifest_dir: Annotated[
        Path | None,
        typer.Option("--manifest-dir", help="Directory holding the platform manifests."),
    ] = None,
    platform: Annotated[
        str | None,
        typer.Option("--platform", help="Platform override: ubuntu, arch or windows."),
    ] = None,
    include_optional: Annotated[
        bool | None,
        typer.Option(
            "--include-optional/--exclude-optional",
            help="Merge the optional section without asking, or never.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing settings file."),
    ] = False,
) -> None:
    """Write a settings file."""
    path = get_settings_path()
    if path.exists() and not force:
        print_error(f"Settings already exist: {path}")
        print_info("Use --force to overwrite.")
        raise typer.Exit(code=1)

    if platform is not None and platform not in get_args(PlatformName):
        print_error(f"Unsupported platform '{platform}'. Choose ubuntu, arch or windows.")
        raise typer.Exit(code=1)

    settings = Settings(
        manifest_dir=manifest_dir.expanduser().resolve() if manifest_dir else None,
        platform=platform,
        include_optional=include_optional,
    )

    try:
        saved = save_settings(settings, path)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Settings written to {saved}")
