"""Detect command implementation.

Reports the detected platform, the manifest that would be used, and
which provisioning tools are on PATH.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from devstrap.adapters import PACKAGE_MANAGERS, ChezmoiAdapter, MiseAdapter
from devstrap.cli.pipeline import load_cli_settings
from devstrap.core.errors import PlatformDetectionError
from devstrap.core.platform import detect_platform, resolve_manifest_path
from devstrap.utils.formatting import console, print_warning

app = typer.Typer(
    help="Show the detected platform and available tools.",
    invoke_without_command=True,
)


def _tool_availability() -> dict[str, bool]:
    tools: dict[str, bool] = {
        name: adapter_cls().is_available() for name, adapter_cls in PACKAGE_MANAGERS.items()
    }
    tools[MiseAdapter.name] = MiseAdapter().is_available()
    tools[ChezmoiAdapter.name] = ChezmoiAdapter().is_available()
    return tools


@app.callback(invoke_without_command=True)
def detect(
    ctx: typer.Context,
    manifest: Annotated[
        Path | None,
        typer.Option("--manifest", "-m", help="Manifest file to report instead."),
    ] = None,
    output_json: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON."),
    ] = False,
) -> None:
    """Show the detected platform, manifest path and tools on PATH."""
    if ctx.invoked_subcommand is not None:
        return

    settings = load_cli_settings()
    platform: str | None
    try:
        platform = settings.platform or detect_platform()
    except PlatformDetectionError as e:
        print_warning(str(e))
        platform = None

    manifest_path: Path | None = None
    if platform is not None or manifest is not None:
        manifest_path = resolve_manifest_path(
            manifest, settings.effective_manifest_dir, platform=platform
        )
    tools = _tool_availability()

    if output_json:
        data = {
            "platform": platform,
            "manifest": str(manifest_path) if manifest_path else None,
            "manifest_exists": bool(manifest_path and manifest_path.is_file()),
            "tools": tools,
        }
        console.print_json(json.dumps(data))
        return

    console.print(f"Platform: [info]{platform or 'unknown'}[/info]")
    if manifest_path is not None:
        status = "[success]found[/success]" if manifest_path.is_file() else "[error]missing[/error]"
        console.print(f"Manifest: {manifest_path} ({status})")

    table = Table(
        title="Tools",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Tool", no_wrap=True)
    table.add_column("Status", width=10)
    for name, available in tools.items():
        status = "[success]on PATH[/success]" if available else "[muted]missing[/muted]"
        table.add_row(name, status)
    console.print(table)
