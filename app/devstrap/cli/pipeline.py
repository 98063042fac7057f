"""Shared setup for commands that plan a run.

Both ``plan`` and ``apply`` load settings and the manifest, select
adapters, probe the host and compute the plan; fatal errors are turned
into a printed message and exit code 1 here, the same way for both.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import typer

from devstrap.adapters import AdapterSet, build_adapters
from devstrap.core.config import Settings, load_settings
from devstrap.core.context import ExecutionContext
from devstrap.core.errors import PlatformDetectionError, SettingsError
from devstrap.core.manifest import merge_optional, require_manifest
from devstrap.core.planner import plan
from devstrap.core.platform import resolve_manifest_path
from devstrap.core.probe import probe_host
from devstrap.models.action import PlannedAction
from devstrap.models.host import HostState
from devstrap.models.manifest import Manifest
from devstrap.models.specs import Category
from devstrap.utils.formatting import print_error, print_info

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunSetup:
    """Everything a command needs to show or execute a plan."""

    manifest_path: Path
    manifest: Manifest
    adapters: AdapterSet
    context: ExecutionContext
    host: HostState
    actions: tuple[PlannedAction, ...]


def skipped_categories(
    skip_packages: bool = False,
    skip_runtimes: bool = False,
    skip_dotfiles: bool = False,
) -> frozenset[Category]:
    """Translate the ``--skip-*`` flags into planning categories."""
    skipped: set[Category] = set()
    if skip_packages:
        skipped.update({Category.SOURCES, Category.PACKAGES})
    if skip_runtimes:
        skipped.add(Category.RUNTIMES)
    if skip_dotfiles:
        skipped.add(Category.DOTFILES)
    return frozenset(skipped)


def load_cli_settings() -> Settings:
    """Load settings or exit with a friendly error."""
    try:
        return load_settings()
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def locate_manifest(override: Path | None, settings: Settings) -> Path:
    """Resolve the manifest path or exit when the platform is unknown."""
    try:
        return resolve_manifest_path(
            override,
            settings.effective_manifest_dir,
            platform=settings.platform,
        )
    except PlatformDetectionError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def resolve_optional(
    manifest: Manifest,
    include: bool | None,
    settings: Settings,
    interactive: bool,
) -> Manifest:
    """Merge the optional section when the user consents.

    The ``--optional/--no-optional`` flag wins over the settings file;
    with neither, the user is asked when the session is interactive.
    """
    if not manifest.has_optional:
        return manifest

    if include is None:
        include = settings.include_optional
    if include is None:
        include = interactive and typer.confirm(
            "The manifest has optional packages. Include them?",
            default=False,
        )

    if include:
        logger.info("Including optional manifest section")
        return merge_optional(manifest)
    return manifest


def prepare_run(
    manifest_override: Path | None,
    skip: frozenset[Category] = frozenset(),
    include_optional: bool | None = None,
    interactive: bool = False,
    announce: bool = True,
) -> RunSetup:
    """Load, probe and plan.

    Args:
        manifest_override: ``--manifest`` value.
        skip: Categories to leave out.
        include_optional: ``--optional/--no-optional`` value.
        interactive: Whether the optional section may be prompted for.
        announce: Print progress messages (off for JSON output).

    Returns:
        RunSetup with the computed plan.

    Raises:
        typer.Exit: On settings, platform or manifest errors.
    """
    settings = load_cli_settings()
    manifest_path = locate_manifest(manifest_override, settings)
    manifest = require_manifest(manifest_path)
    manifest = resolve_optional(manifest, include_optional, settings, interactive)

    adapters = build_adapters(manifest.managers)
    context = ExecutionContext.from_environ()

    if announce:
        print_info(f"Probing host for {manifest_path.name} ({manifest.package_manager})...")
    host = probe_host(manifest, adapters, context, skip)
    actions = plan(manifest, host, skip)

    return RunSetup(
        manifest_path=manifest_path,
        manifest=manifest,
        adapters=adapters,
        context=context,
        host=host,
        actions=actions,
    )
