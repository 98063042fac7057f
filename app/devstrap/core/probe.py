"""Read-only inspection of host state.

Every probe returns a typed outcome; "could not determine" is reported
as ProbeUnavailable, never as an empty result, so the planner can tell
"nothing installed" from "unknown".
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from devstrap.core.errors import ProbeError
from devstrap.models.host import (
    Absent,
    DotfilesState,
    EnvProbe,
    Found,
    HostState,
    NotFound,
    Present,
    ProbeUnavailable,
    RuntimeProbe,
)
from devstrap.models.specs import Category

if TYPE_CHECKING:
    from devstrap.adapters import AdapterSet
    from devstrap.adapters.base import PackageManagerAdapter
    from devstrap.adapters.dotfiles import ChezmoiAdapter
    from devstrap.adapters.environment import EnvironmentAdapter
    from devstrap.adapters.runtime import MiseAdapter
    from devstrap.core.context import ExecutionContext
    from devstrap.models.manifest import Manifest

logger = logging.getLogger(__name__)


def probe_installed_packages(
    adapter: PackageManagerAdapter,
    path: str | None = None,
) -> dict[str, str | None] | ProbeUnavailable:
    """Query a package manager for installed packages.

    Args:
        adapter: Package manager to query.
        path: Search path used to locate the package manager.

    Returns:
        Installed packages mapped to their source, or ProbeUnavailable.
    """
    if not adapter.is_available(path):
        return ProbeUnavailable(f"{adapter.name} is not installed or not on PATH")
    try:
        return adapter.list_installed()
    except ProbeError as e:
        return ProbeUnavailable(str(e))


def probe_sources(
    adapter: PackageManagerAdapter,
    path: str | None = None,
) -> dict[str, str | None] | ProbeUnavailable:
    """Query a package manager for registered sources."""
    if not adapter.is_available(path):
        return ProbeUnavailable(f"{adapter.name} is not installed or not on PATH")
    try:
        return adapter.list_sources()
    except ProbeError as e:
        return ProbeUnavailable(str(e))


def probe_runtime_command(
    command: str,
    runtime: MiseAdapter,
    path: str | None = None,
) -> RuntimeProbe:
    """Resolve a runtime command to an executable."""
    resolved = runtime.resolve_command_path(command, path=path)
    if resolved is None:
        return NotFound(command)
    return Found(resolved)


def probe_env_var(
    key: str,
    environment: EnvironmentAdapter,
    environ: Mapping[str, str] | None = None,
) -> EnvProbe:
    """Look up a user environment variable (persisted first, then session)."""
    value = environment.read_variable(key, environ)
    if value is None:
        return Absent(key)
    return Present(value)


def probe_dotfiles(dotfiles: ChezmoiAdapter) -> DotfilesState:
    """Snapshot the dotfile manager."""
    return dotfiles.state()


def probe_host(
    manifest: Manifest,
    adapters: AdapterSet,
    context: ExecutionContext,
    skip: Iterable[Category] = (),
) -> HostState:
    """Probe everything the manifest declares.

    Categories in ``skip`` are not probed. Package-manager probe failures
    are logged as warnings and recorded in ``HostState.unavailable``.

    Args:
        manifest: Desired state.
        adapters: Adapters selected for this run.
        context: Execution context providing the search path.
        skip: Categories that will not be planned.

    Returns:
        Fresh HostState snapshot.
    """
    skipped = frozenset(skip)
    search_path = context.search_path

    packages: dict[str, dict[str, str | None]] = {}
    sources: dict[str, dict[str, str | None]] = {}
    unavailable: dict[str, str] = {}

    package_managers = (
        {spec.manager for spec in manifest.package_specs()}
        if Category.PACKAGES not in skipped
        else set()
    )
    source_managers = (
        {spec.manager for spec in manifest.source_specs()}
        if Category.SOURCES not in skipped
        else set()
    )

    for name in manifest.managers:
        if name not in package_managers and name not in source_managers:
            continue
        adapter = adapters.package_manager(name)

        if name in package_managers:
            outcome = probe_installed_packages(adapter, search_path)
            if isinstance(outcome, ProbeUnavailable):
                logger.warning("Could not determine installed %s packages: %s", name, outcome.reason)
                unavailable[name] = outcome.reason
            else:
                packages[name] = outcome

        if name in source_managers and name not in unavailable:
            outcome = probe_sources(adapter, search_path)
            if isinstance(outcome, ProbeUnavailable):
                logger.warning("Could not determine %s sources: %s", name, outcome.reason)
                unavailable[name] = outcome.reason
            else:
                sources[name] = outcome

    runtime_commands: set[str] = set()
    if Category.RUNTIMES not in skipped:
        for spec in manifest.runtime_specs():
            probe = probe_runtime_command(spec.command, adapters.runtime, search_path)
            if isinstance(probe, Found):
                logger.debug("Runtime command %s found at %s", spec.command, probe.path)
                runtime_commands.add(spec.command)

    environment: dict[str, str] = {}
    if Category.ENVIRONMENT not in skipped:
        for spec in manifest.env_specs():
            probe = probe_env_var(spec.key, adapters.environment)
            if isinstance(probe, Present):
                environment[spec.key] = probe.value

    dotfiles: DotfilesState | None = None
    if Category.DOTFILES not in skipped and manifest.dotfiles_spec() is not None:
        dotfiles = probe_dotfiles(adapters.dotfiles)

    return HostState(
        packages=packages,
        sources=sources,
        unavailable=unavailable,
        runtime_commands=frozenset(runtime_commands),
        environment=environment,
        dotfiles=dotfiles,
    )
