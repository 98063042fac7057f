"""Action planner diffing the manifest against host state.

Planning is pure: the same manifest and HostState always yield the same
plan, and nothing here touches the host. Actions are ordered by category
first, then by declaration order within the manifest.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from devstrap.models.action import (
    PlannedAction,
    create_install_action,
    create_reconcile_action,
    create_skip_action,
)
from devstrap.models.host import DotfilesState
from devstrap.models.specs import (
    CATEGORY_ORDER,
    INDEX_REFRESH_MANAGERS,
    Category,
    IndexSpec,
    Operation,
)

if TYPE_CHECKING:
    from devstrap.models.host import HostState
    from devstrap.models.manifest import Manifest

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://(?:[^@/]+@)?", re.IGNORECASE)

UNKNOWN_STATE_REASON = "installed state unknown"


def _lookup(installed: Mapping[str, str | None], name: str) -> tuple[bool, str | None]:
    """Find a package by exact name, then case-insensitively."""
    if name in installed:
        return True, installed[name]
    folded = name.casefold()
    for candidate, source in installed.items():
        if candidate.casefold() == folded:
            return True, source
    return False, None


def normalize_origin(value: str) -> str:
    """Normalize a repository reference for comparison.

    Handles chezmoi's GitHub shorthand (``user`` and ``user/repo``), SSH
    ``git@host:path`` remotes, and scheme URLs. Local paths are returned
    unchanged.
    """
    ref = value.strip()
    if os.path.isabs(ref) or ref.startswith((".", "~")):
        return ref

    if ref.startswith("git@"):
        host, _, path = ref[4:].partition(":")
        ref = f"{host}/{path}"
    else:
        ref = _SCHEME_RE.sub("", ref)

    ref = ref.rstrip("/").removesuffix(".git").lower()
    parts = ref.split("/")
    if "." not in parts[0]:
        if len(parts) == 1:
            return f"github.com/{parts[0]}/dotfiles"
        return f"github.com/{'/'.join(parts)}"
    return ref


def _plan_sources(manifest: Manifest, host: HostState) -> list[PlannedAction]:
    actions: list[PlannedAction] = []
    for spec in manifest.source_specs():
        operation = Operation.ADD_SOURCE
        if not host.is_available(spec.manager):
            actions.append(
                create_install_action(Category.SOURCES, operation, spec, UNKNOWN_STATE_REASON)
            )
            continue

        registered = host.registered_sources(spec.manager)
        if spec.name not in registered:
            actions.append(create_install_action(Category.SOURCES, operation, spec))
            continue

        url = registered[spec.name]
        if spec.url and url and normalize_origin(spec.url) != normalize_origin(url):
            conflict = f"registered from {url}, manifest declares {spec.url}"
            actions.append(create_reconcile_action(Category.SOURCES, operation, spec, conflict))
        else:
            actions.append(create_skip_action(Category.SOURCES, operation, spec))
    return actions


def _plan_packages(manifest: Manifest, host: HostState) -> list[PlannedAction]:
    actions: list[PlannedAction] = []
    refreshed: set[str] = set()

    for spec in manifest.package_specs():
        operation = Operation.INSTALL_PACKAGE
        if host.is_available(spec.manager):
            found, source = _lookup(host.installed_packages(spec.manager), spec.name)
            reason = None
        else:
            found, source = False, None
            reason = UNKNOWN_STATE_REASON

        if found:
            if source is not None and source.casefold() != spec.source.casefold():
                conflict = f"installed from {source}, manifest declares {spec.source}"
                actions.append(
                    create_reconcile_action(Category.PACKAGES, operation, spec, conflict)
                )
            else:
                actions.append(create_skip_action(Category.PACKAGES, operation, spec))
            continue

        if spec.manager in INDEX_REFRESH_MANAGERS and spec.manager not in refreshed:
            refreshed.add(spec.manager)
            actions.append(
                create_install_action(
                    Category.PACKAGES, Operation.REFRESH_INDEX, IndexSpec(spec.manager)
                )
            )
        actions.append(create_install_action(Category.PACKAGES, operation, spec, reason))
    return actions


def _plan_runtimes(manifest: Manifest, host: HostState) -> list[PlannedAction]:
    actions: list[PlannedAction] = []
    for spec in manifest.runtime_specs():
        operation = Operation.INSTALL_RUNTIME
        if spec.command in host.runtime_commands:
            actions.append(
                create_skip_action(
                    Category.RUNTIMES, operation, spec, f"{spec.command} found on PATH"
                )
            )
        else:
            actions.append(create_install_action(Category.RUNTIMES, operation, spec))
    return actions


def _plan_environment(manifest: Manifest, host: HostState) -> list[PlannedAction]:
    actions: list[PlannedAction] = []
    for spec in manifest.env_specs():
        operation = Operation.SET_ENV
        current = host.environment.get(spec.key)
        if current is None:
            actions.append(create_install_action(Category.ENVIRONMENT, operation, spec))
        elif current == spec.value:
            actions.append(create_skip_action(Category.ENVIRONMENT, operation, spec))
        else:
            conflict = f"set to {current!r}, manifest declares {spec.value!r}"
            actions.append(
                create_reconcile_action(Category.ENVIRONMENT, operation, spec, conflict)
            )
    return actions


def _plan_dotfiles(manifest: Manifest, host: HostState) -> list[PlannedAction]:
    spec = manifest.dotfiles_spec()
    if spec is None:
        return []

    state = host.dotfiles or DotfilesState()
    if not state.initialized:
        return [create_install_action(Category.DOTFILES, Operation.INIT_DOTFILES, spec)]

    operation = Operation.APPLY_DOTFILES
    origin = state.remote_origin
    if origin is not None and normalize_origin(origin) != normalize_origin(spec.source):
        conflict = f"source directory tracks {origin}, manifest declares {spec.source}"
        return [create_reconcile_action(Category.DOTFILES, operation, spec, conflict)]
    if state.has_managed_targets:
        return [create_skip_action(Category.DOTFILES, operation, spec)]
    return [
        create_install_action(Category.DOTFILES, operation, spec, "no managed targets applied")
    ]


_PLANNERS = {
    Category.SOURCES: _plan_sources,
    Category.PACKAGES: _plan_packages,
    Category.RUNTIMES: _plan_runtimes,
    Category.ENVIRONMENT: _plan_environment,
    Category.DOTFILES: _plan_dotfiles,
}


def plan(
    manifest: Manifest,
    host: HostState,
    skip: Iterable[Category] = (),
) -> tuple[PlannedAction, ...]:
    """Compute the ordered plan for a manifest.

    Args:
        manifest: Desired state.
        host: Host state snapshot from the probe.
        skip: Categories to leave out entirely.

    Returns:
        Actions in category order, then declaration order.
    """
    skipped = frozenset(skip)
    actions: list[PlannedAction] = []
    for category in CATEGORY_ORDER:
        if category not in skipped:
            actions.extend(_PLANNERS[category](manifest, host))
    return tuple(actions)
