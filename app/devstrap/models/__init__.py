"""Data models for devstrap.

This module exports the core data structures used throughout the application.
"""

from devstrap.models.action import (
    ActionKind,
    ExecutionResult,
    Outcome,
    PlannedAction,
    create_install_action,
    create_reconcile_action,
    create_skip_action,
)
from devstrap.models.host import (
    Absent,
    DotfilesState,
    Found,
    HostState,
    NotFound,
    Present,
    ProbeUnavailable,
)
from devstrap.models.manifest import Manifest, OptionalManifest
from devstrap.models.specs import (
    Category,
    DotfilesSpec,
    EnvVarSpec,
    IndexSpec,
    Operation,
    PackageSpec,
    RuntimeSpec,
    SourceSpec,
)

__all__ = [
    "Absent",
    "ActionKind",
    "Category",
    "DotfilesSpec",
    "DotfilesState",
    "EnvVarSpec",
    "ExecutionResult",
    "Found",
    "HostState",
    "IndexSpec",
    "Manifest",
    "NotFound",
    "Operation",
    "OptionalManifest",
    "Outcome",
    "PackageSpec",
    "PlannedAction",
    "Present",
    "ProbeUnavailable",
    "RuntimeSpec",
    "SourceSpec",
    "create_install_action",
    "create_reconcile_action",
    "create_skip_action",
]
