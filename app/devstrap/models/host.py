"""Host state snapshot and typed probe outcomes.

Probes never return bare booleans or empty collections for "could not
tell": every outcome is one of the small value types defined here.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ProbeUnavailable:
    """A probe could not determine host state (tool missing, query failed)."""

    reason: str


@dataclass(frozen=True, slots=True)
class Found:
    """A command was resolved to an executable path."""

    path: str


@dataclass(frozen=True, slots=True)
class NotFound:
    """A command is not resolvable on the execution path."""

    command: str


@dataclass(frozen=True, slots=True)
class Present:
    """An environment variable is set."""

    value: str


@dataclass(frozen=True, slots=True)
class Absent:
    """An environment variable is not set."""

    key: str


RuntimeProbe = Found | NotFound
EnvProbe = Present | Absent


@dataclass(frozen=True, slots=True)
class DotfilesState:
    """State of the dotfile manager on the host.

    Attributes:
        available: Whether the dotfile manager executable was found.
        source_path: Local source directory, if initialized.
        remote_origin: Remote the source directory tracks, if any.
        has_managed_targets: Whether any target file is managed.
    """

    available: bool = True
    source_path: str | None = None
    remote_origin: str | None = None
    has_managed_targets: bool = False

    @property
    def initialized(self) -> bool:
        return self.source_path is not None


@dataclass(frozen=True)
class HostState:
    """Point-in-time snapshot of the host, recomputed on every run.

    Attributes:
        packages: Installed packages per manager; each maps a package name to
            the source it came from, or None when the manager does not say.
        sources: Registered sources per manager (name to URL or None).
        unavailable: Managers whose probe failed, with the reason.
        runtime_commands: Runtime commands resolvable on the execution path.
        environment: Values of the probed environment variables that are set.
        dotfiles: Dotfile manager state, if it was probed.
    """

    packages: Mapping[str, Mapping[str, str | None]] = field(default_factory=dict)
    sources: Mapping[str, Mapping[str, str | None]] = field(default_factory=dict)
    unavailable: Mapping[str, str] = field(default_factory=dict)
    runtime_commands: frozenset[str] = frozenset()
    environment: Mapping[str, str] = field(default_factory=dict)
    dotfiles: DotfilesState | None = None

    def is_available(self, manager: str) -> bool:
        """Whether the installed state of a manager is known."""
        return manager not in self.unavailable

    def installed_packages(self, manager: str) -> Mapping[str, str | None]:
        return self.packages.get(manager, {})

    def registered_sources(self, manager: str) -> Mapping[str, str | None]:
        return self.sources.get(manager, {})

    @property
    def env_keys(self) -> frozenset[str]:
        """Keys of the configured environment variables."""
        return frozenset(self.environment)
