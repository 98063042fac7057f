"""Abstract base class for package manager adapters.

This module defines the PackageManagerAdapter interface that every
package manager variant implements, and the Invocation value through
which every side effect of a plan is described and carried out.
"""

import shlex
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import ClassVar

from devstrap.core.errors import ActionError
from devstrap.models.specs import PackageSpec, SourceSpec, canonical_source
from devstrap.utils.shell import command_exists, run_interactive


@dataclass(frozen=True, slots=True)
class Invocation:
    """A described side effect.

    Dry-run records ``description``; live mode calls ``run`` with the
    environment overrides of the current execution context.

    Attributes:
        description: Equivalent command line or a plain description.
        run: Callable performing the effect and returning an exit status.
    """

    description: str
    run: Callable[[Mapping[str, str]], int] = field(compare=False, repr=False)


def command_invocation(args: Sequence[str]) -> Invocation:
    """Build an invocation that runs a command attached to the terminal."""
    argv = list(args)

    def _run(env: Mapping[str, str]) -> int:
        return run_interactive(argv, env=env)

    return Invocation(description=shlex.join(argv), run=_run)


class PackageManagerAdapter(ABC):
    """Abstract base class for all package manager adapters.

    Adapters wrap one package manager's command contract: querying what is
    installed, which sources are registered, and building the commands
    that install packages or register sources.

    Example:
        >>> adapter = AptAdapter()
        >>> if adapter.is_available():
        ...     installed = adapter.list_installed()
        ...     invocation = adapter.install_invocation(spec)
    """

    name: ClassVar[str]
    executable: ClassVar[str]
    requires_sudo: ClassVar[bool] = False

    @property
    def canonical_source(self) -> str:
        """Source assumed for unqualified packages."""
        return canonical_source(self.name)

    def is_available(self, path: str | None = None) -> bool:
        """Check if the package manager executable is on the search path.

        Escalation through sudo is checked only before installing, so a
        root host without sudo can still be probed.

        Args:
            path: Search path to use instead of the process PATH.
        """
        return command_exists(self.executable, path=path)

    @abstractmethod
    def list_installed(self) -> dict[str, str | None]:
        """Return installed packages mapped to their source.

        The source is None when the package manager does not record it.

        Raises:
            ProbeError: If the package manager cannot be queried.
        """

    def is_package_installed(self, name: str) -> bool:
        """Check if a single package is installed.

        Raises:
            ProbeError: If the package manager cannot be queried.
        """
        return name in self.list_installed()

    def list_sources(self) -> dict[str, str | None]:
        """Return registered sources mapped to their URL.

        Package managers without named sources report none.

        Raises:
            ProbeError: If the package manager cannot be queried.
        """
        return {}

    @abstractmethod
    def install_command(self, spec: PackageSpec) -> list[str]:
        """Build the command line installing one package."""

    def add_source_command(self, spec: SourceSpec) -> list[str]:
        """Build the command line registering a source.

        Raises:
            ActionError: If the package manager has no named sources.
        """
        msg = f"{self.name} does not support adding sources"
        raise ActionError(msg)

    def refresh_command(self) -> list[str] | None:
        """Build the command line refreshing the local package index, if any."""
        return None

    def install_invocation(self, spec: PackageSpec) -> Invocation:
        return command_invocation(self.install_command(spec))

    def add_source_invocation(self, spec: SourceSpec) -> Invocation:
        return command_invocation(self.add_source_command(spec))

    def refresh_invocation(self) -> Invocation | None:
        command = self.refresh_command()
        return command_invocation(command) if command is not None else None

    def install(self, spec: PackageSpec, env: Mapping[str, str] | None = None) -> int:
        """Install one package and return the exit status."""
        return self.install_invocation(spec).run(env or {})

    def add_source(self, spec: SourceSpec, env: Mapping[str, str] | None = None) -> int:
        """Register one source and return the exit status."""
        return self.add_source_invocation(spec).run(env or {})
