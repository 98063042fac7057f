"""Adapters over external provisioning tools.

Package managers form a closed set of variants behind one interface,
selected once at startup; the runtime manager, dotfile manager, and
persisted environment each have a single adapter.
"""

from dataclasses import dataclass, field

from devstrap.adapters.apt import AptAdapter
from devstrap.adapters.base import Invocation, PackageManagerAdapter, command_invocation
from devstrap.adapters.dotfiles import ChezmoiAdapter
from devstrap.adapters.environment import EnvironmentAdapter
from devstrap.adapters.pacman import PacmanAdapter
from devstrap.adapters.runtime import MiseAdapter
from devstrap.adapters.scoop import ScoopAdapter
from devstrap.adapters.winget import WingetAdapter

PACKAGE_MANAGERS: dict[str, type[PackageManagerAdapter]] = {
    "apt": AptAdapter,
    "pacman": PacmanAdapter,
    "scoop": ScoopAdapter,
    "winget": WingetAdapter,
}


def get_package_manager(name: str) -> PackageManagerAdapter:
    """Create the adapter for a package manager name.

    Raises:
        ValueError: If no adapter exists for the name.
    """
    try:
        return PACKAGE_MANAGERS[name]()
    except KeyError:
        msg = f"Unsupported package manager: {name}"
        raise ValueError(msg) from None


@dataclass
class AdapterSet:
    """Adapters used for one run.

    Attributes:
        primary: Package manager named by the manifest; required by every
            later stage.
        package_managers: All package managers the manifest references,
            keyed by name (includes the primary).
        runtime: Runtime version manager.
        dotfiles: Dotfile manager.
        environment: Persisted environment.
    """

    primary: PackageManagerAdapter
    package_managers: dict[str, PackageManagerAdapter] = field(default_factory=dict)
    runtime: MiseAdapter = field(default_factory=MiseAdapter)
    dotfiles: ChezmoiAdapter = field(default_factory=ChezmoiAdapter)
    environment: EnvironmentAdapter = field(default_factory=EnvironmentAdapter)

    def __post_init__(self) -> None:
        self.package_managers.setdefault(self.primary.name, self.primary)

    def package_manager(self, name: str) -> PackageManagerAdapter:
        """Return the adapter for a manager, creating it on first use."""
        if name not in self.package_managers:
            self.package_managers[name] = get_package_manager(name)
        return self.package_managers[name]


def build_adapters(managers: list[str]) -> AdapterSet:
    """Select adapters for the managers a manifest references, primary first."""
    primary = get_package_manager(managers[0])
    adapters = AdapterSet(primary=primary)
    for name in managers[1:]:
        adapters.package_manager(name)
    return adapters


__all__ = [
    "PACKAGE_MANAGERS",
    "AdapterSet",
    "AptAdapter",
    "ChezmoiAdapter",
    "EnvironmentAdapter",
    "Invocation",
    "MiseAdapter",
    "PackageManagerAdapter",
    "PacmanAdapter",
    "ScoopAdapter",
    "WingetAdapter",
    "build_adapters",
    "command_invocation",
    "get_package_manager",
]
