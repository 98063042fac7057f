"""Desired-state specifications.

Each spec is an immutable value describing one thing a manifest wants
present on the host: a package source, a package, a language runtime,
an environment variable, or a dotfile source.
"""

import os
import re
from dataclasses import dataclass, field
from enum import Enum


class Category(Enum):
    """Planning category.

    Declaration order is execution order: later categories assume the
    tools installed by earlier ones are on the execution path.
    """

    SOURCES = "sources"
    PACKAGES = "packages"
    RUNTIMES = "runtimes"
    ENVIRONMENT = "environment"
    DOTFILES = "dotfiles"


CATEGORY_ORDER: tuple[Category, ...] = tuple(Category)


class Operation(Enum):
    """Concrete operation an install action performs."""

    REFRESH_INDEX = "refresh"
    ADD_SOURCE = "add-source"
    INSTALL_PACKAGE = "install"
    INSTALL_RUNTIME = "install-runtime"
    SET_ENV = "set-env"
    INIT_DOTFILES = "init-dotfiles"
    APPLY_DOTFILES = "apply-dotfiles"


# Source assumed when a package entry carries no qualifier.
CANONICAL_SOURCES: dict[str, str] = {
    "apt": "apt",
    "pacman": "pacman",
    "scoop": "main",
    "winget": "winget",
}

# Package managers whose local index is refreshed before the first install.
INDEX_REFRESH_MANAGERS: frozenset[str] = frozenset({"apt", "pacman"})

# Runtime identifiers whose installed executable differs from the runtime name.
RUNTIME_COMMANDS: dict[str, str] = {
    "rust": "rustc",
    "nodejs": "node",
    "golang": "go",
    "erlang": "erl",
    "python": "python" if os.name == "nt" else "python3",
    "neovim": "nvim",
    "ripgrep": "rg",
    "github-cli": "gh",
}


# Names accepted for persisted environment variables.
ENV_VAR_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def canonical_source(manager: str) -> str:
    """Return the default source for a package manager."""
    return CANONICAL_SOURCES.get(manager, manager)


@dataclass(frozen=True, slots=True)
class IndexSpec:
    """Local package index of a package manager (apt lists, pacman sync db)."""

    manager: str

    @property
    def label(self) -> str:
        return f"{self.manager} index"


@dataclass(frozen=True, slots=True)
class SourceSpec:
    """A named package source, e.g. a scoop bucket.

    Attributes:
        name: Source name as registered with the package manager.
        manager: Package manager the source belongs to.
        url: Optional repository URL; known buckets resolve without one.
    """

    name: str
    manager: str
    url: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Source name cannot be empty"
            raise ValueError(msg)

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class PackageSpec:
    """A package to install through a package manager.

    Equality is ``(name, source)``; the manager only selects the adapter.

    Attributes:
        name: Package name or identifier.
        source: Bucket or source the package comes from.
        manager: Package manager that installs it.
    """

    name: str
    source: str
    manager: str = field(compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        if not self.source:
            msg = f"Package source cannot be empty for {self.name!r}"
            raise ValueError(msg)

    @classmethod
    def parse(cls, value: str, manager: str, source: str | None = None) -> "PackageSpec":
        """Build a spec from a manifest entry.

        A ``source/name`` string carries its own qualifier; otherwise the
        explicit ``source`` or the manager's canonical source is used.
        """
        name = value.strip()
        if source is None and "/" in name and manager == "scoop":
            source, name = name.split("/", 1)
        return cls(name=name, source=source or canonical_source(manager), manager=manager)

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.source)

    @property
    def is_qualified(self) -> bool:
        """Whether the source differs from the manager's canonical source."""
        return self.source != canonical_source(self.manager)

    @property
    def label(self) -> str:
        return f"{self.source}/{self.name}" if self.is_qualified else self.name


@dataclass(frozen=True, slots=True)
class RuntimeSpec:
    """A language runtime managed by the runtime version manager.

    Attributes:
        runtime: Runtime identifier, optionally with a backend prefix
            (``node``, ``rust``, ``npm:prettier``).
        version: Version constraint (``latest``, ``lts``, ``3.12``).
    """

    runtime: str
    version: str = "latest"

    def __post_init__(self) -> None:
        if not self.runtime:
            msg = "Runtime identifier cannot be empty"
            raise ValueError(msg)
        if not self.version:
            msg = f"Runtime version cannot be empty for {self.runtime!r}"
            raise ValueError(msg)

    @classmethod
    def parse(cls, value: str) -> "RuntimeSpec":
        """Parse ``runtime@version`` (version defaults to ``latest``).

        An ``@`` that starts a scoped package name (``npm:@scope/pkg``)
        is part of the runtime, not a version separator.
        """
        value = value.strip()
        runtime, sep, version = value.rpartition("@")
        boundary = max(runtime.rfind("/"), runtime.rfind(":"))
        if not sep or len(runtime) <= boundary + 1:
            return cls(runtime=value)
        return cls(runtime=runtime, version=version)

    @property
    def identifier(self) -> str:
        return f"{self.runtime}@{self.version}"

    @property
    def command(self) -> str:
        """Executable whose presence means the runtime is installed."""
        base = self.runtime.rsplit(":", 1)[-1].rsplit("/", 1)[-1].lstrip("@")
        if not base:
            return self.runtime
        return RUNTIME_COMMANDS.get(base, base)

    @property
    def label(self) -> str:
        return self.identifier


@dataclass(frozen=True, slots=True)
class EnvVarSpec:
    """A persisted user environment variable."""

    key: str
    value: str

    def __post_init__(self) -> None:
        if not ENV_VAR_NAME.fullmatch(self.key):
            msg = f"Invalid environment variable name: {self.key!r}"
            raise ValueError(msg)

    @property
    def label(self) -> str:
        return self.key


@dataclass(frozen=True, slots=True)
class DotfilesSpec:
    """Dotfile repository applied by the dotfile manager."""

    source: str

    @property
    def label(self) -> str:
        return self.source


Target = IndexSpec | SourceSpec | PackageSpec | RuntimeSpec | EnvVarSpec | DotfilesSpec
