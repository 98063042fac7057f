"""Manifest models for declarative machine provisioning.

This module defines the Pydantic models representing the JSON manifest
that describes the desired state of one platform target.
"""

from collections.abc import Hashable
from typing import Annotated, Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    StringConstraints,
    model_validator,
)

from devstrap.models.specs import (
    ENV_VAR_NAME,
    DotfilesSpec,
    EnvVarSpec,
    PackageSpec,
    RuntimeSpec,
    SourceSpec,
)

# Package managers with an adapter
PackageManagerName = Literal["apt", "pacman", "scoop", "winget"]

NonEmptyStr = Annotated[StrictStr, StringConstraints(strip_whitespace=True, min_length=1)]

EnvVarName = Annotated[StrictStr, StringConstraints(pattern=rf"^{ENV_VAR_NAME.pattern}$")]


class PackageEntry(BaseModel):
    """Object form of a package list element.

    Attributes:
        name: Package name or identifier.
        source: Bucket or source qualifier (``bucket`` is accepted as alias).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[NonEmptyStr, Field(description="Package name")]
    source: Annotated[
        NonEmptyStr | None,
        Field(
            validation_alias=AliasChoices("source", "bucket"),
            description="Source or bucket qualifier",
        ),
    ] = None


class SourceEntry(BaseModel):
    """Object form of a bucket/source list element."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[NonEmptyStr, Field(description="Source name")]
    url: Annotated[NonEmptyStr | None, Field(description="Source repository URL")] = None


class RuntimeEntry(BaseModel):
    """Object form of a runtime list element."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[NonEmptyStr, Field(description="Runtime identifier")]
    version: Annotated[NonEmptyStr, Field(description="Version constraint")] = (
        "latest"
    )


class DotfilesEntry(BaseModel):
    """Dotfile manager section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: Annotated[NonEmptyStr, Field(description="Dotfile repository")]


PackageItem = NonEmptyStr | PackageEntry
SourceItem = NonEmptyStr | SourceEntry
RuntimeItem = NonEmptyStr | RuntimeEntry


def _item_name(item: Any) -> str:
    """Return the display name of a list entry."""
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        return str(item.get("name", item))
    return item.name


# Package lists whose manager does not depend on the platform.
PACKAGE_LIST_MANAGERS: dict[str, str] = {
    "scoop_tools": "scoop",
    "winget_packages": "winget",
}

SYSTEM_PACKAGE_FIELDS: frozenset[str] = frozenset({"system_packages", "packages"})


def entry_key(field_name: str, item: Any, system_manager: str | None = None) -> Hashable:
    """Return the identity of a list entry.

    Package entries are compared by their parsed ``(name, source)`` so
    ``git`` and ``main/git`` in ``scoopTools`` are the same package.
    Runtimes are compared by runtime identifier, everything else by name.

    Args:
        field_name: Model field the entry belongs to.
        item: Validated entry.
        system_manager: Package manager of the system package lists;
            without it those lists fall back to plain names.
    """
    if field_name in SYSTEM_PACKAGE_FIELDS:
        manager = system_manager
    else:
        manager = PACKAGE_LIST_MANAGERS.get(field_name)
    if manager is not None:
        if isinstance(item, str):
            return PackageSpec.parse(item, manager).key
        return PackageSpec.parse(item.name, manager, item.source).key
    if field_name == "mise_runtimes":
        if isinstance(item, str):
            return RuntimeSpec.parse(item).runtime
        return item.name
    return _item_name(item)


def _find_duplicates(
    field_name: str, items: list[Any], system_manager: str | None = None
) -> list[str]:
    seen: set[Hashable] = set()
    duplicates: list[str] = []
    for item in items:
        key = entry_key(field_name, item, system_manager)
        if key in seen and _item_name(item) not in duplicates:
            duplicates.append(_item_name(item))
        seen.add(key)
    return duplicates


class _ListsMixin(BaseModel):
    """Lists shared by the manifest and its ``optional`` section."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    system_packages: Annotated[
        list[PackageItem],
        Field(default_factory=list, alias="systemPackages", description="System packages"),
    ]
    scoop_buckets: Annotated[
        list[SourceItem],
        Field(default_factory=list, alias="scoopBuckets", description="Scoop buckets"),
    ]
    scoop_tools: Annotated[
        list[PackageItem],
        Field(default_factory=list, alias="scoopTools", description="Scoop apps"),
    ]
    winget_packages: Annotated[
        list[PackageItem],
        Field(default_factory=list, alias="wingetPackages", description="Winget packages"),
    ]
    mise_runtimes: Annotated[
        list[RuntimeItem],
        Field(default_factory=list, alias="miseRuntimes", description="mise runtimes"),
    ]

    @property
    def system_package_manager(self) -> str | None:
        """Manager of the system package lists, when known."""
        return None

    def check_unique_names(self, system_manager: str | None = None) -> None:
        """Raise ValueError when a list declares the same entry twice."""
        for field_name, field_info in type(self).model_fields.items():
            value = getattr(self, field_name)
            if not isinstance(value, list):
                continue
            duplicates = _find_duplicates(field_name, value, system_manager)
            if duplicates:
                key = field_info.alias or field_name
                msg = f"Duplicate entries in '{key}': {', '.join(duplicates)}"
                raise ValueError(msg)

    @model_validator(mode="after")
    def validate_unique_names(self) -> "_ListsMixin":
        """Validate that entries are unique within each list."""
        self.check_unique_names(self.system_package_manager)
        return self


# Keys of the optional section, in the order they are merged.
OPTIONAL_LIST_FIELDS: tuple[str, ...] = (
    "system_packages",
    "scoop_buckets",
    "scoop_tools",
    "winget_packages",
    "mise_runtimes",
)


class OptionalManifest(_ListsMixin):
    """Opt-in section, merged into the manifest only after user consent."""

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in OPTIONAL_LIST_FIELDS)


class Manifest(_ListsMixin):
    """Complete manifest representing the desired state of one machine.

    Attributes:
        package_manager: Primary package manager of the platform.
        platform: Optional platform label (informational).
        packages: Legacy name of ``systemPackages``.
        powershell_modules: PowerShell modules (accepted, not planned).
        fonts: Fonts (accepted, not planned).
        environment: Persisted user environment variables.
        dotfiles: Dotfile manager section.
        optional: Opt-in lists merged on explicit consent.
    """

    package_manager: Annotated[
        PackageManagerName,
        Field(alias="packageManager", description="Primary package manager"),
    ]
    platform: Annotated[str | None, Field(description="Platform label")] = None
    packages: Annotated[
        list[PackageItem],
        Field(default_factory=list, description="Legacy system package list"),
    ]
    powershell_modules: Annotated[
        list[StrictStr],
        Field(default_factory=list, alias="powershellModules", description="PowerShell modules"),
    ]
    fonts: Annotated[
        list[StrictStr | dict[str, Any]],
        Field(default_factory=list, description="Fonts"),
    ]
    environment: Annotated[
        dict[EnvVarName, StrictStr],
        Field(default_factory=dict, description="User environment variables"),
    ]
    dotfiles: Annotated[DotfilesEntry | None, Field(description="Dotfile source")] = None
    optional: Annotated[OptionalManifest | None, Field(description="Opt-in lists")] = None

    @property
    def system_package_manager(self) -> str | None:
        return self.package_manager

    @model_validator(mode="after")
    def validate_optional_names(self) -> "Manifest":
        """Validate the optional system packages against the primary manager."""
        if self.optional is not None:
            self.optional.check_unique_names(self.package_manager)
        return self

    @property
    def effective_system_packages(self) -> list[PackageItem]:
        """System packages, falling back to the legacy ``packages`` key."""
        return self.system_packages or self.packages

    def source_specs(self) -> list[SourceSpec]:
        """Package sources in declaration order."""
        specs: list[SourceSpec] = []
        for item in self.scoop_buckets:
            if isinstance(item, str):
                specs.append(SourceSpec(name=item.strip(), manager="scoop"))
            else:
                specs.append(SourceSpec(name=item.name, manager="scoop", url=item.url))
        return specs

    def package_specs(self) -> list[PackageSpec]:
        """Packages in declaration order: system, scoop, then winget."""
        specs: list[PackageSpec] = []
        for manager, items in (
            (self.package_manager, self.effective_system_packages),
            ("scoop", self.scoop_tools),
            ("winget", self.winget_packages),
        ):
            for item in items:
                if isinstance(item, str):
                    specs.append(PackageSpec.parse(item, manager))
                else:
                    specs.append(PackageSpec.parse(item.name, manager, item.source))
        return specs

    def runtime_specs(self) -> list[RuntimeSpec]:
        """Runtimes in declaration order."""
        return [
            RuntimeSpec.parse(item)
            if isinstance(item, str)
            else RuntimeSpec(runtime=item.name, version=item.version)
            for item in self.mise_runtimes
        ]

    def env_specs(self) -> list[EnvVarSpec]:
        """Environment variables in declaration order."""
        return [EnvVarSpec(key=key, value=value) for key, value in self.environment.items()]

    def dotfiles_spec(self) -> DotfilesSpec | None:
        if self.dotfiles is None:
            return None
        return DotfilesSpec(source=self.dotfiles.source)

    @property
    def managers(self) -> list[str]:
        """Package managers referenced by the manifest, primary first."""
        managers = [self.package_manager]
        for spec in (*self.source_specs(), *self.package_specs()):
            if spec.manager not in managers:
                managers.append(spec.manager)
        return managers

    @property
    def has_optional(self) -> bool:
        return self.optional is not None and not self.optional.is_empty
