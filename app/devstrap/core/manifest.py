"""Manifest file I/O operations.

This module provides functions for loading manifest files in JSON
format with validation using Pydantic models, and for merging the
opt-in ``optional`` section into a manifest.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from devstrap.core.errors import DevstrapError
from devstrap.models.manifest import (
    OPTIONAL_LIST_FIELDS,
    Manifest,
    OptionalManifest,
    entry_key,
)


class ManifestError(DevstrapError):
    """Base exception for manifest-related errors."""


class ManifestNotFoundError(ManifestError):
    """Raised when manifest file is not found."""


class ManifestMalformedError(ManifestError):
    """Raised when manifest file is not valid structured data."""


class ManifestInvalidError(ManifestError):
    """Raised when manifest content does not match the schema."""


def load_manifest(path: Path) -> Manifest:
    """Load and validate a manifest from a JSON file.

    Args:
        path: Path to the manifest file.

    Returns:
        Validated Manifest object.

    Raises:
        ManifestNotFoundError: If the manifest file doesn't exist.
        ManifestMalformedError: If the file is not a JSON object.
        ManifestInvalidError: If the content doesn't match the schema.
    """
    if not path.is_file():
        raise ManifestNotFoundError(f"Manifest not found: {path}")

    try:
        with open(path, encoding="utf-8-sig") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestMalformedError(f"Invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ManifestMalformedError(f"Manifest is not UTF-8 text: {path}") from e
    except OSError as e:
        raise ManifestError(f"Failed to read manifest: {e}") from e

    if not isinstance(data, dict):
        raise ManifestMalformedError(
            f"Manifest must be a JSON object, got {type(data).__name__}: {path}"
        )

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestInvalidError(f"Invalid manifest content in {path}: {e}") from e


def merge_optional(base: Manifest, optional: OptionalManifest | None = None) -> Manifest:
    """Append the optional lists to the matching base lists.

    Pure: neither input is mutated. Entries already present in a base
    list are not appended twice. The returned manifest carries no
    optional section.

    Args:
        base: Manifest to extend.
        optional: Optional section; defaults to ``base.optional``.

    Returns:
        New Manifest with the optional entries merged in.
    """
    section = optional if optional is not None else base.optional
    if section is None:
        return base.model_copy(update={"optional": None})

    update: dict[str, Any] = {"optional": None}
    for field_name in OPTIONAL_LIST_FIELDS:
        extra = getattr(section, field_name)
        if not extra:
            continue
        # The legacy key stands in for systemPackages when the latter is empty
        if field_name == "system_packages":
            current = list(base.effective_system_packages)
        else:
            current = list(getattr(base, field_name))
        keys = {entry_key(field_name, item, base.package_manager) for item in current}
        for item in extra:
            key = entry_key(field_name, item, base.package_manager)
            if key not in keys:
                current.append(item)
                keys.add(key)
        update[field_name] = current

    return base.model_copy(update=update)


def require_manifest(path: Path) -> Manifest:
    """Load manifest or exit with helpful error message.

    This is a convenience wrapper around load_manifest() that handles
    common error cases by printing user-friendly messages and exiting.

    Args:
        path: Manifest path.

    Returns:
        Loaded and validated Manifest.

    Raises:
        typer.Exit: If manifest cannot be loaded.
    """
    import typer

    from devstrap.utils.formatting import print_error, print_info

    try:
        return load_manifest(path)
    except ManifestNotFoundError as e:
        print_error(f"Manifest not found: {path}")
        print_info("Pass --manifest <path> or set manifest_dir in 'devstrap config'.")
        raise typer.Exit(code=1) from e
    except ManifestError as e:
        print_error(f"Failed to load manifest: {e}")
        raise typer.Exit(code=1) from e
