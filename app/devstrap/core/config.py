"""User settings for devstrap.

Settings are stored in ~/.config/devstrap/config.toml. Every field has a
default, so a missing file simply means default settings; CLI flags
override whatever the file says.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from devstrap.core.errors import SettingsError
from devstrap.core.paths import get_default_manifest_dir, get_settings_path

# Platform targets with a bundled manifest naming convention
PlatformName = Literal["ubuntu", "arch", "windows"]


class Settings(BaseModel):
    """Persisted CLI settings.

    Attributes:
        manifest_dir: Directory holding the platform manifests.
        platform: Platform override that bypasses detection.
        include_optional: Merge the optional section without prompting
            (True), never merge it (False), or ask (None).
    """

    model_config = ConfigDict(extra="forbid")

    manifest_dir: Annotated[
        Path | None,
        Field(description="Directory holding platform manifests"),
    ] = None
    platform: Annotated[
        PlatformName | None,
        Field(description="Platform override (skips detection)"),
    ] = None
    include_optional: Annotated[
        bool | None,
        Field(description="Merge optional section without asking"),
    ] = None

    @property
    def effective_manifest_dir(self) -> Path:
        """Configured manifest directory, or the XDG default."""
        if self.manifest_dir is not None:
            return self.manifest_dir.expanduser()
        return get_default_manifest_dir()


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated Settings; defaults when the file does not exist.

    Raises:
        SettingsError: If the file cannot be read, parsed, or validated.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        return Settings()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"Invalid TOML syntax in {settings_path}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {settings_path}: {e}") from e


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Save settings to a TOML file atomically.

    Args:
        settings: Settings to save.
        path: Destination. If None, uses the default path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    settings_path = path or get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    data = _settings_to_dict(settings)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write settings: {e}") from e

    return settings_path


def _settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Convert settings to a TOML-serializable dictionary (None values omitted)."""
    data: dict[str, Any] = {}
    if settings.manifest_dir is not None:
        data["manifest_dir"] = str(settings.manifest_dir)
    if settings.platform is not None:
        data["platform"] = settings.platform
    if settings.include_optional is not None:
        data["include_optional"] = settings.include_optional
    return data
