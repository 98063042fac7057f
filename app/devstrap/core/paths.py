"""XDG-compliant path management for devstrap.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and manifest storage.

XDG defaults:
- Config: ~/.config/devstrap/
- Manifests: ~/.config/devstrap/manifests/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "devstrap"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/devstrap/ (or XDG_CONFIG_HOME/devstrap/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_settings_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.config/devstrap/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/devstrap/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_default_manifest_dir() -> Path:
    """Get the default directory holding platform manifests.

    Returns:
        Path to ~/.config/devstrap/manifests/.
    """
    return get_config_dir() / "manifests"


def get_user_env_file() -> Path:
    """Get the environment.d file used to persist user variables on POSIX.

    Returns:
        Path to ~/.config/environment.d/50-devstrap.conf.
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    config_home = Path(base) if base else Path.home() / ".config"
    return config_home / "environment.d" / f"50-{APP_NAME}.conf"
