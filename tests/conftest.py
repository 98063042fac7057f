"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME at a temporary directory."""
    config_home = tmp_path / "xdg-config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Undo the handler and level changes made by CLI invocations."""
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers[:] = handlers


@pytest.fixture
def mock_dpkg_output() -> str:
    """Sample dpkg-query output for testing."""
    return """git\tii
curl\tii
ripgrep-old\trc
libc6:amd64\tii
build-essential\tii
"""


@pytest.fixture
def mock_pacman_output() -> str:
    """Sample pacman -Qq output for testing."""
    return """base
git
neovim
ripgrep
"""


@pytest.fixture
def mock_scoop_export() -> str:
    """Sample scoop export output for testing."""
    return json.dumps(
        {
            "buckets": [
                {"Name": "main", "Source": "https://github.com/ScoopInstaller/Main"},
                {"Name": "extras", "Source": "https://github.com/ScoopInstaller/Extras"},
            ],
            "apps": [
                {"Name": "git", "Source": "main", "Version": "2.44.0"},
                {"Name": "neovim", "Source": "extras", "Version": "0.9.5"},
            ],
        }
    )


@pytest.fixture
def mock_winget_export() -> dict[str, Any]:
    """Sample winget export document for testing."""
    return {
        "Sources": [
            {
                "SourceDetails": {"Name": "winget", "Argument": "https://cdn.winget.microsoft.com/cache"},
                "Packages": [
                    {"PackageIdentifier": "Git.Git"},
                    {"PackageIdentifier": "Microsoft.PowerShell"},
                ],
            },
            {
                "SourceDetails": {"Name": "msstore"},
                "Packages": [{"PackageIdentifier": "9NBLGGH4NNS1"}],
            },
        ]
    }


@pytest.fixture
def mock_winget_sources() -> str:
    """Sample winget source export output for testing."""
    return (
        '{"Arg":"https://cdn.winget.microsoft.com/cache","Name":"winget","Type":"Microsoft.PreIndexed.Package"}\n'
        '{"Arg":"https://storeedgefd.dsx.mp.microsoft.com/v9.0","Name":"msstore","Type":"Microsoft.Rest"}\n'
    )


@pytest.fixture
def ubuntu_manifest_data() -> dict[str, Any]:
    """Manifest document for an Ubuntu machine."""
    return {
        "packageManager": "apt",
        "platform": "ubuntu",
        "systemPackages": ["git", "ripgrep"],
        "miseRuntimes": ["node@lts", "rust"],
        "environment": {"EDITOR": "nvim"},
        "dotfiles": {"source": "https://github.com/octo/dotfiles.git"},
    }


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper writing a manifest document to a temporary file."""

    def _write(data: Any, name: str = "manifest.json") -> Path:
        path = tmp_path / name
        text = data if isinstance(data, str) else json.dumps(data)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
