"""Unit tests for PacmanAdapter."""

from unittest.mock import patch

import pytest
from devstrap.adapters.pacman import PacmanAdapter
from devstrap.core.errors import ActionError, ProbeError
from devstrap.models.specs import PackageSpec, SourceSpec
from devstrap.utils.shell import CommandResult


class TestPacmanAdapter:
    """Tests for PacmanAdapter class."""

    @pytest.fixture
    def adapter(self) -> PacmanAdapter:
        return PacmanAdapter()

    def test_list_installed(self, adapter: PacmanAdapter, mock_pacman_output: str) -> None:
        with patch("devstrap.adapters.pacman.run_command") as mock_run:
            mock_run.return_value = CommandResult(stdout=mock_pacman_output, stderr="", returncode=0)
            installed = adapter.list_installed()

        assert installed == {"base": None, "git": None, "neovim": None, "ripgrep": None}
        mock_run.assert_called_once_with(["pacman", "-Qq"])

    def test_list_installed_failure(self, adapter: PacmanAdapter) -> None:
        with patch("devstrap.adapters.pacman.run_command") as mock_run:
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=1)
            with pytest.raises(ProbeError, match="unknown error"):
                adapter.list_installed()

    def test_install_is_needed_only(self, adapter: PacmanAdapter) -> None:
        """Reinstalling an up-to-date package is avoided with --needed."""
        spec = PackageSpec(name="fd", source="pacman", manager="pacman")
        assert adapter.install_command(spec) == [
            "sudo",
            "pacman",
            "-S",
            "--noconfirm",
            "--needed",
            "fd",
        ]

    def test_refresh(self, adapter: PacmanAdapter) -> None:
        assert adapter.refresh_command() == ["sudo", "pacman", "-Sy", "--noconfirm"]

    def test_add_source_unsupported(self, adapter: PacmanAdapter) -> None:
        with pytest.raises(ActionError, match="does not support adding sources"):
            adapter.add_source_invocation(SourceSpec(name="chaotic", manager="pacman"))
