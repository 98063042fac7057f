"""Unit tests for host state probes."""

from unittest.mock import MagicMock, patch

import pytest
from devstrap.adapters.apt import AptAdapter
from devstrap.core.context import ExecutionContext
from devstrap.core.errors import ProbeError
from devstrap.core.probe import (
    probe_dotfiles,
    probe_env_var,
    probe_host,
    probe_installed_packages,
    probe_runtime_command,
    probe_sources,
)
from devstrap.models.host import Absent, DotfilesState, Found, NotFound, Present, ProbeUnavailable
from devstrap.models.manifest import Manifest
from devstrap.models.specs import Category
from devstrap.utils.shell import CommandResult


def _manager(name: str, installed: dict | None = None, sources: dict | None = None) -> MagicMock:
    adapter = MagicMock()
    adapter.name = name
    adapter.is_available.return_value = True
    adapter.list_installed.return_value = installed or {}
    adapter.list_sources.return_value = sources or {}
    return adapter


class TestPackageProbes:
    """Tests for package manager probes."""

    def test_installed_packages(self) -> None:
        adapter = _manager("apt", {"git": None})
        assert probe_installed_packages(adapter, "/usr/bin") == {"git": None}
        adapter.is_available.assert_called_once_with("/usr/bin")

    def test_manager_missing_is_unavailable(self) -> None:
        """A missing manager is 'unknown', never 'nothing installed'."""
        adapter = _manager("winget")
        adapter.is_available.return_value = False
        outcome = probe_installed_packages(adapter)
        assert isinstance(outcome, ProbeUnavailable)
        assert "winget" in outcome.reason
        adapter.list_installed.assert_not_called()

    def test_root_host_without_sudo_is_probed(self, mock_dpkg_output: str) -> None:
        """Reading installed packages needs only the package manager itself."""
        with (
            patch(
                "devstrap.adapters.base.command_exists",
                side_effect=lambda cmd, path=None: cmd != "sudo",
            ),
            patch("devstrap.adapters.apt.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout=mock_dpkg_output, stderr="", returncode=0)
            outcome = probe_installed_packages(AptAdapter(), "/usr/bin")

        assert not isinstance(outcome, ProbeUnavailable)
        assert "git" in outcome

    def test_probe_error_is_unavailable(self) -> None:
        adapter = _manager("apt")
        adapter.list_installed.side_effect = ProbeError("dpkg-query failed: locked")
        assert probe_installed_packages(adapter) == ProbeUnavailable("dpkg-query failed: locked")

    def test_sources(self) -> None:
        adapter = _manager("scoop", sources={"extras": "https://example.com/extras"})
        assert probe_sources(adapter) == {"extras": "https://example.com/extras"}

    def test_sources_error(self) -> None:
        adapter = _manager("scoop")
        adapter.list_sources.side_effect = ProbeError("scoop export failed")
        assert isinstance(probe_sources(adapter), ProbeUnavailable)


class TestRuntimeAndEnvProbes:
    """Tests for runtime command and environment probes."""

    def test_runtime_found(self) -> None:
        runtime = MagicMock()
        runtime.resolve_command_path.return_value = "/home/me/.local/share/mise/shims/node"
        assert probe_runtime_command("node", runtime, "/usr/bin") == Found(
            "/home/me/.local/share/mise/shims/node"
        )
        runtime.resolve_command_path.assert_called_once_with("node", path="/usr/bin")

    def test_runtime_not_found(self) -> None:
        runtime = MagicMock()
        runtime.resolve_command_path.return_value = None
        assert probe_runtime_command("rustc", runtime) == NotFound("rustc")

    def test_env_present(self) -> None:
        environment = MagicMock()
        environment.read_variable.return_value = "nvim"
        assert probe_env_var("EDITOR", environment) == Present("nvim")

    def test_env_absent(self) -> None:
        environment = MagicMock()
        environment.read_variable.return_value = None
        assert probe_env_var("EDITOR", environment, {}) == Absent("EDITOR")
        environment.read_variable.assert_called_once_with("EDITOR", {})

    def test_dotfiles(self) -> None:
        dotfiles = MagicMock()
        dotfiles.state.return_value = DotfilesState(available=False)
        assert probe_dotfiles(dotfiles) == DotfilesState(available=False)


class TestProbeHost:
    """Tests for probe_host()."""

    @pytest.fixture
    def manifest(self) -> Manifest:
        return Manifest.model_validate(
            {
                "packageManager": "scoop",
                "scoopBuckets": ["extras"],
                "scoopTools": ["git"],
                "wingetPackages": ["Microsoft.PowerShell"],
                "miseRuntimes": ["rust", "node@lts"],
                "environment": {"EDITOR": "nvim"},
                "dotfiles": {"source": "octo"},
            }
        )

    @pytest.fixture
    def adapters(self) -> MagicMock:
        scoop = _manager("scoop", {"git": "main"}, {"extras": None})
        winget = _manager("winget")
        winget.is_available.return_value = False

        adapters = MagicMock()
        adapters.package_manager.side_effect = {"scoop": scoop, "winget": winget}.__getitem__
        adapters.runtime.resolve_command_path.side_effect = (
            lambda name, path=None: "/shims/rustc" if name == "rustc" else None
        )
        adapters.environment.read_variable.return_value = "nvim"
        adapters.dotfiles.state.return_value = DotfilesState(source_path="/src")
        return adapters

    def test_snapshot(self, manifest: Manifest, adapters: MagicMock) -> None:
        context = ExecutionContext(path=("/usr/bin",))
        host = probe_host(manifest, adapters, context)

        assert host.installed_packages("scoop") == {"git": "main"}
        assert host.registered_sources("scoop") == {"extras": None}
        assert host.is_available("winget") is False
        assert host.runtime_commands == frozenset({"rustc"})
        assert host.environment == {"EDITOR": "nvim"}
        assert host.dotfiles == DotfilesState(source_path="/src")

    def test_unavailable_logged(
        self,
        manifest: Manifest,
        adapters: MagicMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        probe_host(manifest, adapters, ExecutionContext(path=()))
        assert "Could not determine installed winget packages" in caplog.text

    def test_skipped_categories_not_probed(self, manifest: Manifest, adapters: MagicMock) -> None:
        skip = {Category.SOURCES, Category.PACKAGES, Category.RUNTIMES, Category.DOTFILES}
        host = probe_host(manifest, adapters, ExecutionContext(path=()), skip)

        adapters.package_manager.assert_not_called()
        adapters.runtime.resolve_command_path.assert_not_called()
        adapters.dotfiles.state.assert_not_called()
        assert host.environment == {"EDITOR": "nvim"}
        assert host.dotfiles is None
