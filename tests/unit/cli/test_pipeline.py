"""Unit tests for the shared plan/apply setup."""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
import typer
from devstrap.cli.pipeline import (
    load_cli_settings,
    locate_manifest,
    prepare_run,
    resolve_optional,
    skipped_categories,
)
from devstrap.core.config import Settings
from devstrap.core.errors import PlatformDetectionError
from devstrap.core.paths import get_settings_path
from devstrap.models.host import HostState
from devstrap.models.manifest import Manifest
from devstrap.models.specs import Category


@pytest.fixture
def optional_manifest() -> Manifest:
    return Manifest.model_validate(
        {
            "packageManager": "apt",
            "systemPackages": ["git"],
            "optional": {"systemPackages": ["htop"]},
        }
    )


def _names(manifest: Manifest) -> list[str]:
    return [spec.name for spec in manifest.package_specs()]


class TestSkippedCategories:
    """Tests for skipped_categories()."""

    def test_none(self) -> None:
        assert skipped_categories() == frozenset()

    def test_packages_include_sources(self) -> None:
        assert skipped_categories(skip_packages=True) == {Category.SOURCES, Category.PACKAGES}

    def test_all(self) -> None:
        assert skipped_categories(True, True, True) == {
            Category.SOURCES,
            Category.PACKAGES,
            Category.RUNTIMES,
            Category.DOTFILES,
        }


class TestResolveOptional:
    """Tests for resolve_optional() precedence."""

    def test_flag_wins_over_settings(self, optional_manifest: Manifest) -> None:
        merged = resolve_optional(
            optional_manifest, True, Settings(include_optional=False), interactive=False
        )
        assert _names(merged) == ["git", "htop"]

    def test_settings_used_without_flag(self, optional_manifest: Manifest) -> None:
        merged = resolve_optional(
            optional_manifest, None, Settings(include_optional=True), interactive=False
        )
        assert "htop" in _names(merged)

    def test_prompt_when_interactive(self, optional_manifest: Manifest) -> None:
        with patch("devstrap.cli.pipeline.typer.confirm", return_value=True) as mock_confirm:
            merged = resolve_optional(optional_manifest, None, Settings(), interactive=True)
        mock_confirm.assert_called_once()
        assert "htop" in _names(merged)

    def test_no_prompt_when_not_interactive(self, optional_manifest: Manifest) -> None:
        with patch("devstrap.cli.pipeline.typer.confirm") as mock_confirm:
            merged = resolve_optional(optional_manifest, None, Settings(), interactive=False)
        mock_confirm.assert_not_called()
        assert _names(merged) == ["git"]

    def test_no_optional_section(self) -> None:
        manifest = Manifest.model_validate({"packageManager": "apt"})
        with patch("devstrap.cli.pipeline.typer.confirm") as mock_confirm:
            assert resolve_optional(manifest, None, Settings(), interactive=True) is manifest
        mock_confirm.assert_not_called()


class TestSetupErrors:
    """Tests for fatal setup errors."""

    def test_invalid_settings_exit(self) -> None:
        path = get_settings_path()
        path.parent.mkdir(parents=True)
        path.write_text('platform = "beos"\n', encoding="utf-8")
        with pytest.raises(typer.Exit) as exc_info:
            load_cli_settings()
        assert exc_info.value.exit_code == 1

    def test_undetectable_platform_exit(self) -> None:
        with patch(
            "devstrap.cli.pipeline.resolve_manifest_path",
            side_effect=PlatformDetectionError("Unsupported platform"),
        ):
            with pytest.raises(typer.Exit) as exc_info:
                locate_manifest(None, Settings())
        assert exc_info.value.exit_code == 1

    def test_override_skips_detection(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.json"
        path.write_text("{}", encoding="utf-8")
        assert locate_manifest(path, Settings()) == path


class TestPrepareRun:
    """Tests for prepare_run()."""

    def test_plans_with_skips(
        self, write_manifest: Callable[..., Path], ubuntu_manifest_data: dict[str, Any]
    ) -> None:
        path = write_manifest(ubuntu_manifest_data)
        skip = frozenset({Category.PACKAGES, Category.SOURCES})
        with patch("devstrap.cli.pipeline.probe_host", return_value=HostState()) as mock_probe:
            setup = prepare_run(path, skip=skip, announce=False)

        assert setup.manifest_path == path
        assert setup.adapters.primary.name == "apt"
        assert mock_probe.call_args.args[3] == skip
        assert {a.category for a in setup.actions} == {
            Category.RUNTIMES,
            Category.ENVIRONMENT,
            Category.DOTFILES,
        }
