"""Unit tests for settings loading and saving."""

from pathlib import Path

import pytest
from devstrap.core.config import Settings, load_settings, save_settings
from devstrap.core.errors import SettingsError
from devstrap.core.paths import get_default_manifest_dir


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "config.toml")
        assert settings == Settings()
        assert settings.effective_manifest_dir == get_default_manifest_dir()

    def test_reads_values(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            'manifest_dir = "/srv/manifests"\nplatform = "arch"\ninclude_optional = true\n',
            encoding="utf-8",
        )
        settings = load_settings(path)
        assert settings.manifest_dir == Path("/srv/manifests")
        assert settings.platform == "arch"
        assert settings.include_optional is True

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("platform = ", encoding="utf-8")
        with pytest.raises(SettingsError, match="Invalid TOML"):
            load_settings(path)

    def test_unknown_platform(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('platform = "macos"\n', encoding="utf-8")
        with pytest.raises(SettingsError, match="Invalid settings"):
            load_settings(path)

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('colour = "blue"\n', encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(path)

    def test_default_path_uses_xdg(self, isolated_config: Path) -> None:
        path = isolated_config / "devstrap" / "config.toml"
        path.parent.mkdir(parents=True)
        path.write_text('platform = "windows"\n', encoding="utf-8")
        assert load_settings().platform == "windows"


class TestSaveSettings:
    """Tests for save_settings()."""

    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "config.toml"
        settings = Settings(manifest_dir=Path("/srv/manifests"), include_optional=False)
        assert save_settings(settings, path) == path
        assert load_settings(path) == settings

    def test_none_values_omitted(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        save_settings(Settings(platform="ubuntu"), path)
        assert path.read_text(encoding="utf-8").strip() == 'platform = "ubuntu"'

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        save_settings(Settings(), tmp_path / "config.toml")
        assert [p.name for p in tmp_path.iterdir()] == ["config.toml"]
