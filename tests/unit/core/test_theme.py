"""Unit tests for theme module.

Tests for theme loading, validation, and Rich theme generation.
"""

from pathlib import Path

import pytest
from devstrap.core.theme import (
    STYLE_TEMPLATES,
    ThemeColors,
    bundled_theme_path,
    get_rich_theme,
    load_theme,
    read_theme_file,
)
from rich.theme import Theme


class TestThemeColors:
    """Tests for ThemeColors Pydantic model."""

    def test_default_values(self) -> None:
        colors = ThemeColors()
        assert colors.success == "#03b971"
        assert colors.install == "#c1ff62"
        assert colors.reconcile == "#f5b332"

    def test_invalid_hex_no_hash(self) -> None:
        with pytest.raises(ValueError, match="must start with '#'"):
            ThemeColors(text="ffffff")

    def test_invalid_hex_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="must be #RGB or #RRGGBB"):
            ThemeColors(text="#ff")

    def test_unknown_color_rejected(self) -> None:
        with pytest.raises(ValueError):
            ThemeColors(sparkle="#ffffff")  # type: ignore[call-arg]


class TestLoadTheme:
    """Tests for theme loading."""

    def test_bundled_theme_is_valid(self) -> None:
        colors = read_theme_file(bundled_theme_path())
        assert colors is not None
        assert ThemeColors(**colors).skip == "#226666"

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        assert read_theme_file(tmp_path / "missing.toml") is None

    def test_colors_not_a_table(self, tmp_path: Path) -> None:
        path = tmp_path / "theme.toml"
        path.write_text('colors = "red"\n', encoding="utf-8")
        assert read_theme_file(path) is None

    def test_invalid_toml_returns_none(self, tmp_path: Path) -> None:
        path = tmp_path / "theme.toml"
        path.write_text("[colors\n", encoding="utf-8")
        assert read_theme_file(path) is None

    def test_user_override(self, isolated_config: Path) -> None:
        """User theme colors override bundled ones one by one."""
        user_theme = isolated_config / "devstrap" / "theme.toml"
        user_theme.parent.mkdir(parents=True)
        user_theme.write_text('[colors]\ninstall = "#00ff00"\n', encoding="utf-8")
        colors = load_theme()
        assert colors.install == "#00ff00"
        assert colors.skip == "#226666"

    def test_invalid_user_theme_falls_back(self, isolated_config: Path) -> None:
        user_theme = isolated_config / "devstrap" / "theme.toml"
        user_theme.parent.mkdir(parents=True)
        user_theme.write_text('[colors]\ninstall = "green"\n', encoding="utf-8")
        assert load_theme() == ThemeColors()


class TestGetRichTheme:
    """Tests for Rich theme conversion."""

    def test_styles_present(self) -> None:
        theme = get_rich_theme(ThemeColors())
        assert isinstance(theme, Theme)
        for name in ("install", "skip", "reconcile", "bold_header", "border", "muted"):
            assert name in theme.styles

    def test_every_template_resolves(self) -> None:
        """Templates only reference palette entries."""
        theme = get_rich_theme(ThemeColors(error="#ff0000"))
        assert set(STYLE_TEMPLATES) <= set(theme.styles)
        assert theme.styles["error"].bold

    def test_bundled_theme_matches_defaults(self) -> None:
        colors = read_theme_file(bundled_theme_path())
        assert colors is not None
        assert ThemeColors(**colors) == ThemeColors()
