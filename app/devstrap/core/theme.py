"""Console colors for devstrap.

The bundled ``data/theme.toml`` defines every color; a user theme in the
config directory may override any subset of them.
"""

import functools
import logging
import re
import sys
import tomllib
from importlib import resources
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from rich.theme import Theme

from devstrap.core.paths import get_theme_path

logger = logging.getLogger(__name__)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]{3}|[0-9a-fA-F]{6}")


def _hex_color(value: object) -> str:
    if not isinstance(value, str):
        msg = "color must be a string"
        raise ValueError(msg)
    color = value.strip()
    if not color.startswith("#"):
        msg = f"color must start with '#', got {color!r}"
        raise ValueError(msg)
    if not _HEX_DIGITS.fullmatch(color[1:]):
        msg = f"color must be #RGB or #RRGGBB, got {color!r}"
        raise ValueError(msg)
    return color


HexColor = Annotated[str, BeforeValidator(_hex_color)]


class ThemeColors(BaseModel):
    """Palette used by the console styles."""

    model_config = ConfigDict(extra="forbid")

    text: HexColor = "#ffffff"
    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"

    # Outcomes
    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    # Planned action kinds
    install: HexColor = "#c1ff62"
    skip: HexColor = "#226666"
    reconcile: HexColor = "#f5b332"


# Rich style name -> style template over the palette.
STYLE_TEMPLATES: dict[str, str] = {
    "text": "{text}",
    "muted": "{muted}",
    "dim": "{muted}",
    "header": "{header}",
    "bold_header": "bold {header}",
    "border": "{border}",
    "success": "{success}",
    "warning": "{warning}",
    "error": "bold {error}",
    "info": "{info}",
    "install": "{install}",
    "skip": "{skip}",
    "reconcile": "bold {reconcile}",
}


def bundled_theme_path() -> Path:
    """Path of the theme shipped with the package."""
    return Path(str(resources.files("devstrap.data").joinpath("theme.toml")))


def read_theme_file(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Returns:
        The string-valued colors, or None if the file is missing or unreadable.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    table = data.get("colors", {})
    if not isinstance(table, dict):
        logger.warning("Ignoring theme file %s: 'colors' is not a table", path)
        return None
    return {name: value for name, value in table.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Layer the user theme over the bundled one and validate the result.

    An invalid combination falls back to the built-in palette.
    """
    colors: dict[str, str] = {}
    for path in (bundled_theme_path(), get_theme_path()):
        colors.update(read_theme_file(path) or {})

    try:
        return ThemeColors.model_validate(colors)
    except ValidationError as e:
        logger.warning("Invalid theme configuration, using defaults: %s", e)
        # Logging is not configured yet when the console module loads
        print(f"Warning: invalid theme configuration: {e}", file=sys.stderr)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme from a palette (loaded from disk when omitted)."""
    palette = (colors or load_theme()).model_dump()
    return Theme({name: template.format(**palette) for name, template in STYLE_TEMPLATES.items()})


@functools.cache
def get_theme() -> Theme:
    """Rich theme shared by the console instances, loaded once."""
    return get_rich_theme()
