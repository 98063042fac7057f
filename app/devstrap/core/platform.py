"""Platform detection and manifest selection.

The platform target decides which manifest is loaded and therefore which
package manager adapter is used. On Linux the target is derived from
/etc/os-release; without that file there is no safe way to pick a
package manager, so detection fails unless an override is given.
"""

import logging
import sys
from pathlib import Path

from devstrap.core.errors import PlatformDetectionError

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")

# Manifest file name per platform target
MANIFEST_FILES: dict[str, str] = {
    "ubuntu": "linux.ubuntu.packages.json",
    "arch": "linux.arch.packages.json",
    "windows": "windows.packages.json",
}

_DISTRO_IDS: dict[str, str] = {
    "ubuntu": "ubuntu",
    "debian": "ubuntu",
    "linuxmint": "ubuntu",
    "pop": "ubuntu",
    "arch": "arch",
    "manjaro": "arch",
    "endeavouros": "arch",
}

_DISTRO_LIKE: tuple[tuple[str, str], ...] = (
    ("debian", "ubuntu"),
    ("arch", "arch"),
)


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release ``KEY=value`` lines, unquoting values."""
    fields: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        fields[key.strip()] = value
    return fields


def detect_linux_distro(os_release_path: Path = OS_RELEASE_PATH) -> str:
    """Map the running Linux distribution to a platform target.

    Args:
        os_release_path: Location of the os-release file.

    Returns:
        "ubuntu" or "arch".

    Raises:
        PlatformDetectionError: If the file is missing or the distro is unsupported.
    """
    try:
        text = os_release_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        msg = f"{os_release_path} not found; cannot detect Linux distro."
        raise PlatformDetectionError(msg) from e
    except OSError as e:
        msg = f"Cannot read {os_release_path}: {e}"
        raise PlatformDetectionError(msg) from e

    fields = parse_os_release(text)
    distro_id = fields.get("ID", "")
    distro_like = fields.get("ID_LIKE", "")

    if distro_id in _DISTRO_IDS:
        return _DISTRO_IDS[distro_id]

    # Fallback to ID_LIKE when ID is not one of the direct matches
    like_ids = distro_like.split()
    for like, target in _DISTRO_LIKE:
        if like in like_ids:
            logger.debug("Matched distro %r through ID_LIKE=%r", distro_id, distro_like)
            return target

    msg = (
        f"Unsupported distro (ID='{distro_id}', ID_LIKE='{distro_like}'). "
        "Pass --manifest <path> to force a manifest."
    )
    raise PlatformDetectionError(msg)


def detect_platform(os_release_path: Path = OS_RELEASE_PATH) -> str:
    """Detect the platform target of the running host.

    Returns:
        "windows", "ubuntu", or "arch".

    Raises:
        PlatformDetectionError: If the platform is not supported.
    """
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform.startswith("linux"):
        return detect_linux_distro(os_release_path)
    msg = f"Unsupported platform '{sys.platform}'. Pass --manifest <path> to force a manifest."
    raise PlatformDetectionError(msg)


def resolve_manifest_path(
    override: Path | None,
    manifest_dir: Path,
    platform: str | None = None,
    os_release_path: Path = OS_RELEASE_PATH,
) -> Path:
    """Decide which manifest file to load.

    An explicit override is tried as given, then relative to the manifest
    directory. Without an override the platform manifest inside the
    manifest directory is used, detecting the platform when none is given.
    The returned path is not checked for existence beyond the override
    lookup; loading reports a missing file.

    Raises:
        PlatformDetectionError: If no override is given and detection fails.
    """
    if override is not None:
        candidate = override.expanduser()
        if candidate.is_file() or candidate.is_absolute():
            return candidate
        relative = manifest_dir / candidate
        if relative.is_file():
            return relative
        return candidate

    target = platform or detect_platform(os_release_path)
    try:
        return manifest_dir / MANIFEST_FILES[target]
    except KeyError as e:
        raise PlatformDetectionError(f"No manifest convention for platform '{target}'") from e
