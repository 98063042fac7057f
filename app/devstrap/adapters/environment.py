"""Persisted user environment adapter.

New sessions read user environment variables from persisted state: the
registry on Windows, environment.d files on systemd-based Linux. This
adapter reads and writes that state; it never changes the variables of
the running process.
"""

import logging
import os
import subprocess
from collections.abc import Mapping
from pathlib import Path
from tempfile import NamedTemporaryFile

from devstrap.adapters.base import Invocation, command_invocation
from devstrap.core.paths import get_user_env_file
from devstrap.utils.shell import run_command

logger = logging.getLogger(__name__)

# User-level install locations that package managers add to PATH on login
_WELL_KNOWN_POSIX_DIRS: tuple[str, ...] = (
    "~/.local/bin",
    "~/.local/share/mise/shims",
    "~/.cargo/bin",
)


def parse_env_file(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines of an environment.d file."""
    variables: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        variables[key.strip()] = value.strip()
    return variables


def write_env_var(path: Path, key: str, value: str) -> int:
    """Set one variable in an environment.d file, keeping the other lines.

    The file is replaced atomically. Returns 0 so it can back an Invocation.
    """
    lines = path.read_text(encoding="utf-8").splitlines() if path.exists() else []
    entry = f"{key}={value}"
    replaced = False
    for index, line in enumerate(lines):
        if line.strip().split("=", 1)[0].strip() == key:
            lines[index] = entry
            replaced = True
    if not replaced:
        lines.append(entry)

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            f.write("\n".join(lines) + "\n")
        os.replace(str(tmp_path), str(path))
    except OSError:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise
    return 0


class EnvironmentAdapter:
    """Reads and persists user environment variables and the persisted PATH.

    Args:
        env_file: environment.d file used on POSIX hosts.
        windows: Force Windows behaviour; defaults to the running OS.
    """

    name = "environment"

    def __init__(self, env_file: Path | None = None, windows: bool | None = None) -> None:
        self._env_file = env_file or get_user_env_file()
        self._windows = os.name == "nt" if windows is None else windows

    @property
    def env_file(self) -> Path:
        return self._env_file

    def is_available(self, path: str | None = None) -> bool:
        return True

    def _read_windows_user_variable(self, key: str) -> str | None:
        script = f"[Environment]::GetEnvironmentVariable('{key}', 'User')"
        try:
            result = run_command(["powershell", "-NoProfile", "-Command", script], timeout=30.0)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Reading user variable %s failed: %s", key, e)
            return None
        if not result.success:
            return None
        return result.stdout.strip() or None

    def persisted_variables(self) -> dict[str, str]:
        """Variables persisted by devstrap's environment.d file (POSIX only)."""
        if self._windows or not self._env_file.exists():
            return {}
        try:
            return parse_env_file(self._env_file.read_text(encoding="utf-8"))
        except OSError as e:
            logger.warning("Cannot read %s: %s", self._env_file, e)
            return {}

    def read_variable(self, key: str, environ: Mapping[str, str] | None = None) -> str | None:
        """Return the persisted value of a variable, else the session value."""
        if self._windows:
            value = self._read_windows_user_variable(key)
        else:
            value = self.persisted_variables().get(key)
        if value is not None:
            return value
        session = os.environ if environ is None else environ
        return session.get(key)

    def persist_invocation(self, key: str, value: str) -> Invocation:
        """Describe persisting one user variable for future sessions."""
        if self._windows:
            return command_invocation(["setx", key, value])

        env_file = self._env_file

        def _run(env: Mapping[str, str]) -> int:
            return write_env_var(env_file, key, value)

        return Invocation(description=f"write {key}={value} to {env_file}", run=_run)

    def read_persisted_path(self) -> list[str]:
        """Read PATH entries new sessions would get, without the session's own edits."""
        if self._windows:
            script = (
                "[Environment]::GetEnvironmentVariable('Path', 'Machine') + ';' + "
                "[Environment]::GetEnvironmentVariable('Path', 'User')"
            )
            try:
                result = run_command(["powershell", "-NoProfile", "-Command", script], timeout=30.0)
            except (OSError, subprocess.SubprocessError) as e:
                logger.warning("Cannot read persisted PATH: %s", e)
                return []
            if not result.success:
                logger.warning("Cannot read persisted PATH: %s", result.stderr.strip())
                return []
            return [entry for entry in result.stdout.strip().split(";") if entry]

        entries: list[str] = []
        persisted = self.persisted_variables().get("PATH", "")
        # Entries referencing other variables ($PATH, ${HOME}) are left to the session
        entries.extend(e for e in persisted.split(":") if e and "$" not in e)
        for directory in _WELL_KNOWN_POSIX_DIRS:
            expanded = Path(directory).expanduser()
            if expanded.is_dir():
                entries.append(str(expanded))
        return entries
