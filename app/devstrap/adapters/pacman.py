"""pacman package manager adapter."""

import subprocess

from devstrap.adapters.base import PackageManagerAdapter
from devstrap.core.errors import ProbeError
from devstrap.models.specs import PackageSpec
from devstrap.utils.shell import run_command


class PacmanAdapter(PackageManagerAdapter):
    """Adapter for Arch Linux pacman packages."""

    name = "pacman"
    executable = "pacman"
    requires_sudo = True

    def list_installed(self) -> dict[str, str | None]:
        """List installed packages with ``pacman -Qq``.

        Raises:
            ProbeError: If pacman is missing or fails.
        """
        try:
            result = run_command(["pacman", "-Qq"])
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeError(f"pacman could not be run: {e}") from e

        if not result.success:
            msg = f"pacman -Qq failed: {result.stderr.strip() or 'unknown error'}"
            raise ProbeError(msg)

        return {line.strip(): None for line in result.stdout.splitlines() if line.strip()}

    def install_command(self, spec: PackageSpec) -> list[str]:
        # --needed keeps re-runs from reinstalling up-to-date packages
        return ["sudo", "pacman", "-S", "--noconfirm", "--needed", spec.name]

    def refresh_command(self) -> list[str]:
        return ["sudo", "pacman", "-Sy", "--noconfirm"]
