"""APT package manager adapter.

Queries installed packages with dpkg-query and installs with apt-get.
"""

import logging
import subprocess

from devstrap.adapters.base import PackageManagerAdapter
from devstrap.core.errors import ProbeError
from devstrap.models.specs import PackageSpec
from devstrap.utils.shell import run_command

logger = logging.getLogger(__name__)


class AptAdapter(PackageManagerAdapter):
    """Adapter for APT/dpkg packages.

    Installation requires sudo privileges; the commands run attached to
    the terminal so a password prompt can be answered.
    """

    name = "apt"
    executable = "apt-get"
    requires_sudo = True

    # dpkg-query format string: Package, status abbreviation (e.g. "ii ")
    _DPKG_FORMAT = "${Package}\\t${db:Status-Abbrev}\\n"

    def list_installed(self) -> dict[str, str | None]:
        """List fully installed packages.

        Raises:
            ProbeError: If dpkg-query is missing or fails.
        """
        try:
            result = run_command(["dpkg-query", "-W", "-f", self._DPKG_FORMAT])
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeError(f"dpkg-query could not be run: {e}") from e

        if not result.success:
            msg = f"dpkg-query failed: {result.stderr.strip() or 'unknown error'}"
            raise ProbeError(msg)

        installed: dict[str, str | None] = {}
        for line in result.stdout.splitlines():
            parts = line.split("\t")
            if len(parts) < 2:
                logger.debug("Skipping malformed dpkg line: %r", line[:100])
                continue
            name, status = parts[0].strip(), parts[1].strip()
            # Only "ii" means installed; "rc" leaves config files behind only
            if not name or not status.startswith("ii"):
                continue
            installed[name.split(":", 1)[0]] = None
        return installed

    def install_command(self, spec: PackageSpec) -> list[str]:
        return ["sudo", "apt-get", "install", "-y", spec.name]

    def refresh_command(self) -> list[str]:
        return ["sudo", "apt-get", "update"]
