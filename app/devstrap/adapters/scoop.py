"""Scoop package manager adapter.

Installed apps and registered buckets are both read from ``scoop export``,
which reports them as JSON including the bucket each app came from.
"""

import json
import logging
import subprocess
from typing import Any

from devstrap.adapters.base import PackageManagerAdapter
from devstrap.core.errors import ProbeError
from devstrap.models.specs import PackageSpec, SourceSpec
from devstrap.utils.shell import run_command

logger = logging.getLogger(__name__)


class ScoopAdapter(PackageManagerAdapter):
    """Adapter for Scoop apps and buckets on Windows."""

    name = "scoop"
    executable = "scoop"

    # scoop export walks every bucket; give it time on slow disks
    _EXPORT_TIMEOUT: float = 120.0

    def _export(self) -> dict[str, Any]:
        """Run ``scoop export`` and return the parsed document.

        Raises:
            ProbeError: If scoop is missing, fails, or prints non-JSON output.
        """
        try:
            result = run_command(["scoop", "export"], timeout=self._EXPORT_TIMEOUT)
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeError(f"scoop could not be run: {e}") from e

        if not result.success:
            msg = f"scoop export failed: {result.stderr.strip() or 'unknown error'}"
            raise ProbeError(msg)

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ProbeError(f"scoop export returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProbeError("scoop export returned an unexpected document")
        return data

    def list_installed(self) -> dict[str, str | None]:
        installed: dict[str, str | None] = {}
        for app in self._export().get("apps", []):
            name = app.get("Name") if isinstance(app, dict) else None
            if not name:
                logger.debug("Skipping malformed scoop app entry: %r", app)
                continue
            installed[name] = app.get("Source") or None
        return installed

    def list_sources(self) -> dict[str, str | None]:
        sources: dict[str, str | None] = {}
        for bucket in self._export().get("buckets", []):
            name = bucket.get("Name") if isinstance(bucket, dict) else None
            if not name:
                logger.debug("Skipping malformed scoop bucket entry: %r", bucket)
                continue
            sources[name] = bucket.get("Source") or None
        return sources

    def install_command(self, spec: PackageSpec) -> list[str]:
        return ["scoop", "install", f"{spec.source}/{spec.name}"]

    def add_source_command(self, spec: SourceSpec) -> list[str]:
        command = ["scoop", "bucket", "add", spec.name]
        if spec.url:
            command.append(spec.url)
        return command
