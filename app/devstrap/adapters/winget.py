"""winget package manager adapter.

Installed packages come from ``winget export`` (a JSON file grouping
package identifiers by source); registered sources come from
``winget source export`` (one JSON object per line).
"""

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from devstrap.adapters.base import PackageManagerAdapter
from devstrap.core.errors import ActionError, ProbeError
from devstrap.models.specs import PackageSpec, SourceSpec
from devstrap.utils.shell import run_command

logger = logging.getLogger(__name__)


class WingetAdapter(PackageManagerAdapter):
    """Adapter for the Windows Package Manager."""

    name = "winget"
    executable = "winget"

    _EXPORT_TIMEOUT: float = 180.0

    def list_installed(self) -> dict[str, str | None]:
        """List installed packages known to a winget source.

        Raises:
            ProbeError: If winget is missing or the export cannot be read.
        """
        with tempfile.TemporaryDirectory(prefix="devstrap-") as tmp:
            export_path = Path(tmp) / "winget-export.json"
            try:
                result = run_command(
                    [
                        "winget",
                        "export",
                        "--output",
                        str(export_path),
                        "--accept-source-agreements",
                        "--disable-interactivity",
                    ],
                    timeout=self._EXPORT_TIMEOUT,
                )
            except (OSError, subprocess.SubprocessError) as e:
                raise ProbeError(f"winget could not be run: {e}") from e

            # winget exits non-zero when some packages have no source, but still writes the file
            if not export_path.exists():
                msg = f"winget export failed: {result.stderr.strip() or result.stdout.strip()}"
                raise ProbeError(msg)

            try:
                data = json.loads(export_path.read_text(encoding="utf-8-sig"))
            except (OSError, json.JSONDecodeError) as e:
                raise ProbeError(f"winget export could not be parsed: {e}") from e

        return self._parse_export(data)

    @staticmethod
    def _parse_export(data: Any) -> dict[str, str | None]:
        installed: dict[str, str | None] = {}
        if not isinstance(data, dict):
            return installed
        for source in data.get("Sources", []):
            details = source.get("SourceDetails", {}) if isinstance(source, dict) else {}
            source_name = details.get("Name") or None
            for package in source.get("Packages", []) if isinstance(source, dict) else []:
                identifier = package.get("PackageIdentifier") if isinstance(package, dict) else None
                if identifier:
                    installed[identifier] = source_name
        return installed

    def is_package_installed(self, name: str) -> bool:
        # Package identifiers are case-insensitive
        wanted = name.casefold()
        return any(identifier.casefold() == wanted for identifier in self.list_installed())

    def list_sources(self) -> dict[str, str | None]:
        try:
            result = run_command(["winget", "source", "export"])
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeError(f"winget could not be run: {e}") from e

        if not result.success:
            msg = f"winget source export failed: {result.stderr.strip() or 'unknown error'}"
            raise ProbeError(msg)

        sources: dict[str, str | None] = {}
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping unparsable winget source line: %r", line[:100])
                continue
            if entry.get("Name"):
                sources[entry["Name"]] = entry.get("Arg") or None
        return sources

    def install_command(self, spec: PackageSpec) -> list[str]:
        return [
            "winget",
            "install",
            "--id",
            spec.name,
            "--exact",
            "--source",
            spec.source,
            "--accept-package-agreements",
            "--accept-source-agreements",
        ]

    def add_source_command(self, spec: SourceSpec) -> list[str]:
        if not spec.url:
            msg = f"winget source '{spec.name}' needs a URL"
            raise ActionError(msg)
        return ["winget", "source", "add", "--name", spec.name, "--arg", spec.url]
