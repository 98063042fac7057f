"""Dotfile manager adapter (chezmoi)."""

import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path

from devstrap.adapters.base import Invocation, command_invocation
from devstrap.models.host import DotfilesState
from devstrap.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)


class ChezmoiAdapter:
    """Adapter for chezmoi.

    The source directory is a git checkout; its ``origin`` remote tells
    which repository the host was initialized from.
    """

    name = "chezmoi"
    executable = "chezmoi"

    def is_available(self, path: str | None = None) -> bool:
        return command_exists(self.executable, path=path)

    def _query(self, args: list[str]) -> CommandResult | None:
        try:
            return run_command(args, timeout=30.0)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("%s failed: %s", " ".join(args), e)
            return None

    def source_path(self) -> str | None:
        """Return the chezmoi source directory if it exists."""
        result = self._query(["chezmoi", "source-path"])
        if result is None or not result.success:
            return None
        path = result.stdout.strip()
        # source-path prints the configured location even before init
        if not path or not Path(path).is_dir():
            return None
        return path

    def remote_origin(self) -> str | None:
        """Return the ``origin`` URL of the source directory, if any."""
        result = self._query(["chezmoi", "git", "--", "remote", "get-url", "origin"])
        if result is None or not result.success:
            return None
        return result.stdout.strip() or None

    def has_managed_targets(self) -> bool:
        result = self._query(["chezmoi", "managed"])
        return result is not None and result.success and bool(result.stdout.strip())

    def state(self) -> DotfilesState:
        """Snapshot the dotfile manager state (read-only)."""
        if not self.is_available():
            return DotfilesState(available=False)
        source = self.source_path()
        if source is None:
            return DotfilesState()
        return DotfilesState(
            source_path=source,
            remote_origin=self.remote_origin(),
            has_managed_targets=self.has_managed_targets(),
        )

    def init_and_apply_invocation(self, source: str) -> Invocation:
        return command_invocation(["chezmoi", "init", "--apply", source])

    def apply_invocation(self) -> Invocation:
        return command_invocation(["chezmoi", "apply"])

    def init_and_apply(self, source: str, env: Mapping[str, str] | None = None) -> int:
        return self.init_and_apply_invocation(source).run(env or {})

    def apply(self, env: Mapping[str, str] | None = None) -> int:
        return self.apply_invocation().run(env or {})
