"""Runtime version manager adapter (mise)."""

import logging
import shutil
import subprocess
from collections.abc import Mapping

from devstrap.adapters.base import Invocation, command_invocation
from devstrap.models.specs import RuntimeSpec
from devstrap.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class MiseAdapter:
    """Adapter for mise, which installs runtimes and exposes them through shims.

    Example:
        >>> mise = MiseAdapter()
        >>> mise.resolve_command_path("rustc")
        '/home/me/.local/share/mise/shims/rustc'
    """

    name = "mise"
    executable = "mise"

    def is_available(self, path: str | None = None) -> bool:
        return command_exists(self.executable, path=path)

    def install_command(self, spec: RuntimeSpec) -> list[str]:
        return ["mise", "use", "--global", spec.identifier]

    def install_invocation(self, spec: RuntimeSpec) -> Invocation:
        return command_invocation(self.install_command(spec))

    def materialize_shims_invocation(self) -> Invocation:
        return command_invocation(["mise", "reshim"])

    def install_runtime(self, spec: RuntimeSpec, env: Mapping[str, str] | None = None) -> int:
        """Install a runtime globally and return the exit status."""
        return self.install_invocation(spec).run(env or {})

    def materialize_shims(self, env: Mapping[str, str] | None = None) -> int:
        """Regenerate shims so new runtime executables resolve on PATH."""
        return self.materialize_shims_invocation().run(env or {})

    def resolve_command_path(self, name: str, path: str | None = None) -> str | None:
        """Resolve a runtime command on the execution path, then through mise.

        Args:
            name: Command name (e.g. ``rustc``).
            path: Search path to use instead of the process PATH.

        Returns:
            Absolute path of the executable, or None when it is absent.
        """
        resolved = shutil.which(name, path=path)
        if resolved is not None:
            return resolved
        if not self.is_available(path):
            return None
        try:
            result = run_command(["mise", "which", name], timeout=30.0)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("mise which %s failed: %s", name, e)
            return None
        if not result.success:
            return None
        return result.stdout.strip() or None
