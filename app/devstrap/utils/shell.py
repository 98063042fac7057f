"""Shell execution utilities.

Provides safe subprocess execution with proper error handling.
"""

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def _resolve_argv(args: Sequence[str], path: str | None = None) -> list[str]:
    """Resolve the executable of a command line against PATH.

    Windows wrappers such as ``scoop.cmd`` are only found through PATHEXT,
    which subprocess does not consult without a shell.
    """
    argv = list(args)
    if argv and not os.path.isabs(argv[0]):
        resolved = shutil.which(argv[0], path=path)
        if resolved is not None:
            argv[0] = resolved
    return argv


def run_command(
    args: Sequence[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
) -> CommandResult:
    """Execute a shell command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        _resolve_argv(args),
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=cwd,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str, path: str | None = None) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.
        path: Search path to use instead of the process PATH.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name, path=path) is not None


def run_interactive(
    args: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    """Execute a command interactively, inheriting the terminal.

    Unlike run_command(), this does NOT capture stdout/stderr,
    allowing the subprocess to interact with the user's terminal
    directly (sudo password prompts, package manager progress bars).

    Args:
        args: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Additional environment variables (merged with current env).

    Returns:
        Exit code of the command.

    Raises:
        FileNotFoundError: If command executable is not found.
        OSError: If command cannot be executed.
    """
    full_env = {**os.environ, **(env or {})}
    result = subprocess.run(
        _resolve_argv(args, path=full_env.get("PATH")),
        check=False,
        cwd=cwd,
        env=full_env,
    )
    return result.returncode
