"""Execution context passed through the executor.

Child processes inherit the PATH of this context, not the persisted PATH
an installer may just have updated. The context therefore has to be
reloaded explicitly after steps that can add directories to PATH.
"""

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field


def _dedupe(entries: Sequence[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    unique: list[str] = []
    for entry in entries:
        key = os.path.normcase(os.path.normpath(entry))
        if entry and key not in seen:
            seen.add(key)
            unique.append(entry)
    return tuple(unique)


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Search path and variable overrides for child processes.

    Attributes:
        path: Ordered PATH entries.
        variables: Variables set during this run, passed to children.
    """

    path: tuple[str, ...]
    variables: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "ExecutionContext":
        """Build a context from the current process environment."""
        source = os.environ if environ is None else environ
        return cls(path=_dedupe(source.get("PATH", "").split(os.pathsep)))

    @property
    def search_path(self) -> str:
        """PATH string usable with shutil.which and subprocess."""
        return os.pathsep.join(self.path)

    def environ(self) -> dict[str, str]:
        """Environment overrides for child processes."""
        return {**self.variables, "PATH": self.search_path}

    def with_variable(self, key: str, value: str) -> "ExecutionContext":
        return ExecutionContext(path=self.path, variables={**self.variables, key: value})


def reload_path(context: ExecutionContext, persisted: Sequence[str]) -> ExecutionContext:
    """Return a context whose PATH includes the persisted entries.

    Persisted entries come first, in their persisted order; entries only
    present in the session follow. Pure: the input context is unchanged.
    """
    return ExecutionContext(
        path=_dedupe([*persisted, *context.path]),
        variables=context.variables,
    )
