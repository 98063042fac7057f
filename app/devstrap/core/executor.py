"""Sequential plan execution.

Every planned install is turned into an Invocation by the same code in
live and dry-run mode, so a dry run describes exactly the commands a live
run would execute. Per-action failures are recorded and the run goes on;
only a missing primary package manager stops execution.
"""

from __future__ import annotations

import itertools
import logging
import subprocess
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from devstrap.core.context import ExecutionContext, reload_path as default_reload_path
from devstrap.core.errors import ActionError, PrerequisiteError
from devstrap.models.action import ExecutionResult, Outcome, PlannedAction
from devstrap.models.specs import (
    Category,
    DotfilesSpec,
    EnvVarSpec,
    IndexSpec,
    Operation,
    PackageSpec,
    RuntimeSpec,
    SourceSpec,
)
from devstrap.utils.shell import command_exists

if TYPE_CHECKING:
    from devstrap.adapters import AdapterSet
    from devstrap.adapters.base import Invocation

logger = logging.getLogger(__name__)

# Operations carried out by a package manager adapter
_PACKAGE_MANAGER_OPERATIONS = frozenset(
    {Operation.REFRESH_INDEX, Operation.ADD_SOURCE, Operation.INSTALL_PACKAGE}
)

# Operations whose missing tool skips the action with a warning.
_SKIPPABLE_OPERATIONS = frozenset(
    {Operation.INSTALL_RUNTIME, Operation.INIT_DOTFILES, Operation.APPLY_DOTFILES}
)

ReloadPath = Callable[[ExecutionContext, Sequence[str]], ExecutionContext]
ResultCallback = Callable[[ExecutionResult], None]


@dataclass(frozen=True, slots=True)
class ExecutionOptions:
    """Options for one execution.

    Attributes:
        dry_run: Describe invocations instead of running them.
    """

    dry_run: bool = False


def _manager_of(action: PlannedAction) -> str | None:
    target = action.target
    if isinstance(target, IndexSpec | SourceSpec | PackageSpec):
        return target.manager
    return None


class ActionExecutor:
    """Executes a plan through the adapters.

    Args:
        adapters: Adapters selected for this run.
        context: Initial execution context (PATH and variables).
        reload_path: Pure function merging persisted PATH entries into a
            context; called after a category installed something.
        on_result: Called with each result as soon as it is recorded.
    """

    def __init__(
        self,
        adapters: AdapterSet,
        context: ExecutionContext,
        reload_path: ReloadPath | None = None,
        on_result: ResultCallback | None = None,
    ) -> None:
        self._adapters = adapters
        self._context = context
        self._reload_path = reload_path or default_reload_path
        self._on_result = on_result
        self._results: list[ExecutionResult] = []

    @property
    def context(self) -> ExecutionContext:
        """Current execution context, including PATH reloads."""
        return self._context

    @property
    def results(self) -> list[ExecutionResult]:
        """Results recorded so far by the latest execute() call."""
        return list(self._results)

    def execute(
        self,
        plan: Iterable[PlannedAction],
        options: ExecutionOptions | None = None,
    ) -> list[ExecutionResult]:
        """Execute a plan in order.

        Args:
            plan: Planned actions in execution order.
            options: Execution options; defaults to a live run.

        Returns:
            One result per action, in plan order.

        Raises:
            PrerequisiteError: In live mode, if the plan installs through
                the primary package manager and it is not on PATH.
        """
        options = options or ExecutionOptions()
        actions = list(plan)
        self._results = []

        if not options.dry_run:
            self.check_prerequisites(actions)

        for category, group in itertools.groupby(actions, key=lambda a: a.category):
            category_results = [self._execute_action(action, options) for action in group]
            installed = any(
                r.outcome == Outcome.SUCCEEDED and r.action.is_install for r in category_results
            )

            if category == Category.RUNTIMES and installed:
                self._materialize_shims(options)
            if installed and not options.dry_run:
                self._reload()

        return list(self._results)

    def check_prerequisites(self, actions: Sequence[PlannedAction]) -> None:
        """Fail fast when the primary package manager cannot run.

        Raises:
            PrerequisiteError: If the primary manager or sudo is missing.
        """
        primary = self._adapters.primary
        needed = any(
            action.is_install and _manager_of(action) == primary.name for action in actions
        )
        if not needed:
            return

        path = self._context.search_path
        if primary.requires_sudo and not command_exists("sudo", path=path):
            msg = f"sudo is required to run {primary.name} but was not found on PATH"
            raise PrerequisiteError("sudo", msg)
        if not command_exists(primary.executable, path=path):
            msg = f"{primary.executable} was not found on PATH; install {primary.name} first"
            raise PrerequisiteError(primary.executable, msg)

    def _record(self, result: ExecutionResult) -> ExecutionResult:
        self._results.append(result)
        if self._on_result is not None:
            self._on_result(result)
        return result

    def _execute_action(
        self, action: PlannedAction, options: ExecutionOptions
    ) -> ExecutionResult:
        if action.is_skip:
            return self._record(
                ExecutionResult(action, Outcome.ALREADY_SATISFIED, message=action.reason)
            )
        if action.is_reconcile:
            return self._record(ExecutionResult(action, Outcome.WARNED, cause=action.reason))

        try:
            invocation = self._invocation_for(action)
        except ActionError as e:
            return self._record(self._failure(action, str(e)))

        if options.dry_run:
            logger.info("Would run: %s", invocation.description)
            return self._record(
                ExecutionResult(action, Outcome.SUCCEEDED, message=invocation.description)
            )

        missing = self._missing_tool(action)
        if missing is not None:
            cause = f"{missing} was not found on PATH"
            # Runtimes and dotfiles are skipped until their manager is installed
            if action.operation in _SKIPPABLE_OPERATIONS:
                logger.warning(
                    "Skipping %s %s: %s", action.operation.value, action.identifier, cause
                )
                return self._record(
                    ExecutionResult(
                        action, Outcome.WARNED, message=invocation.description, cause=cause
                    )
                )
            return self._record(self._failure(action, cause, invocation))

        logger.info("Running: %s", invocation.description)
        try:
            code = invocation.run(self._context.environ())
        except (OSError, RuntimeError, subprocess.SubprocessError) as e:
            return self._record(self._failure(action, str(e), invocation))

        if code != 0:
            return self._record(self._failure(action, f"exit status {code}", invocation))

        if isinstance(action.target, EnvVarSpec):
            self._context = self._context.with_variable(action.target.key, action.target.value)
        return self._record(
            ExecutionResult(action, Outcome.SUCCEEDED, message=invocation.description)
        )

    def _failure(
        self,
        action: PlannedAction,
        cause: str,
        invocation: Invocation | None = None,
    ) -> ExecutionResult:
        message = invocation.description if invocation is not None else None
        # A stale index only degrades the installs that follow
        if action.operation == Operation.REFRESH_INDEX:
            logger.warning("Index refresh failed for %s: %s", action.identifier, cause)
            return ExecutionResult(action, Outcome.WARNED, message=message, cause=cause)
        logger.error("%s %s failed: %s", action.operation.value, action.identifier, cause)
        return ExecutionResult(action, Outcome.FAILED, message=message, cause=cause)

    def _invocation_for(self, action: PlannedAction) -> Invocation:
        """Build the invocation carrying out an install action.

        Raises:
            ActionError: If the operation does not fit the target.
        """
        target = action.target
        operation = action.operation
        adapters = self._adapters

        if operation == Operation.REFRESH_INDEX and isinstance(target, IndexSpec):
            invocation = adapters.package_manager(target.manager).refresh_invocation()
            if invocation is None:
                msg = f"{target.manager} has no package index to refresh"
                raise ActionError(msg)
            return invocation
        if operation == Operation.ADD_SOURCE and isinstance(target, SourceSpec):
            return adapters.package_manager(target.manager).add_source_invocation(target)
        if operation == Operation.INSTALL_PACKAGE and isinstance(target, PackageSpec):
            return adapters.package_manager(target.manager).install_invocation(target)
        if operation == Operation.INSTALL_RUNTIME and isinstance(target, RuntimeSpec):
            return adapters.runtime.install_invocation(target)
        if operation == Operation.SET_ENV and isinstance(target, EnvVarSpec):
            return adapters.environment.persist_invocation(target.key, target.value)
        if operation == Operation.INIT_DOTFILES and isinstance(target, DotfilesSpec):
            return adapters.dotfiles.init_and_apply_invocation(target.source)
        if operation == Operation.APPLY_DOTFILES and isinstance(target, DotfilesSpec):
            return adapters.dotfiles.apply_invocation()

        msg = f"Cannot {operation.value} {target.label}"
        raise ActionError(msg)

    def _missing_tool(self, action: PlannedAction) -> str | None:
        """Name of the tool an action needs but cannot find, if any."""
        path = self._context.search_path
        if action.operation in _PACKAGE_MANAGER_OPERATIONS:
            manager = _manager_of(action)
            if manager is None:
                return None
            adapter = self._adapters.package_manager(manager)
            return None if adapter.is_available(path) else adapter.name
        if action.operation == Operation.INSTALL_RUNTIME:
            runtime = self._adapters.runtime
            return None if runtime.is_available(path) else runtime.name
        if action.operation in (Operation.INIT_DOTFILES, Operation.APPLY_DOTFILES):
            dotfiles = self._adapters.dotfiles
            return None if dotfiles.is_available(path) else dotfiles.name
        return None

    def _materialize_shims(self, options: ExecutionOptions) -> None:
        invocation = self._adapters.runtime.materialize_shims_invocation()
        if options.dry_run:
            logger.info("Would run: %s", invocation.description)
            return
        try:
            code = invocation.run(self._context.environ())
        except (OSError, RuntimeError, subprocess.SubprocessError) as e:
            logger.warning("Could not materialize runtime shims: %s", e)
            return
        if code != 0:
            logger.warning("Could not materialize runtime shims: exit status %d", code)

    def _reload(self) -> None:
        persisted = self._adapters.environment.read_persisted_path()
        self._context = self._reload_path(self._context, persisted)
        logger.info("Reloaded PATH (%d entries)", len(self._context.path))
