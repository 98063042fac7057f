"""Action models for provisioning plans.

This module defines the planned actions produced by the planner and the
execution results recorded by the executor.
"""

from dataclasses import dataclass
from enum import Enum

from devstrap.models.specs import Category, Operation, Target


class ActionKind(Enum):
    """Kind of planned action.

    Attributes:
        SKIP: Desired state is already present on the host.
        INSTALL: Desired state is absent and will be installed.
        RECONCILE: Host state conflicts with the manifest; needs a human decision.
    """

    SKIP = "skip"
    INSTALL = "install"
    RECONCILE = "reconcile"


@dataclass(frozen=True, slots=True)
class PlannedAction:
    """A single step of a provisioning plan.

    Attributes:
        kind: Skip, install, or reconcile.
        category: Planning category the action belongs to.
        operation: Concrete operation performed for installs.
        target: Spec the action is about.
        reason: Why the action was planned (skip reason or conflict description).
    """

    kind: ActionKind
    category: Category
    operation: Operation
    target: Target
    reason: str | None = None

    @property
    def is_skip(self) -> bool:
        return self.kind == ActionKind.SKIP

    @property
    def is_install(self) -> bool:
        return self.kind == ActionKind.INSTALL

    @property
    def is_reconcile(self) -> bool:
        return self.kind == ActionKind.RECONCILE

    @property
    def identifier(self) -> str:
        """Human-readable identifier of the action target."""
        return self.target.label

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "category": self.category.value,
            "operation": self.operation.value,
            "target": self.identifier,
            "reason": self.reason,
        }


class Outcome(Enum):
    """Outcome of executing a planned action."""

    SUCCEEDED = "succeeded"
    ALREADY_SATISFIED = "already-satisfied"
    FAILED = "failed"
    WARNED = "warned"


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Immutable outcome of one planned action.

    Attributes:
        action: The action that was executed.
        outcome: What happened.
        message: Command description or informational message.
        cause: Failure or warning cause.
    """

    action: PlannedAction
    outcome: Outcome
    message: str | None = None
    cause: str | None = None

    @property
    def failed(self) -> bool:
        return self.outcome == Outcome.FAILED

    @property
    def warned(self) -> bool:
        return self.outcome == Outcome.WARNED


def create_skip_action(
    category: Category,
    operation: Operation,
    target: Target,
    reason: str = "already satisfied",
) -> PlannedAction:
    """Create a skip action for a target that is already present."""
    return PlannedAction(
        kind=ActionKind.SKIP,
        category=category,
        operation=operation,
        target=target,
        reason=reason,
    )


def create_install_action(
    category: Category,
    operation: Operation,
    target: Target,
    reason: str | None = None,
) -> PlannedAction:
    """Create an install action for a target that is absent."""
    return PlannedAction(
        kind=ActionKind.INSTALL,
        category=category,
        operation=operation,
        target=target,
        reason=reason,
    )


def create_reconcile_action(
    category: Category,
    operation: Operation,
    target: Target,
    conflict: str,
) -> PlannedAction:
    """Create a reconcile action describing a conflict with host state."""
    return PlannedAction(
        kind=ActionKind.RECONCILE,
        category=category,
        operation=operation,
        target=target,
        reason=conflict,
    )
