"""Publish plan construction."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pyworkspaces.workspace.workspace import Workspace


class PublishState(Enum):
    """Lifecycle of one package in the scheduler.

    ``PENDING -> PUBLISHING -> AWAITING_AVAILABILITY -> AVAILABLE`` on success,
    ``PENDING -> PUBLISHING -> FAILED`` on rejection. ``SKIPPED`` packages were
    never submitted because an upstream package failed or scheduling halted;
    ``CANCELLED`` ones were stopped by an abort.
    """

    PENDING = "pending"
    PUBLISHING = "publishing"
    AWAITING_AVAILABILITY = "awaiting-availability"
    AVAILABLE = "available"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (
            PublishState.AVAILABLE,
            PublishState.FAILED,
            PublishState.SKIPPED,
            PublishState.CANCELLED,
        )


@dataclass(frozen=True)
class PublishStep:
    """One package to publish.

    Attributes:
        name: Package name.
        version: Version to publish.
        path: Package directory handed to the registry client.
        dependencies: Workspace dependencies that are part of the same plan.
        index: Discovery order, the tie-break among ready steps.
    """

    name: str
    version: str
    path: Path
    dependencies: frozenset[str] = frozenset()
    index: int = 0

    def is_ready(self, available: Collection[str]) -> bool:
        """True once every in-plan dependency is available."""
        return all(dep in available for dep in self.dependencies)


@dataclass
class PublishPlan:
    """Steps in a valid topological order.

    Attributes:
        steps: Steps by name, ordered dependencies first with ties broken by
            discovery order.
        skipped: Packages left out of the plan, with the reason.
    """

    steps: dict[str, PublishStep] = field(default_factory=dict)
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def order(self) -> list[str]:
        return list(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __bool__(self) -> bool:
        return bool(self.steps)


def build_publish_plan(
    workspace: Workspace,
    versions: Mapping[str, str] | None = None,
    *,
    include_private: bool = False,
) -> PublishPlan:
    """Order the packages to publish.

    Args:
        workspace: Loaded workspace.
        versions: Package name to version to publish. None publishes every
            member at its on-disk version.
        include_private: Publish private packages too.

    Returns:
        The plan. Dependencies outside the plan are assumed to be available
        on the index already.
    """
    if versions is None:
        versions = {p.name: p.version for p in workspace.member_packages()}

    plan = PublishPlan()
    selected: list[str] = []
    for name in versions:
        pkg = workspace.get_package(name)
        if pkg.excluded:
            plan.skipped[pkg.name] = "excluded"
        elif pkg.private and not include_private:
            plan.skipped[pkg.name] = "private"
        else:
            selected.append(pkg.name)

    subset = set(selected)
    for name in workspace.graph.topological_order(subset):
        pkg = workspace.get_package(name)
        deps = frozenset(d.name for d in workspace.graph.dependencies(name) if d.name in subset)
        plan.steps[name] = PublishStep(
            name=name,
            version=versions[name],
            path=pkg.path,
            dependencies=deps,
            index=pkg.index,
        )
    return plan
