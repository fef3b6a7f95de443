"""Workspace dependency graph and cascade resolution."""

from __future__ import annotations

import heapq
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from pyworkspaces.changes.changeset import ChangeEntry, ChangeReason, ChangeSet
from pyworkspaces.errors import CyclicDependencyError, PackageNotFoundError
from pyworkspaces.manifest import DependencyKind
from pyworkspaces.workspace.package import Package


@dataclass(frozen=True)
class DependencyEdge:
    """``dependent`` depends on ``dependency``."""

    dependent: str
    dependency: str
    kind: DependencyKind
    exact: bool = False


class DependencyGraph:
    """Directed graph of workspace packages.

    Only normal and build edges take part in ordering and cascade. Dev
    edges are kept and reported by :meth:`edges` with ``include_dev``.
    The graph is checked for cycles once, at construction.

    Attributes:
        packages: Packages by name.
    """

    def __init__(self, packages: Iterable[Package]) -> None:
        """Build the graph.

        Args:
            packages: Workspace packages. Dependencies pointing outside this
                set are ignored.

        Raises:
            CyclicDependencyError: If normal/build edges form a cycle.
        """
        self.packages: dict[str, Package] = {p.name: p for p in packages}
        self._deps: dict[str, list[str]] = {name: [] for name in self.packages}
        self._rdeps: dict[str, list[str]] = {name: [] for name in self.packages}

        for pkg in self.packages.values():
            for dep_name in sorted(pkg.dependency_names(), key=self._order_key):
                if dep_name in self.packages and dep_name != pkg.name:
                    self._deps[pkg.name].append(dep_name)
                    self._rdeps[dep_name].append(pkg.name)

        for name in self._rdeps:
            self._rdeps[name].sort(key=self._order_key)

        self._check_cycles()

    def _order_key(self, name: str) -> tuple[int, str]:
        pkg = self.packages.get(name)
        return (pkg.index if pkg is not None else len(self.packages), name)

    def _check_cycles(self) -> None:
        white, grey, black = 0, 1, 2
        color = dict.fromkeys(self.packages, white)
        stack: list[str] = []

        def visit(name: str) -> None:
            color[name] = grey
            stack.append(name)
            for dep in self._deps[name]:
                if color[dep] == grey:
                    start = stack.index(dep)
                    raise CyclicDependencyError([*stack[start:], dep])
                if color[dep] == white:
                    visit(dep)
            stack.pop()
            color[name] = black

        for name in sorted(self.packages, key=self._order_key):
            if color[name] == white:
                visit(name)

    def _require(self, name: str) -> None:
        if name not in self.packages:
            raise PackageNotFoundError(name)

    def dependencies(self, name: str) -> list[Package]:
        """Direct normal/build dependencies of a package."""
        self._require(name)
        return [self.packages[n] for n in self._deps[name]]

    def dependents(self, name: str) -> list[Package]:
        """Packages directly depending on ``name``."""
        self._require(name)
        return [self.packages[n] for n in self._rdeps[name]]

    def get_transitive_dependents(self, name: str) -> list[Package]:
        """Every package that reaches ``name`` by following dependency edges."""
        self._require(name)
        seen: set[str] = set()
        queue = deque(self._rdeps[name])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(self._rdeps[current])
        return [self.packages[n] for n in sorted(seen, key=self._order_key)]

    def edges(self, *, include_dev: bool = False) -> list[DependencyEdge]:
        """All edges between workspace members in discovery order."""
        result: list[DependencyEdge] = []
        for pkg in sorted(self.packages.values(), key=lambda p: p.index):
            for dep in pkg.dependencies:
                if dep.name not in self.packages or dep.name == pkg.name:
                    continue
                if not include_dev and not dep.kind.orders_publish:
                    continue
                result.append(
                    DependencyEdge(
                        dependent=pkg.name,
                        dependency=dep.name,
                        kind=dep.kind,
                        exact=dep.is_exact,
                    )
                )
        return result

    def topological_order(self, names: Iterable[str] | None = None) -> list[str]:
        """Dependencies before dependents, ties broken by discovery order.

        Args:
            names: Restrict to this subset. Edges leaving the subset are
                ignored.

        Returns:
            Package names in topological order.
        """
        subset = set(self.packages if names is None else names)
        for name in subset:
            self._require(name)

        in_degree = {n: sum(1 for d in self._deps[n] if d in subset) for n in subset}
        heap = [self._order_key(n) for n, deg in in_degree.items() if deg == 0]
        heapq.heapify(heap)

        order: list[str] = []
        while heap:
            _, name = heapq.heappop(heap)
            order.append(name)
            for dependent in self._rdeps[name]:
                if dependent not in subset:
                    continue
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(heap, self._order_key(dependent))
        return order

    def expand(
        self,
        change_set: ChangeSet,
        include: Callable[[Package], bool] | None = None,
    ) -> ChangeSet:
        """Add every transitive dependent of the changed packages.

        Each added entry is tagged ``cascade`` with the upstream package that
        first reached it. Running ``expand`` on its own result is a no-op.

        Args:
            change_set: Initial changes.
            include: Only packages passing this predicate are added. The
                traversal still walks through rejected packages so their own
                dependents are reached.

        Returns:
            A new change set containing the closure.
        """
        result = change_set.copy()
        queue = deque(
            sorted((e.name for e in change_set if e.name in self.packages), key=self._order_key)
        )
        visited: set[str] = set(queue)

        while queue:
            current = queue.popleft()
            for dependent in self._rdeps[current]:
                if dependent in visited:
                    continue
                visited.add(dependent)
                queue.append(dependent)
                if include is not None and not include(self.packages[dependent]):
                    continue
                result.add(
                    ChangeEntry(
                        name=dependent,
                        reason=ChangeReason.CASCADE,
                        triggered_by=current,
                    )
                )
        return result
