"""Package and group models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pyworkspaces.manifest import DependencyKind

DEFAULT_GROUP = "default"
EXCLUDED_GROUP = "excluded"


class UnitKind(Enum):
    """How a versioning unit was formed."""

    WORKSPACE = "workspace"
    GROUP = "group"
    INDEPENDENT = "independent"


@dataclass(frozen=True)
class VersioningUnit:
    """A set of packages that share one version line.

    Attributes:
        kind: Workspace-wide line, named group, or a single independent package.
        name: ``default`` for the workspace line, otherwise the group or
            package name. Also the key used in the ``bump`` config map, so it
            is unique within a workspace.
    """

    kind: UnitKind
    name: str

    @property
    def is_fixed(self) -> bool:
        """Members of a fixed unit always carry the same version."""
        return self.kind is not UnitKind.INDEPENDENT

    def __str__(self) -> str:
        if self.kind is UnitKind.GROUP:
            return f"group {self.name}"
        return self.name


@dataclass(frozen=True)
class Dependency:
    """A declared dependency on another workspace package.

    Attributes:
        name: Canonical name of the depended-on package.
        kind: Declaration kind (normal/build/dev).
        requirement: Raw PEP 508 requirement string.
        specifier: Version specifier, empty when unversioned.
    """

    name: str
    kind: DependencyKind
    requirement: str
    specifier: str = ""

    @property
    def is_exact(self) -> bool:
        """True for an ``==`` pin."""
        return self.specifier.startswith("==")

    @property
    def is_unversioned(self) -> bool:
        """True when the requirement carries no version constraint."""
        return not self.specifier


@dataclass
class Package:
    """A workspace member.

    Attributes:
        name: Canonical package name.
        version: Current on-disk version.
        path: Absolute package directory.
        rel_path: Package directory relative to the workspace root, POSIX style.
        private: Never published when True.
        independent: Versioned on its own, outside any shared line.
        group: ``default``, ``excluded``, or a named group.
        dependencies: Dependencies on other workspace members.
        index: Discovery order, used as the deterministic tie-break.
    """

    name: str
    version: str
    path: Path
    rel_path: str
    private: bool = False
    independent: bool = False
    group: str = DEFAULT_GROUP
    dependencies: list[Dependency] = field(default_factory=list)
    index: int = 0

    @property
    def manifest_path(self) -> Path:
        return self.path / "pyproject.toml"

    @property
    def excluded(self) -> bool:
        return self.group == EXCLUDED_GROUP

    @property
    def unit(self) -> VersioningUnit | None:
        """The versioning unit this package belongs to.

        Independent packages form a unit of their own. Everyone else shares
        the unit of their group. Excluded packages have no unit.
        """
        if self.excluded:
            return None
        if self.independent:
            return VersioningUnit(UnitKind.INDEPENDENT, self.name)
        if self.group == DEFAULT_GROUP:
            return VersioningUnit(UnitKind.WORKSPACE, DEFAULT_GROUP)
        return VersioningUnit(UnitKind.GROUP, self.group)

    def dependency_names(self, *, include_dev: bool = False) -> set[str]:
        """Names of workspace dependencies, optionally including dev edges."""
        return {
            d.name for d in self.dependencies if include_dev or d.kind.orders_publish
        }

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Package):
            return self.name == other.name
        return NotImplemented


@dataclass
class Group:
    """A named set of packages sharing one version line."""

    name: str
    patterns: list[str] = field(default_factory=list)
    members: list[str] = field(default_factory=list)
