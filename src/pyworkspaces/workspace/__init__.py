"""Workspace model: packages, groups, and the dependency graph."""

from pyworkspaces.workspace.graph import DependencyEdge, DependencyGraph
from pyworkspaces.workspace.package import (
    DEFAULT_GROUP,
    EXCLUDED_GROUP,
    Dependency,
    Group,
    Package,
    UnitKind,
    VersioningUnit,
)
from pyworkspaces.workspace.workspace import Workspace

__all__ = [
    "DEFAULT_GROUP",
    "EXCLUDED_GROUP",
    "Dependency",
    "DependencyEdge",
    "DependencyGraph",
    "Group",
    "Package",
    "UnitKind",
    "VersioningUnit",
    "Workspace",
]
