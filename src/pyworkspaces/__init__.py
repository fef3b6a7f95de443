"""pyworkspaces - version and publish orchestration for Python workspaces."""

from __future__ import annotations

from pyworkspaces.errors import (
    AvailabilityTimeoutError,
    ConfigError,
    CyclicDependencyError,
    GraphError,
    PackageNotFoundError,
    PublishError,
    PyWorkspacesError,
    ReleaseError,
    SemverError,
    VcsError,
    WorkspaceNotFoundError,
)

__version__ = "0.1.0"

__all__ = [
    "AvailabilityTimeoutError",
    "ConfigError",
    "CyclicDependencyError",
    "GraphError",
    "PackageNotFoundError",
    "PublishError",
    "PyWorkspacesError",
    "ReleaseError",
    "SemverError",
    "VcsError",
    "WorkspaceNotFoundError",
    "__version__",
]
