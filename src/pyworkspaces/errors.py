"""Exception hierarchy for pyworkspaces."""

from __future__ import annotations

from collections.abc import Sequence


class PyWorkspacesError(Exception):
    """Base class for all pyworkspaces errors.

    Attributes:
        message: Human readable error message.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigError(PyWorkspacesError):
    """Malformed or contradictory workspace configuration."""


class WorkspaceNotFoundError(ConfigError):
    """No workspace configuration could be found."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No pyworkspaces.yaml found in {path} or any parent directory")
        self.path = path


class PackageNotFoundError(PyWorkspacesError):
    """A package name does not belong to the workspace."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Package not found in workspace: {name}")
        self.name = name


class VcsError(PyWorkspacesError):
    """A version control operation failed."""

    def __init__(self, message: str, *, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command

    def __str__(self) -> str:
        if self.command:
            return f"{self.message} (command: {self.command})"
        return self.message


class GraphError(PyWorkspacesError):
    """The workspace dependency graph cannot be ordered."""


class CyclicDependencyError(GraphError):
    """Normal/build dependencies form a cycle."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency detected: {' -> '.join(self.cycle)}")


class SemverError(PyWorkspacesError):
    """A requested version bump produced an invalid target."""

    def __init__(self, message: str, *, package: str | None = None) -> None:
        super().__init__(message)
        self.package = package


class ReleaseError(PyWorkspacesError):
    """A release step failed or could not start."""

    def __init__(self, message: str, *, step: str | None = None) -> None:
        super().__init__(message)
        self.step = step


class PublishError(PyWorkspacesError):
    """The registry rejected a package."""

    def __init__(self, message: str, *, package: str, version: str) -> None:
        super().__init__(message)
        self.package = package
        self.version = version


class AvailabilityTimeoutError(PublishError):
    """A published package never became visible on the registry."""

    def __init__(self, package: str, version: str, attempts: int) -> None:
        super().__init__(
            f"{package} {version} did not become available on the registry "
            f"after {attempts} attempts",
            package=package,
            version=version,
        )
        self.attempts = attempts
