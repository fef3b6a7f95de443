"""Base command infrastructure."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from pyworkspaces.manifest import ManifestStore, PyprojectManifestStore

if TYPE_CHECKING:
    from pyworkspaces.git.client import VersionControl
    from pyworkspaces.registry import RegistryClient
    from pyworkspaces.workspace.workspace import Workspace

TResult = TypeVar("TResult")


@dataclass
class CommandContext:
    """Context passed to all commands.

    Capabilities left as None are created from the workspace on first use.

    Attributes:
        workspace: The workspace instance.
        dry_run: If True, show what would happen without making changes.
        verbose: If True, show detailed output.
        vcs: Version control capability.
        store: Manifest store.
        registry: Registry capability.
    """

    workspace: Workspace
    dry_run: bool = False
    verbose: bool = False
    vcs: VersionControl | None = None
    store: ManifestStore = field(default_factory=PyprojectManifestStore)
    registry: RegistryClient | None = None

    def get_vcs(self) -> VersionControl:
        if self.vcs is None:
            from pyworkspaces.git.client import GitClient

            self.vcs = GitClient(self.workspace.root)
        return self.vcs

    def get_registry(self) -> RegistryClient:
        if self.registry is None:
            from pyworkspaces.registry import UvRegistryClient

            publish = self.workspace.config.publish
            self.registry = UvRegistryClient(publish.index_url, publish_url=publish.registry)
        return self.registry


class Command(ABC, Generic[TResult]):
    """Base class for commands that await registry or subprocess work.

    Subclasses implement ``execute``; ``validate`` runs first and blocks
    execution when it reports anything.
    """

    def __init__(self, context: CommandContext) -> None:
        self.context = context
        self.workspace = context.workspace

    @abstractmethod
    async def execute(self) -> TResult: ...

    def validate(self) -> list[str]:
        """Preconditions that would make ``execute`` fail, as messages."""
        return []


class SyncCommand(ABC, Generic[TResult]):
    """Base class for synchronous commands."""

    def __init__(self, context: CommandContext) -> None:
        self.context = context
        self.workspace = context.workspace

    @abstractmethod
    def execute(self) -> TResult:
        """Run the command and return its result object."""
        ...

    def validate(self) -> list[str]:
        """Validate that the command can be executed.

        Returns:
            List of validation errors (empty if valid).
        """
        return []
