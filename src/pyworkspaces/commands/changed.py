"""Changed command implementation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from pyworkspaces.changes import ChangeDetector, ChangeSet
from pyworkspaces.commands.base import CommandContext, SyncCommand
from pyworkspaces.errors import PyWorkspacesError

if TYPE_CHECKING:
    from pyworkspaces.git.client import VersionControl
    from pyworkspaces.workspace.workspace import Workspace


@dataclass
class ChangedPackage:
    """Information about a changed package."""

    name: str
    path: str
    reason: str
    files_changed: int
    triggered_by: str | None = None

    @property
    def is_dependent(self) -> bool:
        return self.triggered_by is not None


@dataclass
class ChangedResult:
    """Result of changed command.

    Attributes:
        affected: Direct changes plus cascaded dependents.
        direct: Direct changes only.
        changed: Display rows for ``affected``.
        reference: Explicit reference used, None when per-package tags were used.
        warnings: Non-fatal findings.
    """

    affected: ChangeSet
    direct: ChangeSet
    changed: list[ChangedPackage] = field(default_factory=list)
    reference: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class ChangedOptions:
    """Options for changed command."""

    since: str | None = None
    include_dependents: bool = True
    ignore_changes: list[str] = field(default_factory=list)
    force: list[str] = field(default_factory=list)
    include_merged_tags: bool | None = None


class ChangedCommand(SyncCommand[ChangedResult]):
    """Find packages changed since their last release, plus their dependents."""

    def __init__(self, context: CommandContext, options: ChangedOptions | None = None) -> None:
        super().__init__(context)
        self.options = options or ChangedOptions()

    def execute(self) -> ChangedResult:
        """Execute the changed command.

        Raises:
            VcsError: If an explicit ``since`` reference cannot be resolved.
        """
        versioning = self.workspace.config.versioning
        include_merged = self.options.include_merged_tags
        if include_merged is None:
            include_merged = versioning.include_merged_tags

        detector = ChangeDetector(
            self.workspace, self.context.get_vcs(), include_merged_tags=include_merged
        )
        direct = detector.changed_since(
            self.options.since,
            ignore_globs=[*versioning.ignore_changes, *self.options.ignore_changes],
            force_globs=[*versioning.force, *self.options.force],
        )

        affected = direct
        if self.options.include_dependents:
            affected = self.workspace.graph.expand(direct, include=lambda p: not p.excluded)

        changed = [
            ChangedPackage(
                name=entry.name,
                path=self.workspace.get_package(entry.name).rel_path,
                reason=entry.reason.value,
                files_changed=len(entry.files),
                triggered_by=entry.triggered_by,
            )
            for entry in affected
        ]
        return ChangedResult(
            affected=affected,
            direct=direct,
            changed=changed,
            reference=self.options.since,
            warnings=[*self.workspace.warnings, *direct.warnings],
        )


def compute_change_set(
    workspace: Workspace,
    *,
    since: str | None = None,
    include_dependents: bool = True,
    ignore_changes: list[str] | None = None,
    force: list[str] | None = None,
    vcs: VersionControl | None = None,
) -> ChangedResult:
    """Convenience function to compute the affected set.

    Args:
        workspace: Workspace to check.
        since: Git reference, defaults to each package's last release tag.
        include_dependents: Cascade to transitive dependents.
        ignore_changes: Extra file globs to ignore.
        force: Extra package globs to always include.
        vcs: Version control capability, defaults to git.

    Returns:
        Changed result.

    Raises:
        VcsError: If ``since`` cannot be resolved.
    """
    context = CommandContext(workspace=workspace, vcs=vcs)
    options = ChangedOptions(
        since=since,
        include_dependents=include_dependents,
        ignore_changes=list(ignore_changes or []),
        force=list(force or []),
    )
    return ChangedCommand(context, options).execute()


def handle_changed_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    since: str | None = None,
    include_dependents: bool = True,
    ignore_changes: list[str] | None = None,
    force: list[str] | None = None,
    json_output: bool = False,
) -> None:
    """Handle changed command."""
    try:
        result = compute_change_set(
            workspace,
            since=since,
            include_dependents=include_dependents,
            ignore_changes=ignore_changes,
            force=force,
        )
    except PyWorkspacesError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    for warning in result.warnings:
        error_console.print(f"[yellow]warning:[/yellow] {warning}")

    packages = result.changed
    if json_output:
        data = [
            {
                "name": p.name,
                "path": p.path,
                "reason": p.reason,
                "files_changed": p.files_changed,
                "triggered_by": p.triggered_by,
            }
            for p in packages
        ]
        console.print(json.dumps(data, indent=2))
        return

    label = since or "last release"
    console.print(f"Packages changed since [bold]{label}[/bold]:")
    for pkg in packages:
        if pkg.is_dependent:
            suffix = f" [dim](depends on {pkg.triggered_by})[/dim]"
        else:
            suffix = f" [dim]({pkg.reason}, {pkg.files_changed} files)[/dim]"
        console.print(f"  - {pkg.name}{suffix}")
    if not packages:
        console.print("  [dim]No packages changed[/dim]")
