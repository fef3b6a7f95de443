"""List command implementation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from pyworkspaces.commands.base import CommandContext, SyncCommand

if TYPE_CHECKING:
    from pyworkspaces.workspace.workspace import Workspace


@dataclass
class PackageInfo:
    """Information about a package for display."""

    name: str
    version: str
    path: str
    group: str
    private: bool
    independent: bool
    dependencies: list[str]
    dependents: list[str]


@dataclass
class ListResult:
    """Result of list command."""

    packages: list[PackageInfo]
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class ListOptions:
    """Options for list command.

    Attributes:
        include_private: Also list private packages.
        include_excluded: Also list packages excluded from versioning.
    """

    include_private: bool = False
    include_excluded: bool = False


class ListCommand(SyncCommand[ListResult]):
    """List packages in the workspace, in discovery order."""

    def __init__(self, context: CommandContext, options: ListOptions | None = None) -> None:
        super().__init__(context)
        self.options = options or ListOptions()

    def execute(self) -> ListResult:
        graph = self.workspace.graph
        infos: list[PackageInfo] = []
        for pkg in self.workspace.packages.values():
            if pkg.private and not self.options.include_private:
                continue
            if pkg.excluded and not self.options.include_excluded:
                continue
            infos.append(
                PackageInfo(
                    name=pkg.name,
                    version=pkg.version,
                    path=pkg.rel_path,
                    group=pkg.group,
                    private=pkg.private,
                    independent=pkg.independent,
                    dependencies=[d.name for d in graph.dependencies(pkg.name)],
                    dependents=[d.name for d in graph.dependents(pkg.name)],
                )
            )
        return ListResult(packages=infos, warnings=list(self.workspace.warnings))


def list_packages(
    workspace: Workspace,
    *,
    include_private: bool = False,
    include_excluded: bool = False,
) -> ListResult:
    """Convenience function to list packages.

    Args:
        workspace: Workspace to list.
        include_private: Also list private packages.
        include_excluded: Also list excluded packages.

    Returns:
        List result with package info.
    """
    context = CommandContext(workspace=workspace)
    options = ListOptions(include_private=include_private, include_excluded=include_excluded)
    return ListCommand(context, options).execute()


def handle_list_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    include_private: bool = False,
    json_output: bool = False,
    long: bool = False,
) -> None:
    result = list_packages(
        workspace, include_private=include_private, include_excluded=include_private
    )
    for warning in result.warnings:
        error_console.print(f"[yellow]warning:[/yellow] {warning}")

    if json_output:
        data = [
            {
                "name": p.name,
                "version": p.version,
                "path": p.path,
                "group": p.group,
                "private": p.private,
                "independent": p.independent,
                "dependencies": p.dependencies,
            }
            for p in result.packages
        ]
        console.print(json.dumps(data, indent=2))
        return

    if not long:
        for pkg in result.packages:
            console.print(pkg.name)
        return

    table = Table(title="Packages")
    table.add_column("Name", style="bold")
    table.add_column("Version")
    table.add_column("Path")
    table.add_column("Group")
    table.add_column("Dependencies")
    for pkg in result.packages:
        name = f"{pkg.name} [dim](private)[/dim]" if pkg.private else pkg.name
        group = f"{pkg.group} [dim](independent)[/dim]" if pkg.independent else pkg.group
        deps = ", ".join(pkg.dependencies) if pkg.dependencies else "-"
        table.add_row(name, pkg.version, pkg.path, group, deps)
    console.print(table)
