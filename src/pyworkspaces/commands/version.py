"""Version command implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.table import Table

from pyworkspaces.changes import ChangeSet
from pyworkspaces.commands.base import CommandContext, SyncCommand
from pyworkspaces.commands.changed import compute_change_set
from pyworkspaces.errors import PyWorkspacesError, ReleaseError
from pyworkspaces.git.client import GitClient
from pyworkspaces.release import ReleaseOptions, ReleaseReport, ReleaseTransaction, StepStatus
from pyworkspaces.versioning import (
    BumpDecision,
    BumpPolicyProvider,
    StaticBumpPolicyProvider,
    VersionBumpPlan,
    VersionBumpPlanner,
)

if TYPE_CHECKING:
    from pyworkspaces.git.client import VersionControl
    from pyworkspaces.manifest import ManifestStore
    from pyworkspaces.workspace.workspace import Workspace


@dataclass
class PlanResult:
    """Result of planning versions.

    Attributes:
        plan: The version bump plan, possibly partial when ``errors`` is set.
        affected: The affected set the plan was computed from.
        warnings: Change detection and planning warnings.
        errors: Units that could not be planned.
    """

    plan: VersionBumpPlan
    affected: ChangeSet
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class VersionOptions:
    """Options for planning versions."""

    exact: bool | None = None
    inject_unversioned: bool | None = None


class PlanVersionsCommand(SyncCommand[PlanResult]):
    """Compute new versions and manifest patches for an affected set."""

    def __init__(
        self,
        context: CommandContext,
        change_set: ChangeSet,
        provider: BumpPolicyProvider | None = None,
        options: VersionOptions | None = None,
    ) -> None:
        super().__init__(context)
        self.change_set = change_set
        self.provider = provider
        self.options = options or VersionOptions()

    def execute(self) -> PlanResult:
        versioning = self.workspace.config.versioning
        exact = versioning.exact if self.options.exact is None else self.options.exact
        inject = self.options.inject_unversioned
        if inject is None:
            inject = versioning.inject_unversioned

        provider = self.provider or StaticBumpPolicyProvider.from_config(versioning.bump)
        planner = VersionBumpPlanner(self.workspace, exact=exact, inject_unversioned=inject)
        plan = planner.plan(self.change_set, provider)
        return PlanResult(
            plan=plan,
            affected=self.change_set,
            warnings=[*self.change_set.warnings, *plan.warnings],
            errors=list(plan.errors),
        )


def plan_versions(
    workspace: Workspace,
    change_set: ChangeSet,
    provider: BumpPolicyProvider | None = None,
    *,
    exact: bool | None = None,
    inject_unversioned: bool | None = None,
) -> PlanResult:
    """Convenience function to plan versions.

    Args:
        workspace: Workspace to version.
        change_set: Affected set, usually from :func:`compute_change_set`.
        provider: Bump policy, defaults to ``versioning.bump`` from config.
        exact: Pin dependents exactly, defaults to config.
        inject_unversioned: Constrain bare internal dependencies, defaults to config.

    Returns:
        Plan result. Invalid bumps are reported in ``errors``, not raised.
    """
    context = CommandContext(workspace=workspace)
    options = VersionOptions(exact=exact, inject_unversioned=inject_unversioned)
    return PlanVersionsCommand(context, change_set, provider, options).execute()


class ReleaseCommand(SyncCommand[ReleaseReport]):
    """Write manifests, then commit, tag and push as configured."""

    def __init__(
        self,
        context: CommandContext,
        plan: VersionBumpPlan,
        options: ReleaseOptions | None = None,
    ) -> None:
        super().__init__(context)
        self.plan = plan
        self.options = options or ReleaseOptions()

    def validate(self) -> list[str]:
        """Check the git state before anything is written."""
        vcs = self.context.get_vcs()
        if not isinstance(vcs, GitClient):
            return []
        if not (self.options.commit or self.options.tag or self.options.push):
            return []
        try:
            vcs.validate_release_branch(
                self.workspace.config.allow_branch,
                remote=self.options.remote if self.options.push else None,
            )
        except PyWorkspacesError as e:
            return [str(e)]
        return []

    def execute(self) -> ReleaseReport:
        transaction = ReleaseTransaction(
            self.workspace, self.context.get_vcs(), self.context.store, self.options
        )
        report = transaction.execute(self.plan)
        report.warnings.extend(self.plan.warnings)
        return report


def execute_release(
    workspace: Workspace,
    plan: VersionBumpPlan,
    options: ReleaseOptions | None = None,
    *,
    vcs: VersionControl | None = None,
    store: ManifestStore | None = None,
    validate: bool = True,
) -> ReleaseReport:
    """Convenience function to run the release transaction.

    Args:
        workspace: Workspace being released.
        plan: Version bump plan without errors.
        options: Step toggles.
        vcs: Version control capability, defaults to git.
        store: Manifest store, defaults to pyproject manifests.
        validate: Check the branch before touching anything.

    Returns:
        Release report with the step log.

    Raises:
        ReleaseError: If the plan has errors or the branch check fails.
    """
    context = CommandContext(workspace=workspace, vcs=vcs)
    if store is not None:
        context.store = store
    cmd = ReleaseCommand(context, plan, options)
    if validate:
        problems = cmd.validate()
        if problems:
            raise ReleaseError("; ".join(problems), step="validate")
    return cmd.execute()


def bump_provider(
    workspace: Workspace,
    *,
    bump: str | None = None,
    pre_id: str | None = None,
    custom: str | None = None,
    interactive: bool = False,
) -> BumpPolicyProvider:
    """Pick the bump policy for a CLI invocation.

    An explicit ``bump`` or ``custom`` applies to every unit. Otherwise the
    user is prompted when ``interactive``, else ``versioning.bump`` is used.
    """
    if custom:
        return StaticBumpPolicyProvider(BumpDecision.parse(f"custom:{custom}"))
    if bump:
        return StaticBumpPolicyProvider(BumpDecision.parse(bump, pre_id=pre_id))
    if interactive:
        from pyworkspaces.interactive import QuestionaryBumpPolicyProvider

        return QuestionaryBumpPolicyProvider(pre_id=pre_id)
    return StaticBumpPolicyProvider.from_config(workspace.config.versioning.bump)


def render_plan(console: Console, result: PlanResult) -> None:
    """Print the planned versions as a table."""
    table = Table()
    table.add_column("Package", style="cyan")
    table.add_column("Unit")
    table.add_column("Current", style="dim")
    table.add_column("Next", style="green")
    table.add_column("Reason", style="magenta")

    for entry in result.plan.entries.values():
        reason = entry.change.reason.value
        if entry.change.triggered_by:
            reason = f"{reason} ({entry.change.triggered_by})"
        table.add_row(
            entry.name, str(entry.unit), entry.old_version, entry.new_version, reason
        )
    console.print(table)


def render_report(console: Console, error_console: Console, report: ReleaseReport) -> None:
    """Print the release step log."""
    for step in report.steps:
        target = f" {step.target}" if step.target else ""
        if step.status is StepStatus.COMPLETED:
            console.print(f"  [green]✓[/green] {step.kind.value}{target}")
        elif step.status is StepStatus.SKIPPED:
            console.print(f"  [dim]- {step.kind.value}{target} ({step.detail})[/dim]")
        else:
            error_console.print(f"  [red]✗[/red] {step.kind.value}{target}: {step.detail}")


def handle_version_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    bump: str | None = None,
    pre_id: str | None = None,
    custom: str | None = None,
    since: str | None = None,
    force: list[str] | None = None,
    ignore_changes: list[str] | None = None,
    all_packages: bool = False,
    exact: bool | None = None,
    release_options: ReleaseOptions | None = None,
    yes: bool = False,
    dry_run: bool = False,
) -> VersionBumpPlan | None:
    """Handle the version command: detect changes, plan, confirm and release.

    Returns:
        The executed plan, or None when there was nothing to do, the run was
        a dry run, or the user declined.

    Raises:
        typer.Exit: On any error.
    """
    try:
        changed = compute_change_set(
            workspace,
            since=since,
            ignore_changes=ignore_changes,
            force=["*"] if all_packages else force,
        )
        provider = bump_provider(
            workspace,
            bump=bump,
            pre_id=pre_id,
            custom=custom,
            interactive=(
                not yes
                and not workspace.config.versioning.bump
                and console.is_terminal
            ),
        )
        result = plan_versions(workspace, changed.affected, provider, exact=exact)
    except PyWorkspacesError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    for warning in [*workspace.warnings, *result.warnings]:
        error_console.print(f"[yellow]warning:[/yellow] {warning}")

    if result.plan.empty and not result.errors:
        console.print("[yellow]No packages to version[/yellow]")
        return None

    if dry_run:
        console.print("[yellow]Dry run - no changes will be made[/yellow]\n")
    console.print("[bold]Planned versions:[/bold]")
    render_plan(console, result)

    if result.errors:
        for error in result.errors:
            error_console.print(f"[red]Error:[/red] {error}")
        raise typer.Exit(1)

    if dry_run:
        return None

    if not yes and not typer.confirm("\nProceed with these versions?", default=False):
        console.print("[yellow]Version cancelled.[/yellow]")
        return None

    try:
        report = execute_release(workspace, result.plan, release_options)
    except PyWorkspacesError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    render_report(console, error_console, report)
    if not report.success:
        error_console.print(f"\n[red]Release failed:[/red] {report.error}")
        raise typer.Exit(1)

    console.print(f"\n[green]Versioned {len(result.plan.entries)} packages[/green]")
    if report.commit_sha:
        console.print(f"Commit: [blue]{report.commit_sha[:8]}[/blue]")
    return result.plan

