"""Publish command implementation."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.table import Table

from pyworkspaces.commands.base import Command, CommandContext
from pyworkspaces.commands.version import handle_version_command
from pyworkspaces.errors import PyWorkspacesError
from pyworkspaces.publish import (
    BackoffPolicy,
    PublishPlan,
    PublishReport,
    PublishScheduler,
    PublishState,
    build_publish_plan,
)
from pyworkspaces.release import ReleaseOptions
from pyworkspaces.uv.publish import check_publishable

if TYPE_CHECKING:
    from pyworkspaces.publish.scheduler import StateCallback
    from pyworkspaces.registry import RegistryClient
    from pyworkspaces.workspace.workspace import Workspace


@dataclass
class PublishOptions:
    """Options for publish command.

    Unset values fall back to the ``publish`` section of the config.
    """

    versions: Mapping[str, str] | None = None
    include_private: bool = False
    concurrency: int | None = None
    fail_fast: bool | None = None
    skip_published: bool | None = None
    backoff: BackoffPolicy | None = None


class SchedulePublishCommand(Command[PublishReport]):
    """Publish packages in dependency order."""

    def __init__(
        self,
        context: CommandContext,
        options: PublishOptions | None = None,
        on_state: StateCallback | None = None,
    ) -> None:
        super().__init__(context)
        self.options = options or PublishOptions()
        self.on_state = on_state
        self.scheduler: PublishScheduler | None = None

    def get_plan(self) -> PublishPlan:
        return build_publish_plan(
            self.workspace, self.options.versions, include_private=self.options.include_private
        )

    def validate(self) -> list[str]:
        """Manifest problems that would make uploads fail."""
        problems: list[str] = []
        for step in self.get_plan().steps.values():
            problems.extend(
                f"{step.name}: {issue}"
                for issue in check_publishable(step.path)
                if not issue.startswith("Missing recommended")
            )
        return problems

    def _backoff(self) -> BackoffPolicy:
        if self.options.backoff is not None:
            return self.options.backoff
        availability = self.workspace.config.publish.availability
        return BackoffPolicy(
            initial_delay=availability.initial_delay,
            max_delay=availability.max_delay,
            max_attempts=availability.max_attempts,
        )

    async def execute(self) -> PublishReport:
        config = self.workspace.config.publish
        opts = self.options
        self.scheduler = PublishScheduler(
            self.context.get_registry(),
            concurrency=opts.concurrency if opts.concurrency is not None else config.concurrency,
            fail_fast=opts.fail_fast if opts.fail_fast is not None else config.fail_fast,
            backoff=self._backoff(),
            skip_published=(
                opts.skip_published if opts.skip_published is not None else config.skip_published
            ),
            on_state=self.on_state,
        )
        return await self.scheduler.run(self.get_plan())


async def schedule_publish(
    workspace: Workspace,
    *,
    versions: Mapping[str, str] | None = None,
    registry: RegistryClient | None = None,
    include_private: bool = False,
    concurrency: int | None = None,
    fail_fast: bool | None = None,
    skip_published: bool | None = None,
    backoff: BackoffPolicy | None = None,
    on_state: StateCallback | None = None,
) -> PublishReport:
    """Convenience function to publish packages.

    Args:
        workspace: Workspace to publish from.
        versions: Package name to version, typically ``plan.new_versions()``.
            None publishes every member at its on-disk version.
        registry: Registry capability, defaults to uv plus the index JSON API.
        include_private: Publish private packages too.
        concurrency: Packages in flight at once.
        fail_fast: Stop everything after the first failure.
        skip_published: Skip versions already on the index.
        backoff: Availability polling policy.
        on_state: Called on every state change.

    Returns:
        Publish report.
    """
    context = CommandContext(workspace=workspace, registry=registry)
    options = PublishOptions(
        versions=versions,
        include_private=include_private,
        concurrency=concurrency,
        fail_fast=fail_fast,
        skip_published=skip_published,
        backoff=backoff,
    )
    return await SchedulePublishCommand(context, options, on_state).execute()


async def execute_interruptible(
    cmd: SchedulePublishCommand, error_console: Console
) -> PublishReport:
    """Run a publish command with the first Ctrl-C mapped to a graceful cancel.

    A second Ctrl-C raises ``KeyboardInterrupt`` as usual.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(cmd.execute())

    def interrupt() -> None:
        loop.remove_signal_handler(signal.SIGINT)
        error_console.print(
            "\n[yellow]Interrupted:[/yellow] waiting for uploads already in flight"
        )
        task.cancel()

    try:
        loop.add_signal_handler(signal.SIGINT, interrupt)
    except NotImplementedError:
        # no loop signal handlers on Windows
        return await task
    try:
        return await task
    finally:
        loop.remove_signal_handler(signal.SIGINT)


def render_publish_report(console: Console, report: PublishReport) -> None:
    """Print one row per package with its final state."""
    styles = {
        PublishState.AVAILABLE: "green",
        PublishState.FAILED: "red",
        PublishState.SKIPPED: "yellow",
        PublishState.CANCELLED: "yellow",
    }
    table = Table()
    table.add_column("Package", style="cyan")
    table.add_column("Version")
    table.add_column("State")
    table.add_column("Detail", style="dim")
    for result in report.results.values():
        style = styles.get(result.state, "white")
        detail = "already published" if result.already_published else (result.error or "")
        table.add_row(
            result.name, result.version, f"[{style}]{result.state.value}[/{style}]", detail
        )
    console.print(table)


def handle_publish_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    from_git: bool = False,
    bump: str | None = None,
    pre_id: str | None = None,
    custom: str | None = None,
    since: str | None = None,
    force: list[str] | None = None,
    ignore_changes: list[str] | None = None,
    all_packages: bool = False,
    exact: bool | None = None,
    release_options: ReleaseOptions | None = None,
    include_private: bool = False,
    concurrency: int | None = None,
    yes: bool = False,
    dry_run: bool = False,
) -> None:
    """Handle the publish command: version (unless ``from_git``), then publish."""
    versions: dict[str, str] | None = None
    if not from_git:
        plan = handle_version_command(
            workspace,
            console=console,
            error_console=error_console,
            bump=bump,
            pre_id=pre_id,
            custom=custom,
            since=since,
            force=force,
            ignore_changes=ignore_changes,
            all_packages=all_packages,
            exact=exact,
            release_options=release_options,
            yes=yes,
            dry_run=dry_run,
        )
        if plan is None:
            return
        versions = plan.new_versions()

    context = CommandContext(workspace=workspace, dry_run=dry_run)
    cmd = SchedulePublishCommand(
        context,
        PublishOptions(
            versions=versions, include_private=include_private, concurrency=concurrency
        ),
        on_state=lambda name, state: console.print(f"  {name}: {state.value}"),
    )

    try:
        publish_plan = cmd.get_plan()
        problems = cmd.validate()
    except PyWorkspacesError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if not publish_plan:
        console.print("[yellow]No packages to publish[/yellow]")
        return
    console.print("[bold]Publish order:[/bold] " + ", ".join(publish_plan.order))
    if problems:
        for problem in problems:
            error_console.print(f"[red]Error:[/red] {problem}")
        raise typer.Exit(1)
    if dry_run:
        return

    report = asyncio.run(execute_interruptible(cmd, error_console))

    for warning in report.warnings:
        error_console.print(f"[yellow]warning:[/yellow] {warning}")
    render_publish_report(console, report)
    if not report.success:
        if report.cancelled:
            uploaded = ", ".join(report.uploaded) or "none"
            error_console.print(f"\n[yellow]Publishing cancelled.[/yellow] Uploaded: {uploaded}")
        elif report.fatal is not None:
            error_console.print(f"\n[red]Publish halted:[/red] {report.fatal}")
        raise typer.Exit(1)
    console.print(f"\n[green]Published {len(report.published)} packages[/green]")
