"""pyworkspaces CLI application."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from pyworkspaces.errors import PyWorkspacesError
from pyworkspaces.log import configure_logging
from pyworkspaces.release import ReleaseOptions
from pyworkspaces.workspace import Workspace


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from pyworkspaces import __version__

        print(f"pyworkspaces {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="pyworkspaces",
    help="Version and publish the packages of a Python workspace",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def _app_callback(
    version: Annotated[  # noqa: ARG001
        bool,
        typer.Option("--version", "-V", help="Show version and exit", callback=version_callback),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug log events"),
    ] = False,
) -> None:
    """Version and publish the packages of a Python workspace."""
    configure_logging(verbose)


console = Console()
error_console = Console(stderr=True)


def parse_comma_list(value: str | None) -> list[str] | None:
    """Parse comma-separated string into list."""
    return [v.strip() for v in value.split(",") if v.strip()] if value else None


def get_workspace() -> Workspace:
    """Load workspace from the current directory."""
    try:
        return Workspace.discover()
    except PyWorkspacesError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e


BumpArg = Annotated[
    str | None,
    typer.Argument(
        help="Bump kind: patch, minor, major, prepatch, preminor, premajor, prerelease"
    ),
]
CustomOpt = Annotated[
    str | None, typer.Option("--custom", help="Exact version to set for every unit")
]
PreIdOpt = Annotated[str | None, typer.Option("--pre-id", help="Prerelease identifier")]
SinceOpt = Annotated[
    str | None, typer.Option("--since", help="Git reference to compare against")
]
ForceOpt = Annotated[
    str | None, typer.Option("--force", help="Always include packages (comma-separated globs)")
]
IgnoreOpt = Annotated[
    str | None,
    typer.Option("--ignore-changes", help="Ignore changes to files (comma-separated globs)"),
]
AllOpt = Annotated[bool, typer.Option("--all", "-a", help="Version every package")]
ExactOpt = Annotated[
    bool | None, typer.Option("--exact/--no-exact", help="Pin dependents with ==")
]
NoCommitOpt = Annotated[bool, typer.Option("--no-git-commit", help="Do not commit")]
AmendOpt = Annotated[bool, typer.Option("--amend", help="Amend the previous commit")]
MessageOpt = Annotated[
    str | None, typer.Option("--message", "-m", help="Commit message template")
]
NoTagOpt = Annotated[bool, typer.Option("--no-git-tag", help="Do not create tags")]
NoPushOpt = Annotated[bool, typer.Option("--no-git-push", help="Do not push")]
RemoteOpt = Annotated[str, typer.Option("--git-remote", help="Remote to push to")]
YesOpt = Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")]
DryRunOpt = Annotated[bool, typer.Option("--dry-run", help="Show the plan only")]


def release_options(
    *,
    no_git_commit: bool,
    amend: bool,
    message: str | None,
    no_git_tag: bool,
    no_git_push: bool,
    git_remote: str,
) -> ReleaseOptions:
    return ReleaseOptions(
        commit=not no_git_commit,
        amend=amend,
        message=message,
        tag=not no_git_tag,
        push=not no_git_push,
        remote=git_remote,
    )


@app.command("list")
def list_cmd(
    all_packages: Annotated[
        bool, typer.Option("--all", "-a", help="Include private and excluded packages")
    ] = False,
    long: Annotated[bool, typer.Option("--long", "-l", help="Show a detailed table")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List workspace packages."""
    from pyworkspaces.commands import handle_list_command

    handle_list_command(
        get_workspace(),
        console=console,
        error_console=error_console,
        include_private=all_packages,
        json_output=json_output,
        long=long,
    )


@app.command()
def changed(
    since: SinceOpt = None,
    force: ForceOpt = None,
    ignore_changes: IgnoreOpt = None,
    no_dependents: Annotated[
        bool, typer.Option("--no-dependents", help="Only list directly changed packages")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List packages changed since their last release."""
    from pyworkspaces.commands import handle_changed_command

    handle_changed_command(
        get_workspace(),
        console=console,
        error_console=error_console,
        since=since,
        include_dependents=not no_dependents,
        ignore_changes=parse_comma_list(ignore_changes),
        force=parse_comma_list(force),
        json_output=json_output,
    )


@app.command()
def version(
    bump: BumpArg = None,
    custom: CustomOpt = None,
    pre_id: PreIdOpt = None,
    since: SinceOpt = None,
    force: ForceOpt = None,
    ignore_changes: IgnoreOpt = None,
    all_packages: AllOpt = False,
    exact: ExactOpt = None,
    no_git_commit: NoCommitOpt = False,
    amend: AmendOpt = False,
    message: MessageOpt = None,
    no_git_tag: NoTagOpt = False,
    no_git_push: NoPushOpt = False,
    git_remote: RemoteOpt = "origin",
    yes: YesOpt = False,
    dry_run: DryRunOpt = False,
) -> None:
    """Bump versions of changed packages, then commit, tag and push."""
    from pyworkspaces.commands import handle_version_command

    handle_version_command(
        get_workspace(),
        console=console,
        error_console=error_console,
        bump=bump,
        pre_id=pre_id,
        custom=custom,
        since=since,
        force=parse_comma_list(force),
        ignore_changes=parse_comma_list(ignore_changes),
        all_packages=all_packages,
        exact=exact,
        release_options=release_options(
            no_git_commit=no_git_commit,
            amend=amend,
            message=message,
            no_git_tag=no_git_tag,
            no_git_push=no_git_push,
            git_remote=git_remote,
        ),
        yes=yes,
        dry_run=dry_run,
    )


@app.command()
def publish(
    bump: BumpArg = None,
    from_git: Annotated[
        bool, typer.Option("--from-git", help="Publish current versions without versioning")
    ] = False,
    custom: CustomOpt = None,
    pre_id: PreIdOpt = None,
    since: SinceOpt = None,
    force: ForceOpt = None,
    ignore_changes: IgnoreOpt = None,
    all_packages: AllOpt = False,
    exact: ExactOpt = None,
    no_git_commit: NoCommitOpt = False,
    amend: AmendOpt = False,
    message: MessageOpt = None,
    no_git_tag: NoTagOpt = False,
    no_git_push: NoPushOpt = False,
    git_remote: RemoteOpt = "origin",
    include_private: Annotated[
        bool, typer.Option("--include-private", help="Publish private packages too")
    ] = False,
    concurrency: Annotated[
        int | None, typer.Option("--concurrency", "-c", help="Parallel uploads")
    ] = None,
    yes: YesOpt = False,
    dry_run: DryRunOpt = False,
) -> None:
    """Version changed packages, then publish them in dependency order."""
    from pyworkspaces.commands import handle_publish_command

    handle_publish_command(
        get_workspace(),
        console=console,
        error_console=error_console,
        from_git=from_git,
        bump=bump,
        pre_id=pre_id,
        custom=custom,
        since=since,
        force=parse_comma_list(force),
        ignore_changes=parse_comma_list(ignore_changes),
        all_packages=all_packages,
        exact=exact,
        release_options=release_options(
            no_git_commit=no_git_commit,
            amend=amend,
            message=message,
            no_git_tag=no_git_tag,
            no_git_push=no_git_push,
            git_remote=git_remote,
        ),
        include_private=include_private,
        concurrency=concurrency,
        yes=yes,
        dry_run=dry_run,
    )


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
