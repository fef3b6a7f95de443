"""Low-level git subprocess helpers."""

from __future__ import annotations

import subprocess
from pathlib import Path

from pyworkspaces.errors import VcsError


def run_git_command(
    args: list[str],
    cwd: Path | None = None,
    *,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a git command synchronously.

    Args:
        args: Git command arguments (without 'git').
        cwd: Working directory.
        check: Raise on non-zero exit code.

    Returns:
        Completed process result.

    Raises:
        VcsError: If git is missing, or the command fails and check is True.
    """
    cmd = ["git", *args]

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise VcsError("Git is not installed", command=" ".join(cmd)) from e

    if check and result.returncode != 0:
        raise VcsError(
            result.stderr.strip() or f"Command failed with exit code {result.returncode}",
            command=" ".join(cmd),
        )
    return result


def git_output(args: list[str], cwd: Path | None = None) -> str:
    """Run a git command and return its stripped stdout."""
    return run_git_command(args, cwd=cwd).stdout.strip()


def is_git_repo(path: Path) -> bool:
    """Check if path is inside a git repository."""
    try:
        result = run_git_command(["rev-parse", "--git-dir"], cwd=path, check=False)
    except VcsError:
        return False
    return result.returncode == 0


def get_repo_root(path: Path) -> Path:
    """Get the root directory of the git repository.

    Raises:
        VcsError: If not inside a git repository.
    """
    result = run_git_command(["rev-parse", "--show-toplevel"], cwd=path, check=False)
    if result.returncode != 0:
        raise VcsError("Not inside a git repository", command="git rev-parse --show-toplevel")
    return Path(result.stdout.strip())


def get_current_branch(cwd: Path | None = None) -> str:
    """Get the current branch name, ``HEAD`` when detached."""
    return git_output(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)


def get_current_commit(cwd: Path | None = None) -> str:
    """Get the current commit SHA."""
    return git_output(["rev-parse", "HEAD"], cwd=cwd)


def is_clean(cwd: Path | None = None) -> bool:
    """Check if the working tree has no uncommitted changes."""
    result = run_git_command(["status", "--porcelain"], cwd=cwd, check=False)
    return not result.stdout.strip()
