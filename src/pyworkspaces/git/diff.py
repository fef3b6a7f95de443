"""Path-scoped diff queries."""

from __future__ import annotations

from pathlib import Path

from pyworkspaces.git.repo import run_git_command


def _lines(output: str) -> list[str]:
    return [line for line in output.strip().splitlines() if line]


def get_changed_files(
    root: Path,
    since: str,
    until: str | None = None,
    path: str | None = None,
) -> list[str]:
    """Files changed between two references, restricted to ``path``.

    When ``until`` is None the working tree counts as the end point: commits
    since ``since``, staged and unstaged edits, and untracked files are all
    reported.

    Args:
        root: Directory inside the repository; paths are relative to it.
        since: Start reference.
        until: End reference, or None for the working tree.
        path: Path relative to ``root`` to restrict the diff to.

    Returns:
        Sorted POSIX paths relative to ``root``.

    Raises:
        VcsError: If ``since`` or ``until`` cannot be resolved.
    """
    scope = ["--", path] if path else []

    if until is not None:
        result = run_git_command(
            ["diff", "--name-only", "--relative", since, until, *scope], cwd=root
        )
        return sorted(set(_lines(result.stdout)))

    files: set[str] = set()

    # commits plus staged and unstaged edits
    result = run_git_command(["diff", "--name-only", "--relative", since, *scope], cwd=root)
    files.update(_lines(result.stdout))

    result = run_git_command(
        ["ls-files", "--others", "--exclude-standard", *scope],
        cwd=root,
        check=False,
    )
    if result.returncode == 0:
        files.update(_lines(result.stdout))

    return sorted(files)
