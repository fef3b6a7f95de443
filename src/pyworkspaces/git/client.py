"""Version control capability and its git implementation."""

from __future__ import annotations

import fnmatch
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from pyworkspaces.errors import VcsError
from pyworkspaces.git.diff import get_changed_files
from pyworkspaces.git.repo import get_current_branch, git_output, run_git_command
from pyworkspaces.log import get_logger

logger = get_logger(__name__)


class VersionControl(Protocol):
    """What the orchestrator needs from version control."""

    def resolve(self, ref: str) -> str:
        """Resolve a reference to a commit id, raising VcsError if unknown."""
        ...

    def latest_tag(self, pattern: str, *, first_parent: bool = True) -> str | None:
        """Most recent reachable tag matching a glob, or None."""
        ...

    def diff_paths(self, ref_a: str, ref_b: str | None, path: str | None = None) -> list[str]:
        """Files changed between two references (``None`` = working tree)."""
        ...

    def commit(self, files: Sequence[Path], message: str, *, amend: bool = False) -> str:
        """Commit files and return the new commit id."""
        ...

    def tag(self, name: str, message: str) -> None: ...

    def tag_exists(self, name: str) -> bool: ...

    def push(self, remote: str, refs: Sequence[str]) -> None: ...

    def current_branch(self) -> str: ...


class GitClient:
    """:class:`VersionControl` backed by the ``git`` executable.

    Attributes:
        root: Directory git commands run in. Diff paths are relative to it.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def resolve(self, ref: str) -> str:
        result = run_git_command(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            cwd=self.root,
            check=False,
        )
        if result.returncode != 0:
            raise VcsError(
                f"Cannot resolve git reference '{ref}'",
                command=f"git rev-parse --verify {ref}",
            )
        return result.stdout.strip()

    def latest_tag(self, pattern: str, *, first_parent: bool = True) -> str | None:
        """Find the closest tag matching ``pattern`` with ``git describe``.

        Args:
            pattern: ``git describe --match`` glob.
            first_parent: Ignore tags reachable only through merged branches.

        Returns:
            Tag name, or None when no tag matches.
        """
        args = ["describe", "--tags", "--abbrev=0", "--match", pattern]
        if first_parent:
            args.append("--first-parent")
        result = run_git_command(args, cwd=self.root, check=False)
        if result.returncode == 0:
            return result.stdout.strip() or None
        if "not a git repository" in result.stderr:
            raise VcsError(result.stderr.strip(), command="git " + " ".join(args))
        return None

    def diff_paths(self, ref_a: str, ref_b: str | None, path: str | None = None) -> list[str]:
        return get_changed_files(self.root, ref_a, ref_b, path)

    def commit(self, files: Sequence[Path], message: str, *, amend: bool = False) -> str:
        """Stage ``files`` and commit them.

        Args:
            files: Files to stage. Empty stages nothing, committing only what
                is already in the index.
            message: Commit message, ignored when amending.
            amend: Fold the changes into the previous commit.

        Returns:
            The new HEAD commit id.
        """
        if files:
            run_git_command(["add", "--", *(str(f) for f in files)], cwd=self.root)

        if amend:
            run_git_command(["commit", "--amend", "--no-edit"], cwd=self.root)
        else:
            run_git_command(["commit", "-m", message], cwd=self.root)
        sha = git_output(["rev-parse", "HEAD"], cwd=self.root)
        logger.info("commit_created", sha=sha, amend=amend)
        return sha

    def tag(self, name: str, message: str) -> None:
        run_git_command(["tag", "-a", name, "-m", message], cwd=self.root)
        logger.info("tag_created", tag=name)

    def tag_exists(self, name: str) -> bool:
        result = run_git_command(
            ["rev-parse", "--quiet", "--verify", f"refs/tags/{name}"],
            cwd=self.root,
            check=False,
        )
        return result.returncode == 0

    def push(self, remote: str, refs: Sequence[str]) -> None:
        run_git_command(["push", "--follow-tags", remote, *refs], cwd=self.root)
        logger.info("pushed", remote=remote, refs=list(refs))

    def current_branch(self) -> str:
        return get_current_branch(self.root)

    def validate_release_branch(
        self,
        allow_branch: str = "master",
        *,
        remote: str | None = None,
    ) -> str:
        """Check that HEAD is a branch releases may be cut from.

        Args:
            allow_branch: Glob of allowed branch names. ``main`` is accepted
                when the glob is ``master``.
            remote: When set, also require ``remote/<branch>`` to exist and
                the local branch not to be behind it.

        Returns:
            The current branch name.

        Raises:
            VcsError: If any check fails.
        """
        count = run_git_command(
            ["rev-list", "--count", "--all", "--max-count=1"], cwd=self.root, check=False
        )
        if count.returncode != 0:
            raise VcsError("Not inside a git repository", command="git rev-list --count --all")
        if count.stdout.strip() == "0":
            raise VcsError("Repository has no commits yet")

        branch = self.current_branch()
        if branch == "HEAD":
            raise VcsError("HEAD is detached; check out a branch before releasing")

        test_branch = "master" if branch == "main" and allow_branch == "master" else branch
        if not fnmatch.fnmatchcase(test_branch, allow_branch):
            raise VcsError(f"Branch '{branch}' is not allowed (allow_branch: '{allow_branch}')")

        if remote is not None:
            upstream = f"{remote}/{branch}"
            exists = run_git_command(
                ["show-ref", "--verify", "--quiet", f"refs/remotes/{upstream}"],
                cwd=self.root,
                check=False,
            )
            if exists.returncode != 0:
                raise VcsError(f"Remote branch '{upstream}' does not exist")

            run_git_command(["remote", "update", remote], cwd=self.root)
            behind = git_output(
                ["rev-list", "--left-only", "--count", f"{upstream}...{branch}"], cwd=self.root
            )
            if behind != "0":
                raise VcsError(f"Branch '{branch}' is behind '{upstream}'; pull first")

        return branch
