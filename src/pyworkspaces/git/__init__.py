"""Git integration."""

from pyworkspaces.git.client import GitClient, VersionControl
from pyworkspaces.git.diff import get_changed_files
from pyworkspaces.git.repo import (
    get_current_branch,
    get_current_commit,
    get_repo_root,
    is_clean,
    is_git_repo,
    run_git_command,
)

__all__ = [
    "GitClient",
    "VersionControl",
    "get_changed_files",
    "get_current_branch",
    "get_current_commit",
    "get_repo_root",
    "is_clean",
    "is_git_repo",
    "run_git_command",
]
