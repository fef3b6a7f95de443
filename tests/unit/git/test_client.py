"""Tests for GitClient with mocked git calls."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pyworkspaces.errors import VcsError
from pyworkspaces.git.client import GitClient

ROOT = Path("/repo")


def ok(stdout: str = "", returncode: int = 0, stderr: str = "") -> MagicMock:
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestResolve:
    def test_resolves_commit(self):
        with patch("pyworkspaces.git.client.run_git_command", return_value=ok("abc\n")) as run:
            assert GitClient(ROOT).resolve("v1.0.0") == "abc"
            assert run.call_args[0][0] == ["rev-parse", "--verify", "--quiet", "v1.0.0^{commit}"]

    def test_unknown_ref(self):
        with patch("pyworkspaces.git.client.run_git_command", return_value=ok(returncode=1)):
            with pytest.raises(VcsError, match="Cannot resolve git reference 'nope'"):
                GitClient(ROOT).resolve("nope")


class TestLatestTag:
    def test_found(self):
        with patch("pyworkspaces.git.client.run_git_command", return_value=ok("v1.2.0\n")) as run:
            assert GitClient(ROOT).latest_tag("v*") == "v1.2.0"
            args = run.call_args[0][0]
            assert args == ["describe", "--tags", "--abbrev=0", "--match", "v*", "--first-parent"]

    def test_include_merged(self):
        with patch("pyworkspaces.git.client.run_git_command", return_value=ok("v1\n")) as run:
            GitClient(ROOT).latest_tag("v*", first_parent=False)
            assert "--first-parent" not in run.call_args[0][0]

    def test_no_match(self):
        result = ok(returncode=128, stderr="fatal: No names found, cannot describe anything.")
        with patch("pyworkspaces.git.client.run_git_command", return_value=result):
            assert GitClient(ROOT).latest_tag("v*") is None

    def test_not_a_repository(self):
        result = ok(returncode=128, stderr="fatal: not a git repository")
        with patch("pyworkspaces.git.client.run_git_command", return_value=result):
            with pytest.raises(VcsError):
                GitClient(ROOT).latest_tag("v*")


class TestWrites:
    def test_commit_files(self):
        with (
            patch("pyworkspaces.git.client.run_git_command") as run,
            patch("pyworkspaces.git.client.git_output", return_value="deadbeef") as output,
        ):
            sha = GitClient(ROOT).commit([Path("/repo/a/pyproject.toml")], "Release 1.0.0")

            assert sha == "deadbeef"
            calls = [c[0][0] for c in run.call_args_list]
            assert calls[0] == ["add", "--", "/repo/a/pyproject.toml"]
            assert calls[1] == ["commit", "-m", "Release 1.0.0"]
            output.assert_called_once_with(["rev-parse", "HEAD"], cwd=ROOT)

    def test_commit_amend_stages_nothing_extra(self):
        with (
            patch("pyworkspaces.git.client.run_git_command") as run,
            patch("pyworkspaces.git.client.git_output", return_value="cafe"),
        ):
            GitClient(ROOT).commit([], "ignored", amend=True)

            calls = [c[0][0] for c in run.call_args_list]
            assert calls == [["commit", "--amend", "--no-edit"]]

    def test_tag_is_annotated(self):
        with patch("pyworkspaces.git.client.run_git_command") as run:
            GitClient(ROOT).tag("v1.0.0", "Release v1.0.0")
            assert run.call_args[0][0] == ["tag", "-a", "v1.0.0", "-m", "Release v1.0.0"]

    def test_tag_exists(self):
        with patch("pyworkspaces.git.client.run_git_command", return_value=ok("abc")) as run:
            assert GitClient(ROOT).tag_exists("v1.0.0") is True
            assert run.call_args[0][0][-1] == "refs/tags/v1.0.0"

        with patch("pyworkspaces.git.client.run_git_command", return_value=ok(returncode=1)):
            assert GitClient(ROOT).tag_exists("v1.0.0") is False

    def test_push_follows_tags(self):
        with patch("pyworkspaces.git.client.run_git_command") as run:
            GitClient(ROOT).push("origin", ["master"])
            assert run.call_args[0][0] == ["push", "--follow-tags", "origin", "master"]


class TestValidateReleaseBranch:
    def test_allowed_branch(self):
        with (
            patch("pyworkspaces.git.client.run_git_command", return_value=ok("1\n")),
            patch("pyworkspaces.git.client.get_current_branch", return_value="master"),
        ):
            assert GitClient(ROOT).validate_release_branch("master") == "master"

    def test_main_accepted_for_master(self):
        with (
            patch("pyworkspaces.git.client.run_git_command", return_value=ok("1\n")),
            patch("pyworkspaces.git.client.get_current_branch", return_value="main"),
        ):
            assert GitClient(ROOT).validate_release_branch("master") == "main"

    def test_glob_branch(self):
        with (
            patch("pyworkspaces.git.client.run_git_command", return_value=ok("1\n")),
            patch("pyworkspaces.git.client.get_current_branch", return_value="release/1.x"),
        ):
            assert GitClient(ROOT).validate_release_branch("release/*") == "release/1.x"

    def test_disallowed_branch(self):
        with (
            patch("pyworkspaces.git.client.run_git_command", return_value=ok("1\n")),
            patch("pyworkspaces.git.client.get_current_branch", return_value="feature"),
        ):
            with pytest.raises(VcsError, match="Branch 'feature' is not allowed"):
                GitClient(ROOT).validate_release_branch("master")

    def test_detached_head(self):
        with (
            patch("pyworkspaces.git.client.run_git_command", return_value=ok("1\n")),
            patch("pyworkspaces.git.client.get_current_branch", return_value="HEAD"),
        ):
            with pytest.raises(VcsError, match="detached"):
                GitClient(ROOT).validate_release_branch("*")

    def test_no_commits(self):
        with patch("pyworkspaces.git.client.run_git_command", return_value=ok("0\n")):
            with pytest.raises(VcsError, match="no commits"):
                GitClient(ROOT).validate_release_branch()

    def test_missing_remote_branch(self):
        with (
            patch(
                "pyworkspaces.git.client.run_git_command",
                side_effect=[ok("1\n"), ok(returncode=1)],
            ),
            patch("pyworkspaces.git.client.get_current_branch", return_value="master"),
        ):
            with pytest.raises(VcsError, match="origin/master"):
                GitClient(ROOT).validate_release_branch("master", remote="origin")

    def test_behind_remote(self):
        with (
            patch(
                "pyworkspaces.git.client.run_git_command",
                side_effect=[ok("1\n"), ok(), ok()],
            ),
            patch("pyworkspaces.git.client.get_current_branch", return_value="master"),
            patch("pyworkspaces.git.client.git_output", return_value="2"),
        ):
            with pytest.raises(VcsError, match="behind"):
                GitClient(ROOT).validate_release_branch("master", remote="origin")
