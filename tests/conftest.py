"""Shared test fixtures for pyworkspaces tests."""

from __future__ import annotations

import asyncio
import fnmatch
import subprocess
from collections.abc import Sequence
from pathlib import Path

import pytest
import structlog

from pyworkspaces.config import load_config
from pyworkspaces.errors import PublishError, VcsError
from pyworkspaces.publish import BackoffPolicy
from pyworkspaces.workspace import Workspace


def write_package(
    root: Path,
    rel_path: str,
    name: str,
    version: str = "0.1.0",
    *,
    dependencies: Sequence[str] = (),
    dev_dependencies: Sequence[str] = (),
    independent: bool = False,
    private: bool = False,
) -> Path:
    """Create a member package with a pyproject.toml."""
    directory = root / rel_path
    directory.mkdir(parents=True, exist_ok=True)
    deps = ", ".join(f'"{d}"' for d in dependencies)
    lines = [
        "[project]",
        f'name = "{name}"',
        f'version = "{version}"',
        f'description = "Package {name}"',
        f"dependencies = [{deps}]",
        "",
    ]
    if dev_dependencies:
        dev = ", ".join(f'"{d}"' for d in dev_dependencies)
        lines += ["[dependency-groups]", f"dev = [{dev}]", ""]
    settings = []
    if independent:
        settings.append("independent = true")
    if private:
        settings.append("private = true")
    if settings:
        lines += ["[tool.pyworkspaces]", *settings, ""]
    (directory / "pyproject.toml").write_text("\n".join(lines))
    module = directory / "src" / name.replace("-", "_")
    module.mkdir(parents=True, exist_ok=True)
    (module / "__init__.py").write_text(f'__version__ = "{version}"\n')
    return directory


def load_workspace(root: Path) -> Workspace:
    """Load the workspace rooted at ``root``."""
    return Workspace.load(root, load_config(root / "pyworkspaces.yaml"))


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    """Workspace with an independent package and a two-package group.

    ``pkg-a`` is independent; ``pkg-b`` and ``pkg-c`` form group ``g`` and
    ``pkg-c`` depends on ``pkg-b``. Everything starts at 0.1.0.
    """
    (tmp_path / "pyworkspaces.yaml").write_text(
        """\
name: test-workspace
packages:
  - packages/*
groups:
  - name: g
    members: ["packages/pkg-b", "packages/pkg-c"]
"""
    )
    (tmp_path / "pyproject.toml").write_text(
        """\
[project]
name = "test-workspace"
version = "0.0.0"

[tool.uv.workspace]
members = ["packages/*"]
"""
    )
    write_package(tmp_path, "packages/pkg-a", "pkg-a", independent=True)
    write_package(tmp_path, "packages/pkg-b", "pkg-b")
    write_package(tmp_path, "packages/pkg-c", "pkg-c", dependencies=["pkg-b>=0.1.0,<0.2.0"])
    return tmp_path


@pytest.fixture
def workspace(workspace_dir: Path) -> Workspace:
    return load_workspace(workspace_dir)


@pytest.fixture
def chain_dir(tmp_path: Path) -> Path:
    """Workspace line ``core <- api <- app`` plus an unrelated ``tools``."""
    (tmp_path / "pyworkspaces.yaml").write_text("name: chain\npackages: ['packages/*']\n")
    write_package(tmp_path, "packages/core", "core", "1.2.0")
    write_package(tmp_path, "packages/api", "api", "1.2.0", dependencies=["core>=1.2.0,<2.0.0"])
    write_package(tmp_path, "packages/app", "app", "1.2.0", dependencies=["api>=1.2.0,<2.0.0"])
    write_package(tmp_path, "packages/tools", "tools", "1.2.0")
    return tmp_path


@pytest.fixture
def chain(chain_dir: Path) -> Workspace:
    return load_workspace(chain_dir)


def run_git(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    """Run a git command, failing the test on error."""
    return subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)


def init_git(path: Path) -> Path:
    """Initialize a repository on ``master`` and commit everything."""
    run_git(["init", "-q"], path)
    run_git(["checkout", "-q", "-B", "master"], path)
    run_git(["config", "user.email", "test@test.com"], path)
    run_git(["config", "user.name", "Test"], path)
    run_git(["config", "commit.gpgsign", "false"], path)
    run_git(["config", "tag.gpgsign", "false"], path)
    run_git(["add", "-A"], path)
    run_git(["commit", "-q", "-m", "Initial commit"], path)
    return path


@pytest.fixture
def git_workspace(workspace_dir: Path) -> Path:
    """Workspace with git initialized and one commit."""
    return init_git(workspace_dir)


class FakeVcs:
    """In-memory version control.

    ``changes`` maps a reference to the files changed since it.
    ``fail`` maps a method name to the error it raises.
    """

    def __init__(self) -> None:
        self.refs: set[str] = {"HEAD"}
        self.tags: dict[str, str] = {}
        self.changes: dict[str, list[str]] = {}
        self.commits: list[tuple[list[Path], str, bool]] = []
        self.created_tags: list[tuple[str, str]] = []
        self.pushes: list[tuple[str, list[str]]] = []
        self.branch = "master"
        self.fail: dict[str, Exception] = {}

    def _check(self, method: str) -> None:
        if method in self.fail:
            raise self.fail[method]

    def resolve(self, ref: str) -> str:
        if ref in self.refs or ref in self.tags:
            return f"sha-{ref}"
        raise VcsError(f"Cannot resolve git reference '{ref}'")

    def latest_tag(self, pattern: str, *, first_parent: bool = True) -> str | None:
        matches = [t for t in self.tags if fnmatch.fnmatchcase(t, pattern)]
        return matches[-1] if matches else None

    def diff_paths(self, ref_a: str, ref_b: str | None, path: str | None = None) -> list[str]:
        files = self.changes.get(ref_a, [])
        if path is None:
            return list(files)
        prefix = path.rstrip("/") + "/"
        return [f for f in files if f.startswith(prefix)]

    def commit(self, files: Sequence[Path], message: str, *, amend: bool = False) -> str:
        self._check("commit")
        self.commits.append((list(files), message, amend))
        return f"c0ffee{len(self.commits)}"

    def tag(self, name: str, message: str) -> None:
        self._check("tag")
        self.tags[name] = "HEAD"
        self.created_tags.append((name, message))

    def tag_exists(self, name: str) -> bool:
        return name in self.tags

    def push(self, remote: str, refs: Sequence[str]) -> None:
        self._check("push")
        self.pushes.append((remote, list(refs)))

    def current_branch(self) -> str:
        return self.branch


class FakeRegistry:
    """In-memory package index.

    Attributes:
        existing: (name, version) pairs already on the index.
        reject: Names whose upload fails.
        never_available: Names that never show up after upload.
        visible_after: Polls answered "absent" before an upload shows up.
        delay: Seconds each upload takes.
    """

    def __init__(
        self,
        *,
        existing: Sequence[tuple[str, str]] = (),
        reject: Sequence[str] = (),
        never_available: Sequence[str] = (),
        visible_after: int = 0,
        delay: float = 0.0,
    ) -> None:
        self.existing = set(existing)
        self.reject = set(reject)
        self.never_available = set(never_available)
        self.visible_after = visible_after
        self.delay = delay
        self.published: list[tuple[str, str]] = []
        self.events: list[str] = []
        self.polls: dict[str, int] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def publish(self, name: str, version: str, artifact_location: Path) -> None:
        self.events.append(f"publish:{name}")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if name in self.reject:
                raise PublishError("upload rejected", package=name, version=version)
            self.published.append((name, version))
        finally:
            self.in_flight -= 1

    async def query(self, name: str, version: str) -> bool:
        if (name, version) in self.existing:
            return True
        if name in self.never_available or (name, version) not in self.published:
            return False
        self.polls[name] = self.polls.get(name, 0) + 1
        if self.polls[name] > self.visible_after:
            self.events.append(f"available:{name}")
            return True
        return False


@pytest.fixture
def fake_vcs() -> FakeVcs:
    return FakeVcs()


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def fast_backoff() -> BackoffPolicy:
    """Backoff that polls three times without real waiting."""
    return BackoffPolicy(initial_delay=0.001, max_delay=0.002, max_attempts=3)


@pytest.fixture
def add_package():
    """Write (or overwrite) a member package: ``add_package(root, rel_path, name, ...)``."""
    return write_package


@pytest.fixture
def reload_workspace():
    """Load a workspace from disk: ``reload_workspace(root)``."""
    return load_workspace


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo logging configuration made by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_registry():
    """Build a configured registry: ``make_registry(reject=[...])``."""
    return FakeRegistry


@pytest.fixture
def git():
    """Run a git command: ``git(args, cwd)``."""
    return run_git
