"""Tests for pyproject manifest access."""

from pathlib import Path

import pytest
from packaging.requirements import Requirement

from pyworkspaces.compat import read_toml
from pyworkspaces.errors import ConfigError
from pyworkspaces.manifest import (
    DependencyKind,
    PyprojectManifestStore,
    dependency_field,
    read_workspace_members,
    render_requirement,
)

MANIFEST = """\
# top comment
[build-system]
requires = ["hatchling", "my-plugin>=1.0"]
build-backend = "hatchling.build"

[project]
name = "My_Pkg"
version = "1.0.0"  # bumped by releases
classifiers = ["Private :: Do Not Upload"]
dependencies = [
    "core[cli]>=1.0,<2.0; python_version >= '3.10'",  # runtime
    "requests>=2",
    "api",
]

[project.optional-dependencies]
extra = ["core>=1.0"]

[dependency-groups]
dev = ["pytest", "testing-utils==1.0.0"]

[tool.pyworkspaces]
independent = true
"""


@pytest.fixture
def package_dir(tmp_path: Path) -> Path:
    (tmp_path / "pyproject.toml").write_text(MANIFEST)
    return tmp_path


class TestRead:
    def test_fields(self, package_dir):
        data = PyprojectManifestStore().read(package_dir)

        assert data.name == "My_Pkg"
        assert data.version == "1.0.0"
        assert data.private is True
        assert data.independent is True

    def test_dependencies(self, package_dir):
        deps = PyprojectManifestStore().read(package_dir).dependencies
        by_kind = {(d.name, d.kind) for d in deps}

        assert ("core", DependencyKind.NORMAL) in by_kind
        assert ("api", DependencyKind.NORMAL) in by_kind
        assert ("my-plugin", DependencyKind.BUILD) in by_kind
        assert ("testing-utils", DependencyKind.DEV) in by_kind
        api = next(d for d in deps if d.name == "api")
        assert api.specifier == ""

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read manifest"):
            PyprojectManifestStore().read(tmp_path)

    def test_invalid_toml(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[project\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            PyprojectManifestStore().read(tmp_path)

    def test_missing_name(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nversion = "1.0.0"\n')
        with pytest.raises(ConfigError, match="no \\[project\\].name"):
            PyprojectManifestStore().read(tmp_path)


class TestPatch:
    def test_version_and_constraints(self, package_dir):
        store = PyprojectManifestStore()
        store.patch(
            package_dir,
            {"version": "1.1.0", dependency_field("core"): ">=2.0.0,<3.0.0"},
        )

        data = store.read(package_dir)
        assert data.version == "1.1.0"
        core = [d for d in data.dependencies if d.name == "core"]
        assert len(core) == 2
        assert all(d.specifier == "<3.0.0,>=2.0.0" for d in core)

    def test_preserves_formatting(self, package_dir):
        PyprojectManifestStore().patch(package_dir, {dependency_field("core"): "==2.0.0"})

        text = (package_dir / "pyproject.toml").read_text()
        assert text.startswith("# top comment\n")
        assert "# bumped by releases" in text
        assert "# runtime" in text
        assert '"requests>=2"' in text

        dependencies = read_toml(package_dir / "pyproject.toml")["project"]["dependencies"]
        assert dependencies[0] == 'core[cli]==2.0.0; python_version >= "3.10"'
        assert dependencies[2] == "api"

    def test_returns_manifest_path(self, package_dir):
        path = PyprojectManifestStore().patch(package_dir, {"version": "2.0.0"})
        assert path == package_dir / "pyproject.toml"

    def test_unknown_field(self, package_dir):
        with pytest.raises(ConfigError, match="Unknown manifest field"):
            PyprojectManifestStore().patch(package_dir, {"description": "x"})


def test_render_requirement_keeps_extras_and_markers():
    req = Requirement("pkg[b,a]>=1.0; python_version>'3.9'")
    assert render_requirement(req, ">=2.0.0,<3.0.0") == (
        'pkg[a,b]>=2.0.0,<3.0.0; python_version > "3.9"'
    )


def test_dependency_field_canonicalizes():
    assert dependency_field("My_Pkg") == "dependency:my-pkg"


def test_read_workspace_members(tmp_path):
    (tmp_path / "pyproject.toml").write_text(
        '[tool.uv.workspace]\nmembers = ["packages/*", "tools/cli"]\n'
    )
    assert read_workspace_members(tmp_path) == ["packages/*", "tools/cli"]


def test_read_workspace_members_without_manifest(tmp_path):
    assert read_workspace_members(tmp_path) == []
