"""Package manifest access.

The core only needs a small key/value view of a manifest: the package
version and the version constraints on other workspace packages. The
:class:`ManifestStore` protocol captures that view; :class:`PyprojectManifestStore`
implements it for ``pyproject.toml`` files.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, cast

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from pyworkspaces.compat import read_toml
from pyworkspaces.errors import ConfigError

MANIFEST_FILENAME = "pyproject.toml"
PRIVATE_CLASSIFIER = "Private :: Do Not Upload"
VERSION_FIELD = "version"
DEPENDENCY_FIELD_PREFIX = "dependency:"


class DependencyKind(Enum):
    """Where a dependency is declared."""

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"

    @property
    def orders_publish(self) -> bool:
        """Dev edges never constrain release or publish order."""
        return self is not DependencyKind.DEV


@dataclass(frozen=True)
class DependencySpec:
    """One dependency declaration as written in a manifest.

    Attributes:
        name: Canonical (PEP 503) dependency name.
        kind: Declaration kind.
        requirement: The raw PEP 508 string.
        specifier: Version specifier part, empty when unversioned.
    """

    name: str
    kind: DependencyKind
    requirement: str
    specifier: str = ""


@dataclass
class ManifestData:
    """The subset of a manifest the orchestrator works with."""

    name: str
    version: str
    dependencies: list[DependencySpec] = field(default_factory=list)
    private: bool = False
    independent: bool = False


def dependency_field(name: str) -> str:
    """Patch key addressing the constraint on dependency ``name``."""
    return f"{DEPENDENCY_FIELD_PREFIX}{canonicalize_name(name)}"


class ManifestStore(Protocol):
    """Read/patch access to package manifests."""

    def read(self, package_path: Path) -> ManifestData:
        """Read the manifest of the package at ``package_path``."""
        ...

    def patch(self, package_path: Path, field_updates: Mapping[str, str]) -> Path:
        """Apply field updates and return the manifest file written."""
        ...


def _parse_requirement(raw: str) -> Requirement | None:
    try:
        return Requirement(raw)
    except InvalidRequirement:
        return None


def _dependency_lists(doc: Mapping[str, Any]) -> Iterator[tuple[DependencyKind, list[Any]]]:
    """Yield every dependency array in a pyproject document with its kind."""
    project = doc.get("project", {})
    deps = project.get("dependencies")
    if isinstance(deps, list):
        yield DependencyKind.NORMAL, deps
    for extra in project.get("optional-dependencies", {}).values():
        if isinstance(extra, list):
            yield DependencyKind.NORMAL, extra

    requires = doc.get("build-system", {}).get("requires")
    if isinstance(requires, list):
        yield DependencyKind.BUILD, requires

    for group in doc.get("dependency-groups", {}).values():
        if isinstance(group, list):
            yield DependencyKind.DEV, group
    dev = doc.get("tool", {}).get("uv", {}).get("dev-dependencies")
    if isinstance(dev, list):
        yield DependencyKind.DEV, dev


def render_requirement(req: Requirement, specifier: str) -> str:
    """Render a requirement with a replaced specifier.

    Extras and environment markers are kept; the name keeps its spelling.

    Examples:
        ``pkg[cli]>=1.0; python_version>'3.9'`` with ``>=2.0.0,<3.0.0`` becomes
        ``pkg[cli]>=2.0.0,<3.0.0; python_version > "3.9"``
    """
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    rendered = f"{req.name}{extras}{specifier}"
    if req.marker is not None:
        rendered += f"; {req.marker}"
    return rendered


class PyprojectManifestStore:
    """Manifest store backed by ``pyproject.toml`` files."""

    def read(self, package_path: Path) -> ManifestData:
        """Read name, version, settings, and dependencies.

        Args:
            package_path: Package directory.

        Returns:
            Parsed manifest data.

        Raises:
            ConfigError: If the manifest is missing, unparsable, or lacks
                a static name and version.
        """
        manifest = package_path / MANIFEST_FILENAME
        try:
            doc = read_toml(manifest)
        except OSError as e:
            raise ConfigError(f"Cannot read manifest {manifest}: {e}") from e
        except ValueError as e:
            raise ConfigError(f"Invalid TOML in {manifest}: {e}") from e

        project = doc.get("project", {})
        name = project.get("name")
        version = project.get("version")
        if not name:
            raise ConfigError(f"{manifest} has no [project].name")
        if not version:
            raise ConfigError(f"{manifest} has no static [project].version")

        dependencies: list[DependencySpec] = []
        for kind, entries in _dependency_lists(doc):
            for raw in entries:
                if not isinstance(raw, str):
                    continue
                req = _parse_requirement(raw)
                if req is None:
                    continue
                dependencies.append(
                    DependencySpec(
                        name=canonicalize_name(req.name),
                        kind=kind,
                        requirement=raw,
                        specifier=str(req.specifier),
                    )
                )

        settings = doc.get("tool", {}).get("pyworkspaces", {})
        classifiers = project.get("classifiers", [])
        return ManifestData(
            name=name,
            version=str(version),
            dependencies=dependencies,
            private=bool(settings.get("private", False)) or PRIVATE_CLASSIFIER in classifiers,
            independent=bool(settings.get("independent", False)),
        )

    def patch(self, package_path: Path, field_updates: Mapping[str, str]) -> Path:
        """Rewrite the version and dependency constraints.

        Args:
            package_path: Package directory.
            field_updates: ``version`` and ``dependency:<name>`` keys mapped to
                a new version or a new specifier string.

        Returns:
            Path of the rewritten manifest.

        Raises:
            ConfigError: If a key is unknown.
        """
        manifest = package_path / MANIFEST_FILENAME
        doc = tomlkit.parse(manifest.read_text(encoding="utf-8"))
        project = cast(dict[str, Any], doc["project"])

        constraints: dict[str, str] = {}
        for key, value in field_updates.items():
            if key == VERSION_FIELD:
                project["version"] = value
            elif key.startswith(DEPENDENCY_FIELD_PREFIX):
                constraints[canonicalize_name(key[len(DEPENDENCY_FIELD_PREFIX) :])] = value
            else:
                raise ConfigError(f"Unknown manifest field '{key}' for {manifest}")

        if constraints:
            for _kind, entries in _dependency_lists(doc):
                for i, raw in enumerate(entries):
                    if not isinstance(raw, str):
                        continue
                    req = _parse_requirement(raw)
                    if req is None or req.url:
                        continue
                    specifier = constraints.get(canonicalize_name(req.name))
                    if specifier is not None:
                        entries[i] = render_requirement(req, specifier)

        manifest.write_text(tomlkit.dumps(doc), encoding="utf-8")
        return manifest


def read_workspace_members(root: Path) -> list[str]:
    """Member globs declared under ``[tool.uv.workspace]`` in the root manifest.

    Returns an empty list when the root has no manifest or no members.
    """
    manifest = root / MANIFEST_FILENAME
    if not manifest.is_file():
        return []
    doc = read_toml(manifest)
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members", [])
    return [str(m) for m in members]
