"""Workspace discovery and loading."""

from __future__ import annotations

from pathlib import Path

from packaging.utils import canonicalize_name

from pyworkspaces.config import WorkspaceConfig, discover_config
from pyworkspaces.errors import ConfigError, PackageNotFoundError
from pyworkspaces.filters import GlobMatcher
from pyworkspaces.log import get_logger
from pyworkspaces.manifest import (
    MANIFEST_FILENAME,
    ManifestStore,
    PyprojectManifestStore,
    read_workspace_members,
)
from pyworkspaces.workspace.graph import DependencyGraph
from pyworkspaces.workspace.package import (
    DEFAULT_GROUP,
    EXCLUDED_GROUP,
    Dependency,
    Group,
    Package,
    VersioningUnit,
)

logger = get_logger(__name__)


def _expand_member_glob(root: Path, pattern: str) -> list[Path]:
    """Directories under ``root`` matching ``pattern`` that hold a manifest."""
    pattern = pattern.rstrip("/")
    if not pattern or pattern == ".":
        return []
    matches = [p for p in root.glob(pattern) if (p / MANIFEST_FILENAME).is_file()]
    return sorted(matches, key=lambda p: p.relative_to(root).as_posix())


class Workspace:
    """An in-memory view of the workspace.

    Built fresh for each invocation from the config file and the member
    manifests. Nothing here writes to disk.

    Attributes:
        root: Workspace root directory.
        config: Validated configuration.
        packages: Members by canonical name, in discovery order.
        groups: Named groups by name.
        graph: Dependency graph over all members.
        warnings: Non-fatal authoring problems found while loading.
    """

    def __init__(
        self,
        root: Path,
        config: WorkspaceConfig,
        packages: list[Package],
        groups: dict[str, Group],
        warnings: list[str] | None = None,
    ) -> None:
        self.root = root
        self.config = config
        self.packages: dict[str, Package] = {p.name: p for p in packages}
        self.groups = groups
        self.warnings = list(warnings or [])
        self.graph = DependencyGraph(packages)

    @classmethod
    def discover(
        cls,
        path: Path | None = None,
        *,
        store: ManifestStore | None = None,
    ) -> Workspace:
        """Find the nearest ``pyworkspaces.yaml`` and load the workspace.

        Args:
            path: Directory to start searching from.
            store: Manifest store, defaults to :class:`PyprojectManifestStore`.

        Raises:
            WorkspaceNotFoundError: If no config file exists.
        """
        root, config = discover_config(path)
        return cls.load(root, config, store=store)

    @classmethod
    def load(
        cls,
        root: Path,
        config: WorkspaceConfig,
        *,
        store: ManifestStore | None = None,
        strict: bool | None = None,
    ) -> Workspace:
        """Read every member manifest and resolve group membership.

        Args:
            root: Workspace root.
            config: Workspace configuration.
            store: Manifest store, defaults to :class:`PyprojectManifestStore`.
            strict: Treat globs that match nothing as errors. Defaults to
                ``config.strict``.

        Returns:
            Loaded workspace.

        Raises:
            ConfigError: On duplicate names, a package in several groups, two
                versioning units with the same name, an unmatched glob in
                strict mode, or no members at all.
            CyclicDependencyError: If normal/build dependencies form a cycle.
        """
        root = root.resolve()
        store = store or PyprojectManifestStore()
        strict = config.strict if strict is None else strict
        warnings: list[str] = []

        def unmatched(what: str, pattern: str) -> None:
            message = f"{what} glob '{pattern}' matches no packages"
            if strict:
                raise ConfigError(message)
            logger.warning("glob_unmatched", kind=what, pattern=pattern)
            warnings.append(message)

        member_globs = config.packages or read_workspace_members(root)
        if not member_globs:
            raise ConfigError(
                f"No package globs configured in {root} "
                "(set 'packages' or [tool.uv.workspace].members)"
            )

        directories: list[Path] = []
        for pattern in member_globs:
            found = _expand_member_glob(root, pattern)
            if not found:
                unmatched("Member", pattern)
            for directory in found:
                if directory.resolve() != root and directory not in directories:
                    directories.append(directory)

        manifests = []
        for directory in directories:
            data = store.read(directory)
            manifests.append((directory, data))

        exclude = GlobMatcher(config.exclude)
        group_matchers = [(g.name, GlobMatcher(g.members)) for g in config.groups]
        groups = {g.name: Group(name=g.name, patterns=list(g.members)) for g in config.groups}
        names = {canonicalize_name(data.name) for _, data in manifests}

        packages: list[Package] = []
        seen: dict[str, Path] = {}
        for index, (directory, data) in enumerate(manifests):
            name = canonicalize_name(data.name)
            rel_path = directory.relative_to(root).as_posix()
            if name in seen:
                raise ConfigError(
                    f"Duplicate package name '{name}' in {seen[name]} and {directory}"
                )
            seen[name] = directory

            if exclude.matches_package(name, rel_path):
                group = EXCLUDED_GROUP
            else:
                matching = [g for g, m in group_matchers if m.matches_package(name, rel_path)]
                if len(matching) > 1:
                    raise ConfigError(
                        f"Package '{name}' matches more than one group: {', '.join(matching)}"
                    )
                group = matching[0] if matching else DEFAULT_GROUP

            if data.independent and group not in (DEFAULT_GROUP, EXCLUDED_GROUP):
                logger.debug("independent_in_group", package=name, group=group)

            dependencies = [
                Dependency(
                    name=dep.name,
                    kind=dep.kind,
                    requirement=dep.requirement,
                    specifier=dep.specifier,
                )
                for dep in data.dependencies
                if dep.name in names and dep.name != name
            ]
            pkg = Package(
                name=name,
                version=data.version,
                path=directory.resolve(),
                rel_path=rel_path,
                private=data.private,
                independent=data.independent,
                group=group,
                dependencies=dependencies,
                index=index,
            )
            if group in groups:
                groups[group].members.append(name)
            packages.append(pkg)

        unit_names: dict[str, VersioningUnit] = {}
        for pkg in packages:
            unit = pkg.unit
            if unit is None:
                continue
            other = unit_names.setdefault(unit.name, unit)
            if other != unit:
                raise ConfigError(
                    f"{other.kind.value.capitalize()} unit and {unit.kind.value} unit "
                    f"share the name '{unit.name}'; rename the group or the package"
                )

        candidates = [value for p in packages for value in (p.name, p.rel_path)]
        for pattern in exclude.unmatched(candidates):
            unmatched("Exclude", pattern)
        for group_name, matcher in group_matchers:
            for pattern in matcher.unmatched(candidates):
                unmatched(f"Group '{group_name}' member", pattern)

        return cls(root, config, packages, groups, warnings)

    @property
    def name(self) -> str:
        return self.config.name

    def get_package(self, name: str) -> Package:
        """Look up a package by (any spelling of) its name.

        Raises:
            PackageNotFoundError: If the name is not a member.
        """
        pkg = self.packages.get(canonicalize_name(name))
        if pkg is None:
            raise PackageNotFoundError(name)
        return pkg

    def has_package(self, name: str) -> bool:
        return canonicalize_name(name) in self.packages

    def member_packages(self, *, include_private: bool = True) -> list[Package]:
        """Non-excluded packages in discovery order."""
        return [
            p
            for p in self.packages.values()
            if not p.excluded and (include_private or not p.private)
        ]

    def units(self) -> dict[VersioningUnit, list[Package]]:
        """Versioning units with their members, in discovery order."""
        result: dict[VersioningUnit, list[Package]] = {}
        for pkg in self.packages.values():
            unit = pkg.unit
            if unit is not None:
                result.setdefault(unit, []).append(pkg)
        return result

    def __repr__(self) -> str:
        return f"Workspace({self.name!r}, root={str(self.root)!r}, packages={len(self.packages)})"
