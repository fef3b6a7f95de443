"""Version bump planning."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from pyworkspaces.changes.changeset import ChangeEntry, ChangeSet
from pyworkspaces.errors import SemverError
from pyworkspaces.log import get_logger
from pyworkspaces.manifest import VERSION_FIELD, dependency_field
from pyworkspaces.versioning.constraints import render_constraint, same_constraint, satisfies
from pyworkspaces.versioning.policy import BumpDecision, BumpPolicyProvider, UnitRequest
from pyworkspaces.versioning.versions import (
    BumpType,
    apply_bump,
    ensure_greater,
    parse_version,
    to_pep440,
)
from pyworkspaces.workspace.package import Dependency, Package, UnitKind, VersioningUnit

if TYPE_CHECKING:
    from pyworkspaces.workspace.workspace import Workspace

logger = get_logger(__name__)


@dataclass(frozen=True)
class Synced:
    """All members of a unit agree on the current version."""

    version: str


@dataclass(frozen=True)
class Drifted:
    """Members of a fixed unit disagree; the highest version is the baseline.

    Attributes:
        version: Baseline (highest member version).
        members: Every member version that differs from the baseline.
    """

    version: str
    members: dict[str, str]


Baseline = Synced | Drifted


@dataclass(frozen=True)
class ManifestPatch:
    """One field rewrite in one manifest.

    Attributes:
        package: Package owning the manifest.
        package_path: Package directory.
        field: ``version`` or ``dependency:<name>``.
        old: Value before the patch (empty for an unversioned dependency).
        new: Value after the patch.
    """

    package: str
    package_path: Path
    field: str
    old: str
    new: str


@dataclass
class PlannedVersion:
    """The new version of one package.

    Attributes:
        name: Package name.
        old_version: On-disk version before the release.
        new_version: Planned version.
        unit: Versioning unit that decided the bump.
        decision: The bump applied to the unit baseline.
        change: Why the package is part of the release.
        dependent_patches: Constraint rewrites in other manifests caused by
            this package's new version.
    """

    name: str
    old_version: str
    new_version: str
    unit: VersioningUnit
    decision: BumpDecision
    change: ChangeEntry
    dependent_patches: list[ManifestPatch] = field(default_factory=list)


@dataclass
class VersionBumpPlan:
    """Everything the release transaction needs to write.

    Attributes:
        entries: Planned versions in discovery order.
        unit_versions: New version of every planned unit.
        baselines: Baseline of every planned unit.
        warnings: Non-fatal findings (drift, unversioned dependencies).
        patches: Manifest rewrites, version fields first.
        errors: Units that could not be planned.
    """

    entries: dict[str, PlannedVersion] = field(default_factory=dict)
    unit_versions: dict[VersioningUnit, str] = field(default_factory=dict)
    baselines: dict[VersioningUnit, Baseline] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    patches: list[ManifestPatch] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def empty(self) -> bool:
        return not self.entries

    @property
    def global_version(self) -> str | None:
        """New version of the workspace-wide line, if it is part of the plan."""
        for unit, version in self.unit_versions.items():
            if unit.kind is UnitKind.WORKSPACE:
                return version
        return None

    def new_versions(self) -> dict[str, str]:
        return {name: e.new_version for name, e in self.entries.items()}

    def manifest_updates(self) -> dict[Path, dict[str, str]]:
        """Patches grouped per package directory, in plan order."""
        updates: dict[Path, dict[str, str]] = {}
        for patch in self.patches:
            updates.setdefault(patch.package_path, {})[patch.field] = patch.new
        return updates

    def verify(self, workspace: Workspace) -> list[str]:
        """Check every constraint onto a planned package against its new version.

        Constraints are taken after patching; unversioned ones always pass.

        Returns:
            One message per unsatisfied constraint.
        """
        patched = {(p.package, p.field): p.new for p in self.patches}
        problems: list[str] = []
        for pkg in workspace.packages.values():
            for dep in pkg.dependencies:
                planned = self.entries.get(dep.name)
                if planned is None:
                    continue
                spec = patched.get((pkg.name, dependency_field(dep.name)), dep.specifier)
                if spec and not satisfies(spec, planned.new_version):
                    problems.append(
                        f"{pkg.name} requires {dep.name}{spec}, "
                        f"which excludes planned version {planned.new_version}"
                    )
        return problems


class VersionBumpPlanner:
    """Turn an affected set into concrete versions and manifest patches.

    Attributes:
        workspace: Loaded workspace.
        exact: Pin dependents with ``==`` instead of a caret range.
        inject_unversioned: Add constraints to bare internal dependencies.
    """

    def __init__(
        self,
        workspace: Workspace,
        *,
        exact: bool = False,
        inject_unversioned: bool = False,
    ) -> None:
        self.workspace = workspace
        self.exact = exact
        self.inject_unversioned = inject_unversioned

    def baseline(self, unit: VersioningUnit) -> Baseline:
        """Reconcile the current version of a unit.

        Raises:
            SemverError: If a member version cannot be parsed.
        """
        members = self.workspace.units().get(unit, [])
        if not members:
            raise SemverError(f"Versioning unit {unit} has no members")

        parsed = [(p, parse_version(p.version)) for p in members]
        highest_pkg, highest = max(parsed, key=lambda item: item[1])
        drifted = {p.name: p.version for p, v in parsed if v != highest}
        if drifted:
            return Drifted(version=highest_pkg.version, members=drifted)
        return Synced(version=highest_pkg.version)

    def plan(self, affected_set: ChangeSet, bump_policy: BumpPolicyProvider) -> VersionBumpPlan:
        """Plan new versions for every affected package.

        Args:
            affected_set: Changed plus cascaded packages.
            bump_policy: Asked once per versioning unit.

        Returns:
            The plan. Units whose bump is invalid are listed in ``errors`` and
            left out, so the rest of the plan can still be inspected.
        """
        plan = VersionBumpPlan()

        by_unit: dict[VersioningUnit, list[tuple[Package, ChangeEntry]]] = {}
        for entry in sorted(
            affected_set, key=lambda e: self.workspace.get_package(e.name).index
        ):
            pkg = self.workspace.get_package(entry.name)
            unit = pkg.unit
            if unit is None:
                plan.warnings.append(f"{pkg.name} is excluded from versioning; skipped")
                continue
            by_unit.setdefault(unit, []).append((pkg, entry))

        for unit, members in by_unit.items():
            try:
                self._plan_unit(plan, unit, members, bump_policy)
            except SemverError as e:
                logger.error("bump_invalid", unit=str(unit), error=e.message)
                plan.errors.append(e.message)

        plan.entries = dict(
            sorted(
                plan.entries.items(),
                key=lambda item: self.workspace.get_package(item[0]).index,
            )
        )
        self._plan_constraints(plan)

        for problem in plan.verify(self.workspace):
            plan.errors.append(problem)
        return plan

    def _plan_unit(
        self,
        plan: VersionBumpPlan,
        unit: VersioningUnit,
        members: list[tuple[Package, ChangeEntry]],
        bump_policy: BumpPolicyProvider,
    ) -> None:
        baseline = self.baseline(unit)
        if isinstance(baseline, Drifted):
            names = {pkg.name for pkg, _ in members}
            for name, version in baseline.members.items():
                status = "included" if name in names else "not part of this release"
                plan.warnings.append(
                    f"{name} {version} drifted from {unit} baseline {baseline.version} "
                    f"({status})"
                )

        request = UnitRequest(
            unit=unit,
            current_version=baseline.version,
            members=[pkg.name for pkg, _ in members],
            cascade_only=all(not entry.is_direct for _, entry in members),
        )
        decision = bump_policy.decide(request) or BumpDecision(BumpType.PATCH)

        label = None if unit.is_fixed else unit.name
        try:
            new_version = to_pep440(
                apply_bump(
                    parse_version(baseline.version),
                    decision.kind,
                    pre_id=decision.pre_id,
                    custom=decision.custom,
                )
            )
            ensure_greater(baseline.version, new_version)
        except SemverError as e:
            raise SemverError(f"{unit}: {e.message}", package=label) from e

        plan.unit_versions[unit] = new_version
        plan.baselines[unit] = baseline
        for pkg, entry in members:
            plan.entries[pkg.name] = PlannedVersion(
                name=pkg.name,
                old_version=pkg.version,
                new_version=new_version,
                unit=unit,
                decision=decision,
                change=entry,
            )
        logger.debug("unit_planned", unit=str(unit), version=new_version, bump=str(decision))

    def _plan_constraints(self, plan: VersionBumpPlan) -> None:
        for name, planned in plan.entries.items():
            pkg = self.workspace.get_package(name)
            plan.patches.append(
                ManifestPatch(
                    package=name,
                    package_path=pkg.path,
                    field=VERSION_FIELD,
                    old=planned.old_version,
                    new=planned.new_version,
                )
            )

        for dependent in self.workspace.packages.values():
            by_dep: dict[str, list[Dependency]] = {}
            for dep in dependent.dependencies:
                if dep.name in plan.entries:
                    by_dep.setdefault(dep.name, []).append(dep)

            for dep_name, declarations in by_dep.items():
                planned = plan.entries[dep_name]
                versioned = [d for d in declarations if not d.is_unversioned]
                if not versioned and not self.inject_unversioned:
                    plan.warnings.append(
                        f"{dependent.name} depends on {dep_name} without a version constraint"
                    )
                    continue

                exact = self.exact or any(d.is_exact for d in declarations)
                constraint = render_constraint(planned.new_version, exact=exact)
                old = versioned[0].specifier if versioned else ""
                if all(same_constraint(d.specifier, constraint) for d in declarations):
                    continue
                patch = ManifestPatch(
                    package=dependent.name,
                    package_path=dependent.path,
                    field=dependency_field(dep_name),
                    old=old,
                    new=constraint,
                )
                plan.patches.append(patch)
                planned.dependent_patches.append(patch)
