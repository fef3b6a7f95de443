"""Release transaction: manifests, commit, tags, push.

Every externally visible action is recorded in a step log. A failed step
stops the remaining ones; nothing already written, committed or tagged is
reverted, so the log tells the operator exactly where to resume.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

from pyworkspaces.errors import PyWorkspacesError, ReleaseError
from pyworkspaces.log import get_logger
from pyworkspaces.manifest import ManifestStore
from pyworkspaces.workspace.package import UnitKind

if TYPE_CHECKING:
    from pyworkspaces.git.client import VersionControl
    from pyworkspaces.versioning.planner import VersionBumpPlan
    from pyworkspaces.workspace.workspace import Workspace

logger = get_logger(__name__)

INDEPENDENT_RELEASE = "independent packages"


class StepKind(Enum):
    APPLY_MANIFESTS = "apply-manifests"
    COMMIT = "commit"
    TAG = "tag"
    PUSH = "push"


class StepStatus(Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepRecord:
    """One attempted action.

    Attributes:
        kind: Phase of the release.
        status: Outcome.
        target: What the action touched (manifest path, tag name, remote).
        detail: Error text for a failure, reason for a skip.
    """

    kind: StepKind
    status: StepStatus
    target: str | None = None
    detail: str = ""


@dataclass
class ReleaseOptions:
    """Which release steps to run and how.

    Attributes:
        commit: Commit the patched manifests.
        amend: Amend the previous commit instead of creating one.
        message: Commit message template, overrides the configured one.
        tag: Create tags.
        tag_existing: Tag even when no commit is made (HEAD as it is).
        global_tag: Create the workspace-wide tag.
        group_tags: Create one tag per released group.
        individual_tags: Create one tag per released package.
        tag_private: Also tag private packages.
        push: Push the branch and tags.
        remote: Remote to push to.
        branch: Branch to push, defaults to the current one.
    """

    commit: bool = True
    amend: bool = False
    message: str | None = None
    tag: bool = True
    tag_existing: bool = False
    global_tag: bool = True
    group_tags: bool = True
    individual_tags: bool = True
    tag_private: bool = False
    push: bool = True
    remote: str = "origin"
    branch: str | None = None


@dataclass
class ReleaseReport:
    """Outcome of a release transaction.

    Attributes:
        steps: Every attempted action, in order.
        error: Description of the failed step.
        commit_sha: Release commit, when one was made.
        tags: Tags created.
        manifests: Manifests written.
        warnings: Non-fatal findings.
    """

    steps: list[StepRecord] = field(default_factory=list)
    error: str | None = None
    commit_sha: str | None = None
    tags: list[str] = field(default_factory=list)
    manifests: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def errors(self) -> list[str]:
        return [self.error] if self.error else []

    @property
    def completed(self) -> list[StepRecord]:
        return [s for s in self.steps if s.status is StepStatus.COMPLETED]

    @property
    def failed_step(self) -> StepRecord | None:
        for step in self.steps:
            if step.status is StepStatus.FAILED:
                return step
        return None

    def record(
        self,
        kind: StepKind,
        status: StepStatus,
        target: str | None = None,
        detail: str = "",
    ) -> None:
        self.steps.append(StepRecord(kind, status, target, detail))


class _StepFailed(Exception):
    pass


class ReleaseTransaction:
    """Run the release steps for a version plan.

    Attributes:
        workspace: Loaded workspace.
        vcs: Version control capability.
        store: Manifest store.
        options: Step toggles.
    """

    def __init__(
        self,
        workspace: Workspace,
        vcs: VersionControl,
        store: ManifestStore,
        options: ReleaseOptions | None = None,
    ) -> None:
        self.workspace = workspace
        self.vcs = vcs
        self.store = store
        self.options = options or ReleaseOptions()
        self.versioning = workspace.config.versioning

    def execute(self, plan: VersionBumpPlan) -> ReleaseReport:
        """Apply the plan.

        Args:
            plan: A plan without errors.

        Returns:
            Step log and outcome. Step failures are reported here, not raised.

        Raises:
            ReleaseError: If the plan has errors; nothing is touched then.
        """
        if plan.errors:
            raise ReleaseError(
                "Refusing to release an invalid plan: " + "; ".join(plan.errors),
                step=StepKind.APPLY_MANIFESTS.value,
            )

        report = ReleaseReport()
        phases = [
            (StepKind.APPLY_MANIFESTS, True, self._apply_manifests),
            (StepKind.COMMIT, self.options.commit, self._commit),
            (
                StepKind.TAG,
                self.options.tag and (self.options.commit or self.options.tag_existing),
                self._tag,
            ),
            (StepKind.PUSH, self.options.push, self._push),
        ]

        failed = False
        for kind, enabled, run in phases:
            if not enabled:
                continue
            if failed:
                report.record(kind, StepStatus.SKIPPED, detail="earlier step failed")
                continue
            try:
                run(plan, report)
            except _StepFailed:
                failed = True

        if failed:
            logger.error(
                "release_failed",
                step=report.failed_step.kind.value if report.failed_step else None,
                completed=len(report.completed),
            )
        return report

    def _fail(
        self,
        report: ReleaseReport,
        kind: StepKind,
        target: str | None,
        err: Exception,
    ) -> NoReturn:
        detail = str(err)
        report.record(kind, StepStatus.FAILED, target, detail)
        where = f" for {target}" if target else ""
        report.error = f"{kind.value} failed{where}: {detail}"
        raise _StepFailed from err

    def _apply_manifests(self, plan: VersionBumpPlan, report: ReleaseReport) -> None:
        for package_path, updates in plan.manifest_updates().items():
            target = str(package_path)
            try:
                manifest = self.store.patch(package_path, updates)
            except (PyWorkspacesError, OSError) as e:
                self._fail(report, StepKind.APPLY_MANIFESTS, target, e)
            report.manifests.append(manifest)
            report.record(StepKind.APPLY_MANIFESTS, StepStatus.COMPLETED, str(manifest))
            logger.info("manifest_patched", path=str(manifest), fields=sorted(updates))

    def commit_message(self, plan: VersionBumpPlan) -> str:
        """Render the commit message template.

        ``{version}`` is the workspace version, or "independent packages" when
        the workspace line is not part of the release. ``{packages}`` lists
        every ``name@version``.
        """
        template = self.options.message or self.versioning.commit_message
        return template.format(
            version=plan.global_version or INDEPENDENT_RELEASE,
            packages=self._package_list(plan),
        )

    @property
    def tag_private(self) -> bool:
        return self.options.tag_private or self.versioning.tag_private

    def _package_list(self, plan: VersionBumpPlan) -> str:
        return ", ".join(
            f"{name}@{entry.new_version}"
            for name, entry in plan.entries.items()
            if self.tag_private or not self.workspace.get_package(name).private
        )

    def _commit(self, plan: VersionBumpPlan, report: ReleaseReport) -> None:
        if not report.manifests:
            logger.info("commit_skipped", reason="no manifests written")
            report.record(StepKind.COMMIT, StepStatus.SKIPPED, detail="no manifests written")
            return
        try:
            sha = self.vcs.commit(
                report.manifests, self.commit_message(plan), amend=self.options.amend
            )
        except (PyWorkspacesError, KeyError, IndexError) as e:
            self._fail(report, StepKind.COMMIT, None, e)
        report.commit_sha = sha
        report.record(StepKind.COMMIT, StepStatus.COMPLETED, sha)

    def planned_tags(self, plan: VersionBumpPlan) -> list[tuple[str, str]]:
        """Tags the release creates, as (name, message) pairs."""
        versioning = self.versioning
        tags: list[tuple[str, str]] = []

        if self.options.global_tag and not versioning.no_global_tag and plan.global_version:
            name = versioning.global_tag(plan.global_version)
            message = (
                versioning.tag_message.format(
                    version=plan.global_version, packages=self._package_list(plan)
                )
                if versioning.tag_message
                else name
            )
            tags.append((name, message))

        if self.options.group_tags:
            for unit, version in plan.unit_versions.items():
                if unit.kind is UnitKind.GROUP:
                    name = versioning.group_tag(unit.name, version)
                    tags.append((name, name))

        if self.options.individual_tags and not versioning.no_individual_tags:
            for name, entry in plan.entries.items():
                if self.workspace.get_package(name).private and not self.tag_private:
                    continue
                tag = versioning.individual_tag(name, entry.new_version)
                message = (
                    versioning.individual_tag_message.format(
                        name=name, version=entry.new_version
                    )
                    if versioning.individual_tag_message
                    else tag
                )
                tags.append((tag, message))
        return tags

    def _tag(self, plan: VersionBumpPlan, report: ReleaseReport) -> None:
        try:
            tags = self.planned_tags(plan)
        except (KeyError, IndexError) as e:
            self._fail(report, StepKind.TAG, None, e)

        for name, message in tags:
            try:
                if self.vcs.tag_exists(name):
                    logger.info("tag_exists_skip", tag=name)
                    report.record(StepKind.TAG, StepStatus.SKIPPED, name, "tag already exists")
                    continue
                self.vcs.tag(name, message)
            except PyWorkspacesError as e:
                self._fail(report, StepKind.TAG, name, e)
            report.tags.append(name)
            report.record(StepKind.TAG, StepStatus.COMPLETED, name)

    def _push(self, plan: VersionBumpPlan, report: ReleaseReport) -> None:
        remote = self.options.remote
        try:
            branch = self.options.branch or self.vcs.current_branch()
            self.vcs.push(remote, [branch])
        except PyWorkspacesError as e:
            self._fail(report, StepKind.PUSH, remote, e)
        report.record(StepKind.PUSH, StepStatus.COMPLETED, f"{remote}/{branch}")
