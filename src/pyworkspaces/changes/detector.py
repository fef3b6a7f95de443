"""Change detection against version control."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from pyworkspaces.changes.changeset import ChangeEntry, ChangeReason, ChangeSet
from pyworkspaces.filters import GlobMatcher
from pyworkspaces.log import get_logger
from pyworkspaces.workspace.package import Package, UnitKind

if TYPE_CHECKING:
    from pyworkspaces.git.client import VersionControl
    from pyworkspaces.workspace.workspace import Workspace

logger = get_logger(__name__)


class ChangeDetector:
    """Decide which packages changed since their last release.

    Attributes:
        workspace: Loaded workspace.
        vcs: Version control capability.
        include_merged_tags: Consider tags reachable only through merged
            branches when looking for the last release.
    """

    def __init__(
        self,
        workspace: Workspace,
        vcs: VersionControl,
        *,
        include_merged_tags: bool = False,
    ) -> None:
        self.workspace = workspace
        self.vcs = vcs
        self.include_merged_tags = include_merged_tags
        self._tag_cache: dict[str, str | None] = {}

    def tag_patterns(self, pkg: Package) -> list[str]:
        """Tag globs that mark a release of ``pkg``, most specific first."""
        versioning = self.workspace.config.versioning
        patterns: list[str] = []
        unit = pkg.unit
        if unit is not None and unit.kind is UnitKind.GROUP:
            patterns.append(versioning.group_tag(unit.name, "*"))
        patterns.append(versioning.individual_tag(pkg.name, "*"))
        if unit is None or unit.kind is not UnitKind.GROUP:
            patterns.append(versioning.global_tag("*"))
        return patterns

    def _latest_tag(self, pattern: str) -> str | None:
        if pattern not in self._tag_cache:
            self._tag_cache[pattern] = self.vcs.latest_tag(
                pattern, first_parent=not self.include_merged_tags
            )
        return self._tag_cache[pattern]

    def last_release(self, pkg: Package) -> str | None:
        """The most recent release tag covering ``pkg``, or None."""
        for pattern in self.tag_patterns(pkg):
            tag = self._latest_tag(pattern)
            if tag is not None:
                return tag
        return None

    def changed_since(
        self,
        reference: str | None = None,
        packages: Iterable[Package] | None = None,
        ignore_globs: Sequence[str] = (),
        force_globs: Sequence[str] = (),
    ) -> ChangeSet:
        """Flag packages changed since ``reference``.

        A package is flagged when a file under its directory changed and the
        file matches none of ``ignore_globs``, or when its name or path
        matches ``force_globs``. ``force`` wins over ``ignore``.

        Args:
            reference: Explicit git reference. When None, each package is
                compared against its own last release tag.
            packages: Packages to check. Defaults to every non-excluded member.
            ignore_globs: File globs whose changes never count.
            force_globs: Package globs always flagged.

        Returns:
            Change set of direct changes, in discovery order.

        Raises:
            VcsError: If an explicit reference cannot be resolved.
        """
        if packages is None:
            packages = self.workspace.member_packages()
        packages = sorted(packages, key=lambda p: p.index)

        ignore = GlobMatcher(ignore_globs)
        force = GlobMatcher(force_globs)
        change_set = ChangeSet()

        if reference is not None:
            self.vcs.resolve(reference)

        untagged: list[str] = []
        for pkg in packages:
            ref = reference if reference is not None else self.last_release(pkg)

            if force.matches_package(pkg.name, pkg.rel_path):
                change_set.add(ChangeEntry(pkg.name, ChangeReason.FORCED, reference=ref))
                continue

            if ref is None:
                untagged.append(pkg.name)
                change_set.add(ChangeEntry(pkg.name, ChangeReason.NO_PRIOR_RELEASE))
                continue

            files = [
                f
                for f in self.vcs.diff_paths(ref, None, pkg.rel_path)
                if not self._ignored(ignore, f, pkg)
            ]
            if files:
                change_set.add(
                    ChangeEntry(pkg.name, ChangeReason.DIFF, files=tuple(files), reference=ref)
                )

        if untagged:
            message = (
                "No prior release tag found; treating as first release: " + ", ".join(untagged)
            )
            logger.warning("no_prior_release", packages=untagged)
            change_set.warnings.append(message)

        logger.debug("changes_detected", packages=sorted(change_set.names))
        return change_set

    @staticmethod
    def _ignored(ignore: GlobMatcher, file: str, pkg: Package) -> bool:
        if not ignore:
            return False
        if ignore.matches(file):
            return True
        prefix = pkg.rel_path.rstrip("/") + "/"
        return file.startswith(prefix) and ignore.matches(file[len(prefix) :])
