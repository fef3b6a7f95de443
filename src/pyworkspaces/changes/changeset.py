"""Change set model."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class ChangeReason(Enum):
    """Why a package needs a new version."""

    DIFF = "diff"
    FORCED = "forced"
    CASCADE = "cascade"
    NO_PRIOR_RELEASE = "no-prior-release"

    @property
    def is_direct(self) -> bool:
        return self is not ChangeReason.CASCADE


@dataclass(frozen=True)
class ChangeEntry:
    """A package flagged as changed.

    Attributes:
        name: Package name.
        reason: Why it was flagged.
        files: Changed files that caused a ``diff`` entry.
        triggered_by: Upstream package that pulled a ``cascade`` entry in.
        reference: The git reference the package was compared against.
    """

    name: str
    reason: ChangeReason
    files: tuple[str, ...] = ()
    triggered_by: str | None = None
    reference: str | None = None

    @property
    def is_direct(self) -> bool:
        return self.reason.is_direct


@dataclass
class ChangeSet:
    """Ordered mapping of package name to change entry.

    A direct entry is never replaced by a cascade entry, so the reason a
    package was first flagged for its own changes survives expansion.
    """

    entries: dict[str, ChangeEntry] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def add(self, entry: ChangeEntry) -> bool:
        """Add an entry.

        Returns:
            True if the set changed.
        """
        existing = self.entries.get(entry.name)
        if existing is not None and (existing.is_direct or not entry.is_direct):
            return False
        self.entries[entry.name] = entry
        return True

    def get(self, name: str) -> ChangeEntry | None:
        return self.entries.get(name)

    def copy(self) -> ChangeSet:
        return ChangeSet(entries=dict(self.entries), warnings=list(self.warnings))

    @property
    def names(self) -> set[str]:
        return set(self.entries)

    @property
    def direct(self) -> list[ChangeEntry]:
        return [e for e in self.entries.values() if e.is_direct]

    @property
    def cascaded(self) -> list[ChangeEntry]:
        return [e for e in self.entries.values() if not e.is_direct]

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __iter__(self) -> Iterator[ChangeEntry]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChangeSet):
            return NotImplemented
        return self.entries == other.entries
