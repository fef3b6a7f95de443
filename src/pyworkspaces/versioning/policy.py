"""Bump policy providers.

A provider is asked once per versioning unit which bump to apply. The
planner does not care whether the answer comes from configuration, command
line flags, or a human at a prompt.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from pyworkspaces.errors import SemverError
from pyworkspaces.versioning.versions import BumpType
from pyworkspaces.workspace.package import VersioningUnit


@dataclass(frozen=True)
class BumpDecision:
    """A bump chosen for one versioning unit.

    Attributes:
        kind: Bump kind.
        pre_id: Prerelease identifier for the ``pre*`` kinds.
        custom: Exact target version for ``custom``.
    """

    kind: BumpType
    pre_id: str | None = None
    custom: str | None = None

    @classmethod
    def parse(cls, value: str, *, pre_id: str | None = None) -> BumpDecision:
        """Parse ``patch``, ``prerelease:beta`` or ``custom:1.2.3`` style values.

        Raises:
            SemverError: If the kind is unknown or ``custom`` has no target.
        """
        kind_text, _, arg = value.partition(":")
        kind = BumpType.parse(kind_text)
        if kind is BumpType.CUSTOM:
            if not arg:
                raise SemverError("custom bump needs a version, e.g. 'custom:1.2.3'")
            return cls(kind, custom=arg.strip())
        return cls(kind, pre_id=arg.strip() or pre_id)

    def __str__(self) -> str:
        if self.kind is BumpType.CUSTOM:
            return f"custom:{self.custom}"
        if self.pre_id and self.kind is not BumpType.PATCH:
            return f"{self.kind.value}:{self.pre_id}"
        return self.kind.value


@dataclass
class UnitRequest:
    """What a provider is told about the unit it is deciding for.

    Attributes:
        unit: The versioning unit.
        current_version: Baseline version of the unit.
        members: Names of unit members being released.
        cascade_only: True when every member is in the release only because
            a dependency changed.
    """

    unit: VersioningUnit
    current_version: str
    members: list[str] = field(default_factory=list)
    cascade_only: bool = False


class BumpPolicyProvider(Protocol):
    """Decides the bump for each versioning unit."""

    def decide(self, request: UnitRequest) -> BumpDecision | None:
        """Return a decision, or None to accept the default patch bump."""
        ...


class StaticBumpPolicyProvider:
    """Answers from a fixed mapping.

    Attributes:
        default: Decision for units missing from ``per_unit``.
        per_unit: Decisions keyed by unit name (``default`` for the
            workspace line).
    """

    def __init__(
        self,
        default: BumpDecision | None = None,
        per_unit: Mapping[str, BumpDecision] | None = None,
    ) -> None:
        self.default = default
        self.per_unit = dict(per_unit or {})

    @classmethod
    def from_config(
        cls,
        bump_map: Mapping[str, str],
        default: BumpDecision | None = None,
    ) -> StaticBumpPolicyProvider:
        """Build from the ``versioning.bump`` config map."""
        return cls(default, {unit: BumpDecision.parse(v) for unit, v in bump_map.items()})

    def decide(self, request: UnitRequest) -> BumpDecision | None:
        return self.per_unit.get(request.unit.name, self.default)
