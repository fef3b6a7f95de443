"""Version arithmetic, bump policies and planning."""

from pyworkspaces.versioning.constraints import (
    next_breaking,
    render_constraint,
    same_constraint,
    satisfies,
)
from pyworkspaces.versioning.planner import (
    Drifted,
    ManifestPatch,
    PlannedVersion,
    Synced,
    VersionBumpPlan,
    VersionBumpPlanner,
)
from pyworkspaces.versioning.policy import (
    BumpDecision,
    BumpPolicyProvider,
    StaticBumpPolicyProvider,
    UnitRequest,
)
from pyworkspaces.versioning.versions import (
    BumpType,
    bump_candidates,
    bump_version,
    custom_pre,
    inc_major,
    inc_minor,
    inc_patch,
    inc_preid,
    parse_version,
    to_pep440,
)

__all__ = [
    "BumpDecision",
    "BumpPolicyProvider",
    "BumpType",
    "Drifted",
    "ManifestPatch",
    "PlannedVersion",
    "StaticBumpPolicyProvider",
    "Synced",
    "UnitRequest",
    "VersionBumpPlan",
    "VersionBumpPlanner",
    "bump_candidates",
    "bump_version",
    "custom_pre",
    "inc_major",
    "inc_minor",
    "inc_patch",
    "inc_preid",
    "next_breaking",
    "parse_version",
    "render_constraint",
    "same_constraint",
    "satisfies",
    "to_pep440",
]
