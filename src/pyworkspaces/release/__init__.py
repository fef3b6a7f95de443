"""Release transaction coordination."""

from pyworkspaces.release.coordinator import (
    ReleaseOptions,
    ReleaseReport,
    ReleaseTransaction,
    StepKind,
    StepRecord,
    StepStatus,
)

__all__ = [
    "ReleaseOptions",
    "ReleaseReport",
    "ReleaseTransaction",
    "StepKind",
    "StepRecord",
    "StepStatus",
]
