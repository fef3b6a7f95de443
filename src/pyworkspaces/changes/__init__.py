"""Change detection."""

from pyworkspaces.changes.changeset import ChangeEntry, ChangeReason, ChangeSet
from pyworkspaces.changes.detector import ChangeDetector

__all__ = ["ChangeDetector", "ChangeEntry", "ChangeReason", "ChangeSet"]
