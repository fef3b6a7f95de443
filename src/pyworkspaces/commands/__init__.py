"""pyworkspaces commands."""

from pyworkspaces.commands.base import Command, CommandContext, SyncCommand
from pyworkspaces.commands.changed import (
    ChangedCommand,
    ChangedOptions,
    ChangedPackage,
    ChangedResult,
    compute_change_set,
    handle_changed_command,
)
from pyworkspaces.commands.list import (
    ListCommand,
    ListOptions,
    ListResult,
    PackageInfo,
    handle_list_command,
    list_packages,
)
from pyworkspaces.commands.publish import (
    PublishOptions,
    SchedulePublishCommand,
    handle_publish_command,
    schedule_publish,
)
from pyworkspaces.commands.version import (
    PlanResult,
    PlanVersionsCommand,
    ReleaseCommand,
    VersionOptions,
    bump_provider,
    execute_release,
    handle_version_command,
    plan_versions,
)

__all__ = [
    # Base
    "Command",
    "SyncCommand",
    "CommandContext",
    # List
    "ListCommand",
    "ListOptions",
    "ListResult",
    "PackageInfo",
    "list_packages",
    "handle_list_command",
    # Changed
    "ChangedCommand",
    "ChangedOptions",
    "ChangedResult",
    "ChangedPackage",
    "compute_change_set",
    "handle_changed_command",
    # Version
    "PlanResult",
    "PlanVersionsCommand",
    "ReleaseCommand",
    "VersionOptions",
    "bump_provider",
    "execute_release",
    "handle_version_command",
    "plan_versions",
    # Publish
    "PublishOptions",
    "SchedulePublishCommand",
    "handle_publish_command",
    "schedule_publish",
]
