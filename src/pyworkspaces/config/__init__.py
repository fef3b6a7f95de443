"""Workspace configuration."""

from pyworkspaces.config.loader import CONFIG_FILENAME, discover_config, find_config, load_config
from pyworkspaces.config.schema import (
    AvailabilityConfig,
    GroupConfig,
    PublishConfig,
    VersioningConfig,
    WorkspaceConfig,
)

__all__ = [
    "CONFIG_FILENAME",
    "AvailabilityConfig",
    "GroupConfig",
    "PublishConfig",
    "VersioningConfig",
    "WorkspaceConfig",
    "discover_config",
    "find_config",
    "load_config",
]
