"""Configuration discovery and loading."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from pyworkspaces.config.schema import WorkspaceConfig
from pyworkspaces.errors import ConfigError, WorkspaceNotFoundError

CONFIG_FILENAME = "pyworkspaces.yaml"


def find_config(start: Path | None = None) -> Path:
    """Walk upward from ``start`` looking for the config file.

    Args:
        start: Directory to start from. Defaults to the current directory.

    Returns:
        Path to the config file.

    Raises:
        WorkspaceNotFoundError: If no config file exists up to the filesystem root.
    """
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    raise WorkspaceNotFoundError(str(start))


def load_config(path: Path) -> WorkspaceConfig:
    """Read and validate a config file.

    Args:
        path: Path to ``pyworkspaces.yaml``.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If the file cannot be parsed or fails validation.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    data.setdefault("name", path.parent.name)
    try:
        return WorkspaceConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}") from e


def discover_config(start: Path | None = None) -> tuple[Path, WorkspaceConfig]:
    """Find and load the nearest configuration.

    Returns:
        Tuple of (workspace root, config).
    """
    path = find_config(start)
    return path.parent, load_config(path)
