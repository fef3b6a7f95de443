"""Compatibility layer for Python version differences."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

# tomllib ships with Python 3.11+, tomli backs 3.10
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]


def read_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML file into plain Python data.

    Args:
        path: File to read.

    Returns:
        Parsed document.
    """
    with open(path, "rb") as f:
        return tomllib.load(f)


__all__ = ["read_toml", "tomllib"]
