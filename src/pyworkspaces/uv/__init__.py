"""uv integration."""

from pyworkspaces.uv.client import get_uv_executable, run_uv_async
from pyworkspaces.uv.publish import artifacts_for, build, check_publishable, upload

__all__ = [
    "artifacts_for",
    "build",
    "check_publishable",
    "get_uv_executable",
    "run_uv_async",
    "upload",
]
