"""uv subprocess helpers."""

from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path

from pyworkspaces.errors import PyWorkspacesError


def get_uv_executable() -> str:
    """Locate the uv binary.

    Raises:
        PyWorkspacesError: If uv is not on PATH.
    """
    uv = os.environ.get("UV") or shutil.which("uv")
    if not uv:
        raise PyWorkspacesError("uv is not installed or not on PATH")
    return uv


async def run_uv_async(
    args: list[str],
    cwd: Path | None = None,
    *,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a uv command asynchronously.

    Args:
        args: uv command arguments (without 'uv').
        cwd: Working directory.
        env: Extra environment variables.

    Returns:
        Tuple of (exit_code, stdout, stderr).
    """
    cmd = [get_uv_executable(), *args]
    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env={**os.environ, **(env or {})},
    )
    stdout_bytes, stderr_bytes = await process.communicate()
    return (
        process.returncode or 0,
        stdout_bytes.decode("utf-8", errors="replace"),
        stderr_bytes.decode("utf-8", errors="replace"),
    )
