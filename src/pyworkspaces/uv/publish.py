"""Build and upload packages with uv."""

from __future__ import annotations

from pathlib import Path

from pyworkspaces.compat import read_toml
from pyworkspaces.errors import PublishError
from pyworkspaces.uv.client import run_uv_async

REQUIRED_FIELDS = ("name", "version")
RECOMMENDED_FIELDS = ("description", "readme", "license")


async def build(
    package_path: Path,
    *,
    name: str,
    version: str,
    out_dir: Path | None = None,
) -> Path:
    """Build an sdist and wheel for a package.

    Args:
        package_path: Package directory.
        name: Package name, for error reporting.
        version: Package version, for error reporting.
        out_dir: Output directory, defaults to ``<package>/dist``.

    Returns:
        The directory holding the built artifacts.

    Raises:
        PublishError: If the build fails.
    """
    out_dir = out_dir or package_path / "dist"
    code, _, stderr = await run_uv_async(
        ["build", "--out-dir", str(out_dir), str(package_path)], cwd=package_path
    )
    if code != 0:
        raise PublishError(
            f"uv build failed for {name}: {stderr.strip() or f'exit code {code}'}",
            package=name,
            version=version,
        )
    return out_dir


def artifacts_for(dist_dir: Path, name: str, version: str) -> list[Path]:
    """Built files in ``dist_dir`` belonging to one name and version."""
    stem = name.replace("-", "_").lower()
    return sorted(
        p
        for p in dist_dir.iterdir()
        if p.is_file()
        and p.name.lower().replace("-", "_").startswith(f"{stem}_{version}".lower())
        and (p.suffix == ".whl" or p.name.endswith(".tar.gz"))
    )


async def upload(
    files: list[Path],
    *,
    name: str,
    version: str,
    publish_url: str | None = None,
    token: str | None = None,
) -> None:
    """Upload built artifacts with ``uv publish``.

    Raises:
        PublishError: If there is nothing to upload or the index rejects it.
    """
    if not files:
        raise PublishError(
            f"No artifacts to upload for {name} {version}", package=name, version=version
        )

    args = ["publish"]
    if publish_url:
        args.extend(["--publish-url", publish_url])
    if token:
        args.extend(["--token", token])
    args.extend(str(f) for f in files)

    code, _, stderr = await run_uv_async(args)
    if code != 0:
        raise PublishError(
            f"uv publish rejected {name} {version}: {stderr.strip() or f'exit code {code}'}",
            package=name,
            version=version,
        )


def check_publishable(package_path: Path) -> list[str]:
    """List problems that would make an upload fail or look broken.

    Returns:
        Missing required fields first, then missing recommended fields.
    """
    manifest = package_path / "pyproject.toml"
    if not manifest.is_file():
        return [f"Missing {manifest.name}"]
    project = read_toml(manifest).get("project", {})
    issues = [f"Missing required field: project.{f}" for f in REQUIRED_FIELDS if f not in project]
    issues.extend(
        f"Missing recommended field: project.{f}" for f in RECOMMENDED_FIELDS if f not in project
    )
    return issues
