"""Version parsing and bump arithmetic.

Arithmetic runs on :class:`semver.Version`. Every version written back to a
manifest or looked up on an index is the PEP 440 rendering of the result,
so the two notations meet here and nowhere else:

- ``1.2.3-alpha.0`` (semver) is written as ``1.2.3a0``
- ``1.2.3-rc.4`` is written as ``1.2.3rc4``
- ``1.2.3-dev.1`` is written as ``1.2.3.dev1``
"""

from __future__ import annotations

from enum import Enum

import semver
from packaging.version import InvalidVersion
from packaging.version import Version as Pep440Version

from pyworkspaces.errors import SemverError

DEFAULT_PRE_ID = "alpha"

_PEP440_PRE_IDS = {"a": "alpha", "b": "beta", "rc": "rc"}


class BumpType(Enum):
    """Kinds of version bump."""

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    PREPATCH = "prepatch"
    PREMINOR = "preminor"
    PREMAJOR = "premajor"
    PRERELEASE = "prerelease"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str) -> BumpType:
        """Look up a bump type by name, case-insensitively.

        Raises:
            SemverError: If the name is unknown.
        """
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            choices = ", ".join(b.value for b in cls)
            raise SemverError(f"Unknown bump type '{value}' (expected one of {choices})") from e


def parse_version(value: str) -> semver.Version:
    """Parse a semantic version, accepting PEP 440 spellings too.

    Args:
        value: ``1.2.3``, ``1.2.3-rc.1``, ``1.2.3rc1``, ``1.2`` ...

    Returns:
        Parsed version.

    Raises:
        SemverError: If the value is neither valid semver nor a PEP 440
            version expressible as semver (epochs and post releases are not).
    """
    value = value.strip()
    if semver.Version.is_valid(value):
        return semver.Version.parse(value)

    try:
        pep = Pep440Version(value)
    except InvalidVersion as e:
        raise SemverError(f"'{value}' is not a valid version") from e

    if pep.epoch or pep.post is not None or len(pep.release) > 3:
        raise SemverError(f"'{value}' cannot be expressed as a semantic version")

    major, minor, patch = (*pep.release, 0, 0)[:3]
    prerelease: str | None = None
    if pep.pre is not None:
        letter, number = pep.pre
        prerelease = f"{_PEP440_PRE_IDS[letter]}.{number}"
    elif pep.dev is not None:
        prerelease = f"dev.{pep.dev}"
    return semver.Version(major, minor, patch, prerelease=prerelease, build=pep.local)


def to_pep440(version: semver.Version | str) -> str:
    """Render a semantic version as a normalized PEP 440 string.

    Raises:
        SemverError: If the prerelease part has no PEP 440 equivalent.
    """
    text = str(version)
    try:
        return str(Pep440Version(text))
    except InvalidVersion as e:
        raise SemverError(f"'{text}' is not a valid PEP 440 version") from e


def inc_patch(version: semver.Version) -> semver.Version:
    """Next patch release; a patch prerelease just drops its prerelease part."""
    if version.prerelease:
        return version.replace(prerelease=None, build=None)
    return version.bump_patch()


def inc_minor(version: semver.Version) -> semver.Version:
    """Next minor release; ``x.y.0-pre`` finalizes to ``x.y.0``."""
    if version.prerelease and version.patch == 0:
        return version.replace(prerelease=None, build=None)
    return version.bump_minor()


def inc_major(version: semver.Version) -> semver.Version:
    """Next major release; ``x.0.0-pre`` finalizes to ``x.0.0``."""
    if version.prerelease and version.minor == 0 and version.patch == 0:
        return version.replace(prerelease=None, build=None)
    return version.bump_major()


def _pre_parts(version: semver.Version) -> list[str]:
    return version.prerelease.split(".") if version.prerelease else []


def inc_pre(version: semver.Version, pre_id: str | None = None) -> str:
    """Prerelease part attached by the ``pre*`` bumps.

    Keeps the current alphanumeric identifier, restarts a numeric one, and
    falls back to ``pre_id`` (default ``alpha``) for a release version.
    """
    parts = _pre_parts(version)
    if not parts:
        return f"{pre_id or DEFAULT_PRE_ID}.0"
    if parts[0].isdigit():
        return "0"
    return f"{parts[0]}.0"


def inc_preid(version: semver.Version, pre_id: str) -> semver.Version:
    """Next prerelease for identifier ``pre_id``.

    Examples:
        ``3.0.0`` with ``beta`` gives ``3.0.1-beta.0``;
        ``3.0.0-beta.3`` with ``beta`` gives ``3.0.0-beta.4``;
        ``3.0.0-alpha.19`` with ``beta`` gives ``3.0.0-beta.0``.
    """
    parts = _pre_parts(version)
    if not parts:
        return version.bump_patch().replace(prerelease=f"{pre_id}.0")

    first = parts[0]
    if not first.isdigit():
        counter = 0
        if first == pre_id and len(parts) > 1 and parts[1].isdigit():
            counter = int(parts[1]) + 1
        return version.replace(prerelease=f"{pre_id}.{counter}", build=None)

    if first != pre_id:
        return version.replace(prerelease=f"{pre_id}.0", build=None)

    # numeric identifier: bump the last numeric component
    for i in range(len(parts) - 1, -1, -1):
        if parts[i].isdigit():
            parts[i] = str(int(parts[i]) + 1)
            break
    return version.replace(prerelease=".".join(parts), build=None)


def custom_pre(version: semver.Version) -> tuple[str, semver.Version]:
    """Continue the current prerelease line, or start an ``alpha`` one.

    Returns:
        Tuple of (identifier used, next version).
    """
    parts = _pre_parts(version)
    pre_id = parts[0] if parts else DEFAULT_PRE_ID
    return pre_id, inc_preid(version, pre_id)


def apply_bump(
    version: semver.Version,
    bump: BumpType,
    *,
    pre_id: str | None = None,
    custom: str | None = None,
) -> semver.Version:
    """Apply a bump to a parsed version.

    Args:
        version: Current version.
        bump: Kind of bump.
        pre_id: Prerelease identifier for the ``pre*`` kinds.
        custom: Target for ``custom``.

    Returns:
        New version.

    Raises:
        SemverError: If ``custom`` is missing or invalid.
    """
    if bump is BumpType.PATCH:
        return inc_patch(version)
    if bump is BumpType.MINOR:
        return inc_minor(version)
    if bump is BumpType.MAJOR:
        return inc_major(version)
    if bump is BumpType.PREPATCH:
        return version.bump_patch().replace(prerelease=inc_pre(version, pre_id))
    if bump is BumpType.PREMINOR:
        return version.bump_minor().replace(prerelease=inc_pre(version, pre_id))
    if bump is BumpType.PREMAJOR:
        return version.bump_major().replace(prerelease=inc_pre(version, pre_id))
    if bump is BumpType.PRERELEASE:
        if pre_id:
            return inc_preid(version, pre_id)
        return custom_pre(version)[1]
    if not custom:
        raise SemverError("A custom bump needs a target version")
    return parse_version(custom)


def bump_version(
    current: str,
    bump: BumpType,
    *,
    pre_id: str | None = None,
    custom: str | None = None,
) -> str:
    """Bump a version string and render the result for a manifest.

    Raises:
        SemverError: If either version is invalid, the result is not a valid
            PEP 440 version, or the result is not greater than ``current``.
    """
    new = to_pep440(apply_bump(parse_version(current), bump, pre_id=pre_id, custom=custom))
    ensure_greater(current, new)
    return new


def ensure_greater(current: str, new: str, *, package: str | None = None) -> None:
    """Raise unless ``new`` sorts strictly after ``current`` on an index.

    Raises:
        SemverError: If ``new`` is not greater.
    """
    try:
        newer = Pep440Version(new) > Pep440Version(current)
    except InvalidVersion as e:
        raise SemverError(str(e), package=package) from e
    if not newer:
        who = f"{package}: " if package else ""
        raise SemverError(
            f"{who}new version {new} is not greater than current version {current}",
            package=package,
        )


def bump_candidates(current: str, pre_id: str | None = None) -> list[tuple[BumpType, str]]:
    """Every standard bump of ``current`` that renders as a valid PEP 440 version.

    Used to offer choices; kinds whose result is invalid are left out.
    """
    version = parse_version(current)
    result: list[tuple[BumpType, str]] = []
    for bump in (
        BumpType.PATCH,
        BumpType.MINOR,
        BumpType.MAJOR,
        BumpType.PREPATCH,
        BumpType.PREMINOR,
        BumpType.PREMAJOR,
    ):
        try:
            result.append((bump, to_pep440(apply_bump(version, bump, pre_id=pre_id))))
        except SemverError:
            continue
    return result
