"""Dependency constraint rendering and checking."""

from __future__ import annotations

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from pyworkspaces.errors import SemverError


def next_breaking(version: str) -> str:
    """First version that caret semantics treat as incompatible.

    Examples:
        ``1.2.3`` gives ``2.0.0``, ``0.2.3`` gives ``0.3.0``, ``0.0.3`` gives ``0.0.4``.
    """
    try:
        parsed = Version(version)
    except InvalidVersion as e:
        raise SemverError(str(e)) from e
    major, minor, patch = (*parsed.release, 0, 0)[:3]
    if major:
        return f"{major + 1}.0.0"
    if minor:
        return f"0.{minor + 1}.0"
    return f"0.0.{patch + 1}"


def render_constraint(version: str, *, exact: bool = False) -> str:
    """Specifier a dependent should carry for ``version``.

    Args:
        version: PEP 440 version of the dependency.
        exact: Pin with ``==`` instead of a caret-style range.

    Returns:
        ``==V`` or ``>=V,<NEXT_BREAKING``.
    """
    normalized = str(Version(version))
    if exact:
        return f"=={normalized}"
    return f">={normalized},<{next_breaking(normalized)}"


def satisfies(specifier: str, version: str) -> bool:
    """Check a specifier against a version, prereleases included.

    An empty specifier accepts everything.
    """
    try:
        return SpecifierSet(specifier, prereleases=True).contains(version, prereleases=True)
    except (InvalidSpecifier, InvalidVersion):
        return False


def same_constraint(a: str, b: str) -> bool:
    """Compare two specifiers regardless of clause order."""
    try:
        return SpecifierSet(a) == SpecifierSet(b)
    except InvalidSpecifier:
        return a == b
