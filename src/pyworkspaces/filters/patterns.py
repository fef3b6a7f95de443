"""Precompiled glob matching for package names and paths."""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Iterable

from packaging.utils import canonicalize_name


class GlobMatcher:
    """A set of shell-style globs compiled once into regular expressions.

    Attributes:
        patterns: The source patterns, in configuration order.
    """

    def __init__(self, patterns: Iterable[str] | None = None) -> None:
        self.patterns = [p.rstrip("/") for p in (patterns or []) if p]
        self._compiled = [re.compile(fnmatch.translate(p)) for p in self.patterns]

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __repr__(self) -> str:
        return f"GlobMatcher({self.patterns!r})"

    def match(self, value: str) -> str | None:
        """Return the first pattern matching ``value``, or None."""
        for pattern, regex in zip(self.patterns, self._compiled, strict=True):
            if regex.match(value):
                return pattern
        return None

    def matches(self, value: str) -> bool:
        """Check if any pattern matches ``value``."""
        return self.match(value) is not None

    def matches_package(self, name: str, rel_path: str) -> bool:
        """Check a package by name, canonical name, and relative path.

        Args:
            name: Distribution name as declared in the manifest.
            rel_path: Package directory relative to the workspace root.
        """
        candidates = (name, canonicalize_name(name), name.replace("-", "_"), rel_path)
        return any(self.matches(c) for c in candidates)

    def unmatched(self, values: Iterable[str]) -> list[str]:
        """Patterns that match none of ``values``."""
        values = list(values)
        return [
            pattern
            for pattern, regex in zip(self.patterns, self._compiled, strict=True)
            if not any(regex.match(v) for v in values)
        ]
