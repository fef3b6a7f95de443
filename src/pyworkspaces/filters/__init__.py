"""Glob filters."""

from pyworkspaces.filters.patterns import GlobMatcher

__all__ = ["GlobMatcher"]
