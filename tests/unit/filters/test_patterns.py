"""Test glob matching."""

from pyworkspaces.filters import GlobMatcher


def test_match_returns_pattern():
    matcher = GlobMatcher(["core-*", "api"])
    assert matcher.match("core-utils") == "core-*"
    assert matcher.match("api") == "api"
    assert matcher.match("app") is None


def test_empty_matcher():
    matcher = GlobMatcher()
    assert not matcher
    assert not matcher.matches("anything")


def test_trailing_slash_ignored():
    assert GlobMatcher(["packages/core/"]).matches("packages/core")


def test_matches_package_by_name_or_path():
    matcher = GlobMatcher(["my_pkg"])
    assert matcher.matches_package("my-pkg", "libs/x")

    matcher = GlobMatcher(["libs/*"])
    assert matcher.matches_package("anything", "libs/x")
    assert not matcher.matches_package("anything", "packages/x")


def test_matches_package_canonical_name():
    assert GlobMatcher(["my-pkg"]).matches_package("My.Pkg", "x")


def test_unmatched():
    matcher = GlobMatcher(["core-*", "nothing-*"])
    assert matcher.unmatched(["core-a", "api"]) == ["nothing-*"]
