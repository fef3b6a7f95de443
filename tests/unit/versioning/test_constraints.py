"""Tests for dependency constraint rendering."""

import pytest

from pyworkspaces.versioning.constraints import next_breaking, render_constraint, satisfies


@pytest.mark.parametrize(
    ("version", "expected"),
    [("1.2.3", "2.0.0"), ("0.2.3", "0.3.0"), ("0.0.3", "0.0.4"), ("2.0.0rc1", "3.0.0")],
)
def test_next_breaking(version, expected):
    assert next_breaking(version) == expected


def test_render_caret_range():
    assert render_constraint("0.2.0") == ">=0.2.0,<0.3.0"
    assert render_constraint("1.4.0") == ">=1.4.0,<2.0.0"


def test_render_exact():
    assert render_constraint("1.4.0", exact=True) == "==1.4.0"


def test_render_normalizes():
    assert render_constraint("1.4.0-rc.1", exact=True) == "==1.4.0rc1"


def test_satisfies():
    assert satisfies(">=0.2.0,<0.3.0", "0.2.0")
    assert not satisfies(">=0.1.0,<0.2.0", "0.2.0")


def test_satisfies_prereleases():
    assert satisfies(">=1.0.0a0", "1.0.0a1")


def test_satisfies_empty_accepts_all():
    assert satisfies("", "9.9.9")


def test_satisfies_invalid_input():
    assert not satisfies("not a spec", "1.0.0")
