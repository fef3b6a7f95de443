"""Tests for config schema module."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pyworkspaces.config.schema import (
    AvailabilityConfig,
    GroupConfig,
    PublishConfig,
    VersioningConfig,
    WorkspaceConfig,
)


class TestGroupConfig:
    """Tests for GroupConfig."""

    def test_minimal_group(self) -> None:
        """Group with a name only."""
        group = GroupConfig(name="core")
        assert group.members == []

    @pytest.mark.parametrize("name", ["default", "excluded"])
    def test_reserved_names(self, name: str) -> None:
        """Built-in group names cannot be declared."""
        with pytest.raises(ValidationError, match="reserved"):
            GroupConfig(name=name)

    @pytest.mark.parametrize("name", ["a:b", "a b"])
    def test_invalid_characters(self, name: str) -> None:
        """Group names end up in tags and bump keys."""
        with pytest.raises(ValidationError):
            GroupConfig(name=name)

    def test_unknown_key(self) -> None:
        """Typos are rejected."""
        with pytest.raises(ValidationError):
            GroupConfig(name="g", member=["x"])  # type: ignore[call-arg]


class TestVersioningConfig:
    """Tests for VersioningConfig."""

    def test_defaults(self) -> None:
        """Defaults match the conventional tag layout."""
        config = VersioningConfig()
        assert config.exact is False
        assert config.commit_message == "Release {version}"
        assert config.bump == {}

    def test_tag_names(self) -> None:
        """Tag helpers render the configured formats."""
        config = VersioningConfig()
        assert config.global_tag("1.2.0") == "v1.2.0"
        assert config.group_tag("core", "1.2.0") == "core-v1.2.0"
        assert config.individual_tag("pkg-a", "1.2.0") == "pkg-a@v1.2.0"

    def test_custom_tag_formats(self) -> None:
        """Formats and prefix can be overridden."""
        config = VersioningConfig(
            tag_prefix="release-",
            group_tag_format="{group}/{version}",
            individual_tag_format="{name}-{version}",
        )
        assert config.global_tag("2.0.0") == "release-2.0.0"
        assert config.group_tag("core", "2.0.0") == "core/2.0.0"
        assert config.individual_tag("pkg", "2.0.0") == "pkg-2.0.0"


class TestPublishConfig:
    """Tests for PublishConfig."""

    def test_defaults(self) -> None:
        """Default publish targets PyPI."""
        config = PublishConfig()
        assert config.index_url == "https://pypi.org"
        assert config.registry is None
        assert config.concurrency == 4
        assert config.fail_fast is True
        assert config.availability == AvailabilityConfig()

    def test_concurrency_must_be_positive(self) -> None:
        """At least one upload runs at a time."""
        with pytest.raises(ValidationError):
            PublishConfig(concurrency=0)

    def test_availability_bounds(self) -> None:
        """Backoff values must be positive."""
        with pytest.raises(ValidationError):
            AvailabilityConfig(initial_delay=0)
        with pytest.raises(ValidationError):
            AvailabilityConfig(max_attempts=0)


class TestWorkspaceConfig:
    """Tests for WorkspaceConfig."""

    def test_minimal(self) -> None:
        """Only the name is required."""
        config = WorkspaceConfig(name="ws")
        assert config.packages == []
        assert config.allow_branch == "master"
        assert config.strict is False
        assert isinstance(config.versioning, VersioningConfig)

    def test_nested_sections(self) -> None:
        """Nested mappings are validated into models."""
        config = WorkspaceConfig.model_validate(
            {
                "name": "ws",
                "groups": [{"name": "core", "members": ["packages/core-*"]}],
                "versioning": {"exact": True, "bump": {"core": "minor"}},
                "publish": {"availability": {"max_attempts": 3}},
            }
        )
        assert config.get_group("core") == GroupConfig(name="core", members=["packages/core-*"])
        assert config.get_group("missing") is None
        assert config.versioning.bump == {"core": "minor"}
        assert config.publish.availability.max_attempts == 3

    def test_duplicate_groups(self) -> None:
        """Group names must be unique."""
        with pytest.raises(ValidationError, match="duplicate group name 'core'"):
            WorkspaceConfig(name="ws", groups=[GroupConfig(name="core"), GroupConfig(name="core")])

    def test_unknown_top_level_key(self) -> None:
        """Unknown keys are errors rather than silently ignored."""
        with pytest.raises(ValidationError):
            WorkspaceConfig.model_validate({"name": "ws", "scripts": {}})
