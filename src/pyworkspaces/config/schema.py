"""Pydantic models for pyworkspaces.yaml."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

RESERVED_GROUP_NAMES = frozenset({"default", "excluded"})


class GroupConfig(BaseModel):
    """A named set of packages sharing one version line."""

    model_config = ConfigDict(extra="forbid")

    name: str
    members: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if value in RESERVED_GROUP_NAMES:
            raise ValueError(f"group name '{value}' is reserved")
        if ":" in value or " " in value:
            raise ValueError(f"group name '{value}' must not contain ':' or spaces")
        if not value:
            raise ValueError("group name must not be empty")
        return value


class VersioningConfig(BaseModel):
    """Versioning and git tagging settings."""

    model_config = ConfigDict(extra="forbid")

    exact: bool = False
    inject_unversioned: bool = False
    commit_message: str = "Release {version}"
    tag_prefix: str = "v"
    group_tag_format: str = "{group}-v{version}"
    individual_tag_format: str = "{name}@v{version}"
    tag_message: str | None = None
    individual_tag_message: str | None = None
    no_individual_tags: bool = False
    no_global_tag: bool = False
    tag_private: bool = False
    include_merged_tags: bool = False
    ignore_changes: list[str] = Field(default_factory=list)
    force: list[str] = Field(default_factory=list)
    bump: dict[str, str] = Field(default_factory=dict)

    def global_tag(self, version: str) -> str:
        """Name of the workspace-wide tag for a version."""
        return f"{self.tag_prefix}{version}"

    def group_tag(self, group: str, version: str) -> str:
        """Name of a group tag for a version."""
        return self.group_tag_format.format(group=group, version=version)

    def individual_tag(self, name: str, version: str) -> str:
        """Name of a per-package tag for a version."""
        return self.individual_tag_format.format(name=name, version=version)


class AvailabilityConfig(BaseModel):
    """Backoff settings for registry availability polling."""

    model_config = ConfigDict(extra="forbid")

    initial_delay: float = Field(default=1.0, gt=0)
    max_delay: float = Field(default=30.0, gt=0)
    max_attempts: int = Field(default=12, ge=1)


class PublishConfig(BaseModel):
    """Registry publish settings."""

    model_config = ConfigDict(extra="forbid")

    registry: str | None = None
    index_url: str = "https://pypi.org"
    concurrency: int = Field(default=4, ge=1)
    fail_fast: bool = True
    skip_published: bool = True
    availability: AvailabilityConfig = Field(default_factory=AvailabilityConfig)


class WorkspaceConfig(BaseModel):
    """Root configuration model.

    Attributes:
        name: Workspace name.
        packages: Member globs, relative to the workspace root. Empty means
            fall back to ``[tool.uv.workspace].members``.
        exclude: Globs of member paths that never receive versions.
        groups: Named version groups.
        allow_branch: Glob of branches releases may be cut from.
        strict: Turn unmatched globs into errors.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    packages: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    groups: list[GroupConfig] = Field(default_factory=list)
    allow_branch: str = "master"
    strict: bool = False
    versioning: VersioningConfig = Field(default_factory=VersioningConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

    @field_validator("groups")
    @classmethod
    def _unique_groups(cls, value: list[GroupConfig]) -> list[GroupConfig]:
        seen: set[str] = set()
        for group in value:
            if group.name in seen:
                raise ValueError(f"duplicate group name '{group.name}'")
            seen.add(group.name)
        return value

    def get_group(self, name: str) -> GroupConfig | None:
        """Look up a group by name."""
        for group in self.groups:
            if group.name == name:
                return group
        return None
