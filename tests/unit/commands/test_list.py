"""Tests for list command."""

from __future__ import annotations

import io
import json
from pathlib import Path

from rich.console import Console

from pyworkspaces.commands.base import CommandContext
from pyworkspaces.commands.list import (
    ListCommand,
    ListOptions,
    handle_list_command,
    list_packages,
)
from pyworkspaces.workspace.workspace import Workspace


def make_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


class TestListCommand:
    """Tests for ListCommand."""

    def test_lists_in_discovery_order(self, workspace: Workspace) -> None:
        """Packages keep discovery order."""
        result = list_packages(workspace)

        assert [p.name for p in result.packages] == ["pkg-a", "pkg-b", "pkg-c"]

    def test_includes_version_and_path(self, workspace: Workspace) -> None:
        """Each entry carries version and workspace-relative path."""
        result = list_packages(workspace)

        pkg_a = result.packages[0]
        assert pkg_a.version == "0.1.0"
        assert pkg_a.path == "packages/pkg-a"
        assert pkg_a.independent is True

    def test_includes_group_and_edges(self, workspace: Workspace) -> None:
        """Group membership and workspace edges in both directions."""
        result = list_packages(workspace)
        by_name = {p.name: p for p in result.packages}

        assert by_name["pkg-b"].group == "g"
        assert by_name["pkg-b"].dependents == ["pkg-c"]
        assert by_name["pkg-c"].dependencies == ["pkg-b"]
        assert by_name["pkg-a"].dependencies == []

    def test_private_hidden_by_default(
        self, workspace_dir: Path, add_package, reload_workspace
    ) -> None:
        """Private packages need include_private."""
        add_package(workspace_dir, "packages/pkg-a", "pkg-a", private=True)
        workspace = reload_workspace(workspace_dir)

        assert "pkg-a" not in [p.name for p in list_packages(workspace).packages]
        context = CommandContext(workspace=workspace)
        result = ListCommand(context, ListOptions(include_private=True)).execute()
        assert result.packages[0].name == "pkg-a"
        assert result.packages[0].private is True

    def test_excluded_hidden_by_default(self, workspace_dir: Path, reload_workspace) -> None:
        """Excluded packages need include_excluded."""
        config = workspace_dir / "pyworkspaces.yaml"
        config.write_text(config.read_text() + "exclude:\n  - packages/pkg-a\n")
        workspace = reload_workspace(workspace_dir)

        assert [p.name for p in list_packages(workspace).packages] == ["pkg-b", "pkg-c"]
        result = list_packages(workspace, include_excluded=True)
        assert [p.name for p in result.packages] == ["pkg-a", "pkg-b", "pkg-c"]


class TestHandleList:
    """Tests for the list output."""

    def test_names(self, workspace: Workspace) -> None:
        """Plain output is one name per line."""
        console, buffer = make_console()
        error_console, _ = make_console()

        handle_list_command(workspace, console=console, error_console=error_console)

        assert buffer.getvalue().splitlines() == ["pkg-a", "pkg-b", "pkg-c"]

    def test_json(self, workspace: Workspace) -> None:
        """JSON output is machine readable."""
        console, buffer = make_console()
        error_console, _ = make_console()

        handle_list_command(
            workspace, console=console, error_console=error_console, json_output=True
        )

        data = json.loads(buffer.getvalue())
        assert [p["name"] for p in data] == ["pkg-a", "pkg-b", "pkg-c"]
        assert data[2]["dependencies"] == ["pkg-b"]
        assert data[1]["group"] == "g"

    def test_long_table(self, workspace: Workspace) -> None:
        """Long output renders a table with versions."""
        console, buffer = make_console()
        error_console, _ = make_console()

        handle_list_command(workspace, console=console, error_console=error_console, long=True)

        output = buffer.getvalue()
        assert "Packages" in output
        assert "0.1.0" in output
        assert "independent" in output
