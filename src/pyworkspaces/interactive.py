"""Interactive terminal prompts."""

from __future__ import annotations

import questionary
from questionary import Choice, Style

from pyworkspaces.errors import PyWorkspacesError, SemverError
from pyworkspaces.versioning.policy import BumpDecision, UnitRequest
from pyworkspaces.versioning.versions import BumpType, bump_candidates, parse_version

CUSTOM_PRERELEASE = "custom-prerelease"
CUSTOM_VERSION = "custom-version"


def get_style() -> Style:
    """Style used for every prompt."""
    return Style(
        [
            ("qmark", "fg:#673ab7 bold"),
            ("question", "bold"),
            ("answer", "fg:#f44336 bold"),
            ("pointer", "fg:#673ab7 bold"),
            ("highlighted", "fg:#673ab7 bold"),
            ("selected", "fg:#cc5454"),
            ("separator", "fg:#cc5454"),
            ("instruction", "fg:#888888"),
        ]
    )


def _validate_version(value: str) -> bool | str:
    try:
        parse_version(value)
    except SemverError as e:
        return e.message
    return True


class QuestionaryBumpPolicyProvider:
    """Ask the user for a bump, once per versioning unit.

    Offers every standard bump of the unit's current version, a prerelease
    with a chosen identifier, and an exact custom version.

    Attributes:
        pre_id: Identifier used for the ``pre*`` candidates.
    """

    def __init__(self, pre_id: str | None = None) -> None:
        self.pre_id = pre_id
        self.style = get_style()

    def _ask(self, question: questionary.Question) -> str:
        answer = question.ask()
        if answer is None:
            raise PyWorkspacesError("Version selection cancelled")
        return answer

    def decide(self, request: UnitRequest) -> BumpDecision | None:
        """Prompt for the bump of one unit.

        Raises:
            PyWorkspacesError: If the user cancels the prompt.
        """
        choices = [
            Choice(title=f"{kind.value.ljust(10)} {version}", value=kind.value)
            for kind, version in bump_candidates(request.current_version, self.pre_id)
        ]
        choices.append(Choice(title="Custom prerelease", value=CUSTOM_PRERELEASE))
        choices.append(Choice(title="Custom version", value=CUSTOM_VERSION))

        suffix = " (dependency update only)" if request.cascade_only else ""
        answer = self._ask(
            questionary.select(
                f"Select a new version for {request.unit} "
                f"(currently {request.current_version}){suffix}",
                choices=choices,
                style=self.style,
            )
        )

        if answer == CUSTOM_PRERELEASE:
            identifier = self._ask(
                questionary.text(
                    "Enter a prerelease identifier",
                    default=self.pre_id or "",
                    validate=lambda v: bool(v.strip()) or "Identifier must not be empty",
                    style=self.style,
                )
            )
            return BumpDecision(BumpType.PRERELEASE, pre_id=identifier.strip())

        if answer == CUSTOM_VERSION:
            version = self._ask(
                questionary.text(
                    "Enter a custom version",
                    validate=_validate_version,
                    style=self.style,
                )
            )
            return BumpDecision(BumpType.CUSTOM, custom=version.strip())

        return BumpDecision(BumpType(answer), pre_id=self.pre_id)
