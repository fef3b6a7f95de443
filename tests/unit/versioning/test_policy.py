"""Tests for bump policy providers."""

import pytest

from pyworkspaces.errors import SemverError
from pyworkspaces.versioning.policy import BumpDecision, StaticBumpPolicyProvider, UnitRequest
from pyworkspaces.versioning.versions import BumpType
from pyworkspaces.workspace.package import UnitKind, VersioningUnit

GROUP = VersioningUnit(UnitKind.GROUP, "g")
LINE = VersioningUnit(UnitKind.WORKSPACE, "default")


class TestBumpDecision:
    def test_parse_kind(self):
        assert BumpDecision.parse("minor") == BumpDecision(BumpType.MINOR)

    def test_parse_prerelease_identifier(self):
        decision = BumpDecision.parse("prerelease:beta")
        assert decision.kind is BumpType.PRERELEASE
        assert decision.pre_id == "beta"

    def test_parse_falls_back_to_pre_id(self):
        assert BumpDecision.parse("preminor", pre_id="rc").pre_id == "rc"

    def test_parse_custom(self):
        decision = BumpDecision.parse("custom:2.0.0")
        assert decision.kind is BumpType.CUSTOM
        assert decision.custom == "2.0.0"

    def test_parse_custom_without_version(self):
        with pytest.raises(SemverError, match="custom bump needs a version"):
            BumpDecision.parse("custom")

    def test_str_round_trip(self):
        for text in ("patch", "prerelease:beta", "custom:1.2.3"):
            assert str(BumpDecision.parse(text)) == text


class TestStaticProvider:
    def test_per_unit_then_default(self):
        provider = StaticBumpPolicyProvider(
            default=BumpDecision(BumpType.PATCH),
            per_unit={"g": BumpDecision(BumpType.MAJOR)},
        )
        assert provider.decide(UnitRequest(GROUP, "1.0.0")).kind is BumpType.MAJOR
        assert provider.decide(UnitRequest(LINE, "1.0.0")).kind is BumpType.PATCH

    def test_no_answer(self):
        assert StaticBumpPolicyProvider().decide(UnitRequest(LINE, "1.0.0")) is None

    def test_from_config(self):
        provider = StaticBumpPolicyProvider.from_config({"default": "minor", "g": "custom:3.0.0"})
        assert provider.decide(UnitRequest(LINE, "1.0.0")) == BumpDecision(BumpType.MINOR)
        assert provider.decide(UnitRequest(GROUP, "1.0.0")).custom == "3.0.0"

    def test_from_config_rejects_unknown_kind(self):
        with pytest.raises(SemverError):
            StaticBumpPolicyProvider.from_config({"g": "giant"})
