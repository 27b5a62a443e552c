"""
Tool Install — asset matcher tests.

Pure functions, no I/O: platform matching with aliases, term and
regex filters, and the exactly-one rule.
"""

from __future__ import annotations

import pytest

from toolshed.core.errors import AmbiguousAsset, AssetNotFound, ConfigurationError
from toolshed.core.models.release import ReleaseAsset
from toolshed.core.models.tool import AssetSelector
from toolshed.core.services.tool_install.domain.asset_matching import (
    containing,
    exactly_one,
    excluding_any,
    match_arch,
    match_arch_and_os,
    match_os,
    matching_pattern,
    select,
    select_one,
)
from tests.tool_install.fake_sources import DARWIN_ARM64, LINUX_AMD64

WIDGET = [
    "widget-linux-amd64",
    "widget-linux-amd64.sha256",
    "widget-darwin-arm64",
    "widget-darwin-arm64.sha256",
]


class TestPlatformMatching:
    def test_arch_alias_x86_64_matches_amd64(self):
        assert match_arch(["tool-x86_64"], "amd64") == ["tool-x86_64"]

    def test_arch_canonical_name(self):
        assert match_arch(["tool-amd64"], "amd64") == ["tool-amd64"]

    def test_arch_alias_is_symmetric(self):
        assert match_arch(["tool-amd64"], "x86_64") == ["tool-amd64"]

    def test_arch_without_alias_matches_only_itself(self):
        assert match_arch(["tool-aarch64", "tool-arm64"], "arm64") == ["tool-arm64"]

    def test_arch_is_case_insensitive(self):
        assert match_arch(["Tool_Linux_X86_64.tar.gz"], "amd64") == ["Tool_Linux_X86_64.tar.gz"]

    def test_os_alias_mac_matches_darwin(self):
        assert match_os(["tool-mac"], "darwin") == ["tool-mac"]

    def test_os_is_case_insensitive(self):
        assert match_os(["tool_Linux_x86_64"], "linux") == ["tool_Linux_x86_64"]

    def test_arch_and_os_is_intersection(self):
        assets = ["tool-linux-amd64", "tool-linux-arm64", "tool-darwin-amd64"]
        assert match_arch_and_os(assets, LINUX_AMD64) == ["tool-linux-amd64"]

    def test_accepts_release_assets(self):
        assets = [ReleaseAsset(name="tool-linux-amd64"), ReleaseAsset(name="tool-darwin-arm64")]
        result = match_arch_and_os(assets, DARWIN_ARM64)
        assert [a.name for a in result] == ["tool-darwin-arm64"]


class TestTermFilters:
    def test_containing_requires_all_terms(self):
        assets = ["a.tar.gz", "a.tar.gz.sha256", "a.zip"]
        assert containing(assets, [".tar.gz", "sha256"]) == ["a.tar.gz.sha256"]

    def test_excluding_any(self):
        assets = ["a", "a.sha256", "a.asc"]
        assert excluding_any(assets, ["sha256", ".asc"]) == ["a"]

    def test_matching_pattern_searches_full_name(self):
        assets = ["checksums", "checksums_hashes_order", "yq_linux_amd64"]
        assert matching_pattern(assets, r"^checksums$") == ["checksums"]

    def test_invalid_pattern_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            matching_pattern(["a"], "(")

    def test_select_preserves_order(self):
        selector = AssetSelector(exclude=("sha256",))
        assert select(WIDGET, selector, LINUX_AMD64) == ["widget-linux-amd64"]


class TestExactlyOne:
    def test_single_match(self):
        assert exactly_one(["a"], "primary") == "a"

    def test_no_match_raises_not_found(self):
        with pytest.raises(AssetNotFound):
            exactly_one([], "primary", tool="widget")

    def test_two_matches_raise_ambiguous(self):
        with pytest.raises(AmbiguousAsset) as exc:
            exactly_one(["a", "b"], "checksum")
        assert exc.value.matches == ["a", "b"]

    def test_never_picks_first_of_many(self):
        with pytest.raises(AmbiguousAsset):
            select_one(WIDGET, AssetSelector(), "primary", plat=LINUX_AMD64)


class TestWidgetScenario:
    def test_linux_amd64_resolves_linux_pair(self):
        primary = select_one(WIDGET, AssetSelector(exclude=("sha256",)), "primary", plat=LINUX_AMD64)
        checksum = select_one(WIDGET, AssetSelector(include=("sha256",)), "checksum", plat=LINUX_AMD64)
        assert primary == "widget-linux-amd64"
        assert checksum == "widget-linux-amd64.sha256"

    def test_no_darwin_asset_selected_on_linux(self):
        selected = select(WIDGET, AssetSelector(), LINUX_AMD64)
        assert not any("darwin" in name for name in selected)
