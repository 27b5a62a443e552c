"""
Tool Install — verified installer state machine.

Every test runs against an in-memory FakeSource and a temp install
root; nothing touches the network.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from toolshed.core.errors import (
    AmbiguousAsset,
    AssetNotFound,
    ChecksumMismatch,
    FilesystemError,
    InstallCancelled,
    SourceUnavailable,
    UnarchiveError,
)
from toolshed.core.models.tool import (
    AssetSelector,
    GpgSignature,
    InlineChecksum,
    ProxyWrapper,
    SharedChecksums,
)
from toolshed.core.reliability.cancellation import CancellationToken
from toolshed.core.services.tool_install.execution.layout import InstallLayout
from toolshed.core.services.tool_install.orchestration.installer import VerifiedInstaller
from toolshed.core.services.tool_install.resolver.release_cache import ReleaseCache
from tests.tool_install.fake_sources import (
    DARWIN_ARM64,
    LINUX_AMD64,
    FakeSource,
    github_tool,
    sha256_hex,
    tar_gz,
    widget_files,
    zip_bytes,
)

WIDGET = github_tool(
    "widget",
    primary=AssetSelector(exclude=("sha256",)),
    verification=InlineChecksum(),
)

AWS = github_tool(
    "aws",
    primary=AssetSelector(include=(".zip",)),
    renames={"aws": "aws-cli"},
    executable_path="aws-cli/dist/aws",
    extra_links={"aws_completer": "aws-cli/dist/aws_completer"},
)


def _installer(layout: InstallLayout, source: FakeSource, *, plat=LINUX_AMD64, **kwargs) -> VerifiedInstaller:
    layout.ensure_dirs()
    return VerifiedInstaller(layout, ReleaseCache(lambda tool: source), plat=plat, **kwargs)


def _link_target(layout: InstallLayout, tool, link_name=None) -> Path:
    return Path(os.readlink(layout.symlink_path(tool, link_name)))


def _scratch_dirs(layout: InstallLayout, tool, version: str) -> list[str]:
    return [p.name for p in layout.version_dir(tool, version).iterdir() if p.name.startswith(".staging-")]


def _corrupt(files: dict[str, bytes]) -> dict[str, bytes]:
    files = dict(files)
    files["widget-linux-amd64.sha256"] = f"{'0' * 64}  widget-linux-amd64\n".encode()
    return files


class TestWidgetInstall:
    def test_installs_and_links_linux_asset(self, layout: InstallLayout):
        source = FakeSource("v1.0.0", widget_files())
        outcome = _installer(layout, source).install(WIDGET)

        assert outcome.ok
        assert outcome.version == "v1.0.0"
        assert source.downloaded == ["widget-linux-amd64", "widget-linux-amd64.sha256"]
        target = _link_target(layout, WIDGET)
        assert target == layout.version_dir(WIDGET, "v1.0.0") / "widget-linux-amd64"
        assert layout.installed_version(WIDGET) == "v1.0.0"

    def test_darwin_selects_darwin_asset(self, layout: InstallLayout):
        source = FakeSource("v1.0.0", widget_files())
        _installer(layout, source, plat=DARWIN_ARM64).install(WIDGET)
        assert source.downloaded == ["widget-darwin-arm64", "widget-darwin-arm64.sha256"]

    def test_reinstall_same_version_is_idempotent(self, layout: InstallLayout):
        source = FakeSource("v1.0.0", widget_files())
        installer = _installer(layout, source)
        installer.install(WIDGET)
        first = sorted(p.name for p in layout.version_dir(WIDGET, "v1.0.0").iterdir())

        installer.install(WIDGET)
        second = sorted(p.name for p in layout.version_dir(WIDGET, "v1.0.0").iterdir())

        assert first == second
        assert not [n for n in second if n.startswith(".")]
        assert layout.installed_version(WIDGET) == "v1.0.0"
        assert sorted(os.listdir(layout.latest_dir)) == ["widget"]

    def test_upgrade_keeps_old_version_dir(self, layout: InstallLayout):
        _installer(layout, FakeSource("v1.0.0", widget_files())).install(WIDGET)
        _installer(layout, FakeSource("v2.0.0", widget_files(b"v2"))).install(WIDGET)
        assert layout.installed_version(WIDGET) == "v2.0.0"
        assert layout.version_dir(WIDGET, "v1.0.0").is_dir()


class TestRelinkAtomicity:
    def test_failed_verify_keeps_previous_link(self, layout: InstallLayout):
        _installer(layout, FakeSource("v1.0.0", widget_files())).install(WIDGET)
        before = _link_target(layout, WIDGET)

        with pytest.raises(ChecksumMismatch):
            _installer(layout, FakeSource("v2.0.0", _corrupt(widget_files()))).install(WIDGET)

        assert _link_target(layout, WIDGET) == before
        assert layout.installed_version(WIDGET) == "v1.0.0"

    def test_failed_download_keeps_previous_link(self, layout: InstallLayout):
        _installer(layout, FakeSource("v1.0.0", widget_files())).install(WIDGET)
        broken = FakeSource("v2.0.0", widget_files(), fail_downloads={"widget-linux-amd64"})

        with pytest.raises(SourceUnavailable):
            _installer(layout, broken).install(WIDGET)

        assert layout.installed_version(WIDGET) == "v1.0.0"

    def test_failed_verify_of_same_version_keeps_live_binary(self, layout: InstallLayout):
        good = widget_files(b"GOOD")
        _installer(layout, FakeSource("v1.0.0", good)).install(WIDGET)
        tampered = {**good, "widget-linux-amd64": b"CORRUPT"}

        with pytest.raises(ChecksumMismatch):
            _installer(layout, FakeSource("v1.0.0", tampered)).install(WIDGET)

        assert layout.symlink_path(WIDGET).read_bytes() == b"GOOD"
        assert _scratch_dirs(layout, WIDGET, "v1.0.0") == []

    def test_tolerated_mismatch_of_same_version_keeps_live_binary(self, layout: InstallLayout):
        good = widget_files(b"GOOD")
        _installer(layout, FakeSource("v1.0.0", good)).install(WIDGET)
        tampered = {**good, "widget-linux-amd64": b"CORRUPT"}

        outcome = _installer(layout, FakeSource("v1.0.0", tampered)).install(WIDGET, on_mismatch="warn")

        assert outcome.status == "skipped"
        assert layout.symlink_path(WIDGET).read_bytes() == b"GOOD"

    def test_failed_unpack_keeps_previous_tree(self, layout: InstallLayout):
        archive = zip_bytes({"aws/dist/aws": b"aws", "aws/dist/aws_completer": b"completer"})
        _installer(layout, FakeSource("2.15.0", {"awscli-linux-x86_64.zip": archive})).install(AWS)

        with pytest.raises(UnarchiveError):
            _installer(layout, FakeSource("2.15.0", {"awscli-linux-x86_64.zip": b"not a zip"})).install(AWS)

        assert layout.symlink_path(AWS).read_bytes() == b"aws"
        assert layout.symlink_path(AWS, "aws_completer").read_bytes() == b"completer"
        assert _scratch_dirs(layout, AWS, "2.15.0") == []

    def test_ambiguous_release_is_never_installed(self, layout: InstallLayout):
        files = widget_files()
        files["widget-linux-amd64-debug"] = b"debug"
        with pytest.raises(AmbiguousAsset):
            _installer(layout, FakeSource("v1.0.0", files)).install(WIDGET)
        assert not os.path.lexists(layout.symlink_path(WIDGET))

    def test_missing_asset_for_platform(self, layout: InstallLayout):
        files = {k: v for k, v in widget_files().items() if "linux" not in k}
        with pytest.raises(AssetNotFound):
            _installer(layout, FakeSource("v1.0.0", files)).install(WIDGET)


class TestMismatchPolicy:
    def test_fail_policy_raises_with_manual_download_hint(self, layout: InstallLayout):
        source = FakeSource("v1.0.0", _corrupt(widget_files()))
        with pytest.raises(ChecksumMismatch) as exc:
            _installer(layout, source).install(WIDGET, on_mismatch="fail")
        assert exc.value.tool == "widget"
        assert "https://example.com/v1.0.0/widget-linux-amd64" in exc.value.hint

    def test_warn_policy_skips_without_linking(self, layout: InstallLayout):
        source = FakeSource("v1.0.0", _corrupt(widget_files()))
        outcome = _installer(layout, source).install(WIDGET, on_mismatch="warn")

        assert outcome.status == "skipped"
        assert outcome.hint
        assert not os.path.lexists(layout.symlink_path(WIDGET))
        vdir = layout.version_dir(WIDGET, "v1.0.0")
        assert (vdir / "unverified" / "widget-linux-amd64").exists()
        assert not (vdir / "widget-linux-amd64").exists()

    def test_tool_default_policy_applies(self, layout: InstallLayout):
        tool = WIDGET.model_copy(update={"on_checksum_mismatch": "warn"})
        outcome = _installer(layout, FakeSource("v1.0.0", _corrupt(widget_files()))).install(tool)
        assert outcome.status == "skipped"


class TestArchives:
    def test_tarball_with_shared_manifest(self, layout: InstallLayout):
        archive = tar_gz({"lint-1.0-linux-amd64/lint": b"bin", "lint-1.0-linux-amd64/LICENSE": b"MIT"})
        other = tar_gz({"lint-1.0-darwin-arm64/lint": b"bin"})
        manifest = (
            f"{sha256_hex(archive)}  lint-1.0-linux-amd64.tar.gz\n"
            f"{sha256_hex(other)}  lint-1.0-darwin-arm64.tar.gz\n"
        ).encode()
        files = {
            "lint-1.0-linux-amd64.tar.gz": archive,
            "lint-1.0-darwin-arm64.tar.gz": other,
            "lint-1.0-checksums.txt": manifest,
        }
        tool = github_tool(
            "lint",
            primary=AssetSelector(include=(".tar.gz",)),
            verification=SharedChecksums(selector=AssetSelector(match_platform=False, pattern=r"checksums\.txt$")),
            executable_path="{stem}/lint",
        )

        _installer(layout, FakeSource("v1.0", files)).install(tool)

        assert _link_target(layout, tool) == layout.version_dir(tool, "v1.0") / "lint-1.0-linux-amd64" / "lint"

    def test_zip_renames_and_extra_links(self, layout: InstallLayout):
        archive = zip_bytes({"aws/dist/aws": b"aws", "aws/dist/aws_completer": b"completer"})
        tool = AWS
        source = FakeSource("2.15.0", {"awscli-linux-x86_64.zip": archive})
        installer = _installer(layout, source)

        installer.install(tool)
        # the second run reuses the version dir, which already holds aws-cli/
        installer.install(tool)

        vdir = layout.version_dir(tool, "2.15.0")
        assert not (vdir / "aws").exists()
        assert _link_target(layout, tool) == vdir / "aws-cli" / "dist" / "aws"
        assert _link_target(layout, tool, "aws_completer") == vdir / "aws-cli" / "dist" / "aws_completer"

    def test_missing_executable_after_unpack(self, layout: InstallLayout):
        tool = github_tool("lint", primary=AssetSelector(include=(".tar.gz",)), executable_path="{stem}/lint")
        source = FakeSource("v1", {"lint-linux-amd64.tar.gz": tar_gz({"README": b"x"})})
        with pytest.raises(FilesystemError):
            _installer(layout, source).install(tool)

    def test_executable_path_cannot_escape_version_dir(self, layout: InstallLayout):
        tool = github_tool("widget", primary=AssetSelector(exclude=("sha256",)), executable_path="../../{asset}")
        with pytest.raises(FilesystemError):
            _installer(layout, FakeSource("v1", widget_files())).install(tool)

    def test_os_vars_fill_path_template(self, layout: InstallLayout):
        archive = zip_bytes({"pkg/linux/bin/tool": b"bin"})
        tool = github_tool(
            "tool",
            primary=AssetSelector(include=(".zip",)),
            executable_path="pkg/{bindir}/tool",
            os_vars={"linux": {"bindir": "linux/bin"}},
        )
        _installer(layout, FakeSource("1", {"tool-linux-amd64.zip": archive})).install(tool)
        assert layout.installed_version(tool) == "1"


class TestWrapperAndSignature:
    def test_wrapper_is_linked_instead_of_binary(self, layout: InstallLayout):
        tool = WIDGET.model_copy(update={"wrapper": ProxyWrapper(proxy="squid.example.com:3128")})
        _installer(layout, FakeSource("v1.0.0", widget_files())).install(tool)

        launcher = layout.version_dir(tool, "v1.0.0") / "widget"
        assert _link_target(layout, tool) == launcher
        assert "HTTPS_PROXY" in launcher.read_text()

    def test_signing_key_fetched_once(self, layout: InstallLayout, monkeypatch):
        verified = []
        monkeypatch.setattr(
            "toolshed.core.services.tool_install.orchestration.installer.verify_detached_signature",
            lambda path, sig, key, tool=None: verified.append((path.name, sig.name, key)) or "FPR",
        )
        keys = []

        def key_loader(url: str) -> bytes:
            keys.append(url)
            return b"KEY"

        tool = github_tool(
            "butane",
            primary=AssetSelector(exclude=(".asc",)),
            verification=GpgSignature(key_url="https://example.com/key.gpg"),
        )
        files = {"butane-x86_64-unknown-linux-gnu": b"bin", "butane-x86_64-unknown-linux-gnu.asc": b"sig"}
        installer = _installer(layout, FakeSource("v0.20.0", files), key_loader=key_loader)

        installer.install(tool)
        installer.install(tool)

        assert keys == ["https://example.com/key.gpg"]
        assert verified[0] == ("butane-x86_64-unknown-linux-gnu", "butane-x86_64-unknown-linux-gnu.asc", b"KEY")


class TestCancellation:
    def test_cancelled_token_stops_before_download(self, layout: InstallLayout):
        token = CancellationToken()
        token.cancel()
        source = FakeSource("v1.0.0", widget_files())
        with pytest.raises(InstallCancelled):
            _installer(layout, source).install(WIDGET, cancel=token)
        assert source.downloaded == []
        assert not os.path.lexists(layout.symlink_path(WIDGET))
