"""
Tool Install — in-memory release sources and asset builders.

Shared by the installer, registry and CLI tests so that nothing
touches the network.
"""

from __future__ import annotations

import hashlib
import io
import tarfile
import zipfile
from pathlib import Path

from toolshed.adapters.sources.base import ReleaseSource, local_path
from toolshed.core.errors import SourceUnavailable
from toolshed.core.models.release import Release, ReleaseAsset
from toolshed.core.models.tool import GithubSourceSpec, ToolSpec
from toolshed.core.services.tool_install.detection.platform_info import Platform

LINUX_AMD64 = Platform(os="linux", arch="amd64")
DARWIN_ARM64 = Platform(os="darwin", arch="arm64")


class FakeSource(ReleaseSource):
    """A release whose assets are held in memory.

    Args:
        tag: Release tag.
        files: Asset name → content.
        error: If set, every query raises ``SourceUnavailable(error)``.
        fail_downloads: Asset names whose download fails.
    """

    def __init__(self, tag="v1.0.0", files=None, *, error=None, fail_downloads=()):
        super().__init__(timeout=1)
        self.tag = tag
        self.files = dict(files or {})
        self.error = error
        self.fail_downloads = set(fail_downloads)
        self.release_calls = 0
        self.downloaded: list[str] = []

    @property
    def name(self) -> str:
        return "fake"

    def latest_release(self) -> Release:
        self.release_calls += 1
        if self.error:
            raise SourceUnavailable(self.error)
        assets = tuple(
            ReleaseAsset(name=n, id=n, size=len(c), url=f"https://example.com/{self.tag}/{n}")
            for n, c in self.files.items()
        )
        return Release(tag=self.tag, assets=assets)

    def _download_one(self, asset: ReleaseAsset, dest_dir: Path) -> Path:
        if asset.name in self.fail_downloads:
            raise SourceUnavailable(f"GET '{asset.url}' returned HTTP 404 Not Found")
        path = local_path(dest_dir, asset.name)
        path.write_bytes(self.files[asset.name])
        path.chmod(0o755)
        self.downloaded.append(asset.name)
        return path


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def tar_gz(members: dict[str, bytes], mode: int = 0o755) -> bytes:
    """A .tar.gz with regular files at ``mode``."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def zip_bytes(members: dict[str, bytes], mode: int | None = 0o755) -> bytes:
    """A .zip whose entries carry unix ``mode`` (or none at all)."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            info = zipfile.ZipInfo(name)
            if mode is None:
                # a DOS-made entry: archive attribute only, no unix bits
                info.create_system = 0
                info.external_attr = 0x20
            else:
                info.create_system = 3
                info.external_attr = (0o100000 | mode) << 16
            zf.writestr(info, data)
    return buf.getvalue()


def widget_files(binary: bytes = b"#!/bin/sh\necho widget\n") -> dict[str, bytes]:
    """The four-asset widget release, with correct inline checksums."""
    other = b"darwin build"
    return {
        "widget-linux-amd64": binary,
        "widget-linux-amd64.sha256": f"{sha256_hex(binary)}  widget-linux-amd64\n".encode(),
        "widget-darwin-arm64": other,
        "widget-darwin-arm64.sha256": f"{sha256_hex(other)}  widget-darwin-arm64\n".encode(),
    }


def github_tool(name: str, **kwargs) -> ToolSpec:
    return ToolSpec(name=name, source=GithubSourceSpec(owner="example", repo=name), **kwargs)
