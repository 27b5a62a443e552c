"""
Direct-URL source — vendors that publish one fixed download per OS.

The version still comes from GitHub (the project's newest tag); the
download itself is a templated vendor URL.
"""

from __future__ import annotations

from pathlib import Path

from toolshed.adapters.sources.base import ReleaseSource, local_path
from toolshed.adapters.sources.github import GithubSource
from toolshed.adapters.sources.http import download_to
from toolshed.core.errors import AssetNotFound
from toolshed.core.models.release import Release, ReleaseAsset
from toolshed.core.models.tool import UrlSourceSpec
from toolshed.core.services.tool_install.data.constants import DEFAULT_TIMEOUT
from toolshed.core.services.tool_install.detection.platform_info import (
    Platform,
    current_platform,
)


class UrlSource(ReleaseSource):
    def __init__(
        self,
        spec: UrlSourceSpec,
        *,
        token: str | None = None,
        plat: Platform | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        version_source: ReleaseSource | None = None,
    ):
        super().__init__(timeout)
        self.spec = spec
        self.plat = plat or current_platform()
        self.version_source = version_source or GithubSource(
            spec.version_repo.owner,
            spec.version_repo.repo,
            token=token,
            version_from_tag=True,
            timeout=timeout,
        )

    @property
    def name(self) -> str:
        return f"url:{self.spec.version_repo.slug}"

    def latest_version(self) -> str:
        return self.version_source.latest_version()

    def latest_release(self) -> Release:
        download = self.spec.downloads.get(self.plat.os)
        if download is None:
            raise AssetNotFound(f"no download published for {self.plat.os}")
        version = self.latest_version()
        arch = download.arch_names.get(self.plat.arch, self.plat.arch)
        url = download.url.format(version=version, arch=arch)
        file_name = download.file_name.format(version=version, arch=arch)
        return Release(tag=version, assets=(ReleaseAsset(name=file_name, id=url, url=url),))

    def _download_one(self, asset: ReleaseAsset, dest_dir: Path) -> Path:
        return download_to(asset.url, local_path(dest_dir, asset.name), timeout=self.timeout)
