"""
HTTP mirror source.

Mirrors publish a directory per release channel holding a plain-text
manifest (``release.txt``) with a ``Version: <v>`` line, the client
archives, and a shared ``sha256sum.txt``.  Asset names are built from
templates since a mirror directory can't be listed reliably.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path

from toolshed.adapters.sources.base import ReleaseSource, local_path
from toolshed.adapters.sources.http import download_to, join_url, open_url
from toolshed.core.errors import SourceUnavailable
from toolshed.core.models.release import Release, ReleaseAsset
from toolshed.core.models.tool import MirrorSourceSpec
from toolshed.core.services.tool_install.data.constants import DEFAULT_TIMEOUT
from toolshed.core.services.tool_install.detection.platform_info import (
    Platform,
    current_platform,
)

logger = logging.getLogger(__name__)

DEFAULT_MIRROR_URL = "https://mirror.openshift.com"


def parse_version_manifest(text: str) -> str:
    """Extract ``<v>`` from the manifest's ``Version: <v>`` line.

    Raises:
        SourceUnavailable: if no well-formed version line exists.
    """
    for line in text.splitlines():
        if "Version:" not in line:
            continue
        tokens = line.split()
        if len(tokens) != 2:
            raise SourceUnavailable(
                f"failed to parse version info: expected 2 tokens, got {len(tokens)}: {line.strip()!r}"
            )
        if tokens[0] != "Version:":
            raise SourceUnavailable(
                f"failed to parse version info: expected line to begin with 'Version:', got {tokens[0]!r}"
            )
        return tokens[1]
    raise SourceUnavailable("failed to determine version info: no 'Version:' line in release manifest")


class MirrorSource(ReleaseSource):
    """Files under ``base_url`` + a templated channel path.

    Args:
        spec: Mirror layout for one tool.
        base_url: Mirror root URL.
        plat: Platform used to fill ``{os}``/``{arch}``.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        spec: MirrorSourceSpec,
        *,
        base_url: str = DEFAULT_MIRROR_URL,
        plat: Platform | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(timeout)
        self.spec = spec
        self.base_url = base_url
        self.plat = plat or current_platform()

    @property
    def name(self) -> str:
        return f"mirror:{self.build_url(self.base_path)}"

    @property
    def base_path(self) -> str:
        return self.spec.base_path.format(arch=self.plat.arch, os=self._os_name)

    @property
    def _os_name(self) -> str:
        return self.spec.os_names.get(self.plat.os, self.plat.os)

    def build_url(self, path: str) -> str:
        return join_url(self.base_url, path)

    # ── Mirror-style access ─────────────────────────────────────

    @contextlib.contextmanager
    def get_file_contents(self, path: str) -> Iterator:
        """Open a remote file for streaming; closed on context exit."""
        resp = open_url(self.build_url(path), timeout=self.timeout)
        try:
            yield resp
        finally:
            resp.close()

    def download_file(self, path: str, dest_dir: Path) -> Path:
        """Download ``path`` into ``dest_dir``, keeping its file name."""
        url = self.build_url(path)
        return download_to(url, local_path(dest_dir, Path(path).name), timeout=self.timeout)

    # ── ReleaseSource ───────────────────────────────────────────

    def latest_version(self) -> str:
        manifest = join_url(self.base_path, self.spec.manifest)
        try:
            with self.get_file_contents(manifest) as resp:
                text = resp.read().decode("utf-8", errors="replace")
        except OSError as e:
            raise SourceUnavailable(f"failed to read release info from {manifest}: {e}") from e
        return parse_version_manifest(text)

    def latest_release(self) -> Release:
        version = self.latest_version()
        assets = []
        for template in self.spec.files:
            file_name = template.format(version=version, os=self._os_name, arch=self.plat.arch)
            path = join_url(self.base_path, file_name)
            assets.append(ReleaseAsset(name=file_name, id=path, url=self.build_url(path)))
        return Release(tag=version, assets=tuple(assets))

    def _download_one(self, asset: ReleaseAsset, dest_dir: Path) -> Path:
        return self.download_file(asset.id or join_url(self.base_path, asset.name), dest_dir)
