"""
Source adapter base — the contract between the installer and release backends.

The installer only talks to backends through this interface: ask
for the latest Release, then download a subset of its assets into a
directory.  Backends (GitHub, HTTP mirror, object storage, plain
URLs) translate every transport failure into ``SourceUnavailable``.

To create a new source:
    1. Subclass ReleaseSource
    2. Implement name, latest_release, _download_one
    3. Wire its spec kind into ``create_source``
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from toolshed.core.errors import FilesystemError, SourceUnavailable, ToolshedError
from toolshed.core.models.release import Release, ReleaseAsset
from toolshed.core.services.tool_install.data.constants import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class ReleaseSource(ABC):
    """Abstract base class for all release sources.

    Args:
        timeout: Per-request network timeout in seconds.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier for logs and errors (e.g. ``github:owner/repo``)."""

    @abstractmethod
    def latest_release(self) -> Release:
        """Fetch the latest release and its assets.

        Raises:
            SourceUnavailable: if the backend cannot be queried.
        """

    def latest_version(self) -> str:
        """Version identifier of the latest release."""
        return self.latest_release().tag

    @abstractmethod
    def _download_one(self, asset: ReleaseAsset, dest_dir: Path) -> Path:
        """Download one asset into ``dest_dir`` under its own name."""

    def manual_url(self, asset: ReleaseAsset) -> str | None:
        """URL a user could fetch ``asset`` from by hand."""
        return asset.url if asset.url.startswith(("http://", "https://")) else None

    def download(self, assets: Sequence[ReleaseAsset], dest_dir: Path) -> list[Path]:
        """Download every asset into ``dest_dir``.

        All downloads are attempted; failures are collected and raised
        together.

        Returns:
            Local paths, in the order of ``assets``.

        Raises:
            SourceUnavailable: listing every asset that failed.
        """
        paths: list[Path] = []
        errors: list[str] = []
        for asset in assets:
            try:
                paths.append(self._download_one(asset, dest_dir))
            except (ToolshedError, OSError) as e:
                logger.debug("Download of %s from %s failed: %s", asset.name, self.name, e)
                errors.append(f"{asset.name}: {e}")
        if errors:
            raise SourceUnavailable("failed to download one or more assets: " + "; ".join(errors))
        return paths

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


def local_path(dest_dir: Path, file_name: str) -> Path:
    """Destination for a downloaded file; rejects names with path parts."""
    if not file_name or Path(file_name).name != file_name:
        raise FilesystemError(f"refusing to write asset named '{file_name}'")
    return dest_dir / file_name
