"""
Object-storage source — public Google Cloud Storage buckets.

Listing and downloads go through ``google-cloud-storage`` with an
anonymous client; the bucket must be publicly readable.  The library
is imported on first use so the other sources work without it being
importable at startup.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

from toolshed.adapters.sources.base import ReleaseSource, local_path
from toolshed.core.errors import FilesystemError, SourceUnavailable
from toolshed.core.models.release import Release, ReleaseAsset
from toolshed.core.models.tool import BucketSourceSpec
from toolshed.core.services.tool_install.data.constants import DEFAULT_TIMEOUT, FILE_MODE
from toolshed.core.services.tool_install.detection.platform_info import (
    Platform,
    current_platform,
)
from toolshed.core.services.tool_install.domain.asset_matching import match_arch_and_os

logger = logging.getLogger(__name__)

GCS_PUBLIC_URL = "https://storage.googleapis.com"


def find_latest(objs: Sequence):
    """Object with the lexicographically greatest name, or ``None``."""
    latest = None
    for obj in objs:
        if latest is None or obj.name > latest.name:
            latest = obj
    return latest


class BucketSource(ReleaseSource):
    """Versioned archives stored as objects under a common prefix.

    Args:
        spec: Bucket, prefix and archive suffix.
        plat: Platform used to filter object names.
        timeout: Per-request timeout in seconds.
        client: Pre-built ``storage.Client`` (tests inject a fake).
    """

    def __init__(
        self,
        spec: BucketSourceSpec,
        *,
        plat: Platform | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client=None,
    ):
        super().__init__(timeout)
        self.spec = spec
        self.plat = plat or current_platform()
        self._client = client
        self._objects: dict[str, object] = {}

    @property
    def name(self) -> str:
        return f"bucket:{self.spec.bucket}/{self.spec.prefix}"

    @property
    def client(self):
        if self._client is None:
            from google.cloud import storage

            self._client = storage.Client.create_anonymous_client()
        return self._client

    # ── Object-storage access ───────────────────────────────────

    def list_objects(self, prefix: str | None = None) -> list:
        """Every object under ``prefix`` (defaults to the configured prefix)."""
        from google.api_core import exceptions as gexc

        prefix = self.spec.prefix if prefix is None else prefix
        try:
            blobs = self.client.list_blobs(self.spec.bucket, prefix=prefix, timeout=self.timeout)
            return list(blobs)
        except (gexc.GoogleAPIError, OSError) as e:
            raise SourceUnavailable(
                f"failed to list objects in bucket '{self.spec.bucket}' with prefix '{prefix}': {e}"
            ) from e

    def download_object(self, obj, dest_dir: Path) -> Path:
        """Download ``obj`` into ``dest_dir`` under its base name."""
        from google.api_core import exceptions as gexc

        path = local_path(dest_dir, Path(obj.name).name)
        try:
            blob = self.client.bucket(self.spec.bucket).blob(obj.name)
            blob.download_to_filename(str(path), timeout=self.timeout)
        except (gexc.GoogleAPIError, OSError) as e:
            raise SourceUnavailable(f"failed to download object '{obj.name}': {e}") from e
        try:
            os.chmod(path, FILE_MODE)
        except OSError as e:
            raise FilesystemError(f"failed to set permission on '{path}': {e}") from e
        return path

    def find_latest(self, objs: Sequence):
        return find_latest(objs)

    # ── ReleaseSource ───────────────────────────────────────────

    def _platform_objects(self) -> list:
        objs = [o for o in self.list_objects() if o.name.endswith(self.spec.suffix)]
        names = set(match_arch_and_os([Path(o.name).name for o in objs], self.plat))
        return [o for o in objs if Path(o.name).name in names]

    def latest_release(self) -> Release:
        latest = self.find_latest(self._platform_objects())
        if latest is None:
            raise SourceUnavailable(
                f"no objects for {self.plat} under '{self.spec.prefix}' in bucket '{self.spec.bucket}'"
            )
        file_name = Path(latest.name).name
        self._objects[file_name] = latest
        asset = ReleaseAsset(
            name=file_name,
            id=latest.name,
            size=getattr(latest, "size", 0) or 0,
            url=f"{GCS_PUBLIC_URL}/{self.spec.bucket}/{latest.name}",
        )
        return Release(tag=file_name.removesuffix(self.spec.suffix), assets=(asset,))

    def _download_one(self, asset: ReleaseAsset, dest_dir: Path) -> Path:
        obj = self._objects.get(asset.name)
        if obj is None:
            raise SourceUnavailable(f"object '{asset.name}' was not listed by this source")
        return self.download_object(obj, dest_dir)
