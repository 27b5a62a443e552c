"""
GitHub Releases source.

Talks to the GitHub REST API with ``urllib``.  Authenticates when a
token is available (config, ``GH_TOKEN``/``GITHUB_TOKEN``, or the
``gh`` CLI's stored login) to lift the anonymous rate limit; works
anonymously otherwise.  Assets are fetched from their public
``browser_download_url`` so the token never leaves api.github.com.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any

from toolshed.adapters.sources.base import ReleaseSource, local_path
from toolshed.adapters.sources.http import download_to, fetch_json
from toolshed.core.errors import SourceUnavailable
from toolshed.core.models.release import Release, ReleaseAsset
from toolshed.core.services.tool_install.data.constants import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"


def resolve_token(configured: str | None = None) -> str:
    """Find a GitHub token, or return ``""`` to go anonymous."""
    if configured:
        return configured
    for var in ("GH_TOKEN", "GITHUB_TOKEN"):
        value = os.environ.get(var, "").strip()
        if value:
            return value
    if shutil.which("gh"):
        try:
            r = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True, text=True, timeout=5,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("gh auth token failed: %s", e)
            return ""
        if r.returncode == 0:
            return r.stdout.strip()
    return ""


def _release_from_json(data: dict[str, Any]) -> Release:
    assets = tuple(
        ReleaseAsset(
            name=a.get("name", ""),
            id=str(a.get("id", "")),
            size=a.get("size", 0) or 0,
            url=a.get("browser_download_url", ""),
        )
        for a in data.get("assets", [])
    )
    return Release(tag=data.get("tag_name", ""), assets=assets)


class GithubSource(ReleaseSource):
    """Releases of ``owner/repo`` on GitHub.

    Args:
        owner: Organization or user.
        repo: Repository name.
        token: API token; ``None`` to resolve one automatically.
        version_from_tag: Report the newest git tag as the latest
            version instead of the latest release's tag.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str | None = None,
        version_from_tag: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(timeout)
        self.owner = owner
        self.repo = repo
        self.version_from_tag = version_from_tag
        self._token = token

    @property
    def name(self) -> str:
        return f"github:{self.owner}/{self.repo}"

    def _headers(self) -> dict[str, str]:
        if self._token is None:
            self._token = resolve_token()
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get(self, path: str) -> Any:
        url = f"{API_URL}/repos/{self.owner}/{self.repo}/{path}"
        return fetch_json(url, timeout=self.timeout, headers=self._headers())

    # ── Queries ─────────────────────────────────────────────────

    def list_releases(self, per_page: int = 30, page: int = 1) -> list[Release]:
        data = self._get(f"releases?per_page={per_page}&page={page}")
        return [_release_from_json(r) for r in data]

    def fetch_latest_release(self) -> Release:
        data = self._get("releases/latest")
        if not isinstance(data, dict) or not data.get("tag_name"):
            raise SourceUnavailable(f"{self.name}: latest release has no tag")
        return _release_from_json(data)

    def fetch_latest_tag(self) -> str:
        """Name of the most recent tag (GitHub lists newest first)."""
        tags = self._get("tags?per_page=1")
        if not tags:
            raise SourceUnavailable(f"{self.name}: repository has no tags")
        return tags[0]["name"]

    # ── ReleaseSource ───────────────────────────────────────────

    def latest_release(self) -> Release:
        return self.fetch_latest_release()

    def latest_version(self) -> str:
        if self.version_from_tag:
            return self.fetch_latest_tag()
        return self.fetch_latest_release().tag

    def _download_one(self, asset: ReleaseAsset, dest_dir: Path) -> Path:
        if not asset.url:
            raise SourceUnavailable(f"asset '{asset.name}' has no download URL")
        return download_to(asset.url, local_path(dest_dir, asset.name), timeout=self.timeout)
