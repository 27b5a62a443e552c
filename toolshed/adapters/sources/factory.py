"""
Source factory — build the ReleaseSource a ToolSpec's source names.
"""

from __future__ import annotations

from toolshed.adapters.sources.base import ReleaseSource
from toolshed.adapters.sources.github import GithubSource
from toolshed.adapters.sources.mirror import DEFAULT_MIRROR_URL, MirrorSource
from toolshed.adapters.sources.storage import BucketSource
from toolshed.adapters.sources.url import UrlSource
from toolshed.core.errors import ConfigurationError
from toolshed.core.models.tool import (
    BucketSourceSpec,
    GithubSourceSpec,
    MirrorSourceSpec,
    ToolSpec,
    UrlSourceSpec,
)
from toolshed.core.services.tool_install.data.constants import DEFAULT_TIMEOUT
from toolshed.core.services.tool_install.detection.platform_info import Platform


def create_source(
    tool: ToolSpec,
    *,
    plat: Platform | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    github_token: str | None = None,
    mirror_url: str = DEFAULT_MIRROR_URL,
) -> ReleaseSource:
    """Instantiate the adapter for ``tool.source``.

    Raises:
        ConfigurationError: for a source kind with no adapter.
    """
    spec = tool.source
    if isinstance(spec, GithubSourceSpec):
        return GithubSource(
            spec.owner, spec.repo,
            token=github_token,
            version_from_tag=spec.version_from_tag,
            timeout=timeout,
        )
    if isinstance(spec, MirrorSourceSpec):
        return MirrorSource(spec, base_url=mirror_url, plat=plat, timeout=timeout)
    if isinstance(spec, BucketSourceSpec):
        return BucketSource(spec, plat=plat, timeout=timeout)
    if isinstance(spec, UrlSourceSpec):
        return UrlSource(spec, token=github_token, plat=plat, timeout=timeout)
    raise ConfigurationError(f"no source adapter for kind '{spec.kind}'", tool=tool.name)
