"""
Domain models — Pydantic types for toolshed.

All models are re-exported here for convenient access:

    from toolshed.core.models import Release, ReleaseAsset, ToolSpec, ToolOutcome
"""

from toolshed.core.models.outcome import BatchReport, ToolOutcome
from toolshed.core.models.release import Release, ReleaseAsset
from toolshed.core.models.tool import (
    AssetSelector,
    BucketSourceSpec,
    GithubSourceSpec,
    GpgSignature,
    InlineChecksum,
    MirrorSourceSpec,
    NoVerification,
    ProxyWrapper,
    SharedChecksums,
    ToolSpec,
    UrlDownload,
    UrlSourceSpec,
)

__all__ = [
    # tool.py
    "AssetSelector",
    # outcome.py
    "BatchReport",
    "BucketSourceSpec",
    "GithubSourceSpec",
    "GpgSignature",
    "InlineChecksum",
    "MirrorSourceSpec",
    "NoVerification",
    "ProxyWrapper",
    # release.py
    "Release",
    "ReleaseAsset",
    "SharedChecksums",
    "ToolOutcome",
    "ToolSpec",
    "UrlDownload",
    "UrlSourceSpec",
]
