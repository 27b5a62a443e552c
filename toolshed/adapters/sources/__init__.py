"""
Release sources — one adapter per backend (GitHub, mirror, bucket, URL).
"""

from toolshed.adapters.sources.base import ReleaseSource
from toolshed.adapters.sources.factory import create_source
from toolshed.adapters.sources.github import GithubSource
from toolshed.adapters.sources.mirror import MirrorSource
from toolshed.adapters.sources.storage import BucketSource
from toolshed.adapters.sources.url import UrlSource

__all__ = [
    "BucketSource",
    "GithubSource",
    "MirrorSource",
    "ReleaseSource",
    "UrlSource",
    "create_source",
]
