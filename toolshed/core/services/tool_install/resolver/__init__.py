"""
L2 Resolver — ``__init__.py`` re-exports the release cache.
"""

from toolshed.core.services.tool_install.resolver.release_cache import (  # noqa: F401
    ReleaseCache,
)
