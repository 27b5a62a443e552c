"""
L2 Resolver — Request-scoped release cache.

One ReleaseCache lives for one CLI command.  It memoizes each tool's
source adapter and latest-release lookup, so printing the version
list and then installing costs a single query per tool.  Failed
lookups are memoized too and re-raised on every access.  Nothing is
persisted across processes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from toolshed.core.errors import ToolshedError
from toolshed.core.models.release import Release
from toolshed.core.models.tool import ToolSpec

if TYPE_CHECKING:
    from toolshed.adapters.sources.base import ReleaseSource

logger = logging.getLogger(__name__)


class ReleaseCache:
    """Memoized latest-release lookups for the current command.

    Args:
        source_for: Builds the source adapter for a tool.
    """

    def __init__(self, source_for: Callable[[ToolSpec], ReleaseSource]):
        self._source_for = source_for
        self._sources: dict[str, ReleaseSource] = {}
        self._releases: dict[str, Release | ToolshedError] = {}

    def source(self, tool: ToolSpec) -> ReleaseSource:
        if tool.name not in self._sources:
            self._sources[tool.name] = self._source_for(tool)
        return self._sources[tool.name]

    def release(self, tool: ToolSpec) -> Release:
        """Latest release of ``tool``, fetched at most once."""
        if tool.name not in self._releases:
            try:
                self._releases[tool.name] = self.source(tool).latest_release()
            except ToolshedError as e:
                e.tool = e.tool or tool.name
                self._releases[tool.name] = e
        return self._unwrap(self._releases[tool.name])

    def version(self, tool: ToolSpec) -> str:
        """Latest version of ``tool``: the tag of its cached release.

        Going through :meth:`release` keeps the version shown to the
        user and the version later installed identical within a command.
        """
        return self.release(tool).tag

    def clear(self) -> None:
        self._releases.clear()

    @staticmethod
    def _unwrap(value):
        if isinstance(value, ToolshedError):
            raise value
        return value
