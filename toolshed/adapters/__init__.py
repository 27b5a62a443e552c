"""Adapters — bindings to external release backends.

Public re-exports for convenient access.
"""

from toolshed.adapters.sources import ReleaseSource, create_source

__all__ = [
    "ReleaseSource",
    "create_source",
]
