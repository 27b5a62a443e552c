"""toolshed — install and upgrade third-party CLI binaries from their releases."""

__version__ = "0.1.0"
