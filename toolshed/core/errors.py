"""
Error taxonomy — every failure a tool install can surface.

Source adapters and filesystem helpers raise these with enough
context (tool, asset, path) to be actionable.  The registry's batch
loop is the single place that catches them and turns them into
per-tool outcomes; nothing below it retries.
"""

from __future__ import annotations

from collections.abc import Sequence


class ToolshedError(Exception):
    """Base class for all toolshed failures.

    Args:
        message: Human-readable description.
        tool: Name of the tool being processed, when known.
        hint: Optional recovery hint shown to the user (e.g. a manual
            download URL).
    """

    def __init__(self, message: str, *, tool: str | None = None, hint: str | None = None):
        super().__init__(message)
        self.tool = tool
        self.hint = hint


class SourceUnavailable(ToolshedError):
    """A release source could not be reached (network, auth, 404, rate limit)."""


class AssetNotFound(ToolshedError):
    """No asset matched where exactly one was expected."""


class AmbiguousAsset(ToolshedError):
    """More than one asset matched where exactly one was expected."""

    def __init__(self, message: str, matches: Sequence[str], **kwargs):
        super().__init__(message, **kwargs)
        self.matches = list(matches)


class ChecksumMismatch(ToolshedError):
    """The downloaded file's digest differs from the published one."""

    def __init__(
        self,
        message: str,
        *,
        expected: str,
        actual: str,
        path: str,
        download_url: str | None = None,
        tool: str | None = None,
    ):
        hint = None
        if download_url:
            hint = (
                "Please retry installation. If the issue persists, this tool "
                f"can be downloaded manually at {download_url}"
            )
        super().__init__(message, tool=tool, hint=hint)
        self.expected = expected
        self.actual = actual
        self.path = path
        self.download_url = download_url


class SignatureInvalid(ToolshedError):
    """A detached GPG signature did not verify against the trusted key."""


class FilesystemError(ToolshedError):
    """Creating, removing or linking something on disk failed."""


class UnarchiveError(ToolshedError):
    """An archive could not be unpacked."""


class ConfigurationError(ToolshedError):
    """Invalid static configuration (catalog, config file, regex pattern)."""


class InstallCancelled(ToolshedError):
    """The batch was cancelled before this tool finished."""
