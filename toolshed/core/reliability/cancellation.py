"""
Cancellation token — cooperative stop signal for batch operations.

The registry checks the token before each tool, the installer
between state-machine steps.  Nothing is interrupted mid-step: a
download in flight finishes (bounded by its network timeout), then
the next checkpoint raises ``InstallCancelled``.
"""

from __future__ import annotations

import threading

from toolshed.core.errors import InstallCancelled


class CancellationToken:
    """Thread-safe, one-way cancel flag."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, tool: str | None = None) -> None:
        """Raise ``InstallCancelled`` if :meth:`cancel` has been called."""
        if self._event.is_set():
            raise InstallCancelled(self.reason or "cancelled", tool=tool)
