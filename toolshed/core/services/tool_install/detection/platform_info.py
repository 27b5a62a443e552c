"""
L3 Detection — Runtime OS and architecture.

Read-only probes normalized to Go-style names (``linux``/``darwin``,
``amd64``/``arm64``), which is what release asset names use.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass

from toolshed.core.services.tool_install.data.constants import _IARCH_MAP


@dataclass(frozen=True)
class Platform:
    """An (OS, arch) pair in canonical form."""

    os: str
    arch: str

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


def detect_os() -> str:
    """Return the running OS as ``linux``, ``darwin``, ``windows``, …"""
    return platform.system().lower()


def detect_arch() -> str:
    """Return the running CPU architecture, Go-style."""
    machine = platform.machine()
    return _IARCH_MAP.get(machine, _IARCH_MAP.get(machine.lower(), machine.lower()))


def current_platform() -> Platform:
    return Platform(os=detect_os(), arch=detect_arch())
