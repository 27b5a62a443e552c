"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Architecture name normalization.
#
# Runtime probes report raw ``uname -m`` names; the rest of the
# package speaks Go-style names (amd64/arm64), which is what most
# upstream release assets use.
_IARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "AMD64": "amd64",      # Windows / WSL2
    "aarch64": "arm64",
    "arm64": "arm64",      # macOS (Darwin reports arm64)
    "armv7l": "armhf",
    "i686": "i386",
    "i386": "i386",
}

# Alternate spellings found in release asset names.  Symmetric:
# matching for either side also accepts the other.  Names without an
# entry match only themselves.
ARCH_ALIASES: dict[str, tuple[str, ...]] = {
    "amd64": ("x86_64",),
    "x86_64": ("amd64",),
}

OS_ALIASES: dict[str, tuple[str, ...]] = {
    "darwin": ("mac",),
    "mac": ("darwin",),
}

# Archive suffixes the installer knows how to unpack, longest first.
ARCHIVE_SUFFIXES: tuple[str, ...] = (".tar.gz", ".tgz", ".zip", ".pkg")

# Directory and link permissions.
DIR_MODE = 0o755
FILE_MODE = 0o755

# Name of the shared symlink directory under the install root.
LATEST_DIR_NAME = "latest"

# Application directory name under ~/.local/bin
APP_DIR_NAME = "toolshed"

# Default per-request network timeout (seconds).
DEFAULT_TIMEOUT = 30.0

# Per-run scratch directories inside a version directory.  Downloads
# land in a staging dir and only reach the version dir once verified.
STAGING_PREFIX = ".staging-"
UNVERIFIED_DIR_NAME = "unverified"
