"""
L4 Execution — Download integrity verification.

SHA-256 digests checked against a per-asset checksum file or a
shared manifest.  Signatures live in ``signature.py``.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from toolshed.core.errors import ChecksumMismatch, FilesystemError
from toolshed.core.services.tool_install.domain.checksum_parsing import (
    digests_match,
    expected_digests,
)

logger = logging.getLogger(__name__)


def sha256_file(path: Path) -> str:
    """Hex SHA-256 of the file at ``path``."""
    h = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                h.update(chunk)
    except OSError as e:
        raise FilesystemError(f"failed to read '{path}' while generating sha256sum: {e}") from e
    return h.hexdigest()


def verify_checksum(
    path: Path,
    checksum_file: Path,
    *,
    multi_format: bool = False,
    allow_bare: bool = False,
    download_url: str | None = None,
    tool: str | None = None,
) -> str:
    """Check ``path`` against its entry in ``checksum_file``.

    Args:
        path: Downloaded primary asset.
        checksum_file: Manifest or per-asset checksum file.
        multi_format: Accept the digest in any column of the entry.
        allow_bare: Accept a checksum file holding only a digest.
        download_url: Where the asset came from; used as recovery hint.
        tool: Tool name for error context.

    Returns:
        The verified digest.

    Raises:
        ChecksumMismatch: if the digest does not match.
        AssetNotFound: if the checksum file has no entry for the asset.
        FilesystemError: if either file cannot be read.
    """
    try:
        text = checksum_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FilesystemError(f"failed to read checksum file '{checksum_file}': {e}", tool=tool) from e

    candidates = expected_digests(
        text, path.name, multi_format=multi_format, allow_bare=allow_bare,
    )
    actual = sha256_file(path)

    if any(digests_match(actual, expected) for expected in candidates):
        logger.debug("Checksum OK for %s (%s)", path.name, actual)
        return actual

    expected = candidates[0].strip().lower() if len(candidates) == 1 else ", ".join(candidates)
    raise ChecksumMismatch(
        f"checksum for '{path}' does not match the calculated value: "
        f"expected '{expected}', got '{actual}'",
        expected=expected,
        actual=actual,
        path=str(path),
        download_url=download_url,
        tool=tool,
    )
