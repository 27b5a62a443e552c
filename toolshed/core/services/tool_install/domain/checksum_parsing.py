"""
L1 Domain — Checksum file parsing.

Checksum manifests come in the ``sha256sum`` layout
(``<digest>  <filename>`` per line), occasionally with several
digest columns per file.  The entry for an asset is the line where
one whitespace-delimited token IS the asset's file name: an exact
token match, so ``tool`` never picks up ``tool.tar.gz``.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from toolshed.core.errors import AssetNotFound


def _is_key_token(token: str, filename: str) -> bool:
    # sha256sum marks binary mode with a leading '*'; some manifests
    # list paths relative to a build directory.
    token = token.lstrip("*")
    return token == filename or PurePosixPath(token).name == filename


def find_entry(text: str, filename: str) -> tuple[list[str], int] | None:
    """Return ``(tokens, key_index)`` of the line listing ``filename``.

    Returns:
        The tokenized line and the index of the key token, or None if
        no line lists the file.
    """
    for line in text.splitlines():
        tokens = line.split()
        for idx, token in enumerate(tokens):
            if _is_key_token(token, filename):
                return tokens, idx
    return None


def expected_digests(
    text: str,
    filename: str,
    *,
    multi_format: bool = False,
    allow_bare: bool = False,
) -> list[str]:
    """Extract the published digest(s) for ``filename`` from a manifest.

    Args:
        text: Checksum file contents.
        filename: Asset file name to look up.
        multi_format: Accept every non-key column of the line as a
            candidate digest instead of requiring a 2-column line.
        allow_bare: Accept a file holding a single bare digest and no
            file name (per-asset checksum files).

    Returns:
        Candidate digests; the file matches if any of them matches.

    Raises:
        AssetNotFound: if the manifest has no usable entry for the file.
    """
    entry = find_entry(text, filename)
    if entry is None:
        tokens = text.split()
        if allow_bare and len(tokens) == 1:
            return tokens
        raise AssetNotFound(f"no checksum entry for '{filename}'")

    tokens, key_idx = entry
    digests = [t for i, t in enumerate(tokens) if i != key_idx]
    if multi_format:
        if not digests:
            raise AssetNotFound(f"checksum entry for '{filename}' has no digest")
        return digests
    if len(tokens) != 2:
        raise AssetNotFound(
            f"checksum entry for '{filename}' is malformed: "
            f"expected 2 fields, got {len(tokens)}"
        )
    return digests


def digests_match(actual: str, expected: str) -> bool:
    """Compare two hex digests, ignoring case and surrounding whitespace."""
    return actual.strip().lower() == expected.strip().lower()
