"""
L4 Execution — Detached GPG signature verification.

The trusted public key is imported into a throwaway keyring so the
user's own ``~/.gnupg`` is never touched.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import gnupg

from toolshed.core.errors import SignatureInvalid

logger = logging.getLogger(__name__)


def verify_detached_signature(
    path: Path,
    signature_path: Path,
    key_data: bytes,
    *,
    tool: str | None = None,
) -> str:
    """Verify ``signature_path`` as a detached signature of ``path``.

    Args:
        path: The signed file.
        signature_path: Armored detached signature (``.asc``).
        key_data: Public key(s) the signature must come from.
        tool: Tool name for error context.

    Returns:
        Fingerprint of the signing key.

    Raises:
        SignatureInvalid: if gpg is unavailable, the key cannot be
            imported, or the signature does not verify.
    """
    with tempfile.TemporaryDirectory(prefix="toolshed-gpg-") as home:
        try:
            gpg = gnupg.GPG(gnupghome=home)
        except (OSError, ValueError) as e:
            raise SignatureInvalid(f"gpg is not available: {e}", tool=tool) from e

        imported = gpg.import_keys(key_data)
        if not imported.count:
            raise SignatureInvalid("failed to read the signing keys", tool=tool)
        logger.debug("Imported %d signing key(s)", imported.count)

        try:
            with open(signature_path, "rb") as sig:
                verified = gpg.verify_file(sig, data_filename=str(path))
        except OSError as e:
            raise SignatureInvalid(f"failed to open '{signature_path}': {e}", tool=tool) from e

    if not verified.valid:
        raise SignatureInvalid(
            f"failed to verify file signature of '{path.name}': {verified.status or 'no valid signature'}",
            tool=tool,
        )
    logger.info("Signature OK for %s (key %s)", path.name, verified.fingerprint)
    return verified.fingerprint or ""
